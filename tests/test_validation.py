"""Tests for the query gate."""

import pytest

from dbbase.database.validation import (
    QueryMode,
    apply_query_limit,
    check_interactive_statement,
    gate_read_query,
    gate_statement,
    is_mutating_statement,
)
from dbbase.errors import NotAReadQueryError, UnterminatedMutatingStatementError


class TestAutomatedMode:
    def test_appends_limit(self):
        assert gate_read_query("select * from t") == "select * from t LIMIT 100"

    def test_inserts_limit_before_semicolon(self):
        assert gate_read_query("select * from t;") == "select * from t LIMIT 100;"

    def test_existing_limit_is_left_alone(self):
        assert gate_read_query("select * from t limit 5") == "select * from t limit 5"

    def test_rejects_update(self):
        with pytest.raises(NotAReadQueryError):
            gate_read_query("update t set x=1")

    @pytest.mark.parametrize("sql", ["DELETE FROM t", "DROP TABLE t", "SHOW TABLES", "", "   "])
    def test_rejects_non_read_statements(self, sql):
        with pytest.raises(NotAReadQueryError):
            gate_statement(sql, QueryMode.AUTOMATED)

    def test_with_queries_are_read_queries(self):
        sql = "WITH recent AS (SELECT * FROM orders) SELECT * FROM recent"
        assert gate_statement(sql, QueryMode.AUTOMATED) == f"{sql} LIMIT 100"

    def test_leading_whitespace_and_case(self):
        assert gate_read_query("  SeLeCt 1  ") == "SeLeCt 1 LIMIT 100"

    def test_gating_twice_does_not_double_limit(self):
        once = gate_read_query("SELECT * FROM t;")
        assert gate_read_query(once) == once

    def test_custom_limit(self):
        assert apply_query_limit("SELECT 1", limit=7) == "SELECT 1 LIMIT 7"

    def test_limit_without_number_still_gets_limit(self):
        # Only "LIMIT <number>" counts as a limit clause
        assert apply_query_limit("SELECT limit_col FROM t") == "SELECT limit_col FROM t LIMIT 100"


class TestInteractiveMode:
    @pytest.mark.parametrize(
        "sql",
        [
            "INSERT INTO t VALUES (1)",
            "update t set x = 1",
            "DELETE FROM t",
            "create table t (id int)",
            "DROP TABLE t",
            "ALTER TABLE t ADD c int",
        ],
    )
    def test_unterminated_mutating_statement_is_rejected(self, sql):
        with pytest.raises(UnterminatedMutatingStatementError):
            gate_statement(sql, QueryMode.INTERACTIVE)

    def test_terminated_mutating_statement_passes(self):
        assert check_interactive_statement("DELETE FROM t;") == "DELETE FROM t;"

    def test_trailing_whitespace_after_semicolon_is_fine(self):
        assert check_interactive_statement("UPDATE t SET x=1;  \n") == "UPDATE t SET x=1;  \n"

    def test_reads_need_no_terminator(self):
        assert gate_statement("SELECT * FROM t", QueryMode.INTERACTIVE) == "SELECT * FROM t"

    def test_interactive_mode_never_adds_limit(self):
        assert "LIMIT" not in gate_statement("SELECT * FROM t;", QueryMode.INTERACTIVE)


def test_is_mutating_statement_is_a_prefix_check():
    assert is_mutating_statement("  insert into t values (1);")
    assert not is_mutating_statement("SELECT * FROM t WHERE note = 'DELETE'")
