"""Query gate: safety checks and row-limit rewriting."""

import re
from enum import Enum

from dbbase.constants import DEFAULT_ROW_LIMIT
from dbbase.errors import NotAReadQueryError, UnterminatedMutatingStatementError

# Statements that change data or schema; a textual guard, not a parser
MUTATING_STATEMENT_PATTERN = re.compile(r"^(INSERT|UPDATE|DELETE|CREATE|DROP|ALTER)", re.IGNORECASE)

LIMIT_CLAUSE_PATTERN = re.compile(r"\bLIMIT\s+\d+", re.IGNORECASE)

READ_QUERY_PREFIXES = ("SELECT", "WITH")


class QueryMode(str, Enum):
    INTERACTIVE = "interactive"
    AUTOMATED = "automated"


def is_mutating_statement(sql: str) -> bool:
    return bool(MUTATING_STATEMENT_PATTERN.match(sql.strip()))


def is_read_query(sql: str) -> bool:
    """Check that a statement starts with SELECT or WITH."""
    return sql.strip().upper().startswith(READ_QUERY_PREFIXES)


def check_interactive_statement(sql: str) -> str:
    """Require data-changing statements to end with ';'.

    Guards against running half of a statement that is still being typed.

    Raises:
        UnterminatedMutatingStatementError: If a mutating statement lacks ';'
    """
    statement = sql.strip()
    if is_mutating_statement(statement) and not statement.endswith(";"):
        raise UnterminatedMutatingStatementError()
    return sql


def apply_query_limit(sql: str, limit: int = DEFAULT_ROW_LIMIT) -> str:
    """Append ``LIMIT <limit>`` unless the statement already has a limit.

    The limit goes before a trailing ';'. Any existing ``LIMIT <n>`` leaves
    the statement untouched, so gating twice never adds a second limit.

    Args:
        sql: Read query
        limit: Row limit to inject

    Returns:
        The rewritten (or unchanged) statement
    """
    if LIMIT_CLAUSE_PATTERN.search(sql):
        return sql

    statement = sql.strip()
    if statement.endswith(";"):
        return f"{statement[:-1]} LIMIT {limit};"
    return f"{statement} LIMIT {limit}"


def gate_read_query(sql: str, limit: int = DEFAULT_ROW_LIMIT) -> str:
    """Validate an automated query as read-only and bound its row count.

    Raises:
        NotAReadQueryError: If the statement does not start with SELECT or WITH
    """
    if not is_read_query(sql):
        raise NotAReadQueryError()
    return apply_query_limit(sql, limit)


def gate_statement(sql: str, mode: QueryMode, limit: int = DEFAULT_ROW_LIMIT) -> str:
    """Apply the gate for the given execution mode.

    Args:
        sql: Statement to validate
        mode: ``interactive`` (terminator guard) or ``automated`` (read-only + limit)
        limit: Row limit for automated mode

    Returns:
        The statement to execute

    Raises:
        UnterminatedMutatingStatementError: Interactive mode rejection
        NotAReadQueryError: Automated mode rejection
    """
    if QueryMode(mode) is QueryMode.AUTOMATED:
        return gate_read_query(sql, limit)
    return check_interactive_statement(sql)
