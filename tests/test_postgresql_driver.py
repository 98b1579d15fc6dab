"""Tests for the PostgreSQL driver with a mocked psycopg2."""

from dataclasses import replace
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from dbbase.database.drivers import DriverState, PostgreSQLDriver
from dbbase.errors import DatabaseConnectionError, NotConnectedError, QueryError


def make_connection(rows=None, description=True, statusmessage="SELECT 1", rowcount=1):
    cursor = MagicMock()
    cursor.description = [("col",)] if description else None
    cursor.fetchall.return_value = rows or []
    cursor.statusmessage = statusmessage
    cursor.rowcount = rowcount

    connection = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    return connection, cursor


@pytest.fixture
def connected(pg_profile):
    """Factory yielding a connected driver around a mocked native connection."""

    async def _connect(**kwargs):
        connection, cursor = make_connection(**kwargs)
        with patch("dbbase.database.drivers.postgresql.psycopg2.connect", return_value=connection):
            driver = PostgreSQLDriver(pg_profile)
            await driver.connect()
        return driver, connection, cursor

    return _connect


async def test_connect_passes_profile_and_timeout(pg_profile):
    connection, _ = make_connection()
    with patch(
        "dbbase.database.drivers.postgresql.psycopg2.connect", return_value=connection
    ) as mock_connect:
        driver = PostgreSQLDriver(pg_profile)
        await driver.connect()

    kwargs = mock_connect.call_args.kwargs
    assert kwargs["host"] == "localhost"
    assert kwargs["port"] == 5432
    assert kwargs["dbname"] == "shop"
    assert kwargs["user"] == "app"
    assert kwargs["password"] == "secret"
    assert kwargs["connect_timeout"] == 5
    assert connection.autocommit is True
    assert driver.state is DriverState.CONNECTED


async def test_blank_database_defaults_to_postgres(pg_profile):
    connection, _ = make_connection()
    with patch(
        "dbbase.database.drivers.postgresql.psycopg2.connect", return_value=connection
    ) as mock_connect:
        await PostgreSQLDriver(replace(pg_profile, database="")).connect()

    assert mock_connect.call_args.kwargs["dbname"] == "postgres"


async def test_connect_failure_leaves_driver_disconnected(pg_profile):
    with patch(
        "dbbase.database.drivers.postgresql.psycopg2.connect",
        side_effect=psycopg2.OperationalError("password authentication failed"),
    ):
        driver = PostgreSQLDriver(pg_profile)
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await driver.connect()

    assert "password authentication failed" in str(exc_info.value)
    assert driver.state is DriverState.DISCONNECTED
    assert driver.connection is None


async def test_query_before_connect_fails(pg_profile):
    with pytest.raises(NotConnectedError):
        await PostgreSQLDriver(pg_profile).query("SELECT 1")


async def test_select_rows_are_returned_verbatim(connected):
    rows = [{"id": 1, "name": "Alice", "email": None}, {"id": 2, "name": "Bob", "email": "b@x"}]
    driver, _, cursor = await connected(rows=rows, statusmessage="SELECT 2", rowcount=2)

    result = await driver.query("SELECT * FROM users WHERE id > %s", [0])

    cursor.execute.assert_called_once_with("SELECT * FROM users WHERE id > %s", [0])
    assert result.rows == rows
    assert result.rows[0]["email"] is None
    assert result.command == "SELECT"
    assert result.execution_time_ms >= 0


async def test_update_without_rows_yields_status_row(connected):
    driver, _, _ = await connected(description=False, statusmessage="UPDATE 3", rowcount=3)

    result = await driver.query("UPDATE users SET active = false;")

    assert len(result.rows) == 1
    row = result.rows[0]
    assert row["status"] == "Success"
    assert row["command"] == "UPDATE"
    assert row["affected_rows"] == 3
    assert row["time"].endswith("ms")
    assert result.affected_rows == 3


async def test_insert_returning_keeps_native_rows(connected):
    driver, _, _ = await connected(rows=[{"id": 10}], statusmessage="INSERT 0 1", rowcount=1)

    result = await driver.query("INSERT INTO users (name) VALUES ('x') RETURNING id;")

    assert result.rows == [{"id": 10}]
    assert result.command == "INSERT"


async def test_ddl_without_rows_returns_empty_rows(connected):
    driver, _, _ = await connected(description=False, statusmessage="CREATE TABLE", rowcount=-1)

    result = await driver.query("CREATE TABLE t (id int);")

    assert result.rows == []
    assert result.affected_rows is None


async def test_native_error_becomes_query_error(connected):
    driver, _, cursor = await connected()
    cursor.execute.side_effect = psycopg2.ProgrammingError('relation "nope" does not exist')

    with pytest.raises(QueryError, match="does not exist"):
        await driver.query("SELECT * FROM nope")


async def test_disconnect_is_idempotent_and_swallows_errors(connected):
    driver, connection, _ = await connected()
    connection.close.side_effect = psycopg2.InterfaceError("connection already closed")

    await driver.disconnect()
    await driver.disconnect()

    assert driver.state is DriverState.DISCONNECTED
    assert connection.close.call_count == 1


async def test_get_tables_sorted(connected):
    driver, _, _ = await connected(rows=[{"name": "users"}, {"name": "orders"}])

    assert await driver.get_tables() == ["orders", "users"]


async def test_get_schema_shape(connected):
    rows = [
        {"table_name": "users", "column_name": "id", "data_type": "integer", "description": None},
        {"table_name": "users", "column_name": "name", "data_type": "text", "description": "Full name"},
    ]
    driver, _, _ = await connected(rows=rows)

    schema = await driver.get_schema()

    assert schema == rows


async def test_get_table_details_binds_table_name(connected):
    driver, _, cursor = await connected(rows=[{"constraint_name": "users_pkey"}])

    details = await driver.get_table_details("users")

    assert set(details) == {"table_name", "constraints", "indexes", "create_statement"}
    assert details["table_name"] == "users"
    for call in cursor.execute.call_args_list:
        assert call.args[1] == ("users",)
