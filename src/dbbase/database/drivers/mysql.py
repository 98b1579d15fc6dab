"""MySQL driver implementation."""

import asyncio
from typing import Any, Optional, Sequence

import pymysql
import pymysql.cursors

from dbbase.constants import CONNECT_TIMEOUT
from dbbase.database.drivers.base import BaseDriver
from dbbase.database.logging import QueryTimer, log_query_execution
from dbbase.database.models import QueryResult, status_row
from dbbase.errors import QueryError

TABLES_SQL = """
    SELECT TABLE_NAME AS name
    FROM information_schema.tables
    WHERE table_schema = DATABASE()
    AND table_type = 'BASE TABLE'
    ORDER BY TABLE_NAME;
"""

SCHEMA_SQL = """
    SELECT
        TABLE_NAME AS table_name,
        COLUMN_NAME AS column_name,
        DATA_TYPE AS data_type,
        COLUMN_COMMENT AS description
    FROM information_schema.columns
    WHERE table_schema = DATABASE()
    ORDER BY table_name, ordinal_position;
"""

CONSTRAINTS_SQL = """
    SELECT
        CONSTRAINT_NAME AS constraint_name,
        CONSTRAINT_TYPE AS constraint_type
    FROM information_schema.table_constraints
    WHERE table_schema = DATABASE()
    AND table_name = %s;
"""


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"


class MySQLDriver(BaseDriver):
    """MySQL-specific driver using the pymysql client."""

    display_name = "MySQL"

    async def _open(self) -> Any:
        connection_params = {
            "host": self.profile.host,
            "port": self.profile.port,
            "user": self.profile.user or None,
            "password": self.profile.password or "",
            "connect_timeout": int(CONNECT_TIMEOUT),
            "charset": "utf8mb4",
            "cursorclass": pymysql.cursors.DictCursor,
            "autocommit": True,
        }

        # Only add database parameter if the profile names one
        if self.profile.database:
            connection_params["database"] = self.profile.database

        return await asyncio.to_thread(pymysql.connect, **connection_params)

    async def _close(self, connection: Any) -> None:
        await asyncio.to_thread(connection.close)

    def _execute(
        self, connection: Any, text: str, params: Optional[Sequence[Any]]
    ) -> tuple[Optional[list[dict[str, Any]]], int]:
        with connection.cursor() as cursor:
            cursor.execute(text, params)
            if cursor.description is None:
                return None, cursor.rowcount
            return list(cursor.fetchall()), cursor.rowcount

    async def query(self, text: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        connection = self._require_connection()

        timer = QueryTimer()
        try:
            with timer:
                rows, rowcount = await asyncio.to_thread(self._execute, connection, text, params)
        except pymysql.Error as e:
            error_msg = str(e)
            log_query_execution(
                query=text,
                target=self.target,
                success=False,
                error=error_msg,
                duration_ms=timer.duration_ms,
            )
            raise QueryError(error_msg) from e

        affected_rows = None
        if rows is None:
            # Statement produced no result set: report the outcome instead
            affected_rows = rowcount
            rows = [status_row(affected_rows, timer.elapsed_ms)]

        log_query_execution(
            query=text,
            target=self.target,
            success=True,
            row_count=len(rows),
            duration_ms=timer.duration_ms,
        )

        return QueryResult(rows=rows, execution_time_ms=timer.elapsed_ms, affected_rows=affected_rows)

    async def get_tables(self) -> list[str]:
        result = await self.query(TABLES_SQL)
        return sorted(
            row.get("name") or row.get("TABLE_NAME") or row.get("table_name") for row in result.rows
        )

    async def get_schema(self) -> list[dict[str, Any]]:
        result = await self.query(SCHEMA_SQL)
        return [
            {
                "table_name": row["table_name"],
                "column_name": row["column_name"],
                "data_type": row["data_type"],
                "description": row.get("description"),
            }
            for row in result.rows
        ]

    async def get_table_details(self, table_name: str) -> dict[str, Any]:
        quoted = quote_identifier(table_name)
        constraints = await self.query(CONSTRAINTS_SQL, (table_name,))
        indexes = await self.query(f"SHOW INDEX FROM {quoted};")
        create_table = await self.query(f"SHOW CREATE TABLE {quoted};")

        create_statement = None
        if create_table.rows:
            create_statement = create_table.rows[0].get("Create Table")

        return {
            "table_name": table_name,
            "constraints": constraints.rows,
            "indexes": indexes.rows,
            "create_statement": create_statement,
        }
