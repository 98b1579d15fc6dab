"""PostgreSQL driver implementation."""

import asyncio
import logging
from typing import Any, Optional, Sequence

import psycopg2
import psycopg2.extras

from dbbase.constants import CONNECT_TIMEOUT, DEFAULT_POSTGRES_DATABASE, MUTATING_COMMANDS
from dbbase.database.drivers.base import BaseDriver
from dbbase.database.logging import QueryTimer, log_query_execution
from dbbase.database.models import QueryResult, status_row
from dbbase.errors import QueryError

logger = logging.getLogger(__name__)

TABLES_SQL = """
    SELECT table_name AS name
    FROM information_schema.tables
    WHERE table_schema = 'public'
    AND table_type = 'BASE TABLE'
    ORDER BY table_name;
"""

SCHEMA_SQL = """
    SELECT
        t.table_name,
        c.column_name,
        c.data_type,
        pg_catalog.col_description(
            (quote_ident(t.table_schema) || '.' || quote_ident(t.table_name))::regclass::oid,
            c.ordinal_position
        ) AS description
    FROM information_schema.tables t
    JOIN information_schema.columns c
        ON t.table_name = c.table_name AND t.table_schema = c.table_schema
    WHERE t.table_schema = 'public'
    AND t.table_type = 'BASE TABLE'
    ORDER BY t.table_name, c.ordinal_position;
"""

CONSTRAINTS_SQL = """
    SELECT
        con.conname AS constraint_name,
        pg_get_constraintdef(con.oid) AS definition
    FROM pg_constraint con
    JOIN pg_class rel ON rel.oid = con.conrelid
    JOIN pg_namespace n ON n.oid = rel.relnamespace
    WHERE n.nspname = 'public'
    AND rel.relname = %s;
"""

INDEXES_SQL = """
    SELECT indexname, indexdef
    FROM pg_indexes
    WHERE schemaname = 'public'
    AND tablename = %s;
"""


class PostgreSQLDriver(BaseDriver):
    """PostgreSQL driver on psycopg2.

    psycopg2 is blocking, so every native call runs in a worker thread and the
    event loop only sees the await.
    """

    display_name = "PostgreSQL"

    async def _open(self) -> Any:
        conn_params = {
            "host": self.profile.host,
            "port": self.profile.port,
            "dbname": self.profile.database or DEFAULT_POSTGRES_DATABASE,
            "connect_timeout": int(CONNECT_TIMEOUT),
        }
        if self.profile.user:
            conn_params["user"] = self.profile.user
        if self.profile.password:
            conn_params["password"] = self.profile.password

        connection = await asyncio.to_thread(psycopg2.connect, **conn_params)
        # Each statement commits on its own; no transaction spans two queries
        connection.autocommit = True
        return connection

    async def _close(self, connection: Any) -> None:
        await asyncio.to_thread(connection.close)

    def _execute(
        self, connection: Any, text: str, params: Optional[Sequence[Any]]
    ) -> tuple[list[dict[str, Any]], int, Optional[str]]:
        with connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
            cursor.execute(text, params)
            rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
            status = cursor.statusmessage or ""
            command = status.split()[0].upper() if status else None
            return rows, cursor.rowcount, command

    async def query(self, text: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        connection = self._require_connection()

        timer = QueryTimer()
        try:
            with timer:
                rows, rowcount, command = await asyncio.to_thread(
                    self._execute, connection, text, params
                )
        except psycopg2.Error as e:
            error_msg = str(e).strip()
            log_query_execution(
                query=text,
                target=self.target,
                success=False,
                error=error_msg,
                duration_ms=timer.duration_ms,
            )
            raise QueryError(error_msg) from e

        affected_rows = rowcount if rowcount >= 0 else None
        if command in MUTATING_COMMANDS and not rows:
            rows = [status_row(affected_rows, timer.elapsed_ms, command)]

        log_query_execution(
            query=text,
            target=self.target,
            success=True,
            row_count=len(rows),
            duration_ms=timer.duration_ms,
        )

        return QueryResult(
            rows=rows,
            execution_time_ms=timer.elapsed_ms,
            affected_rows=affected_rows,
            command=command,
        )

    async def get_tables(self) -> list[str]:
        result = await self.query(TABLES_SQL)
        return sorted(row.get("name") or row.get("table_name") for row in result.rows)

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
        constraints = await self.query(CONSTRAINTS_SQL, (table_name,))
        indexes = await self.query(INDEXES_SQL, (table_name,))
        return {
            "table_name": table_name,
            "constraints": constraints.rows,
            "indexes": indexes.rows,
            "create_statement": None,
        }
