"""Tool implementations behind the DBBase MCP server.

Every call resolves the active connection, builds a fresh driver, connects,
runs one operation and disconnects in ``finally``. Failures of any kind come
back as an error ``ToolResult`` instead of escaping to the transport.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

from dbbase.database.connection import load_active_profile
from dbbase.database.drivers import create_driver
from dbbase.database.drivers.base import BaseDriver
from dbbase.database.health import ConnectionHealthTracker
from dbbase.database.logging import log_query_execution
from dbbase.database.models import ConnectionProfile, ConnectionStatus
from dbbase.database.validation import QueryMode, gate_statement
from dbbase.errors import DatabaseConnectionError, GateRejectionError
from dbbase.tool_definitions import ToolDescriptions

logger = logging.getLogger(__name__)

DriverFactory = Callable[[ConnectionProfile], BaseDriver]


@dataclass
class ToolResult:
    text: str
    is_error: bool = False


def to_json(payload: Any) -> str:
    """Serialize a tool payload; values JSON lacks (decimals, dates, bytes) become strings."""
    return json.dumps(payload, indent=2, default=str, ensure_ascii=False)


def group_schema(rows: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group flat schema rows into ``table -> [{column, type, description}]``."""
    schema: dict[str, list[dict[str, Any]]] = {}
    for row in rows:
        schema.setdefault(row["table_name"], []).append(
            {
                "column": row["column_name"],
                "type": row["data_type"],
                "description": row.get("description") or "",
            }
        )
    return schema


async def get_schema(driver: BaseDriver, arguments: dict) -> Any:
    return group_schema(await driver.get_schema())


async def run_read_query(driver: BaseDriver, arguments: dict) -> Any:
    result = await driver.query(arguments["sql"])
    return result.rows


async def inspect_table(driver: BaseDriver, arguments: dict) -> Any:
    return await driver.get_table_details(arguments["tableName"])


TOOL_HANDLERS = {
    ToolDescriptions.GET_SCHEMA: get_schema,
    ToolDescriptions.RUN_READ_QUERY: run_read_query,
    ToolDescriptions.INSPECT_TABLE: inspect_table,
}


def prepare_arguments(name: str, arguments: Optional[dict]) -> dict:
    """Validate and normalize tool arguments before any backend is contacted.

    Raises:
        ValueError: If a required argument is missing
        GateRejectionError: If the SQL fails the read-only gate
    """
    arguments = dict(arguments or {})

    if name == ToolDescriptions.RUN_READ_QUERY:
        sql = str(arguments.get("sql") or "")
        arguments["sql"] = gate_statement(sql, QueryMode.AUTOMATED)
        logger.info(f"Executing query: {arguments['sql']}")
    elif name == ToolDescriptions.INSPECT_TABLE:
        table_name = str(arguments.get("tableName") or "").strip()
        if not table_name:
            raise ValueError("Table name is required.")
        arguments["tableName"] = table_name

    return arguments


async def call_tool_impl(
    name: str,
    arguments: Optional[dict],
    config_path: Optional[Union[str, Path]] = None,
    driver_factory: DriverFactory = create_driver,
    tracker: Optional[ConnectionHealthTracker] = None,
) -> ToolResult:
    """Run one tool call end to end.

    Args:
        name: Tool name
        arguments: Tool arguments from the request
        config_path: Optional active-connection file override
        driver_factory: Driver factory (tests substitute fakes)
        tracker: Optional health tracker to update with reachability

    Returns:
        ToolResult with JSON text, or an ``Error: ...`` text flagged as error
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return ToolResult(f"Error: Unknown tool '{name}'", is_error=True)

    try:
        profile = load_active_profile(config_path)

        try:
            prepared = prepare_arguments(name, arguments)
        except GateRejectionError as e:
            log_query_execution(
                query=str((arguments or {}).get("sql") or ""),
                target=profile.target,
                success=False,
                error=str(e),
                blocked=True,
            )
            raise

        driver = driver_factory(profile)
        try:
            try:
                await driver.connect()
            except DatabaseConnectionError:
                if tracker is not None:
                    tracker.set_status(profile.id, ConnectionStatus.OFFLINE)
                raise

            payload = await handler(driver, prepared)
            if tracker is not None:
                tracker.set_status(profile.id, ConnectionStatus.ONLINE)
        finally:
            await driver.disconnect()

        return ToolResult(to_json(payload))

    except Exception as e:
        logger.error(f"Error in {name}: {type(e).__name__}: {e}")
        return ToolResult(f"Error: {e}", is_error=True)
