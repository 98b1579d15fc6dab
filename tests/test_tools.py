"""Tests for the automation tool implementations."""

import json
from datetime import date
from decimal import Decimal

import pytest
from conftest import RecordingFactory

from dbbase.database.health import ConnectionHealthTracker
from dbbase.database.models import ConnectionStatus
from dbbase.errors import QueryError
from dbbase.tool_definitions import ToolDescriptions
from dbbase.tools import call_tool_impl, group_schema, prepare_arguments

SCHEMA_ROWS = [
    {"table_name": "users", "column_name": "id", "data_type": "integer", "description": None},
    {"table_name": "users", "column_name": "name", "data_type": "text", "description": "Full name"},
    {"table_name": "orders", "column_name": "id", "data_type": "integer", "description": ""},
]


async def test_get_schema_groups_by_table(active_config):
    factory = RecordingFactory(schema=SCHEMA_ROWS)

    result = await call_tool_impl("get_schema", {}, config_path=active_config, driver_factory=factory)

    assert not result.is_error
    assert json.loads(result.text) == {
        "users": [
            {"column": "id", "type": "integer", "description": ""},
            {"column": "name", "type": "text", "description": "Full name"},
        ],
        "orders": [{"column": "id", "type": "integer", "description": ""}],
    }
    assert not factory.drivers[0].is_connected


async def test_run_read_query_applies_limit(active_config):
    factory = RecordingFactory(rows=[{"id": 1, "total": 9.5}])

    result = await call_tool_impl(
        "run_read_query",
        {"sql": "SELECT * FROM orders;"},
        config_path=active_config,
        driver_factory=factory,
    )

    assert not result.is_error
    assert json.loads(result.text) == [{"id": 1, "total": 9.5}]
    assert factory.drivers[0].queries == ["SELECT * FROM orders LIMIT 100;"]


async def test_run_read_query_keeps_existing_limit(active_config):
    factory = RecordingFactory()

    await call_tool_impl(
        "run_read_query",
        {"sql": "SELECT * FROM orders LIMIT 5"},
        config_path=active_config,
        driver_factory=factory,
    )

    assert factory.drivers[0].queries == ["SELECT * FROM orders LIMIT 5"]


@pytest.mark.parametrize("sql", ["DELETE FROM orders", "UPDATE t SET x = 1;", ""])
async def test_rejected_query_never_connects(active_config, sql):
    factory = RecordingFactory()

    result = await call_tool_impl(
        "run_read_query", {"sql": sql}, config_path=active_config, driver_factory=factory
    )

    assert result.is_error
    assert result.text.startswith("Error: ")
    assert factory.drivers == []


async def test_inspect_table_returns_details(active_config):
    details = {
        "table_name": "users",
        "constraints": [{"constraint_name": "users_pkey", "constraint_type": "p"}],
        "indexes": [],
        "create_statement": None,
    }
    factory = RecordingFactory(details=details)

    result = await call_tool_impl(
        "inspect_table", {"tableName": "users"}, config_path=active_config, driver_factory=factory
    )

    assert json.loads(result.text) == details


async def test_inspect_table_requires_name(active_config):
    factory = RecordingFactory()

    result = await call_tool_impl(
        "inspect_table", {"tableName": "  "}, config_path=active_config, driver_factory=factory
    )

    assert result.is_error
    assert "Table name is required" in result.text
    assert factory.drivers == []


async def test_missing_active_connection(tmp_path):
    factory = RecordingFactory()

    result = await call_tool_impl(
        "get_schema",
        {},
        config_path=tmp_path / "missing.json",
        driver_factory=factory,
    )

    assert result.is_error
    assert "No active connection" in result.text
    assert factory.drivers == []


async def test_unknown_tool(active_config):
    result = await call_tool_impl("drop_everything", {}, config_path=active_config)

    assert result.is_error
    assert "Unknown tool" in result.text


async def test_query_error_still_disconnects(active_config):
    factory = RecordingFactory(query_error=QueryError('relation "nope" does not exist'))

    result = await call_tool_impl(
        "run_read_query",
        {"sql": "SELECT * FROM nope"},
        config_path=active_config,
        driver_factory=factory,
    )

    assert result.is_error
    assert result.text == 'Error: relation "nope" does not exist'
    assert factory.drivers[0].closed
    assert not factory.drivers[0].is_connected


async def test_tracker_follows_reachability(active_config):
    tracker = ConnectionHealthTracker()

    await call_tool_impl(
        "get_schema",
        {},
        config_path=active_config,
        driver_factory=RecordingFactory(fail_connect=True),
        tracker=tracker,
    )
    assert tracker.get_status("conn-pg") is ConnectionStatus.OFFLINE

    await call_tool_impl(
        "get_schema", {}, config_path=active_config, driver_factory=RecordingFactory(), tracker=tracker
    )
    assert tracker.get_status("conn-pg") is ConnectionStatus.ONLINE


async def test_non_json_values_are_stringified(active_config):
    factory = RecordingFactory(rows=[{"day": date(2024, 1, 2), "amount": Decimal("1.50")}])

    result = await call_tool_impl(
        "run_read_query", {"sql": "SELECT 1"}, config_path=active_config, driver_factory=factory
    )

    assert json.loads(result.text) == [{"day": "2024-01-02", "amount": "1.50"}]


def test_group_schema_empty():
    assert group_schema([]) == {}


def test_prepare_arguments_leaves_get_schema_alone():
    assert prepare_arguments(ToolDescriptions.GET_SCHEMA, None) == {}


def test_every_tool_has_schema_and_description():
    assert set(ToolDescriptions.input_schemas()) == set(ToolDescriptions.descriptions())
    assert set(ToolDescriptions.descriptions()) == {"get_schema", "run_read_query", "inspect_table"}
