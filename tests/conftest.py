"""Shared fixtures: profiles and an in-memory driver."""

import asyncio
import json

import pytest

from dbbase.database.drivers.base import BaseDriver
from dbbase.database.models import ConnectionProfile, QueryResult


class FakeDriver(BaseDriver):
    """Driver double that records what it was asked to do."""

    display_name = "fake"

    def __init__(
        self,
        profile,
        fail_connect=False,
        connect_delay=0.0,
        fail_close=False,
        rows=None,
        query_error=None,
        schema=None,
        details=None,
    ):
        super().__init__(profile)
        self.fail_connect = fail_connect
        self.connect_delay = connect_delay
        self.fail_close = fail_close
        self.rows = rows if rows is not None else [{"id": 1}]
        self.query_error = query_error
        self.schema = schema or []
        self.details = details
        self.queries = []
        self.closed = False

    async def _open(self):
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.fail_connect:
            raise OSError("connection refused")
        return object()

    async def _close(self, connection):
        self.closed = True
        if self.fail_close:
            raise OSError("socket already closed")

    async def query(self, text, params=None):
        self._require_connection()
        self.queries.append(text)
        if self.query_error is not None:
            raise self.query_error
        return QueryResult(rows=list(self.rows), execution_time_ms=1)

    async def get_tables(self):
        self._require_connection()
        return sorted({row["table_name"] for row in self.schema})

    async def get_schema(self):
        self._require_connection()
        return list(self.schema)

    async def get_table_details(self, table_name):
        self._require_connection()
        return self.details or {
            "table_name": table_name,
            "constraints": [],
            "indexes": [],
            "create_statement": None,
        }


class RecordingFactory:
    """Driver factory that hands out FakeDrivers and keeps them for assertions."""

    def __init__(self, **driver_kwargs):
        self.driver_kwargs = driver_kwargs
        self.drivers = []

    def __call__(self, profile):
        driver = FakeDriver(profile, **self.driver_kwargs)
        self.drivers.append(driver)
        return driver


@pytest.fixture
def pg_profile():
    return ConnectionProfile(
        id="conn-pg",
        label="Local Postgres",
        kind="postgres",
        host="localhost",
        port=5432,
        user="app",
        database="shop",
        password="secret",
    )


@pytest.fixture
def mysql_profile():
    return ConnectionProfile(
        id="conn-my",
        label="Local MySQL",
        kind="mysql",
        host="localhost",
        port=3306,
        user="root",
        database="shop",
        password="secret",
    )


@pytest.fixture
def kv_profile():
    return ConnectionProfile(
        id="conn-kv",
        label="Cache",
        kind="keyvalue",
        host="localhost",
        port=6379,
        database="2",
    )


@pytest.fixture
def active_config(tmp_path):
    """Write an active-connection file and return its path."""
    path = tmp_path / "active_connection.json"
    path.write_text(
        json.dumps(
            {
                "id": "conn-pg",
                "label": "Local Postgres",
                "type": "postgres",
                "host": "localhost",
                "port": 5432,
                "user": "app",
                "database": "shop",
                "password": "secret",
            }
        )
    )
    return path
