"""Database layer for DBBase.

This module provides the multi-backend driver abstraction and the safe-query
logic shared by the editor integration and the MCP tool server.

Architecture:
- models.py: Connection profiles, query results, status values
- connection.py: Active connection profile loading
- drivers/: Backend-specific implementations (PostgreSQL, MySQL, key-value)
- statements.py: Statement under the cursor
- validation.py: Query gate (read-only enforcement, row limits)
- health.py: Connection health tracking
- formatting.py: Result export formats
"""

from dbbase.database.connection import load_active_profile
from dbbase.database.drivers import create_driver
from dbbase.database.health import ConnectionHealthTracker, StatusChange
from dbbase.database.models import (
    ConnectionProfile,
    ConnectionStatus,
    Dialect,
    DriverKind,
    QueryResult,
)
from dbbase.database.statements import locate_statement
from dbbase.database.validation import QueryMode, gate_statement

__all__ = [
    "ConnectionHealthTracker",
    "ConnectionProfile",
    "ConnectionStatus",
    "Dialect",
    "DriverKind",
    "QueryMode",
    "QueryResult",
    "StatusChange",
    "create_driver",
    "gate_statement",
    "load_active_profile",
    "locate_statement",
]
