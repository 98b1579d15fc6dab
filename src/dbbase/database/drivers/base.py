"""Abstract base class for database drivers."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional, Sequence

from dbbase.database.logging import QueryTimer, log_connection
from dbbase.database.models import ConnectionProfile, QueryResult
from dbbase.errors import DatabaseConnectionError, NotConnectedError

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class BaseDriver(ABC):
    """Abstract base class for backend-specific drivers.

    Each backend (PostgreSQL, MySQL, key-value) implements this interface so
    callers get one result shape regardless of the native client. A driver
    owns at most one native connection and is used by exactly one logical
    operation: connect, query or introspect, disconnect.

    Subclasses implement ``_open``/``_close`` for the native handle and the
    query/introspection coroutines; the state machine lives here.
    """

    display_name = "database"

    def __init__(self, profile: ConnectionProfile):
        """Initialize driver with a connection profile.

        Args:
            profile: Connection settings, consumed read-only
        """
        self.profile = profile
        self.connection: Optional[Any] = None
        self.state = DriverState.DISCONNECTED

    @property
    def target(self) -> str:
        return self.profile.target

    @property
    def is_connected(self) -> bool:
        return self.state is DriverState.CONNECTED

    async def connect(self) -> None:
        """Establish the native connection.

        Raises:
            DatabaseConnectionError: If the native client fails to connect
        """
        if self.is_connected:
            return

        self.state = DriverState.CONNECTING
        timer = QueryTimer()
        try:
            with timer:
                self.connection = await self._open()
        except Exception as e:
            self.connection = None
            self.state = DriverState.DISCONNECTED
            error_msg = str(e)
            log_connection(self.target, success=False, error=error_msg, duration_ms=timer.duration_ms)
            raise DatabaseConnectionError(
                f"Failed to connect to {self.display_name}\n"
                f"  Error: {error_msg}\n"
                f"  Hint: Check that the server is running and credentials are correct"
            ) from e

        self.state = DriverState.CONNECTED
        log_connection(self.target, success=True, duration_ms=timer.duration_ms)

    async def disconnect(self) -> None:
        """Close the native connection. Idempotent; never raises."""
        if self.connection is None:
            self.state = DriverState.DISCONNECTED
            return

        try:
            await self._close(self.connection)
            logger.info(f"Closed {self.display_name} connection to {self.target}")
        except Exception as e:
            logger.warning(f"Error closing {self.display_name} connection: {e}")
        finally:
            self.connection = None
            self.state = DriverState.DISCONNECTED

    def _require_connection(self) -> Any:
        if not self.is_connected or self.connection is None:
            raise NotConnectedError()
        return self.connection

    @abstractmethod
    async def _open(self) -> Any:
        """Open and return the native connection handle."""

    @abstractmethod
    async def _close(self, connection: Any) -> None:
        """Tear down the native connection handle."""

    @abstractmethod
    async def query(self, text: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute a statement and return normalized results.

        Args:
            text: Statement (or key-value command block) to execute
            params: Optional positional parameters

        Raises:
            NotConnectedError: If called before connect()
            QueryError: If the backend rejects the statement
        """

    @abstractmethod
    async def get_tables(self) -> list[str]:
        """Return base-table names, sorted."""

    @abstractmethod
    async def get_schema(self) -> list[dict[str, Any]]:
        """Return ``{table_name, column_name, data_type, description}`` rows."""

    @abstractmethod
    async def get_table_details(self, table_name: str) -> dict[str, Any]:
        """Return ``{table_name, constraints, indexes, create_statement}``."""

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()


def empty_table_details(table_name: str) -> dict[str, Any]:
    return {
        "table_name": table_name,
        "constraints": [],
        "indexes": [],
        "create_statement": None,
    }
