"""Connection profiles, query results and status values."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DriverKind(str, Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"
    KEYVALUE = "keyvalue"


class Dialect(str, Enum):
    SQL = "sql"
    KEYVALUE = "keyvalue"


class ConnectionStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ConnectionProfile:
    """Connection settings for one database.

    Profiles are created and edited outside this package and consumed
    read-only. ``id`` is the identity; every other field may change between
    edits.
    """

    id: str
    label: str
    kind: str
    host: str
    port: int
    user: str = ""
    database: str = ""
    password: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConnectionProfile":
        """Build a profile from the persisted JSON shape.

        The persisted file names the backend ``type``; ``kind`` is accepted
        as well.

        Raises:
            ValueError: If a required field is missing or ``port`` is not numeric
        """
        missing = [name for name in ("id", "host", "port") if data.get(name) in (None, "")]
        kind = data.get("type", data.get("kind"))
        if not kind:
            missing.append("type")
        if missing:
            raise ValueError(f"Connection profile is missing fields: {', '.join(missing)}")

        try:
            port = int(data["port"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid port in connection profile: {data['port']!r}") from e

        return cls(
            id=str(data["id"]),
            label=str(data.get("label") or data["id"]),
            kind=str(kind),
            host=str(data["host"]),
            port=port,
            user=str(data.get("user") or ""),
            database=str(data.get("database") or ""),
            password=data.get("password"),
        )

    @property
    def dialect(self) -> Dialect:
        if self.kind == DriverKind.KEYVALUE.value:
            return Dialect.KEYVALUE
        return Dialect.SQL

    @property
    def target(self) -> str:
        """Credential-free description of the connection target for logs."""
        user_part = f"{self.user}@" if self.user else ""
        return f"{self.kind}://{user_part}{self.host}:{self.port}/{self.database}"


@dataclass
class QueryResult:
    """Canonical result of one driver query.

    ``rows`` is always a list. Mutating statements that return no native rows
    carry a single synthetic status row (see :func:`status_row`).
    """

    rows: list[dict[str, Any]]
    execution_time_ms: int
    affected_rows: Optional[int] = None
    command: Optional[str] = None


def status_row(
    affected_rows: Optional[int], execution_time_ms: int, command: Optional[str] = None
) -> dict[str, Any]:
    """Synthetic row reporting the outcome of a statement without result rows."""
    row: dict[str, Any] = {"status": "Success"}
    if command:
        row["command"] = command
    row["affected_rows"] = affected_rows
    row["time"] = f"{execution_time_ms}ms"
    return row
