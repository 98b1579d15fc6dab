"""Error taxonomy shared by drivers, the query gate and the tool server."""

from typing import Optional


class DBBaseError(Exception):
    """Base class for every error raised by dbbase."""


class DatabaseConnectionError(DBBaseError, ConnectionError):
    """Native connect or authentication failure."""


class NotConnectedError(DBBaseError):
    """A driver operation was attempted before ``connect()`` succeeded."""

    def __init__(self, message: str = "Driver not connected. Call connect() first."):
        super().__init__(message)


class QueryError(DBBaseError):
    """Native query execution failure; the native message is passed through."""


class UnsupportedCommandError(QueryError):
    """Key-value pseudo-command not present in the command registry."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f'Invalid or unsupported key-value command: "{command}"')


class UnsupportedDriverKindError(DBBaseError, ValueError):
    """Connection profile names a backend kind with no driver."""

    def __init__(self, kind: Optional[str]):
        self.kind = kind
        super().__init__(
            f"Driver not supported: {kind}\n"
            f"  Supported kinds: postgres, mysql, keyvalue"
        )


class GateRejectionError(DBBaseError, ValueError):
    """Statement refused by the query gate."""


class NotAReadQueryError(GateRejectionError):
    def __init__(self, message: str = "Only read queries (SELECT or WITH) are allowed."):
        super().__init__(message)


class UnterminatedMutatingStatementError(GateRejectionError):
    def __init__(
        self, message: str = "Data-changing statements must end with ';' to be executed."
    ):
        super().__init__(message)


class NoActiveConnectionError(DBBaseError):
    """The automation path found no active connection profile."""
