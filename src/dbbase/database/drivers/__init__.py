"""Database drivers for the supported backend kinds."""

from .base import BaseDriver, DriverState
from .keyvalue import KeyValueDriver
from .mysql import MySQLDriver
from .postgresql import PostgreSQLDriver
from ..models import ConnectionProfile, DriverKind
from ...errors import UnsupportedDriverKindError

__all__ = [
    "BaseDriver",
    "DriverState",
    "KeyValueDriver",
    "MySQLDriver",
    "PostgreSQLDriver",
    "DRIVERS",
    "create_driver",
]

DRIVERS: dict[str, type[BaseDriver]] = {
    DriverKind.POSTGRES.value: PostgreSQLDriver,
    DriverKind.MYSQL.value: MySQLDriver,
    DriverKind.KEYVALUE.value: KeyValueDriver,
}


def create_driver(profile: ConnectionProfile) -> BaseDriver:
    """Factory function to create the driver for a profile's backend kind.

    Every call returns a fresh, unconnected driver; nothing is cached.

    Args:
        profile: Connection profile naming the backend ``kind``

    Returns:
        Driver instance for the profile

    Raises:
        UnsupportedDriverKindError: If the kind has no driver
    """
    driver_class = DRIVERS.get(profile.kind)
    if driver_class is None:
        raise UnsupportedDriverKindError(profile.kind)
    return driver_class(profile)
