"""Connection health tracking."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from dbbase.database.drivers import create_driver
from dbbase.database.drivers.base import BaseDriver
from dbbase.database.logging import log_status_change
from dbbase.database.models import ConnectionProfile, ConnectionStatus
from dbbase.errors import DBBaseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChange:
    connection_id: str
    previous: ConnectionStatus
    current: ConnectionStatus


StatusListener = Callable[[StatusChange], None]


class ConnectionHealthTracker:
    """Per-connection reachability status with change notifications.

    Statuses are keyed by profile id and default to ``unknown``. Writes are
    debounced by value: subscribers hear about a status only when it differs
    from the stored one.

    Probes for the same id are not serialized unless ``serialize_probes`` is
    set. Without it, overlapping probes race and the one that finishes last
    decides the stored status.
    """

    def __init__(
        self,
        driver_factory: Callable[[ConnectionProfile], BaseDriver] = create_driver,
        serialize_probes: bool = False,
    ):
        self._driver_factory = driver_factory
        self._serialize_probes = serialize_probes
        self._statuses: dict[str, ConnectionStatus] = {}
        self._listeners: list[StatusListener] = []
        self._in_flight: dict[str, asyncio.Task] = {}

    @property
    def statuses(self) -> dict[str, ConnectionStatus]:
        return dict(self._statuses)

    def get_status(self, connection_id: str) -> ConnectionStatus:
        return self._statuses.get(connection_id, ConnectionStatus.UNKNOWN)

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener for status changes.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_status(self, connection_id: str, status: ConnectionStatus) -> bool:
        """Store a status and notify subscribers if it changed.

        Returns:
            True if the stored value changed
        """
        status = ConnectionStatus(status)
        previous = self.get_status(connection_id)
        if connection_id in self._statuses and previous is status:
            return False

        self._statuses[connection_id] = status
        if previous is status:
            # First write of the default value; nothing visible changed
            return False

        log_status_change(connection_id, previous.value, status.value)
        self._publish(StatusChange(connection_id, previous, status))
        return True

    def forget(self, connection_id: str) -> None:
        self._statuses.pop(connection_id, None)

    def _publish(self, change: StatusChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Status listener failed for {change.connection_id}: {e}")

    async def test_connection(self, profile: ConnectionProfile) -> bool:
        """Probe a connection: connect, then disconnect, no query.

        Sets ``online`` on success and ``offline`` on failure.

        Returns:
            True if the connection could be established
        """
        if not self._serialize_probes:
            return await self._probe(profile)

        task = self._in_flight.get(profile.id)
        if task is None:
            task = asyncio.ensure_future(self._probe(profile))
            self._in_flight[profile.id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(profile.id, None))
        return await asyncio.shield(task)

    async def _probe(self, profile: ConnectionProfile) -> bool:
        try:
            driver = self._driver_factory(profile)
            await driver.connect()
        except DBBaseError as e:
            logger.info(f"Connection {profile.id} is offline: {e}")
            self.set_status(profile.id, ConnectionStatus.OFFLINE)
            return False

        await driver.disconnect()
        self.set_status(profile.id, ConnectionStatus.ONLINE)
        return True
