"""Editor-facing query execution.

Runs "the statement under the cursor" against a connection profile. Each run
builds its own driver, and the driver is disconnected whatever the outcome.
"""

import logging
from typing import Callable, Optional, Union

from dbbase.database.drivers import create_driver
from dbbase.database.drivers.base import BaseDriver
from dbbase.database.health import ConnectionHealthTracker
from dbbase.database.models import ConnectionProfile, ConnectionStatus, Dialect, QueryResult
from dbbase.database.statements import locate_statement
from dbbase.database.validation import QueryMode, gate_statement
from dbbase.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


async def run_statement(
    profile: ConnectionProfile,
    statement: str,
    tracker: Optional[ConnectionHealthTracker] = None,
    driver_factory: Callable[[ConnectionProfile], BaseDriver] = create_driver,
) -> QueryResult:
    """Execute one statement on a fresh driver.

    A successful query promotes the connection to ``online``; a failed
    connect marks it ``offline``.

    Raises:
        DatabaseConnectionError: If the backend is unreachable
        QueryError: If the backend rejects the statement
    """
    driver = driver_factory(profile)
    try:
        try:
            await driver.connect()
        except DatabaseConnectionError:
            if tracker is not None:
                tracker.set_status(profile.id, ConnectionStatus.OFFLINE)
            raise

        result = await driver.query(statement)
        if tracker is not None:
            tracker.set_status(profile.id, ConnectionStatus.ONLINE)
        logger.info(f"Query executed in {result.execution_time_ms}ms on {profile.label}")
        return result
    finally:
        await driver.disconnect()


async def run_query_at_cursor(
    profile: ConnectionProfile,
    text: str,
    line: int,
    character: int = 0,
    selection: Optional[str] = None,
    dialect: Optional[Union[Dialect, str]] = None,
    tracker: Optional[ConnectionHealthTracker] = None,
    driver_factory: Callable[[ConnectionProfile], BaseDriver] = create_driver,
) -> Optional[QueryResult]:
    """Locate, gate and execute the statement the user means.

    Args:
        profile: Connection to run against
        text: Full document text
        line: Zero-based cursor line
        character: Zero-based cursor column
        selection: Explicit selection, which takes priority over the cursor
        dialect: Statement dialect; defaults from the profile kind
        tracker: Optional health tracker to update
        driver_factory: Driver factory (tests substitute fakes)

    Returns:
        The query result, or None when there is nothing to run (empty block
        or a comment line)

    Raises:
        UnterminatedMutatingStatementError: If a data-changing SQL statement
            lacks its terminating ';'
    """
    dialect = Dialect(dialect) if dialect is not None else profile.dialect
    statement = locate_statement(text, line, character, dialect=dialect, selection=selection)
    if not statement.strip():
        return None

    if dialect is Dialect.SQL:
        statement = gate_statement(statement, QueryMode.INTERACTIVE)

    return await run_statement(profile, statement, tracker=tracker, driver_factory=driver_factory)
