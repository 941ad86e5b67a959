"""Transactional write batches.

Collects every statement of one engine operation (state changes plus their
event rows) and commits them as a single libSQL batch, which the database
applies atomically. Transient failures are retried with tenacity; any other
failure leaves the store untouched.
"""

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog
from libsql_client import ResultSet, Statement
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import settings
from src.db.turso import TursoClient
from src.events.base import Event

if TYPE_CHECKING:
    from src.events.store import EventStore

logger = structlog.get_logger()

# Exceptions that are retriable (transient failures)
RETRIABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
)


class TransactionFailed(Exception):
    """A write batch could not be committed; nothing was applied."""


class UnitOfWork:
    """Accumulates statements and events for one atomic commit."""

    def __init__(
        self,
        db: TursoClient,
        event_store: "EventStore | None" = None,
        retry_attempts: int | None = None,
    ):
        """Initialize an empty unit of work.

        Args:
            db: Database client used for the commit
            event_store: Store whose event rows join the batch
            retry_attempts: Attempts on transient errors (defaults to settings)
        """
        self._db = db
        self._event_store = event_store
        self._attempts = retry_attempts or settings.db_write_retry_attempts
        self._statements: list[Statement] = []
        self._events: list[Event] = []
        self._committed = False
        self.correlation_id: UUID = uuid4()

    def add(self, *statements: Statement) -> None:
        """Queue statements for the batch."""
        self._statements.extend(statements)

    def record(self, event: Event) -> None:
        """Queue an event; its row commits with the batch.

        The event is stamped with this unit's correlation id.
        """
        event = event.correlated(self.correlation_id)
        self._events.append(event)
        if self._event_store is not None:
            self._statements.append(self._event_store.append_statement(event))

    @property
    def events(self) -> list[Event]:
        """Events recorded in this unit, in order."""
        return list(self._events)

    @property
    def statement_count(self) -> int:
        return len(self._statements)

    async def commit(self) -> list[ResultSet]:
        """Commit every queued statement atomically.

        Returns:
            One ResultSet per statement

        Raises:
            TransactionFailed: If the batch could not be applied
        """
        if self._committed:
            msg = "Unit of work already committed"
            raise RuntimeError(msg)
        if not self._statements:
            self._committed = True
            return []

        @retry(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=0.05, max=1),
            retry=retry_if_exception_type(RETRIABLE_EXCEPTIONS),
            before_sleep=before_sleep_log(logger, log_level=20),  # INFO level
            reraise=True,
        )
        async def inner() -> list[ResultSet]:
            return await self._db.execute_batch(self._statements)

        try:
            results = await inner()
        except Exception as e:
            logger.error(
                "write batch rolled back",
                statements=len(self._statements),
                error=str(e),
            )
            raise TransactionFailed(str(e)) from e

        self._committed = True
        return results
