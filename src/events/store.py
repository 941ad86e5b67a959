"""Event table of the scheduling database.

Every engine write appends its events through ``append_statement`` in the
same batch as the state change, which makes the table a transactional
outbox: a delivery worker can page through it with ``events_after`` and
never sees an event whose booking was rolled back.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

from libsql_client import Statement

from src.db.turso import TursoClient
from src.events.base import Event

logger = logging.getLogger(__name__)

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event_id TEXT UNIQUE NOT NULL,
        event_type TEXT NOT NULL,
        aggregate_id TEXT,
        aggregate_type TEXT,
        correlation_id TEXT,
        event_data TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_aggregate ON events(aggregate_type, aggregate_id)",
    "CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)",
    "CREATE INDEX IF NOT EXISTS idx_events_correlation ON events(correlation_id)",
]

_INSERT_EVENT = """
    INSERT INTO events
        (event_id, event_type, aggregate_id, aggregate_type, correlation_id,
         event_data, timestamp)
    VALUES (?, ?, ?, ?, ?, ?, ?)
"""

_SELECT = (
    "SELECT id, event_id, event_type, aggregate_id, correlation_id, event_data, timestamp "
    "FROM events"
)


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {
        "position": row[0],
        "event_id": row[1],
        "event_type": row[2],
        "aggregate_id": row[3],
        "correlation_id": row[4],
        "data": json.loads(row[5]),
        "timestamp": row[6],
    }


class EventStore:
    """Append-only access to the events table. Rows are never updated."""

    def __init__(self, client: TursoClient):
        self.client = client

    async def init_schema(self) -> None:
        """Create the events table and its indexes."""
        await self.client.execute_batch(_SCHEMA)
        logger.info("Event store schema initialized")

    def append_statement(self, event: Event) -> Statement:
        """Insert for one event, to be committed inside a caller's batch."""
        stored = event.to_store_dict()
        return Statement(
            _INSERT_EVENT,
            [
                stored["event_id"],
                stored["event_type"],
                stored["aggregate_id"],
                stored["aggregate_type"],
                stored["correlation_id"],
                json.dumps(stored["data"]),
                stored["timestamp"],
            ],
        )

    async def get_events_for_aggregate(
        self,
        aggregate_id: UUID,
    ) -> AsyncIterator[dict]:
        """Events about one meeting, block or assignment, in commit order."""
        result = await self.client.execute(
            f"{_SELECT} WHERE aggregate_id = ? ORDER BY id ASC",
            [str(aggregate_id)],
        )
        for row in result.rows:
            yield _row_to_dict(row)

    async def get_events_for_correlation(self, correlation_id: UUID) -> list[dict]:
        """Everything one write batch recorded, in commit order."""
        result = await self.client.execute(
            f"{_SELECT} WHERE correlation_id = ? ORDER BY id ASC",
            [str(correlation_id)],
        )
        return [_row_to_dict(row) for row in result.rows]

    async def events_after(
        self,
        position: int = 0,
        limit: int = 100,
        event_types: list[str] | None = None,
    ) -> list[dict]:
        """Page through committed events for an outbox relay.

        Args:
            position: Last position the reader has processed
            limit: Maximum rows to return
            event_types: Only these event types (all when omitted)

        Returns:
            Event dicts with increasing ``position``
        """
        sql = f"{_SELECT} WHERE id > ?"
        params: list[Any] = [position]
        if event_types:
            sql += f" AND event_type IN ({', '.join('?' for _ in event_types)})"
            params.extend(event_types)
        sql += " ORDER BY id ASC LIMIT ?"
        params.append(limit)
        result = await self.client.execute(sql, params)
        return [_row_to_dict(row) for row in result.rows]

    async def count_events(self, event_type: str | None = None) -> int:
        """Number of stored events, optionally of one type."""
        if event_type:
            return await self.client.query_value(
                "SELECT COUNT(*) FROM events WHERE event_type = ?", [event_type]
            )
        return await self.client.query_value("SELECT COUNT(*) FROM events")
