"""Repository for conflict override audit records.

Records are immutable: only inserted, never updated or deleted.
"""

from uuid import UUID

from libsql_client import Statement

from src.db.turso import TursoClient
from src.models.base import BaseEntity
from src.models.override import ConflictOverrideRecord

_COLUMNS = (
    "id, new_meeting_id, conflicting_meeting_id, conflicting_block_id, "
    "participant_user_id, approved_by, override_reason, override_approved, created_at"
)


def _row_to_record(row) -> ConflictOverrideRecord:
    return ConflictOverrideRecord(
        id=UUID(row[0]),
        new_meeting_id=UUID(row[1]),
        conflicting_meeting_id=UUID(row[2]) if row[2] else None,
        conflicting_block_id=UUID(row[3]) if row[3] else None,
        participant_id=UUID(row[4]),
        approved_by=UUID(row[5]),
        override_reason=row[6],
        override_approved=bool(row[7]),
        **BaseEntity.audit_fields(row[8]),
    )


class OverrideRecordRepository:
    """Persistence for ConflictOverrideRecord rows (participant_conflicts)."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create participant_conflicts table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS participant_conflicts (
                id TEXT PRIMARY KEY,
                new_meeting_id TEXT NOT NULL,
                conflicting_meeting_id TEXT,
                conflicting_block_id TEXT,
                participant_user_id TEXT NOT NULL,
                approved_by TEXT NOT NULL,
                override_reason TEXT NOT NULL,
                override_approved INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                CHECK (
                    (conflicting_meeting_id IS NULL) != (conflicting_block_id IS NULL)
                )
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_conflicts_new_meeting
            ON participant_conflicts(new_meeting_id)
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_conflicts_conflicting_meeting
            ON participant_conflicts(conflicting_meeting_id)
            """,
            ]
        )

    def insert_statements(self, records: list[ConflictOverrideRecord]) -> list[Statement]:
        """Statements that persist override records.

        Args:
            records: Records produced by one override cascade

        Returns:
            Statements for the caller's batch
        """
        return [
            Statement(
                f"INSERT INTO participant_conflicts ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    str(r.id),
                    str(r.new_meeting_id),
                    str(r.conflicting_meeting_id) if r.conflicting_meeting_id else None,
                    str(r.conflicting_block_id) if r.conflicting_block_id else None,
                    str(r.participant_id),
                    str(r.approved_by),
                    r.override_reason,
                    int(r.override_approved),
                    r.created_at.isoformat(),
                ],
            )
            for r in records
        ]

    async def for_new_meeting(self, meeting_id: UUID) -> list[ConflictOverrideRecord]:
        """Override records created when a meeting was force-booked."""
        return await self._select("new_meeting_id", meeting_id)

    async def for_conflicting_meeting(self, meeting_id: UUID) -> list[ConflictOverrideRecord]:
        """Override records explaining why a meeting was cancelled."""
        return await self._select("conflicting_meeting_id", meeting_id)

    async def _select(self, column: str, value: UUID) -> list[ConflictOverrideRecord]:
        result = await self._db.execute(
            f"""
            SELECT {_COLUMNS} FROM participant_conflicts
            WHERE {column} = ?
            ORDER BY created_at, id
            """,
            [str(value)],
        )
        return [_row_to_record(row) for row in result.rows]
