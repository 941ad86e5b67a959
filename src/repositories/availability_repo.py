"""Repository for availability blocks.

Blocks are declared busy time. They are created, edited and deleted
explicitly and have no status lifecycle.
"""

from collections import defaultdict
from datetime import datetime
from uuid import UUID

from libsql_client import Statement

from src.clock import from_db, to_db
from src.db.turso import TursoClient
from src.models.availability import AvailabilityBlock, BlockCategory

_COLUMNS = (
    "id, principal_id, start_time, end_time, category, all_day, reason, "
    "created_by, created_at, updated_at"
)


def _row_to_block(row) -> AvailabilityBlock:
    return AvailabilityBlock(
        id=UUID(row[0]),
        principal_id=UUID(row[1]),
        start_time=from_db(row[2]),
        end_time=from_db(row[3]),
        category=BlockCategory(row[4]),
        all_day=bool(row[5]),
        reason=row[6],
        created_by=UUID(row[7]) if row[7] else None,
        **AvailabilityBlock.audit_fields(row[8], row[9]),
    )


class AvailabilityBlockRepository:
    """Persistence for principal availability blocks."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create availability_blocks table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS availability_blocks (
                id TEXT PRIMARY KEY,
                principal_id TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                category TEXT NOT NULL,
                all_day INTEGER NOT NULL DEFAULT 0,
                reason TEXT,
                created_by TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_blocks_principal_window
            ON availability_blocks(principal_id, start_time, end_time)
            """,
            ]
        )

    def insert_statement(self, block: AvailabilityBlock) -> Statement:
        """Statement that persists a new block."""
        return Statement(
            f"INSERT INTO availability_blocks ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                str(block.id),
                str(block.principal_id),
                to_db(block.start_time),
                to_db(block.end_time),
                block.category.value,
                int(block.all_day),
                block.reason,
                str(block.created_by) if block.created_by else None,
                *block.audit_values(),
            ],
        )

    def update_statement(self, block: AvailabilityBlock) -> Statement:
        """Statement that rewrites a block's span, category and reason."""
        return Statement(
            """
            UPDATE availability_blocks
            SET start_time = ?, end_time = ?, category = ?, reason = ?, updated_at = ?
            WHERE id = ?
            """,
            [
                to_db(block.start_time),
                to_db(block.end_time),
                block.category.value,
                block.reason,
                block.updated_at.isoformat(),
                str(block.id),
            ],
        )

    def delete_statement(self, block_id: UUID) -> Statement:
        """Statement that removes a block."""
        return Statement(
            "DELETE FROM availability_blocks WHERE id = ?",
            [str(block_id)],
        )

    async def get(self, block_id: UUID) -> AvailabilityBlock | None:
        """Get a block by id.

        Args:
            block_id: Block identifier

        Returns:
            AvailabilityBlock or None if not found
        """
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM availability_blocks WHERE id = ?",
            [str(block_id)],
        )
        if not result.rows:
            return None
        return _row_to_block(result.rows[0])

    async def list_for_principals(
        self,
        principal_ids: list[UUID],
        start: datetime,
        end: datetime,
    ) -> dict[UUID, list[AvailabilityBlock]]:
        """Blocks overlapping [start, end) grouped by principal.

        All-day blocks are matched on their stored span, which covers
        whole days, so callers pass the window they care about and
        clip afterwards.

        Args:
            principal_ids: Principals to look up
            start: Window start
            end: Window end (exclusive)

        Returns:
            Mapping of principal id to blocks ordered by start then id
        """
        if not principal_ids:
            return {}
        placeholders = ", ".join("?" for _ in principal_ids)
        result = await self._db.execute(
            f"""
            SELECT {_COLUMNS} FROM availability_blocks
            WHERE principal_id IN ({placeholders})
              AND start_time < ? AND end_time > ?
            ORDER BY start_time, id
            """,
            [*(str(pid) for pid in principal_ids), to_db(end), to_db(start)],
        )
        grouped: dict[UUID, list[AvailabilityBlock]] = defaultdict(list)
        for row in result.rows:
            block = _row_to_block(row)
            grouped[block.principal_id].append(block)
        return dict(grouped)
