"""Repository for principals.

Principals belong to the identity subsystem; the engine reads them and
offers an upsert so that subsystem (and tests) can seed this store.
"""

from datetime import time
from uuid import UUID

from src.db.turso import TursoClient
from src.models.principal import Principal, PrincipalRole

_COLUMNS = "id, name, email, role, is_active, work_start, work_end"


def _row_to_principal(row) -> Principal:
    return Principal(
        id=UUID(row[0]),
        name=row[1],
        email=row[2],
        role=PrincipalRole(row[3]),
        is_active=bool(row[4]),
        work_start=time.fromisoformat(row[5]) if row[5] else None,
        work_end=time.fromisoformat(row[6]) if row[6] else None,
    )


def _hhmm(value: time | None) -> str | None:
    return value.isoformat(timespec="minutes") if value else None


class PrincipalRepository:
    """Read access to principals and their working hours."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create principals table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS principals (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                role TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                work_start TEXT,
                work_end TEXT,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_principals_role
            ON principals(role, is_active)
            """,
            ]
        )

    async def upsert(self, principal: Principal) -> None:
        """Insert or replace a principal.

        Args:
            principal: Principal to store
        """
        await self._db.execute(
            f"""
            INSERT INTO principals ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                email = excluded.email,
                role = excluded.role,
                is_active = excluded.is_active,
                work_start = excluded.work_start,
                work_end = excluded.work_end
            """,
            [
                str(principal.id),
                principal.name,
                principal.email,
                principal.role.value,
                int(principal.is_active),
                _hhmm(principal.work_start),
                _hhmm(principal.work_end),
            ],
        )

    async def get(self, principal_id: UUID) -> Principal | None:
        """Get a principal by id.

        Args:
            principal_id: Principal identifier

        Returns:
            Principal or None if not found
        """
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM principals WHERE id = ?",
            [str(principal_id)],
        )
        if not result.rows:
            return None
        return _row_to_principal(result.rows[0])

    async def get_many(self, principal_ids: list[UUID]) -> dict[UUID, Principal]:
        """Get several principals at once.

        Args:
            principal_ids: Identifiers to look up

        Returns:
            Mapping of id to Principal for the ids that exist
        """
        if not principal_ids:
            return {}
        placeholders = ", ".join("?" for _ in principal_ids)
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM principals WHERE id IN ({placeholders})",
            [str(pid) for pid in principal_ids],
        )
        principals = [_row_to_principal(row) for row in result.rows]
        return {p.id: p for p in principals}
