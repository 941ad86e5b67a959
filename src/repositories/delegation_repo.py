"""Repository for secretary-to-employee delegation assignments."""

from datetime import datetime
from uuid import UUID

from libsql_client import Statement

from src.clock import from_db, to_db
from src.db.turso import TursoClient
from src.models.base import utc_now
from src.models.delegation import DelegationAssignment

_COLUMNS = (
    "id, secretary_id, employee_id, is_active, assigned_at, assigned_by, "
    "valid_until, deactivated_at, created_at, updated_at"
)


def _row_to_assignment(row) -> DelegationAssignment:
    return DelegationAssignment(
        id=UUID(row[0]),
        secretary_id=UUID(row[1]),
        employee_id=UUID(row[2]),
        is_active=bool(row[3]),
        assigned_at=from_db(row[4]),
        assigned_by=UUID(row[5]) if row[5] else None,
        valid_until=from_db(row[6]),
        deactivated_at=from_db(row[7]),
        **DelegationAssignment.audit_fields(row[8], row[9]),
    )


class DelegationRepository:
    """Persistence for delegation assignments.

    The partial unique index on active employee rows is the storage-level
    guarantee that an employee never has two active secretaries.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create secretary_employee_assignments table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS secretary_employee_assignments (
                id TEXT PRIMARY KEY,
                secretary_id TEXT NOT NULL,
                employee_id TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                assigned_at TEXT NOT NULL,
                assigned_by TEXT,
                valid_until TEXT,
                deactivated_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_assignments_active_employee
            ON secretary_employee_assignments(employee_id)
            WHERE is_active = 1
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_assignments_secretary
            ON secretary_employee_assignments(secretary_id, is_active)
            """,
            ]
        )

    def insert_statement(self, assignment: DelegationAssignment) -> Statement:
        """Statement that persists a new assignment."""
        return Statement(
            f"INSERT INTO secretary_employee_assignments ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                str(assignment.id),
                str(assignment.secretary_id),
                str(assignment.employee_id),
                int(assignment.is_active),
                to_db(assignment.assigned_at),
                str(assignment.assigned_by) if assignment.assigned_by else None,
                to_db(assignment.valid_until) if assignment.valid_until else None,
                to_db(assignment.deactivated_at) if assignment.deactivated_at else None,
                *assignment.audit_values(),
            ],
        )

    def deactivate_statement(self, assignment_id: UUID, at: datetime) -> Statement:
        """Statement that deactivates an active assignment."""
        return Statement(
            """
            UPDATE secretary_employee_assignments
            SET is_active = 0, deactivated_at = ?, updated_at = ?
            WHERE id = ? AND is_active = 1
            """,
            [to_db(at), utc_now().isoformat(), str(assignment_id)],
        )

    async def get(self, assignment_id: UUID) -> DelegationAssignment | None:
        """Get an assignment by id.

        Args:
            assignment_id: Assignment identifier

        Returns:
            DelegationAssignment or None if not found
        """
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM secretary_employee_assignments WHERE id = ?",
            [str(assignment_id)],
        )
        if not result.rows:
            return None
        return _row_to_assignment(result.rows[0])

    async def active_for_employee(self, employee_id: UUID) -> DelegationAssignment | None:
        """The employee's active assignment, if any."""
        result = await self._db.execute(
            f"""
            SELECT {_COLUMNS} FROM secretary_employee_assignments
            WHERE employee_id = ? AND is_active = 1
            """,
            [str(employee_id)],
        )
        if not result.rows:
            return None
        return _row_to_assignment(result.rows[0])

    async def active_for_secretary(self, secretary_id: UUID) -> list[DelegationAssignment]:
        """Active assignments held by a secretary, oldest first."""
        result = await self._db.execute(
            f"""
            SELECT {_COLUMNS} FROM secretary_employee_assignments
            WHERE secretary_id = ? AND is_active = 1
            ORDER BY assigned_at, id
            """,
            [str(secretary_id)],
        )
        return [_row_to_assignment(row) for row in result.rows]
