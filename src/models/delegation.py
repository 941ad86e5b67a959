"""Secretary-to-employee delegation assignment."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from src.models.base import BaseEntity


class DelegationAssignment(BaseEntity):
    """Authority for a secretary to book on behalf of an employee.

    An employee has at most one active assignment at any time.
    """

    secretary_id: UUID = Field(description="Secretary acting as delegate")
    employee_id: UUID = Field(description="Employee being represented")
    is_active: bool = Field(default=True)
    assigned_at: datetime = Field(description="When the assignment took effect")
    assigned_by: UUID | None = Field(default=None, description="Approving admin")
    valid_until: datetime | None = Field(
        default=None,
        description="Optional end of the assignment (facility time)",
    )
    deactivated_at: datetime | None = Field(default=None)

    def is_effective(self, at: datetime) -> bool:
        """Check if the assignment grants authority at the given moment."""
        if not self.is_active or at < self.assigned_at:
            return False
        return self.valid_until is None or at < self.valid_until
