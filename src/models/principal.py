"""Principal model for people the scheduling engine reasons about."""

from datetime import time
from enum import Enum

from pydantic import Field, model_validator

from src.models.base import BaseEntity


class PrincipalRole(str, Enum):
    """Role a principal holds in the facility."""

    ADMIN = "admin"
    HOST = "host"
    RECEPTIONIST = "receptionist"
    SECRETARY = "secretary"
    EMPLOYEE = "employee"


class Principal(BaseEntity):
    """A person who can host, attend, or book meetings.

    Principals are owned by the identity subsystem. The engine only reads
    them, except for optional per-person working hours used by slot
    computation.
    """

    name: str = Field(
        min_length=1,
        max_length=200,
        description="Display name",
    )
    email: str | None = Field(default=None, description="Contact email")
    role: PrincipalRole = Field(description="Role in the facility")
    is_active: bool = Field(default=True, description="Inactive principals are ignored")
    work_start: time | None = Field(
        default=None,
        description="Start of this principal's working day (facility time)",
    )
    work_end: time | None = Field(
        default=None,
        description="End of this principal's working day (facility time)",
    )

    @model_validator(mode="after")
    def working_hours_complete(self) -> "Principal":
        """Working hours are given as a pair or not at all."""
        if (self.work_start is None) != (self.work_end is None):
            msg = "work_start and work_end must be set together"
            raise ValueError(msg)
        return self

    @property
    def is_admin(self) -> bool:
        """Check if principal holds administrative authority."""
        return self.is_active and self.role == PrincipalRole.ADMIN
