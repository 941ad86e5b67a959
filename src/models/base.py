"""Identity and audit fields shared by every stored entity."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base class for stored scheduling entities.

    Audit timestamps are UTC. Scheduling times on the entities themselves
    (meeting starts, block ranges) are naive facility-time datetimes and
    never mix with these.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        validate_assignment=True,
        from_attributes=True,
    )

    id: UUID = Field(default_factory=uuid4, description="Unique entity identifier")
    created_at: datetime = Field(default_factory=utc_now, description="When the row was created")
    updated_at: datetime = Field(default_factory=utc_now, description="When the row last changed")

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utc_now()

    def audit_values(self) -> list[str]:
        """created_at and updated_at as stored in the audit columns."""
        return [self.created_at.isoformat(), self.updated_at.isoformat()]

    @staticmethod
    def audit_fields(created_at: str, updated_at: str | None = None) -> dict[str, Any]:
        """Constructor kwargs from stored audit columns.

        Tables without an updated_at column reuse created_at.
        """
        created = datetime.fromisoformat(created_at)
        updated = datetime.fromisoformat(updated_at) if updated_at else created
        return {"created_at": created, "updated_at": updated}
