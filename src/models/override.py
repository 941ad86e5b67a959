"""Audit record for a conflict override."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConflictOverrideRecord(BaseModel):
    """Immutable record written when an override cascade runs.

    One record exists per (new meeting, conflicting meeting or block,
    affected participant) triple.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    new_meeting_id: UUID = Field(description="Meeting that was force-booked")
    conflicting_meeting_id: UUID | None = Field(
        default=None,
        description="Meeting cancelled by the override",
    )
    conflicting_block_id: UUID | None = Field(
        default=None,
        description="Availability block overridden (blocks are never cancelled)",
    )
    participant_id: UUID = Field(description="Principal whose commitment was overridden")
    approved_by: UUID = Field(description="Actor who approved the override")
    override_reason: str = Field(min_length=1, description="Mandatory justification")
    override_approved: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def one_conflict_source(self) -> "ConflictOverrideRecord":
        """Exactly one of meeting or block is referenced."""
        if (self.conflicting_meeting_id is None) == (self.conflicting_block_id is None):
            msg = "Set exactly one of conflicting_meeting_id or conflicting_block_id"
            raise ValueError(msg)
        return self
