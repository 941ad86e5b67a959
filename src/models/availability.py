"""Availability block model for manually declared busy time."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, model_validator

from src.models.base import BaseEntity


class BlockCategory(str, Enum):
    """Why a principal declared the time as busy."""

    TIME_OFF = "time_off"
    BUSY = "busy"
    MEETING = "meeting"
    UNAVAILABLE = "unavailable"


class AvailabilityBlock(BaseEntity):
    """An interval during which a principal is not bookable.

    Blocks never expire on their own; they are deleted explicitly by the
    principal or by someone holding delegation authority over them.
    """

    principal_id: UUID = Field(description="Principal whose time is blocked")
    start_time: datetime = Field(description="Block start (facility time)")
    end_time: datetime = Field(description="Block end, exclusive (facility time)")
    category: BlockCategory = Field(default=BlockCategory.BUSY)
    all_day: bool = Field(
        default=False,
        description="Block covers whole working days from start to end date",
    )
    reason: str | None = Field(default=None, max_length=255)
    created_by: UUID | None = Field(
        default=None,
        description="Actor who declared the block",
    )

    @model_validator(mode="after")
    def end_after_start(self) -> "AvailabilityBlock":
        """Reject empty or inverted intervals."""
        if self.end_time <= self.start_time:
            msg = "end_time must be after start_time"
            raise ValueError(msg)
        return self

    @property
    def label(self) -> str:
        """Human-readable description used in conflict reports."""
        return self.reason or self.category.value.replace("_", " ")
