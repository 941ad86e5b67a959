"""Base class for scheduling domain events."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# Envelope fields stored in their own columns rather than in the payload
_ENVELOPE = {"event_id", "timestamp", "aggregate_id", "aggregate_type", "correlation_id"}


class Event(BaseModel):
    """A state change the engine committed.

    Events are written in the same batch as the rows they describe, then
    published to in-process subscribers. All events written by one batch
    share a ``correlation_id``, so an override cascade (new meeting,
    cancellations, override records) can be read back as one unit.

    Attributes:
        event_id: Unique identifier for this event instance
        timestamp: When the event was recorded (UTC)
        aggregate_id: Meeting, block or assignment the event is about
        aggregate_type: "Meeting", "AvailabilityBlock", ...
        correlation_id: Write batch the event was committed in
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    aggregate_id: UUID | None = Field(default=None)
    aggregate_type: str | None = Field(default=None)
    correlation_id: UUID | None = Field(
        default=None,
        description="Set when the event joins a write batch",
    )

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def correlated(self, correlation_id: UUID) -> "Event":
        """Copy of this event stamped with a write batch id."""
        return self.model_copy(update={"correlation_id": correlation_id})

    def to_store_dict(self) -> dict[str, Any]:
        """Envelope plus JSON-safe payload for the events table."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "aggregate_id": str(self.aggregate_id) if self.aggregate_id else None,
            "aggregate_type": self.aggregate_type,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "data": self.model_dump(mode="json", exclude=_ENVELOPE),
        }
