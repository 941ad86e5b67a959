"""Meeting model representing a booked visitor or internal meeting."""

from datetime import date, datetime, timedelta
from enum import Enum
from uuid import UUID

from pydantic import Field, model_validator

from src.models.base import BaseEntity
from src.models.participant import Participant


class MeetingStatus(str, Enum):
    """Lifecycle status of a meeting."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MeetingKind(str, Enum):
    """External visitor meeting or internal room booking."""

    EXTERNAL = "external"
    INTERNAL = "internal"


# Statuses that occupy a principal's or room's calendar
COMMITTED_STATUSES = (MeetingStatus.SCHEDULED, MeetingStatus.ACTIVE)

ALLOWED_TRANSITIONS: dict[MeetingStatus, frozenset[MeetingStatus]] = {
    MeetingStatus.SCHEDULED: frozenset({MeetingStatus.ACTIVE, MeetingStatus.CANCELLED}),
    MeetingStatus.ACTIVE: frozenset({MeetingStatus.COMPLETED, MeetingStatus.CANCELLED}),
    MeetingStatus.COMPLETED: frozenset(),
    MeetingStatus.CANCELLED: frozenset(),
}


class Meeting(BaseEntity):
    """A booked meeting.

    Meetings are never deleted; they only move through their status
    lifecycle. Times are naive datetimes in facility time.
    """

    host_id: UUID = Field(description="Host principal")
    start_time: datetime = Field(description="When the meeting starts")
    duration_minutes: int = Field(gt=0, description="Meeting duration in minutes")
    status: MeetingStatus = Field(default=MeetingStatus.SCHEDULED)
    kind: MeetingKind = Field(default=MeetingKind.EXTERNAL)
    room_id: UUID | None = Field(default=None, description="Booked meeting room")
    purpose: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=200)
    visit_start_date: date | None = Field(
        default=None,
        description="First day of a multi-day visitor access window",
    )
    visit_end_date: date | None = Field(
        default=None,
        description="Last day of a multi-day visitor access window",
    )
    booked_by_delegate_id: UUID | None = Field(
        default=None,
        description="Secretary (or other delegate) who booked on the host's behalf",
    )
    primary_principal_id: UUID | None = Field(
        default=None,
        description="Principal the meeting is fundamentally for",
    )
    participants: list[Participant] = Field(default_factory=list)

    @model_validator(mode="after")
    def visit_window_valid(self) -> "Meeting":
        """Visit window dates come as an ordered pair."""
        if (self.visit_start_date is None) != (self.visit_end_date is None):
            msg = "visit_start_date and visit_end_date must be set together"
            raise ValueError(msg)
        if self.visit_start_date and self.visit_end_date < self.visit_start_date:
            msg = "visit_end_date must not be before visit_start_date"
            raise ValueError(msg)
        return self

    @property
    def end_time(self) -> datetime:
        """When the meeting ends (exclusive)."""
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def is_multi_day(self) -> bool:
        """Check if visitor access spans more than one day."""
        return (
            self.visit_start_date is not None
            and self.visit_end_date is not None
            and self.visit_end_date > self.visit_start_date
        )

    @property
    def is_committed(self) -> bool:
        """Check if the meeting still occupies calendars."""
        return self.status in COMMITTED_STATUSES

    @property
    def principal_ids(self) -> list[UUID]:
        """Host plus every principal participant, without duplicates."""
        ids = [self.host_id]
        for p in self.participants:
            if p.principal_id and p.principal_id not in ids:
                ids.append(p.principal_id)
        return ids

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval intersection with [start, end)."""
        return self.start_time < end and start < self.end_time

    def grants_access_on(self, day: date) -> bool:
        """Check if visitors of this meeting may enter on the given day."""
        if self.status not in COMMITTED_STATUSES:
            return False
        if self.visit_start_date and self.visit_end_date:
            return self.visit_start_date <= day <= self.visit_end_date
        return day == self.start_time.date()

    def can_transition_to(self, status: MeetingStatus) -> bool:
        """Check if the lifecycle allows moving to the given status."""
        return status in ALLOWED_TRANSITIONS[self.status]
