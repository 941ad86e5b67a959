"""Schemas for the scheduling engine.

Defines busy intervals, slots, conflict reports, room check results,
the tagged meeting request variants, and booking results.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.clock import to_facility_time
from src.models.meeting import Meeting
from src.models.override import ConflictOverrideRecord
from src.scheduling.errors import CapacityExceeded, RoomInactive, RoomOccupied

SourceKind = Literal["meeting", "availability_block"]


class WorkingHours(BaseModel):
    """Daily working window for a principal (facility time)."""

    start: time
    end: time

    def on(self, day: date) -> tuple[datetime, datetime]:
        """Concrete working window for a calendar day."""
        return datetime.combine(day, self.start), datetime.combine(day, self.end)


class BusySource(BaseModel):
    """One raw interval contributing to a busy interval."""

    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    source_id: UUID
    start: datetime
    end: datetime
    label: str | None = Field(default=None, description="Purpose or block reason")
    location: str | None = None
    category: str | None = Field(default=None, description="Block category, blocks only")


class BusyInterval(BaseModel):
    """Merged busy interval with every source that caused it."""

    start: datetime
    end: datetime
    sources: list[BusySource] = Field(default_factory=list)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval intersection with [start, end)."""
        return self.start < end and start < self.end

    @property
    def source_kinds(self) -> set[str]:
        return {s.kind for s in self.sources}


class Slot(BaseModel):
    """Candidate start time for a new meeting."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    available: bool
    reason: Literal["busy", "past"] | None = None

    @property
    def time(self) -> str:
        """Start time as HH:MM."""
        return self.start.strftime("%H:%M")


class ConflictEntry(BaseModel):
    """A commitment overlapping a proposed meeting.

    Availability blocks are reported in the same shape, with the block's
    reason in place of a purpose.
    """

    meeting_id: UUID = Field(description="Meeting id, or block id for blocks")
    time: datetime = Field(description="Start of the commitment")
    duration_minutes: int
    purpose: str | None = None
    location: str | None = None
    source_kind: SourceKind = "meeting"

    @property
    def end_time(self) -> datetime:
        return self.time + timedelta(minutes=self.duration_minutes)


class ParticipantConflicts(BaseModel):
    """All conflicting commitments of one participant."""

    participant_id: UUID
    conflicts: list[ConflictEntry]


class AvailabilityReport(BaseModel):
    """Result of a people-conflict check; empty means no conflicts."""

    conflicted_participants: list[ParticipantConflicts] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicted_participants)

    def conflict_ids(self) -> set[UUID]:
        """Ids of every conflicting meeting and block."""
        return {
            c.meeting_id for p in self.conflicted_participants for c in p.conflicts
        }

    def meeting_ids(self) -> set[UUID]:
        """Ids of conflicting meetings only (blocks excluded)."""
        return {
            c.meeting_id
            for p in self.conflicted_participants
            for c in p.conflicts
            if c.source_kind == "meeting"
        }


class RoomCheckStatus(str, Enum):
    OK = "ok"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    ROOM_OCCUPIED = "room_occupied"
    ROOM_INACTIVE = "room_inactive"


class RoomCheckResult(BaseModel):
    """Outcome of a room allocation check."""

    room_id: UUID
    status: RoomCheckStatus
    capacity: int
    participant_count: int
    conflicting_meeting_id: UUID | None = None

    @model_validator(mode="after")
    def occupied_names_meeting(self) -> "RoomCheckResult":
        """An occupied room always names the meeting holding it."""
        if self.status == RoomCheckStatus.ROOM_OCCUPIED and self.conflicting_meeting_id is None:
            msg = "room_occupied requires conflicting_meeting_id"
            raise ValueError(msg)
        return self

    @property
    def ok(self) -> bool:
        return self.status == RoomCheckStatus.OK

    def raise_for_status(self) -> None:
        """Raise the matching engine error unless the room is free."""
        if self.status == RoomCheckStatus.ROOM_INACTIVE:
            raise RoomInactive("Meeting room is not active", {"room_id": str(self.room_id)})
        if self.status == RoomCheckStatus.CAPACITY_EXCEEDED:
            raise CapacityExceeded(
                f"Room capacity is {self.capacity}, "
                f"but {self.participant_count} participants requested",
                {
                    "room_id": str(self.room_id),
                    "capacity": self.capacity,
                    "participant_count": self.participant_count,
                },
            )
        if self.status == RoomCheckStatus.ROOM_OCCUPIED:
            raise RoomOccupied(self.room_id, self.conflicting_meeting_id)


class VisitorIdentity(BaseModel):
    """External visitor attending a meeting."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class _MeetingRequestBase(BaseModel):
    """Fields shared by every meeting request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    host_id: UUID = Field(description="Host principal")
    start_time: datetime = Field(description="Requested start")
    duration_minutes: int = Field(gt=0, le=24 * 60)
    purpose: str | None = Field(default=None, max_length=500)
    participant_ids: list[UUID] = Field(
        default_factory=list,
        description="Principal participants besides the host",
    )
    primary_principal_id: UUID | None = Field(
        default=None,
        description="Principal the meeting is for, when booked by a delegate",
    )
    override_conflicts: bool = Field(default=False)
    override_reason: str | None = Field(default=None, max_length=1000)
    acknowledged_conflict_ids: list[UUID] | None = Field(
        default=None,
        description="Conflict ids the caller saw before confirming an override",
    )

    @field_validator("start_time")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        return to_facility_time(v)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def attendee_ids(self) -> list[UUID]:
        """Host, primary principal and participants, in order, deduplicated."""
        ids: list[UUID] = []
        for pid in [self.host_id, self.primary_principal_id, *self.participant_ids]:
            if pid is not None and pid not in ids:
                ids.append(pid)
        return ids

    @property
    def subject_id(self) -> UUID:
        """Principal whose calendar the booking is fundamentally about."""
        return self.primary_principal_id or self.host_id


class ExternalMeetingRequest(_MeetingRequestBase):
    """Visitor meeting, optionally with a multi-day access window."""

    kind: Literal["external"] = "external"
    location: str | None = Field(default=None, max_length=200)
    visitors: list[VisitorIdentity] = Field(default_factory=list)
    visit_start_date: date | None = None
    visit_end_date: date | None = None

    @model_validator(mode="after")
    def visit_window_ordered(self) -> "ExternalMeetingRequest":
        if (self.visit_start_date is None) != (self.visit_end_date is None):
            msg = "visit_start_date and visit_end_date must be set together"
            raise ValueError(msg)
        if self.visit_start_date and self.visit_end_date < self.visit_start_date:
            msg = "visit_end_date must not be before visit_start_date"
            raise ValueError(msg)
        return self


class InternalMeetingRequest(_MeetingRequestBase):
    """Internal room booking; a room is mandatory."""

    kind: Literal["internal"] = "internal"
    room_id: UUID


MeetingRequest = Annotated[
    ExternalMeetingRequest | InternalMeetingRequest,
    Field(discriminator="kind"),
]


class BookingPlan(BaseModel):
    """A validated meeting ready to be written, with who is booking it."""

    meeting: Meeting
    attendee_ids: list[UUID] = Field(description="Principals checked for conflicts")
    actor_id: UUID


class BookingResult(BaseModel):
    """Outcome of a successful booking."""

    meeting: Meeting
    cancelled_meeting_ids: list[UUID] = Field(default_factory=list)
    override_records: list[ConflictOverrideRecord] = Field(default_factory=list)

    @property
    def meeting_id(self) -> UUID:
        return self.meeting.id

    @property
    def overrode_conflicts(self) -> bool:
        return bool(self.override_records)
