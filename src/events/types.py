"""Typed event definitions for scheduling domain events.

These events represent things that happen in the engine:
- MeetingScheduled: A meeting was booked
- MeetingCancelled: A meeting was cancelled (directly or by override)
- MeetingStatusChanged: A meeting started or completed
- ConflictOverridden: An override record was written
- AvailabilityBlockCreated / AvailabilityBlockUpdated / AvailabilityBlockDeleted
- DelegateAssigned / DelegateRevoked

Notification delivery consumes these; the engine never sends messages itself.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from src.events.base import Event
from src.models.meeting import Meeting


def _visitor_emails(meeting: Meeting) -> list[str]:
    return [p.visitor_email for p in meeting.participants if p.is_visitor and p.visitor_email]


class MeetingScheduled(Event):
    """Emitted when a new meeting is persisted as scheduled."""

    aggregate_type: str = "Meeting"
    host_id: UUID = Field(description="Host principal")
    kind: str = Field(description="external or internal")
    start_time: datetime = Field(description="Meeting start (facility time)")
    duration_minutes: int = Field(description="Meeting duration")
    room_id: UUID | None = Field(default=None, description="Booked room")
    purpose: str | None = Field(default=None)
    location: str | None = Field(default=None)
    principal_ids: list[UUID] = Field(
        default_factory=list, description="Host and principal participants"
    )
    visitor_emails: list[str] = Field(
        default_factory=list, description="Contact emails of external visitors"
    )
    booked_by_delegate_id: UUID | None = Field(default=None)
    overrode_conflicts: bool = Field(default=False)

    @classmethod
    def from_meeting(
        cls,
        meeting: Meeting,
        overrode_conflicts: bool = False,
    ) -> "MeetingScheduled":
        return cls(
            aggregate_id=meeting.id,
            host_id=meeting.host_id,
            kind=meeting.kind.value,
            start_time=meeting.start_time,
            duration_minutes=meeting.duration_minutes,
            room_id=meeting.room_id,
            purpose=meeting.purpose,
            location=meeting.location,
            principal_ids=meeting.principal_ids,
            visitor_emails=_visitor_emails(meeting),
            booked_by_delegate_id=meeting.booked_by_delegate_id,
            overrode_conflicts=overrode_conflicts,
        )


class MeetingCancelled(Event):
    """Emitted when a meeting is cancelled."""

    aggregate_type: str = "Meeting"
    host_id: UUID = Field(description="Host principal")
    start_time: datetime = Field(description="Start of the cancelled meeting")
    duration_minutes: int = Field(description="Duration of the cancelled meeting")
    purpose: str | None = Field(default=None)
    location: str | None = Field(default=None)
    principal_ids: list[UUID] = Field(default_factory=list)
    visitor_emails: list[str] = Field(default_factory=list)
    cancelled_by: UUID = Field(description="Actor who caused the cancellation")
    reason: str | None = Field(default=None)
    superseded_by: UUID | None = Field(
        default=None, description="New meeting that overrode this one"
    )

    @classmethod
    def from_meeting(
        cls,
        meeting: Meeting,
        cancelled_by: UUID,
        reason: str | None = None,
        superseded_by: UUID | None = None,
    ) -> "MeetingCancelled":
        return cls(
            aggregate_id=meeting.id,
            host_id=meeting.host_id,
            start_time=meeting.start_time,
            duration_minutes=meeting.duration_minutes,
            purpose=meeting.purpose,
            location=meeting.location,
            principal_ids=meeting.principal_ids,
            visitor_emails=_visitor_emails(meeting),
            cancelled_by=cancelled_by,
            reason=reason,
            superseded_by=superseded_by,
        )


class MeetingStatusChanged(Event):
    """Emitted on scheduled -> active -> completed transitions."""

    aggregate_type: str = "Meeting"
    previous_status: str
    new_status: str
    changed_by: UUID


class ConflictOverridden(Event):
    """Emitted per ConflictOverrideRecord."""

    aggregate_type: str = "ConflictOverride"
    new_meeting_id: UUID
    conflicting_meeting_id: UUID | None = None
    conflicting_block_id: UUID | None = None
    participant_id: UUID
    approved_by: UUID
    override_reason: str


class AvailabilityBlockCreated(Event):
    """Emitted when a principal's time is blocked."""

    aggregate_type: str = "AvailabilityBlock"
    principal_id: UUID
    start_time: datetime
    end_time: datetime
    category: str
    created_by: UUID


class AvailabilityBlockUpdated(Event):
    """Emitted when a block is moved, resized or recategorized."""

    aggregate_type: str = "AvailabilityBlock"
    principal_id: UUID
    start_time: datetime
    end_time: datetime
    category: str
    previous_start_time: datetime
    previous_end_time: datetime
    updated_by: UUID


class AvailabilityBlockDeleted(Event):
    """Emitted when an availability block is removed."""

    aggregate_type: str = "AvailabilityBlock"
    principal_id: UUID
    deleted_by: UUID


class DelegateAssigned(Event):
    """Emitted when a secretary is assigned to an employee."""

    aggregate_type: str = "DelegationAssignment"
    secretary_id: UUID
    employee_id: UUID
    assigned_by: UUID
    replaced_assignment_id: UUID | None = Field(
        default=None, description="Prior assignment deactivated by this one"
    )


class DelegateRevoked(Event):
    """Emitted when an assignment is deactivated by an admin."""

    aggregate_type: str = "DelegationAssignment"
    secretary_id: UUID
    employee_id: UUID
    revoked_by: UUID
