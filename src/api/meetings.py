"""Meetings API endpoints for booking, cancellation and lifecycle."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from src.api.deps import get_actor_id, get_orchestrator, get_override_repo, http_error
from src.clock import to_facility_time
from src.models.meeting import Meeting, MeetingStatus
from src.models.override import ConflictOverrideRecord
from src.repositories.override_repo import OverrideRecordRepository
from src.scheduling.booking import BookingOrchestrator
from src.scheduling.errors import SchedulingError
from src.scheduling.schemas import ExternalMeetingRequest, InternalMeetingRequest

router = APIRouter(prefix="/meetings", tags=["meetings"])

MeetingRequestBody = Annotated[
    ExternalMeetingRequest | InternalMeetingRequest,
    Body(discriminator="kind"),
]


class BookingResponse(BaseModel):
    """Response for a successful booking."""

    meeting_id: UUID
    status: MeetingStatus
    overrode_conflicts: bool
    cancelled_meeting_ids: list[UUID] = Field(default_factory=list)
    override_records: list[ConflictOverrideRecord] = Field(default_factory=list)
    meeting: Meeting


class CancelMeetingRequest(BaseModel):
    """Request body for cancelling a meeting."""

    reason: str | None = Field(default=None, max_length=1000)


class StatusChangeRequest(BaseModel):
    """Request body for a lifecycle transition."""

    status: MeetingStatus


@router.post("", response_model=BookingResponse, status_code=201)
async def create_meeting(
    request: MeetingRequestBody,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> BookingResponse:
    """Book an external or internal meeting.

    Conflicts come back as 409 with the full per-participant report so the
    caller can re-submit with ``override_conflicts`` and a reason.
    """
    try:
        result = await orchestrator.create_meeting(request, actor_id)
    except SchedulingError as e:
        raise http_error(e) from e

    return BookingResponse(
        meeting_id=result.meeting_id,
        status=result.meeting.status,
        overrode_conflicts=result.overrode_conflicts,
        cancelled_meeting_ids=result.cancelled_meeting_ids,
        override_records=result.override_records,
        meeting=result.meeting,
    )


@router.get("", response_model=list[Meeting])
async def list_hosted_meetings(
    host_id: UUID,
    start: datetime,
    end: datetime,
    status: MeetingStatus | None = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> list[Meeting]:
    """Meetings a principal hosts starting in [start, end), optionally by status."""
    try:
        return await orchestrator.hosted_meetings(
            host_id, to_facility_time(start), to_facility_time(end), status
        )
    except SchedulingError as e:
        raise http_error(e) from e


@router.get("/{meeting_id}", response_model=Meeting)
async def get_meeting(
    meeting_id: UUID,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> Meeting:
    """Get a meeting with its participants."""
    try:
        return await orchestrator.get_meeting(meeting_id)
    except SchedulingError as e:
        raise http_error(e) from e


@router.post("/{meeting_id}/cancel", response_model=Meeting)
async def cancel_meeting(
    meeting_id: UUID,
    body: CancelMeetingRequest | None = None,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> Meeting:
    """Cancel a scheduled or active meeting."""
    reason = body.reason if body else None
    try:
        return await orchestrator.cancel_meeting(meeting_id, actor_id, reason)
    except SchedulingError as e:
        raise http_error(e) from e


@router.post("/{meeting_id}/status", response_model=Meeting)
async def change_status(
    meeting_id: UUID,
    body: StatusChangeRequest,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> Meeting:
    """Move a meeting to active, completed or cancelled."""
    try:
        return await orchestrator.transition_status(meeting_id, actor_id, body.status)
    except SchedulingError as e:
        raise http_error(e) from e


@router.get("/{meeting_id}/overrides", response_model=list[ConflictOverrideRecord])
async def get_override_records(
    meeting_id: UUID,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    repo: OverrideRecordRepository = Depends(get_override_repo),
) -> list[ConflictOverrideRecord]:
    """Override records written when this meeting was force-booked."""
    try:
        await orchestrator.get_meeting(meeting_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return await repo.for_new_meeting(meeting_id)
