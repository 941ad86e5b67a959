"""Scheduling API endpoints: slots, availability checks and busy time."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.api.deps import (
    get_availability_index,
    get_conflict_detector,
    get_slot_computer,
    http_error,
)
from src.clock import to_facility_time
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.conflicts import ConflictDetector
from src.scheduling.errors import SchedulingError
from src.scheduling.schemas import BusyInterval, ParticipantConflicts
from src.scheduling.slots import SlotComputer

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


class SlotResponse(BaseModel):
    """One candidate start time."""

    time: str = Field(description="Start time as HH:MM")
    start: datetime
    available: bool
    reason: str | None = None


class SlotsResponse(BaseModel):
    """Slots for a host on a day."""

    host_id: UUID
    day: date
    duration_minutes: int
    slots: list[SlotResponse]


class ValidateRangeRequest(BaseModel):
    """Contiguous slot selection to validate."""

    host_id: UUID
    start_time: datetime
    duration_minutes: int = Field(gt=0)
    granularity_minutes: int | None = Field(default=None, gt=0)


class ValidateRangeResponse(BaseModel):
    valid: bool
    slots: list[SlotResponse]


class CheckAvailabilityRequest(BaseModel):
    """Proposed meeting window and its participants."""

    participant_ids: list[UUID] = Field(min_length=1)
    proposed_start: datetime
    duration_minutes: int = Field(gt=0)
    exclude_meeting_id: UUID | None = None


class CheckAvailabilityResponse(BaseModel):
    """Conflicted participants only; empty means everyone is free."""

    has_conflicts: bool
    conflicted_participants: list[ParticipantConflicts]


@router.get("/slots", response_model=SlotsResponse)
async def get_slots(
    host_id: UUID,
    day: date,
    duration_minutes: int = Query(gt=0),
    granularity_minutes: int | None = Query(default=None, gt=0),
    computer: SlotComputer = Depends(get_slot_computer),
) -> SlotsResponse:
    """Bookable slots for a host within working hours."""
    try:
        sequence = await computer.compute_slots(
            host_id, day, duration_minutes, granularity_minutes
        )
    except SchedulingError as e:
        raise http_error(e) from e

    return SlotsResponse(
        host_id=host_id,
        day=day,
        duration_minutes=duration_minutes,
        slots=[
            SlotResponse(time=s.time, start=s.start, available=s.available, reason=s.reason)
            for s in sequence
        ],
    )


@router.post("/slots/validate-range", response_model=ValidateRangeResponse)
async def validate_range(
    body: ValidateRangeRequest,
    computer: SlotComputer = Depends(get_slot_computer),
) -> ValidateRangeResponse:
    """Check that every sub-slot of a contiguous selection is free.

    Returns 409 listing the unavailable sub-slots otherwise.
    """
    try:
        slots = await computer.validate_range(
            body.host_id,
            to_facility_time(body.start_time),
            body.duration_minutes,
            body.granularity_minutes,
        )
    except SchedulingError as e:
        raise http_error(e) from e

    return ValidateRangeResponse(
        valid=True,
        slots=[SlotResponse(time=s.time, start=s.start, available=s.available) for s in slots],
    )


@router.post("/check-availability", response_model=CheckAvailabilityResponse)
async def check_availability(
    body: CheckAvailabilityRequest,
    detector: ConflictDetector = Depends(get_conflict_detector),
) -> CheckAvailabilityResponse:
    """Report participants whose commitments overlap the proposed window."""
    try:
        report = await detector.check_availability(
            body.participant_ids,
            to_facility_time(body.proposed_start),
            body.duration_minutes,
            body.exclude_meeting_id,
        )
    except SchedulingError as e:
        raise http_error(e) from e

    return CheckAvailabilityResponse(
        conflicted_participants=report.conflicted_participants,
        has_conflicts=report.has_conflicts,
    )


@router.get("/principals/{principal_id}/busy", response_model=list[BusyInterval])
async def get_busy_intervals(
    principal_id: UUID,
    start: datetime,
    end: datetime,
    index: AvailabilityIndex = Depends(get_availability_index),
) -> list[BusyInterval]:
    """Merged busy intervals of a principal, with their sources."""
    try:
        return await index.busy_intervals(
            principal_id, to_facility_time(start), to_facility_time(end)
        )
    except SchedulingError as e:
        raise http_error(e) from e
