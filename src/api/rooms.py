"""Meeting room API endpoints."""

from datetime import date, datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_room_allocator, get_room_repo, http_error
from src.clock import to_facility_time
from src.models.meeting import Meeting
from src.models.room import MeetingRoom
from src.repositories.room_repo import RoomRepository
from src.scheduling.errors import SchedulingError
from src.scheduling.rooms import RoomAllocator
from src.scheduling.schemas import RoomCheckResult

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=list[MeetingRoom])
async def list_rooms(
    floor_number: int | None = None,
    building: str | None = None,
    min_capacity: int | None = Query(default=None, gt=0),
    equipment: list[str] | None = Query(default=None),
    include_inactive: bool = False,
    repo: RoomRepository = Depends(get_room_repo),
) -> list[MeetingRoom]:
    """List rooms, optionally filtered by location, size and equipment."""
    return await repo.list_rooms(
        active_only=not include_inactive,
        floor_number=floor_number,
        building=building,
        min_capacity=min_capacity,
        equipment=set(equipment) if equipment else None,
    )


@router.get("/{room_id}/check", response_model=RoomCheckResult)
async def check_room(
    room_id: UUID,
    start: datetime,
    duration_minutes: int = Query(gt=0),
    participant_count: int = Query(gt=0),
    allocator: RoomAllocator = Depends(get_room_allocator),
) -> RoomCheckResult:
    """Check a room for a proposed window.

    Always 200 for a known room; the status field says whether it fits.
    """
    start = to_facility_time(start)
    try:
        return await allocator.check_room(
            room_id,
            start,
            start + timedelta(minutes=duration_minutes),
            participant_count,
        )
    except SchedulingError as e:
        raise http_error(e) from e


@router.get("/{room_id}/schedule", response_model=list[Meeting])
async def room_schedule(
    room_id: UUID,
    day: date,
    allocator: RoomAllocator = Depends(get_room_allocator),
) -> list[Meeting]:
    """Meetings occupying a room on a day."""
    try:
        return await allocator.room_schedule(room_id, day)
    except SchedulingError as e:
        raise http_error(e) from e
