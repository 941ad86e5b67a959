"""Room capacity and double-booking checks for internal meetings."""

from datetime import date, datetime
from uuid import UUID

import structlog

from src.clock import day_bounds
from src.models.meeting import Meeting
from src.models.room import MeetingRoom
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.room_repo import RoomRepository
from src.scheduling.errors import InvalidRequest, RoomNotFound
from src.scheduling.schemas import RoomCheckResult, RoomCheckStatus

logger = structlog.get_logger()


class RoomAllocator:
    """Checks rooms, independently of people conflicts.

    A booking can pass the people check and still fail here, or the other
    way round; both must pass.
    """

    def __init__(self, rooms: RoomRepository, meetings: MeetingRepository):
        self._rooms = rooms
        self._meetings = meetings

    async def get_room(self, room_id: UUID) -> MeetingRoom:
        """Load a room or raise RoomNotFound."""
        room = await self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def check_room(
        self,
        room_id: UUID,
        start: datetime,
        end: datetime,
        participant_count: int,
    ) -> RoomCheckResult:
        """Check that a room can host a meeting.

        Checks run in order: active, capacity, occupancy. The first failing
        one decides the status.

        Args:
            room_id: Room to check
            start: Meeting start
            end: Meeting end (exclusive)
            participant_count: Number of attendees

        Returns:
            RoomCheckResult; call raise_for_status() to turn a failure
            into an error

        Raises:
            InvalidRequest: Empty window or no attendees
            RoomNotFound: Unknown room
        """
        if end <= start:
            raise InvalidRequest(
                "Meeting end must be after start",
                {"start": start.isoformat(), "end": end.isoformat()},
            )
        if participant_count < 1:
            raise InvalidRequest(
                "At least one participant is required",
                {"participant_count": participant_count},
            )

        room = await self.get_room(room_id)
        status = RoomCheckStatus.OK
        conflicting_id = None
        if not room.is_active:
            status = RoomCheckStatus.ROOM_INACTIVE
        elif participant_count > room.capacity:
            status = RoomCheckStatus.CAPACITY_EXCEEDED
        else:
            occupied = await self._meetings.committed_in_room(room_id, start, end)
            if occupied:
                status = RoomCheckStatus.ROOM_OCCUPIED
                conflicting_id = occupied[0].id

        if status != RoomCheckStatus.OK:
            logger.info(
                "room check failed",
                room_id=str(room_id),
                status=status.value,
                participant_count=participant_count,
            )
        return RoomCheckResult(
            room_id=room_id,
            status=status,
            capacity=room.capacity,
            participant_count=participant_count,
            conflicting_meeting_id=conflicting_id,
        )

    async def room_schedule(self, room_id: UUID, day: date) -> list[Meeting]:
        """Scheduled/active meetings occupying a room on a day."""
        await self.get_room(room_id)
        start, end = day_bounds(day)
        return await self._meetings.committed_in_room(room_id, start, end)
