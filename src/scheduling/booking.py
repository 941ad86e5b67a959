"""BookingOrchestrator: the single entry point for scheduling mutations.

Every write to meetings and availability blocks goes through here so the
no-overlap invariant is enforced in one place. Flow for a booking:

    validate -> delegation -> lock -> room check -> conflict check
             -> override cascade or plain persist -> publish events
"""

from datetime import datetime, time, timedelta
from uuid import UUID

import structlog

from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.events.types import (
    AvailabilityBlockCreated,
    AvailabilityBlockDeleted,
    AvailabilityBlockUpdated,
    MeetingCancelled,
    MeetingScheduled,
    MeetingStatusChanged,
)
from src.models.availability import AvailabilityBlock, BlockCategory
from src.models.meeting import Meeting, MeetingKind, MeetingStatus
from src.models.participant import Participant
from src.repositories.availability_repo import AvailabilityBlockRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.unit_of_work import TransactionFailed, UnitOfWork
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.conflicts import ConflictDetector
from src.scheduling.delegation import DelegationAuthority
from src.scheduling.errors import (
    BlockNotFound,
    BookingPersistenceFailed,
    ConflictDetected,
    Forbidden,
    InvalidRequest,
    InvalidStatusTransition,
    MeetingNotFound,
    OverrideReasonRequired,
    PersistenceFailed,
)
from src.scheduling.locks import KeyedLockManager, principal_key, room_key
from src.scheduling.override import OverrideCascade
from src.scheduling.rooms import RoomAllocator
from src.scheduling.schemas import (
    BookingPlan,
    BookingResult,
    ExternalMeetingRequest,
    InternalMeetingRequest,
)

logger = structlog.get_logger()


def _validate_request(request: ExternalMeetingRequest | InternalMeetingRequest) -> None:
    """Checks that need no store access."""
    if request.override_conflicts and not (request.override_reason or "").strip():
        raise OverrideReasonRequired("An override reason is required")
    if isinstance(request, ExternalMeetingRequest) and request.visit_start_date:
        day = request.start_time.date()
        if not request.visit_start_date <= day <= request.visit_end_date:
            raise InvalidRequest(
                "Meeting must start within the visit window",
                {
                    "start_time": request.start_time.isoformat(),
                    "visit_start_date": request.visit_start_date.isoformat(),
                    "visit_end_date": request.visit_end_date.isoformat(),
                },
            )


def _all_day_span(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Widen an all-day block to whole calendar days."""
    day_start = datetime.combine(start.date(), time.min)
    day_end = datetime.combine(end.date(), time.min)
    if day_end < end or day_end == day_start:
        day_end += timedelta(days=1)
    return day_start, day_end


class BookingOrchestrator:
    """Composes delegation, room, conflict and override checks into atomic writes."""

    def __init__(
        self,
        db: TursoClient,
        index: AvailabilityIndex,
        detector: ConflictDetector,
        rooms: RoomAllocator,
        delegation: DelegationAuthority,
        cascade: OverrideCascade,
        meetings: MeetingRepository,
        blocks: AvailabilityBlockRepository,
        locks: KeyedLockManager,
        event_store: EventStore | None = None,
        event_bus: EventBus | None = None,
    ):
        self._db = db
        self._index = index
        self._detector = detector
        self._rooms = rooms
        self._delegation = delegation
        self._cascade = cascade
        self._meetings = meetings
        self._blocks = blocks
        self._locks = locks
        self._event_store = event_store
        self._event_bus = event_bus

    # Meetings

    async def create_meeting(
        self,
        request: ExternalMeetingRequest | InternalMeetingRequest,
        actor_id: UUID,
    ) -> BookingResult:
        """Book a meeting, or explain why it cannot be booked.

        Args:
            request: External or internal meeting request
            actor_id: Principal performing the booking

        Returns:
            BookingResult for the new scheduled meeting

        Raises:
            InvalidRequest: Malformed request or inactive attendee
            OverrideReasonRequired: Override flag without a reason
            PrincipalNotFound: Unknown host or participant
            Forbidden: Actor may not book for the host or primary principal
            RoomNotFound, RoomInactive, CapacityExceeded, RoomOccupied:
                Internal meeting room problems
            ConflictDetected: Attendees are busy and no override was given
            ConflictsNoLongerPresent, OverridePersistenceFailed: Override
                cascade failures
            BookingPersistenceFailed: The write batch was rolled back
        """
        _validate_request(request)

        attendee_ids = request.attendee_ids
        principals = await self._index.get_principals(attendee_ids)
        inactive = [p.id for p in principals if not p.is_active]
        if inactive:
            raise InvalidRequest(
                "Inactive principals cannot attend meetings",
                {"principal_ids": [str(pid) for pid in inactive]},
            )

        for subject_id in {request.host_id, request.subject_id}:
            await self._delegation.ensure_can_act_for(actor_id, subject_id)

        room = None
        if isinstance(request, InternalMeetingRequest):
            room = await self._rooms.get_room(request.room_id)

        meeting = self._build_meeting(request, actor_id, room.display_location if room else None)
        plan = BookingPlan(meeting=meeting, attendee_ids=attendee_ids, actor_id=actor_id)

        keys = [principal_key(pid) for pid in attendee_ids]
        if room is not None:
            keys.append(room_key(room.id))

        async with self._locks.hold(keys):
            if room is not None:
                check = await self._rooms.check_room(
                    room.id, meeting.start_time, meeting.end_time, len(attendee_ids)
                )
                check.raise_for_status()

            if request.override_conflicts:
                return await self._cascade.execute(
                    plan,
                    request.override_reason,
                    request.acknowledged_conflict_ids,
                )

            report = await self._detector.check_availability(
                attendee_ids, meeting.start_time, meeting.duration_minutes
            )
            if report.has_conflicts:
                raise ConflictDetected(report)

            uow = UnitOfWork(self._db, self._event_store)
            uow.add(*self._meetings.insert_statements(meeting))
            uow.record(MeetingScheduled.from_meeting(meeting))
            await self._commit(uow, BookingPersistenceFailed, "Meeting could not be saved")

        logger.info(
            "meeting scheduled",
            meeting_id=str(meeting.id),
            host_id=str(meeting.host_id),
            kind=meeting.kind.value,
            start_time=meeting.start_time.isoformat(),
            delegated=meeting.booked_by_delegate_id is not None,
        )
        await self._publish(uow)
        return BookingResult(meeting=meeting)

    async def get_meeting(self, meeting_id: UUID) -> Meeting:
        """Load a meeting or raise MeetingNotFound."""
        meeting = await self._meetings.get(meeting_id)
        if meeting is None:
            raise MeetingNotFound(meeting_id)
        return meeting

    async def hosted_meetings(
        self,
        host_id: UUID,
        start: datetime,
        end: datetime,
        status: MeetingStatus | None = None,
    ) -> list[Meeting]:
        """Meetings a principal hosts that start within [start, end)."""
        if end <= start:
            raise InvalidRequest(
                "Range end must be after range start",
                {"start": start.isoformat(), "end": end.isoformat()},
            )
        await self._index.get_principal(host_id)
        return await self._meetings.list_for_host(host_id, start, end, status)

    async def cancel_meeting(
        self,
        meeting_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> Meeting:
        """Cancel a scheduled or active meeting. Cancellation is terminal.

        Raises:
            MeetingNotFound: Unknown meeting
            Forbidden: Actor has no authority over the meeting
            InvalidStatusTransition: Meeting is already completed or cancelled
        """
        meeting = await self.get_meeting(meeting_id)
        await self._ensure_can_manage(actor_id, meeting)

        async with self._locks.hold(self._meeting_keys(meeting)):
            meeting = await self.get_meeting(meeting_id)
            self._check_transition(meeting, MeetingStatus.CANCELLED)

            uow = UnitOfWork(self._db, self._event_store)
            uow.add(self._meetings.cancel_statement(meeting_id))
            uow.record(
                MeetingCancelled.from_meeting(meeting, cancelled_by=actor_id, reason=reason)
            )
            await self._commit(uow, PersistenceFailed, "Cancellation could not be saved")

        logger.info("meeting cancelled", meeting_id=str(meeting_id), actor_id=str(actor_id))
        await self._publish(uow)
        return meeting.model_copy(update={"status": MeetingStatus.CANCELLED})

    async def transition_status(
        self,
        meeting_id: UUID,
        actor_id: UUID,
        status: MeetingStatus,
    ) -> Meeting:
        """Move a meeting along its lifecycle.

        Allowed: scheduled -> active -> completed, and any non-terminal
        status -> cancelled.

        Raises:
            MeetingNotFound: Unknown meeting
            Forbidden: Actor has no authority over the meeting
            InvalidStatusTransition: Lifecycle does not allow the move
        """
        if status == MeetingStatus.CANCELLED:
            return await self.cancel_meeting(meeting_id, actor_id)

        meeting = await self.get_meeting(meeting_id)
        await self._ensure_can_manage(actor_id, meeting)

        async with self._locks.hold(self._meeting_keys(meeting)):
            meeting = await self.get_meeting(meeting_id)
            self._check_transition(meeting, status)

            uow = UnitOfWork(self._db, self._event_store)
            uow.add(self._meetings.status_statement(meeting_id, status, (meeting.status,)))
            uow.record(
                MeetingStatusChanged(
                    aggregate_id=meeting_id,
                    previous_status=meeting.status.value,
                    new_status=status.value,
                    changed_by=actor_id,
                )
            )
            await self._commit(uow, PersistenceFailed, "Status change could not be saved")

        logger.info(
            "meeting status changed",
            meeting_id=str(meeting_id),
            previous=meeting.status.value,
            status=status.value,
        )
        await self._publish(uow)
        return meeting.model_copy(update={"status": status})

    # Availability blocks

    async def create_availability_block(
        self,
        principal_id: UUID,
        start: datetime,
        end: datetime,
        category: BlockCategory,
        all_day: bool,
        reason: str | None,
        acting_as_id: UUID,
    ) -> AvailabilityBlock:
        """Declare busy time for a principal.

        All-day blocks are widened to whole calendar days; the index later
        narrows each day to the principal's working hours. A block may not
        overlap the principal's scheduled or active meetings or another
        block unless its category is advisory.

        Raises:
            InvalidRequest: End not after start
            PrincipalNotFound: Unknown principal
            Forbidden: Actor may not act for the principal
            ConflictDetected: The span overlaps existing commitments
        """
        if end <= start:
            raise InvalidRequest(
                "Block end must be after start",
                {"start": start.isoformat(), "end": end.isoformat()},
            )
        if all_day:
            start, end = _all_day_span(start, end)

        await self._index.get_principal(principal_id)
        await self._delegation.ensure_can_act_for(acting_as_id, principal_id)

        block = AvailabilityBlock(
            principal_id=principal_id,
            start_time=start,
            end_time=end,
            category=category,
            all_day=all_day,
            reason=reason,
            created_by=acting_as_id,
        )
        async with self._locks.hold([principal_key(principal_id)]):
            await self._ensure_block_free(block)

            uow = UnitOfWork(self._db, self._event_store)
            uow.add(self._blocks.insert_statement(block))
            uow.record(
                AvailabilityBlockCreated(
                    aggregate_id=block.id,
                    principal_id=principal_id,
                    start_time=block.start_time,
                    end_time=block.end_time,
                    category=block.category.value,
                    created_by=acting_as_id,
                )
            )
            await self._commit(uow, PersistenceFailed, "Availability block could not be saved")

        logger.info(
            "availability block created",
            block_id=str(block.id),
            principal_id=str(principal_id),
            category=category.value,
        )
        await self._publish(uow)
        return block

    async def update_availability_block(
        self,
        block_id: UUID,
        actor_id: UUID,
        start: datetime | None = None,
        end: datetime | None = None,
        category: BlockCategory | None = None,
        reason: str | None = None,
    ) -> AvailabilityBlock:
        """Move, resize or recategorize a block in place.

        Omitted fields keep their stored value. The block keeps its id and
        all-day flag, and the new span gets the same overlap check as a
        new block, ignoring the block itself.

        Raises:
            BlockNotFound: Unknown block
            Forbidden: Actor may not act for the block's principal
            InvalidRequest: End not after start
            ConflictDetected: The new span overlaps existing commitments
        """
        block = await self._get_block(block_id)
        await self._delegation.ensure_can_act_for(actor_id, block.principal_id)

        async with self._locks.hold([principal_key(block.principal_id)]):
            block = await self._get_block(block_id)
            new_start = start or block.start_time
            new_end = end or block.end_time
            if new_end <= new_start:
                raise InvalidRequest(
                    "Block end must be after start",
                    {"start": new_start.isoformat(), "end": new_end.isoformat()},
                )
            if block.all_day:
                new_start, new_end = _all_day_span(new_start, new_end)

            updated = block.model_copy(
                update={
                    "start_time": new_start,
                    "end_time": new_end,
                    "category": category or block.category,
                    "reason": reason if reason is not None else block.reason,
                }
            )
            updated.touch()
            await self._ensure_block_free(updated)

            uow = UnitOfWork(self._db, self._event_store)
            uow.add(self._blocks.update_statement(updated))
            uow.record(
                AvailabilityBlockUpdated(
                    aggregate_id=block_id,
                    principal_id=block.principal_id,
                    start_time=updated.start_time,
                    end_time=updated.end_time,
                    category=updated.category.value,
                    previous_start_time=block.start_time,
                    previous_end_time=block.end_time,
                    updated_by=actor_id,
                )
            )
            await self._commit(uow, PersistenceFailed, "Availability block could not be updated")

        logger.info(
            "availability block updated",
            block_id=str(block_id),
            start_time=updated.start_time.isoformat(),
            end_time=updated.end_time.isoformat(),
        )
        await self._publish(uow)
        return updated

    async def delete_availability_block(self, block_id: UUID, actor_id: UUID) -> None:
        """Remove an availability block.

        Raises:
            BlockNotFound: Unknown block
            Forbidden: Actor may not act for the block's principal
        """
        block = await self._get_block(block_id)
        await self._delegation.ensure_can_act_for(actor_id, block.principal_id)

        async with self._locks.hold([principal_key(block.principal_id)]):
            uow = UnitOfWork(self._db, self._event_store)
            uow.add(self._blocks.delete_statement(block_id))
            uow.record(
                AvailabilityBlockDeleted(
                    aggregate_id=block_id,
                    principal_id=block.principal_id,
                    deleted_by=actor_id,
                )
            )
            await self._commit(uow, PersistenceFailed, "Availability block could not be deleted")

        logger.info("availability block deleted", block_id=str(block_id))
        await self._publish(uow)

    async def availability_blocks(
        self,
        principal_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[AvailabilityBlock]:
        """Blocks of one principal overlapping [start, end)."""
        if end <= start:
            raise InvalidRequest(
                "Range end must be after range start",
                {"start": start.isoformat(), "end": end.isoformat()},
            )
        await self._index.get_principal(principal_id)
        blocks = await self._blocks.list_for_principals([principal_id], start, end)
        return blocks.get(principal_id, [])

    # Helpers

    @staticmethod
    def _build_meeting(
        request: ExternalMeetingRequest | InternalMeetingRequest,
        actor_id: UUID,
        room_location: str | None,
    ) -> Meeting:
        participants = [
            Participant(principal_id=pid, is_primary=pid == request.primary_principal_id)
            for pid in request.attendee_ids
            if pid != request.host_id
        ]
        if isinstance(request, ExternalMeetingRequest):
            participants.extend(
                Participant(
                    visitor_name=v.name,
                    visitor_email=v.email,
                    visitor_phone=v.phone,
                    visitor_company=v.company,
                )
                for v in request.visitors
            )
            fields = {
                "kind": MeetingKind.EXTERNAL,
                "location": request.location,
                "visit_start_date": request.visit_start_date,
                "visit_end_date": request.visit_end_date,
            }
        else:
            fields = {
                "kind": MeetingKind.INTERNAL,
                "room_id": request.room_id,
                "location": room_location,
            }

        meeting = Meeting(
            host_id=request.host_id,
            start_time=request.start_time,
            duration_minutes=request.duration_minutes,
            purpose=request.purpose,
            primary_principal_id=request.primary_principal_id,
            booked_by_delegate_id=actor_id if actor_id != request.host_id else None,
            participants=participants,
            **fields,
        )
        for participant in meeting.participants:
            participant.meeting_id = meeting.id
        return meeting

    async def _ensure_can_manage(self, actor_id: UUID, meeting: Meeting) -> None:
        """Authority over the host or the primary principal suffices."""
        subjects = [meeting.host_id]
        if meeting.primary_principal_id:
            subjects.append(meeting.primary_principal_id)
        for subject_id in subjects:
            if await self._delegation.can_act_for(actor_id, subject_id):
                return
        raise Forbidden(actor_id, meeting.host_id)

    async def _get_block(self, block_id: UUID) -> AvailabilityBlock:
        block = await self._blocks.get(block_id)
        if block is None:
            raise BlockNotFound(block_id)
        return block

    async def _ensure_block_free(self, block: AvailabilityBlock) -> None:
        """Raise ConflictDetected if the block overlaps other commitments."""
        if self._detector.is_advisory(block.category.value):
            return
        report = await self._detector.check_window(
            [block.principal_id],
            block.start_time,
            block.end_time,
            exclude_block_id=block.id,
        )
        if report.has_conflicts:
            logger.info(
                "availability block rejected",
                block_id=str(block.id),
                principal_id=str(block.principal_id),
                conflict_count=len(report.conflict_ids()),
            )
            raise ConflictDetected(report)

    @staticmethod
    def _meeting_keys(meeting: Meeting) -> list[str]:
        keys = [principal_key(pid) for pid in meeting.principal_ids]
        if meeting.room_id:
            keys.append(room_key(meeting.room_id))
        return keys

    @staticmethod
    def _check_transition(meeting: Meeting, status: MeetingStatus) -> None:
        if not meeting.can_transition_to(status):
            raise InvalidStatusTransition(
                f"Cannot move meeting from {meeting.status.value} to {status.value}",
                {"meeting_id": str(meeting.id), "status": meeting.status.value},
            )

    async def _commit(
        self,
        uow: UnitOfWork,
        error: type[PersistenceFailed],
        message: str,
    ) -> None:
        try:
            await uow.commit()
        except TransactionFailed as e:
            logger.error("write rolled back", error=str(e), statements=uow.statement_count)
            raise error(message, {"error": str(e)}) from e

    async def _publish(self, uow: UnitOfWork) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish_committed(uow.events)
