"""Override cascade: force-book a meeting by cancelling what it conflicts with."""

from uuid import UUID

import structlog

from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.events.types import ConflictOverridden, MeetingCancelled, MeetingScheduled
from src.models.meeting import Meeting
from src.models.override import ConflictOverrideRecord
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.override_repo import OverrideRecordRepository
from src.repositories.unit_of_work import TransactionFailed, UnitOfWork
from src.scheduling.conflicts import ConflictDetector
from src.scheduling.errors import (
    ConflictDetected,
    ConflictsNoLongerPresent,
    OverridePersistenceFailed,
    OverrideReasonRequired,
)
from src.scheduling.schemas import AvailabilityReport, BookingPlan, BookingResult

logger = structlog.get_logger()


def build_override_records(
    report: AvailabilityReport,
    new_meeting_id: UUID,
    approved_by: UUID,
    reason: str,
) -> list[ConflictOverrideRecord]:
    """One record per (new meeting, conflicting meeting or block, participant)."""
    records = []
    for participant in report.conflicted_participants:
        for entry in participant.conflicts:
            is_meeting = entry.source_kind == "meeting"
            records.append(
                ConflictOverrideRecord(
                    new_meeting_id=new_meeting_id,
                    conflicting_meeting_id=entry.meeting_id if is_meeting else None,
                    conflicting_block_id=None if is_meeting else entry.meeting_id,
                    participant_id=participant.participant_id,
                    approved_by=approved_by,
                    override_reason=reason,
                )
            )
    return records


class OverrideCascade:
    """Runs the override protocol as one atomic write.

    The caller must already hold the booking locks for every attendee of
    the new meeting; conflicts are re-checked here from current state.
    """

    def __init__(
        self,
        db: TursoClient,
        detector: ConflictDetector,
        meetings: MeetingRepository,
        overrides: OverrideRecordRepository,
        event_store: EventStore | None = None,
        event_bus: EventBus | None = None,
    ):
        self._db = db
        self._detector = detector
        self._meetings = meetings
        self._overrides = overrides
        self._event_store = event_store
        self._event_bus = event_bus

    async def execute(
        self,
        plan: BookingPlan,
        override_reason: str | None,
        acknowledged_conflict_ids: list[UUID] | None = None,
    ) -> BookingResult:
        """Cancel conflicting meetings and persist the new meeting.

        Cancellations, override records, the new meeting and all event rows
        commit in a single batch; on failure nothing is applied.

        Args:
            plan: Validated meeting and its attendees
            override_reason: Mandatory justification
            acknowledged_conflict_ids: Conflicts the caller saw and accepted;
                when given, no other conflict may be overridden

        Returns:
            BookingResult with cancelled ids and override records

        Raises:
            OverrideReasonRequired: Blank justification
            ConflictsNoLongerPresent: Nothing conflicts anymore
            ConflictDetected: Current conflicts include ones the caller
                never acknowledged
            OverridePersistenceFailed: The batch was rolled back
        """
        reason = (override_reason or "").strip()
        if not reason:
            raise OverrideReasonRequired("An override reason is required")

        meeting = plan.meeting
        report = await self._detector.check_availability(
            plan.attendee_ids, meeting.start_time, meeting.duration_minutes
        )
        if not report.has_conflicts:
            logger.info("override without conflicts", meeting_id=str(meeting.id))
            raise ConflictsNoLongerPresent(
                "Conflicts no longer present; retry without override",
                {"meeting_id": str(meeting.id)},
            )
        if acknowledged_conflict_ids is not None:
            unseen = report.conflict_ids() - set(acknowledged_conflict_ids)
            if unseen:
                logger.info(
                    "override found unacknowledged conflicts",
                    meeting_id=str(meeting.id),
                    unseen=len(unseen),
                )
                raise ConflictDetected(report)

        to_cancel: list[Meeting] = []
        for meeting_id in sorted(report.meeting_ids(), key=str):
            existing = await self._meetings.get(meeting_id)
            if existing is not None:
                to_cancel.append(existing)
        records = build_override_records(report, meeting.id, plan.actor_id, reason)

        uow = UnitOfWork(self._db, self._event_store)
        for existing in to_cancel:
            uow.add(self._meetings.cancel_statement(existing.id))
        uow.add(*self._overrides.insert_statements(records))
        uow.add(*self._meetings.insert_statements(meeting))
        for existing in to_cancel:
            uow.record(
                MeetingCancelled.from_meeting(
                    existing,
                    cancelled_by=plan.actor_id,
                    reason=reason,
                    superseded_by=meeting.id,
                )
            )
        for record in records:
            uow.record(
                ConflictOverridden(
                    aggregate_id=record.id,
                    new_meeting_id=record.new_meeting_id,
                    conflicting_meeting_id=record.conflicting_meeting_id,
                    conflicting_block_id=record.conflicting_block_id,
                    participant_id=record.participant_id,
                    approved_by=record.approved_by,
                    override_reason=record.override_reason,
                )
            )
        uow.record(MeetingScheduled.from_meeting(meeting, overrode_conflicts=True))

        try:
            await uow.commit()
        except TransactionFailed as e:
            logger.error(
                "override cascade failed",
                meeting_id=str(meeting.id),
                cancelled=len(to_cancel),
                error=str(e),
            )
            raise OverridePersistenceFailed(
                "Override could not be saved; no changes were made",
                {"meeting_id": str(meeting.id)},
            ) from e

        logger.info(
            "override cascade committed",
            meeting_id=str(meeting.id),
            cancelled=len(to_cancel),
            records=len(records),
        )
        if self._event_bus is not None:
            await self._event_bus.publish_committed(uow.events)

        return BookingResult(
            meeting=meeting,
            cancelled_meeting_ids=[m.id for m in to_cancel],
            override_records=records,
        )
