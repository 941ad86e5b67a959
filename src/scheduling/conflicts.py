"""People-conflict detection for proposed meetings."""

from datetime import datetime, timedelta
from uuid import UUID

import structlog

from src.config import Settings, settings
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.errors import InvalidRequest
from src.scheduling.schemas import (
    AvailabilityReport,
    BusySource,
    ConflictEntry,
    ParticipantConflicts,
)

logger = structlog.get_logger()


def _entry(source: BusySource) -> ConflictEntry:
    minutes = int((source.end - source.start).total_seconds() // 60)
    return ConflictEntry(
        meeting_id=source.source_id,
        time=source.start,
        duration_minutes=minutes,
        purpose=source.label,
        location=source.location,
        source_kind=source.kind,
    )


class ConflictDetector:
    """Finds committed meetings and blocks overlapping a proposed window.

    Read-only: repeated calls against unchanged state give equal reports.
    """

    def __init__(self, index: AvailabilityIndex, config: Settings | None = None):
        self._index = index
        self._settings = config or settings

    def is_advisory(self, category: str) -> bool:
        """Blocks of advisory categories never count as conflicts."""
        return category in self._settings.advisory_block_categories

    async def check_availability(
        self,
        participant_ids: list[UUID],
        proposed_start: datetime,
        duration_minutes: int,
        exclude_meeting_id: UUID | None = None,
    ) -> AvailabilityReport:
        """Report every participant with an overlapping commitment.

        Args:
            participant_ids: Principals to check, in caller order
            proposed_start: Start of the proposed meeting
            duration_minutes: Length of the proposed meeting
            exclude_meeting_id: Meeting to ignore (one being edited)

        Returns:
            AvailabilityReport listing conflicted participants only

        Raises:
            InvalidRequest: Non-positive duration
            PrincipalNotFound: Unknown participant
        """
        if duration_minutes <= 0:
            raise InvalidRequest(
                "Duration must be positive", {"duration_minutes": duration_minutes}
            )
        return await self.check_window(
            participant_ids,
            proposed_start,
            proposed_start + timedelta(minutes=duration_minutes),
            exclude_meeting_id=exclude_meeting_id,
        )

    async def check_window(
        self,
        participant_ids: list[UUID],
        proposed_start: datetime,
        proposed_end: datetime,
        exclude_meeting_id: UUID | None = None,
        exclude_block_id: UUID | None = None,
    ) -> AvailabilityReport:
        """Same report for an explicit [start, end) window.

        Availability blocks are given as a start and end rather than a
        duration. ``exclude_block_id`` skips a block being edited.
        """
        if proposed_end <= proposed_start:
            raise InvalidRequest(
                "Window end must be after start",
                {"start": proposed_start.isoformat(), "end": proposed_end.isoformat()},
            )
        excluded = {exclude_meeting_id, exclude_block_id} - {None}

        ordered: list[UUID] = []
        for pid in participant_ids:
            if pid not in ordered:
                ordered.append(pid)
        principals = await self._index.get_principals(ordered)
        sources = await self._index.sources_for(principals, proposed_start, proposed_end)

        conflicted: list[ParticipantConflicts] = []
        for pid in ordered:
            entries: dict[UUID, ConflictEntry] = {}
            for source in sources[pid]:
                if source.source_id in excluded:
                    continue
                if source.category and self.is_advisory(source.category):
                    continue
                if not (source.start < proposed_end and proposed_start < source.end):
                    continue
                entries.setdefault(source.source_id, _entry(source))
            if entries:
                conflicts = sorted(entries.values(), key=lambda e: (e.time, str(e.meeting_id)))
                conflicted.append(ParticipantConflicts(participant_id=pid, conflicts=conflicts))

        report = AvailabilityReport(conflicted_participants=conflicted)
        if report.has_conflicts:
            logger.info(
                "conflicts detected",
                participants=len(ordered),
                conflicted=len(conflicted),
                conflict_count=len(report.conflict_ids()),
            )
        return report
