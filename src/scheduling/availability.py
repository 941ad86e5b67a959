"""Busy-interval index over meetings and availability blocks.

Everything here is computed at read time from the store. Nothing is cached
between calls, so a booking committed a moment ago is always visible to
the next query.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import structlog

from src.clock import day_bounds, days_between
from src.config import Settings, settings
from src.models.availability import AvailabilityBlock
from src.models.meeting import Meeting
from src.models.principal import Principal
from src.repositories.availability_repo import AvailabilityBlockRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.principal_repo import PrincipalRepository
from src.scheduling.errors import ConfigurationMissing, InvalidRequest, PrincipalNotFound
from src.scheduling.schemas import BusyInterval, BusySource, WorkingHours

logger = structlog.get_logger()


def merge_sources(
    sources: Iterable[BusySource],
    range_start: datetime,
    range_end: datetime,
) -> list[BusyInterval]:
    """Merge raw busy sources into ordered, non-overlapping intervals.

    Overlapping or touching sources collapse into one interval that keeps
    every contributing source. Intervals are clipped to the range.
    """
    merged: list[BusyInterval] = []
    ordered = sorted(sources, key=lambda s: (s.start, s.end, str(s.source_id)))
    for source in ordered:
        start = max(source.start, range_start)
        end = min(source.end, range_end)
        if start >= end:
            continue
        if merged and start <= merged[-1].end:
            last = merged[-1]
            last.end = max(last.end, end)
            last.sources.append(source)
        else:
            merged.append(BusyInterval(start=start, end=end, sources=[source]))
    return merged


def _meeting_source(meeting: Meeting) -> BusySource:
    return BusySource(
        kind="meeting",
        source_id=meeting.id,
        start=meeting.start_time,
        end=meeting.end_time,
        label=meeting.purpose,
        location=meeting.location,
    )


class AvailabilityIndex:
    """Builds per-principal busy time from committed meetings and blocks."""

    def __init__(
        self,
        principals: PrincipalRepository,
        meetings: MeetingRepository,
        blocks: AvailabilityBlockRepository,
        config: Settings | None = None,
    ):
        """Initialize with the repositories the index reads from.

        Args:
            principals: Principal lookup (working hours)
            meetings: Meeting store
            blocks: Availability block store
            config: Settings override, mainly for tests
        """
        self._principals = principals
        self._meetings = meetings
        self._blocks = blocks
        self._settings = config or settings

    def hours_for(self, principal: Principal) -> WorkingHours | None:
        """Working hours of a principal, falling back to the facility default."""
        if principal.work_start and principal.work_end:
            return WorkingHours(start=principal.work_start, end=principal.work_end)
        if self._settings.workday_start and self._settings.workday_end:
            return WorkingHours(
                start=self._settings.workday_start,
                end=self._settings.workday_end,
            )
        return None

    async def get_principal(self, principal_id: UUID) -> Principal:
        """Load a principal or raise PrincipalNotFound."""
        principal = await self._principals.get(principal_id)
        if principal is None:
            raise PrincipalNotFound(principal_id)
        return principal

    async def get_principals(self, principal_ids: list[UUID]) -> list[Principal]:
        """Load principals in the given order or raise PrincipalNotFound."""
        found = await self._principals.get_many(principal_ids)
        for pid in principal_ids:
            if pid not in found:
                raise PrincipalNotFound(pid)
        return [found[pid] for pid in principal_ids]

    async def working_hours(self, principal_id: UUID) -> WorkingHours:
        """Resolved working hours for a principal.

        Raises:
            PrincipalNotFound: Unknown principal
            ConfigurationMissing: Neither the principal nor the facility
                has working hours configured
        """
        principal = await self.get_principal(principal_id)
        hours = self.hours_for(principal)
        if hours is None:
            raise ConfigurationMissing(
                "No working hours configured for principal or facility",
                {"principal_id": str(principal_id)},
            )
        return hours

    async def busy_intervals(
        self,
        principal_id: UUID,
        range_start: datetime,
        range_end: datetime,
    ) -> list[BusyInterval]:
        """Ordered, merged busy intervals of one principal within a range.

        Args:
            principal_id: Principal to inspect
            range_start: Range start
            range_end: Range end (exclusive)

        Returns:
            Non-overlapping intervals clipped to the range; empty if free

        Raises:
            InvalidRequest: If the range is empty or inverted
            PrincipalNotFound: Unknown principal
        """
        if range_end <= range_start:
            raise InvalidRequest(
                "Range end must be after range start",
                {"range_start": range_start.isoformat(), "range_end": range_end.isoformat()},
            )
        principal = await self.get_principal(principal_id)
        sources = await self.sources_for([principal], range_start, range_end)
        intervals = merge_sources(sources.get(principal_id, []), range_start, range_end)
        logger.debug(
            "computed busy intervals",
            principal_id=str(principal_id),
            intervals=len(intervals),
        )
        return intervals

    async def sources_for(
        self,
        principals: list[Principal],
        start: datetime,
        end: datetime,
    ) -> dict[UUID, list[BusySource]]:
        """Raw busy sources overlapping [start, end) per principal.

        Meetings count where the principal hosts or participates and the
        meeting is scheduled or active. All-day blocks are expanded to one
        source per day covering the working-day span.

        Returns:
            Mapping of principal id to sources ordered by start then id;
            every requested principal is present
        """
        by_id = {p.id: p for p in principals}
        ids = list(by_id)
        meetings = await self._meetings.committed_for_principals(ids, start, end)
        blocks = await self._blocks.list_for_principals(ids, start, end)

        result: dict[UUID, list[BusySource]] = {}
        for pid, principal in by_id.items():
            sources = [_meeting_source(m) for m in meetings.get(pid, [])]
            for block in blocks.get(pid, []):
                sources.extend(self._block_sources(block, principal))
            result[pid] = sorted(
                (s for s in sources if s.start < end and start < s.end),
                key=lambda s: (s.start, str(s.source_id)),
            )
        return result

    def _block_sources(
        self,
        block: AvailabilityBlock,
        principal: Principal,
    ) -> list[BusySource]:
        if not block.all_day:
            return [self._block_source(block, block.start_time, block.end_time)]

        hours = self.hours_for(principal)
        sources = []
        for day in days_between(block.start_time, block.end_time):
            if hours is None:
                day_start, day_end = day_bounds(day)
            else:
                day_start, day_end = hours.on(day)
            sources.append(self._block_source(block, day_start, day_end))
        return sources

    @staticmethod
    def _block_source(
        block: AvailabilityBlock,
        start: datetime,
        end: datetime,
    ) -> BusySource:
        return BusySource(
            kind="availability_block",
            source_id=block.id,
            start=start,
            end=end,
            label=block.label,
            category=block.category.value,
        )
