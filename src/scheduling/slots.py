"""Bookable slot generation for a host's working day."""

from collections.abc import Iterator
from datetime import date, datetime, timedelta
from uuid import UUID

import structlog

from src.clock import facility_now
from src.config import Settings, settings
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.errors import InvalidRequest, SlotRangeUnavailable
from src.scheduling.schemas import BusyInterval, Slot

logger = structlog.get_logger()


def _first_boundary(window_start: datetime, granularity: timedelta) -> datetime:
    """First granularity-aligned time (counted from midnight) at or after start."""
    midnight = datetime.combine(window_start.date(), datetime.min.time())
    offset = window_start - midnight
    steps = -(-offset // granularity)  # ceiling division
    return midnight + steps * granularity


class SlotSequence:
    """Finite, restartable sequence of slots for one host and day.

    The busy snapshot is taken once when the sequence is built; each
    iteration regenerates slots from it.
    """

    def __init__(
        self,
        window_start: datetime,
        window_end: datetime,
        duration: timedelta,
        granularity: timedelta,
        busy: list[BusyInterval],
        now: datetime,
    ):
        self.window_start = window_start
        self.window_end = window_end
        self.duration = duration
        self.granularity = granularity
        self._busy = tuple(busy)
        self._now = now

    def __iter__(self) -> Iterator[Slot]:
        boundary = _first_boundary(self.window_start, self.granularity)
        is_today = self.window_start.date() == self._now.date()
        while boundary + self.duration <= self.window_end:
            yield self._slot_at(boundary, is_today)
            boundary += self.granularity

    def _slot_at(self, boundary: datetime, is_today: bool) -> Slot:
        end = boundary + self.duration
        if any(b.overlaps(boundary, end) for b in self._busy):
            return Slot(start=boundary, available=False, reason="busy")
        if is_today and boundary < self._now:
            return Slot(start=boundary, available=False, reason="past")
        return Slot(start=boundary, available=True)

    @property
    def busy(self) -> tuple[BusyInterval, ...]:
        """Busy intervals the sequence was computed against."""
        return self._busy

    def available(self) -> list[Slot]:
        return [s for s in self if s.available]


class SlotComputer:
    """Turns a host's busy time and working hours into candidate slots."""

    def __init__(self, index: AvailabilityIndex, config: Settings | None = None):
        self._index = index
        self._settings = config or settings

    async def compute_slots(
        self,
        host_id: UUID,
        day: date,
        duration_minutes: int,
        granularity_minutes: int | None = None,
        now: datetime | None = None,
    ) -> SlotSequence:
        """Slots within the host's working hours on a day.

        Args:
            host_id: Host principal
            day: Calendar day (facility time)
            duration_minutes: Requested meeting length
            granularity_minutes: Slot step, defaults to the configured step
            now: Reference time for the past check, defaults to facility now

        Returns:
            SlotSequence over every aligned start from working-hours start
            to end minus duration

        Raises:
            InvalidRequest: Bad duration or empty working window
            ConfigurationMissing: No working hours anywhere
            PrincipalNotFound: Unknown host
        """
        granularity = self._granularity(granularity_minutes)
        duration = self._duration(duration_minutes, granularity)

        hours = await self._index.working_hours(host_id)
        window_start, window_end = hours.on(day)
        if window_end <= window_start:
            raise InvalidRequest(
                "Working hours define an empty window",
                {"start": hours.start.isoformat(), "end": hours.end.isoformat()},
            )

        busy = await self._index.busy_intervals(host_id, window_start, window_end)
        logger.debug(
            "computing slots",
            host_id=str(host_id),
            day=day.isoformat(),
            busy_intervals=len(busy),
        )
        return SlotSequence(
            window_start=window_start,
            window_end=window_end,
            duration=duration,
            granularity=granularity,
            busy=busy,
            now=now or facility_now(),
        )

    async def validate_range(
        self,
        host_id: UUID,
        start: datetime,
        duration_minutes: int,
        granularity_minutes: int | None = None,
        now: datetime | None = None,
    ) -> list[Slot]:
        """Check a contiguous multi-slot selection.

        Every granularity-sized sub-slot in [start, start + duration) must
        be available on its own.

        Returns:
            The sub-slots, all available

        Raises:
            SlotRangeUnavailable: Any sub-slot is busy, past, or outside
                working hours; details list the offending times
            InvalidRequest: Misaligned start or bad duration
        """
        granularity = self._granularity(granularity_minutes)
        self._duration(duration_minutes, granularity)
        step = int(granularity.total_seconds() // 60)
        if _first_boundary(start, granularity) != start:
            raise InvalidRequest(
                "Range start is not aligned to the slot granularity",
                {"start": start.isoformat(), "granularity_minutes": step},
            )

        sequence = await self.compute_slots(host_id, start.date(), step, step, now=now)
        slots = {s.start: s for s in sequence}
        end = start + timedelta(minutes=duration_minutes)

        chosen: list[Slot] = []
        offending: list[str] = []
        current = start
        while current < end:
            slot = slots.get(current)
            if slot is None or not slot.available:
                offending.append(current.isoformat())
            if slot is not None:
                chosen.append(slot)
            current += granularity

        if offending:
            logger.info(
                "slot range rejected",
                host_id=str(host_id),
                start=start.isoformat(),
                offending=len(offending),
            )
            raise SlotRangeUnavailable(
                "Selected range contains unavailable slots",
                {"unavailable": offending},
            )
        return chosen

    def _granularity(self, minutes: int | None) -> timedelta:
        minutes = minutes if minutes is not None else self._settings.slot_granularity_minutes
        if minutes <= 0:
            raise InvalidRequest(
                "Granularity must be positive", {"granularity_minutes": minutes}
            )
        return timedelta(minutes=minutes)

    @staticmethod
    def _duration(minutes: int, granularity: timedelta) -> timedelta:
        duration = timedelta(minutes=minutes)
        if minutes <= 0 or duration % granularity:
            raise InvalidRequest(
                "Duration must be a positive multiple of the slot granularity",
                {
                    "duration_minutes": minutes,
                    "granularity_minutes": int(granularity.total_seconds() // 60),
                },
            )
        return duration
