"""Tests for SlotComputer and SlotSequence."""

from datetime import date, datetime, time
from uuid import uuid4

import pytest

from src.config import Settings
from src.models.availability import BlockCategory
from src.models.principal import Principal, PrincipalRole
from src.repositories.availability_repo import AvailabilityBlockRepository
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.errors import (
    ConfigurationMissing,
    InvalidRequest,
    PrincipalNotFound,
    SlotRangeUnavailable,
)
from src.scheduling.slots import SlotComputer

DAY = date(2030, 6, 3)
EARLIER = datetime(2030, 5, 1, 8, 0)


def _at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


class TestComputeSlots:
    """Tests for SlotComputer.compute_slots."""

    @pytest.mark.asyncio
    async def test_meeting_blocks_overlapping_slots(self, engine, people, book):
        """A 10:00-11:00 meeting makes the 10:00 and 10:30 slots unavailable."""
        day = date(2025, 6, 1)
        host = people.host.id
        await book(host, _at(10, day=day), 60)

        sequence = await engine.slot_computer.compute_slots(
            host, day, 30, 30, now=datetime(2025, 5, 1, 8, 0)
        )
        slots = list(sequence)

        unavailable = [s.time for s in slots if not s.available]
        assert unavailable == ["10:00", "10:30"]
        assert all(s.reason == "busy" for s in slots if not s.available)
        # Host works 09:00-17:00: 16 half-hour slots
        assert len(slots) == 16
        assert slots[0].time == "09:00"
        assert slots[-1].time == "16:30"

    @pytest.mark.asyncio
    async def test_last_boundary_leaves_room_for_duration(self, engine, people):
        sequence = await engine.slot_computer.compute_slots(
            people.host.id, DAY, 60, 30, now=EARLIER
        )
        slots = list(sequence)

        assert slots[-1].time == "16:00"
        assert len(slots) == 15

    @pytest.mark.asyncio
    async def test_sequence_is_restartable(self, engine, people, book):
        await book(people.host.id, _at(13), 30)
        sequence = await engine.slot_computer.compute_slots(
            people.host.id, DAY, 30, now=EARLIER
        )

        assert list(sequence) == list(sequence)
        assert len(sequence.available()) == 15
        assert len(sequence.busy) == 1

    @pytest.mark.asyncio
    async def test_past_slots_on_today(self, engine, people):
        now = _at(12, 10)
        sequence = await engine.slot_computer.compute_slots(
            people.host.id, DAY, 30, 30, now=now
        )
        slots = {s.time: s for s in sequence}

        assert slots["12:00"].reason == "past"
        assert not slots["09:00"].available
        assert slots["12:30"].available

    @pytest.mark.asyncio
    async def test_busy_reported_before_past(self, engine, people, book):
        await book(people.host.id, _at(9), 30)
        sequence = await engine.slot_computer.compute_slots(
            people.host.id, DAY, 30, 30, now=_at(11)
        )
        slots = {s.time: s for s in sequence}

        assert slots["09:00"].reason == "busy"
        assert slots["09:30"].reason == "past"

    @pytest.mark.asyncio
    async def test_blocks_make_slots_unavailable(self, engine, people):
        host = people.host.id
        await engine.orchestrator.create_availability_block(
            host, _at(14), _at(15), BlockCategory.BUSY, False, None, host
        )
        sequence = await engine.slot_computer.compute_slots(host, DAY, 30, now=EARLIER)

        unavailable = [s.time for s in sequence if not s.available]
        assert unavailable == ["14:00", "14:30"]

    @pytest.mark.asyncio
    async def test_duration_longer_than_window_yields_nothing(self, engine, people):
        sequence = await engine.slot_computer.compute_slots(
            people.host.id, DAY, 600, 30, now=EARLIER
        )
        assert list(sequence) == []

    @pytest.mark.asyncio
    async def test_misaligned_duration_rejected(self, engine, people):
        with pytest.raises(InvalidRequest):
            await engine.slot_computer.compute_slots(people.host.id, DAY, 45, 30)

    @pytest.mark.asyncio
    async def test_non_positive_duration_rejected(self, engine, people):
        with pytest.raises(InvalidRequest):
            await engine.slot_computer.compute_slots(people.host.id, DAY, 0, 30)

    @pytest.mark.asyncio
    async def test_empty_working_window_rejected(self, engine):
        odd = Principal(
            name="Odd Hours",
            role=PrincipalRole.HOST,
            work_start=time(12, 0),
            work_end=time(12, 0),
        )
        await engine.principal_repo.upsert(odd)

        with pytest.raises(InvalidRequest):
            await engine.slot_computer.compute_slots(odd.id, DAY, 30)

    @pytest.mark.asyncio
    async def test_unknown_host(self, engine):
        with pytest.raises(PrincipalNotFound):
            await engine.slot_computer.compute_slots(uuid4(), DAY, 30)

    @pytest.mark.asyncio
    async def test_missing_working_hours(self, db_client, engine, people):
        config = Settings(workday_start=None, workday_end=None)
        index = AvailabilityIndex(
            engine.principal_repo,
            engine.meeting_repo,
            AvailabilityBlockRepository(db_client),
            config=config,
        )
        computer = SlotComputer(index, config=config)

        with pytest.raises(ConfigurationMissing):
            await computer.compute_slots(people.employee_a.id, DAY, 30)


class TestValidateRange:
    """Tests for contiguous multi-slot selections."""

    @pytest.mark.asyncio
    async def test_free_range(self, engine, people):
        slots = await engine.slot_computer.validate_range(
            people.host.id, _at(10), 90, 30, now=EARLIER
        )
        assert [s.time for s in slots] == ["10:00", "10:30", "11:00"]

    @pytest.mark.asyncio
    async def test_range_with_busy_sub_slot(self, engine, people, book):
        await book(people.host.id, _at(10, 30), 30)

        with pytest.raises(SlotRangeUnavailable) as exc_info:
            await engine.slot_computer.validate_range(
                people.host.id, _at(10), 90, 30, now=EARLIER
            )

        assert exc_info.value.details["unavailable"] == [_at(10, 30).isoformat()]

    @pytest.mark.asyncio
    async def test_range_past_working_hours(self, engine, people):
        with pytest.raises(SlotRangeUnavailable) as exc_info:
            await engine.slot_computer.validate_range(
                people.host.id, _at(16, 30), 60, 30, now=EARLIER
            )

        assert exc_info.value.details["unavailable"] == [_at(17).isoformat()]

    @pytest.mark.asyncio
    async def test_misaligned_start(self, engine, people):
        with pytest.raises(InvalidRequest):
            await engine.slot_computer.validate_range(
                people.host.id, _at(10, 15), 60, 30, now=EARLIER
            )
