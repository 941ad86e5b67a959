"""Tests for MeetingRepository."""

from datetime import date, datetime
from uuid import uuid4

import pytest

from src.db.turso import TursoClient
from src.models.meeting import Meeting, MeetingKind, MeetingStatus
from src.models.participant import Participant
from src.repositories.meeting_repo import MeetingRepository

DAY = datetime(2030, 6, 3)


@pytest.fixture
async def repo(db_client: TursoClient) -> MeetingRepository:
    """Create repository with initialized tables."""
    repository = MeetingRepository(db_client)
    await repository.initialize()
    return repository


async def _save(db: TursoClient, repo: MeetingRepository, meeting: Meeting) -> Meeting:
    for participant in meeting.participants:
        participant.meeting_id = meeting.id
    await db.execute_batch(repo.insert_statements(meeting))
    return meeting


def _meeting(host, hour: int, minutes: int = 60, **kwargs) -> Meeting:
    return Meeting(
        host_id=host,
        start_time=DAY.replace(hour=hour),
        duration_minutes=minutes,
        **kwargs,
    )


class TestMeetingRepository:
    """Tests for meeting persistence and overlap queries."""

    @pytest.mark.asyncio
    async def test_round_trips_meeting_with_participants(self, db_client, repo):
        host = uuid4()
        guest = uuid4()
        meeting = _meeting(
            host,
            10,
            purpose="Quarterly review",
            location="Lobby",
            visit_start_date=date(2030, 6, 3),
            visit_end_date=date(2030, 6, 4),
            primary_principal_id=guest,
            participants=[
                Participant(principal_id=guest, is_primary=True),
                Participant(visitor_name="Val Visitor", visitor_email="val@example.com"),
            ],
        )
        await _save(db_client, repo, meeting)

        loaded = await repo.get(meeting.id)
        assert loaded is not None
        assert loaded.start_time == meeting.start_time
        assert loaded.kind == MeetingKind.EXTERNAL
        assert loaded.is_multi_day
        assert loaded.primary_principal_id == guest
        assert len(loaded.participants) == 2
        assert loaded.principal_ids == [host, guest]

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, repo):
        assert await repo.get(uuid4()) is None

    @pytest.mark.asyncio
    async def test_committed_for_principals_uses_half_open_overlap(self, db_client, repo):
        host = uuid4()
        meeting = await _save(db_client, repo, _meeting(host, 10))

        overlapping = await repo.committed_for_principals(
            [host], DAY.replace(hour=10, minute=30), DAY.replace(hour=11, minute=30)
        )
        touching = await repo.committed_for_principals(
            [host], DAY.replace(hour=11), DAY.replace(hour=12)
        )

        assert [m.id for m in overlapping[host]] == [meeting.id]
        assert touching == {}

    @pytest.mark.asyncio
    async def test_committed_for_principals_includes_participants(self, db_client, repo):
        host = uuid4()
        attendee = uuid4()
        meeting = await _save(
            db_client,
            repo,
            _meeting(host, 14, participants=[Participant(principal_id=attendee)]),
        )

        found = await repo.committed_for_principals(
            [host, attendee], DAY.replace(hour=14), DAY.replace(hour=15)
        )

        assert [m.id for m in found[attendee]] == [meeting.id]
        assert found[host][0] is found[attendee][0]

    @pytest.mark.asyncio
    async def test_cancelled_meetings_are_not_committed(self, db_client, repo):
        host = uuid4()
        meeting = await _save(db_client, repo, _meeting(host, 9))
        await db_client.execute_batch([repo.cancel_statement(meeting.id)])

        found = await repo.committed_for_principals(
            [host], DAY.replace(hour=8), DAY.replace(hour=12)
        )
        loaded = await repo.get(meeting.id)

        assert found == {}
        assert loaded.status == MeetingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_status_statement_never_leaves_terminal_status(self, db_client, repo):
        meeting = await _save(db_client, repo, _meeting(uuid4(), 9))
        await db_client.execute_batch([repo.cancel_statement(meeting.id)])

        results = await db_client.execute_batch(
            [
                repo.status_statement(
                    meeting.id, MeetingStatus.ACTIVE, (MeetingStatus.SCHEDULED,)
                )
            ]
        )

        assert results[0].rows_affected == 0
        assert (await repo.get(meeting.id)).status == MeetingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_exclude_meeting_id(self, db_client, repo):
        host = uuid4()
        meeting = await _save(db_client, repo, _meeting(host, 10))

        found = await repo.committed_for_principals(
            [host], DAY.replace(hour=9), DAY.replace(hour=12), exclude_meeting_id=meeting.id
        )

        assert found == {}

    @pytest.mark.asyncio
    async def test_committed_in_room(self, db_client, repo):
        room_id = uuid4()
        booked = await _save(
            db_client,
            repo,
            _meeting(uuid4(), 13, kind=MeetingKind.INTERNAL, room_id=room_id),
        )
        await _save(db_client, repo, _meeting(uuid4(), 13))

        found = await repo.committed_in_room(
            room_id, DAY.replace(hour=13, minute=30), DAY.replace(hour=14, minute=30)
        )

        assert [m.id for m in found] == [booked.id]

    @pytest.mark.asyncio
    async def test_list_for_host_filters_status(self, db_client, repo):
        host = uuid4()
        first = await _save(db_client, repo, _meeting(host, 9))
        second = await _save(db_client, repo, _meeting(host, 11))
        await db_client.execute_batch([repo.cancel_statement(second.id)])

        everything = await repo.list_for_host(host, DAY, DAY.replace(hour=23))
        scheduled = await repo.list_for_host(
            host, DAY, DAY.replace(hour=23), status=MeetingStatus.SCHEDULED
        )

        assert [m.id for m in everything] == [first.id, second.id]
        assert [m.id for m in scheduled] == [first.id]
