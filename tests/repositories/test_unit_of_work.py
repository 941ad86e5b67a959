"""Tests for UnitOfWork atomic commits."""

from datetime import datetime
from uuid import uuid4

import pytest
from libsql_client import Statement

from src.db.turso import TursoClient
from src.events.store import EventStore
from src.events.types import MeetingScheduled
from src.models.meeting import Meeting, MeetingStatus
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.unit_of_work import TransactionFailed, UnitOfWork


@pytest.fixture
async def meetings(db_client: TursoClient) -> MeetingRepository:
    repository = MeetingRepository(db_client)
    await repository.initialize()
    return repository


def _meeting() -> Meeting:
    return Meeting(host_id=uuid4(), start_time=datetime(2030, 6, 3, 10), duration_minutes=30)


class TestUnitOfWork:
    @pytest.mark.asyncio
    async def test_commits_statements_and_event_rows_together(
        self, db_client, event_store: EventStore, meetings
    ):
        meeting = _meeting()
        uow = UnitOfWork(db_client, event_store)
        uow.add(*meetings.insert_statements(meeting))
        uow.record(MeetingScheduled.from_meeting(meeting))

        await uow.commit()

        assert await meetings.get(meeting.id) is not None
        assert await event_store.count_events("MeetingScheduled") == 1
        assert [e.event_type for e in uow.events] == ["MeetingScheduled"]

    @pytest.mark.asyncio
    async def test_failed_statement_rolls_back_whole_batch(
        self, db_client, event_store: EventStore, meetings
    ):
        existing = _meeting()
        await db_client.execute_batch(meetings.insert_statements(existing))

        uow = UnitOfWork(db_client, event_store, retry_attempts=1)
        uow.add(meetings.cancel_statement(existing.id))
        uow.record(MeetingScheduled.from_meeting(existing))
        # Duplicate primary key fails after the update already ran
        uow.add(*meetings.insert_statements(existing))

        with pytest.raises(TransactionFailed):
            await uow.commit()

        loaded = await meetings.get(existing.id)
        assert loaded.status == MeetingStatus.SCHEDULED
        assert await event_store.count_events() == 0

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, db_client, monkeypatch):
        calls = {"count": 0}
        original = db_client.execute_batch

        async def flaky(statements):
            calls["count"] += 1
            if calls["count"] == 1:
                raise ConnectionError("connection reset")
            return await original(statements)

        monkeypatch.setattr(db_client, "execute_batch", flaky)
        uow = UnitOfWork(db_client, retry_attempts=2)
        uow.add(Statement("SELECT 1"))

        results = await uow.commit()

        assert calls["count"] == 2
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_empty_unit_commits_nothing(self, db_client):
        uow = UnitOfWork(db_client)
        assert await uow.commit() == []

    @pytest.mark.asyncio
    async def test_commit_twice_is_an_error(self, db_client):
        uow = UnitOfWork(db_client)
        uow.add(Statement("SELECT 1"))
        await uow.commit()

        with pytest.raises(RuntimeError):
            await uow.commit()
