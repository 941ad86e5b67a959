"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from datetime import time
from pathlib import Path
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.main import app, init_scheduling
from src.models.principal import Principal, PrincipalRole
from src.models.room import MeetingRoom
from src.notifications.dispatcher import NotificationDispatcher
from src.scheduling.schemas import ExternalMeetingRequest


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_scheduling.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def event_store(db_client: TursoClient) -> EventStore:
    store = EventStore(db_client)
    await store.init_schema()
    return store


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def dispatcher(event_bus: EventBus) -> NotificationDispatcher:
    """Dispatcher wired to the bus with the default in-memory outbox."""
    notifier = NotificationDispatcher()
    notifier.register(event_bus)
    return notifier


@pytest.fixture
async def engine(
    db_client: TursoClient,
    event_store: EventStore,
    event_bus: EventBus,
    dispatcher: NotificationDispatcher,
) -> SimpleNamespace:
    """Fully wired scheduling services, as the app builds them at startup."""
    holder = SimpleNamespace(state=SimpleNamespace(event_bus=event_bus))
    await init_scheduling(holder, db_client, event_store)
    return holder.state


@pytest.fixture
async def people(engine: SimpleNamespace) -> SimpleNamespace:
    """Seed principals.

    host: explicit 09:00-17:00 hours; everyone else uses the facility
    default of 09:00-18:00.
    """
    seeded = SimpleNamespace(
        admin=Principal(name="Ada Admin", role=PrincipalRole.ADMIN),
        host=Principal(
            name="Hana Host",
            email="hana@example.com",
            role=PrincipalRole.HOST,
            work_start=time(9, 0),
            work_end=time(17, 0),
        ),
        secretary=Principal(name="Sam Secretary", role=PrincipalRole.SECRETARY),
        other_secretary=Principal(name="Sue Secretary", role=PrincipalRole.SECRETARY),
        employee_a=Principal(name="Alex Employee", role=PrincipalRole.EMPLOYEE),
        employee_b=Principal(name="Blair Employee", role=PrincipalRole.EMPLOYEE),
        receptionist=Principal(name="Rey Reception", role=PrincipalRole.RECEPTIONIST),
        inactive=Principal(
            name="Ivy Inactive", role=PrincipalRole.EMPLOYEE, is_active=False
        ),
    )
    for principal in vars(seeded).values():
        await engine.principal_repo.upsert(principal)
    return seeded


@pytest.fixture
async def rooms(engine: SimpleNamespace) -> SimpleNamespace:
    """Seed meeting rooms."""
    seeded = SimpleNamespace(
        small=MeetingRoom(
            name="Huddle",
            code="HD-1",
            capacity=6,
            floor_number=1,
            building="North",
            equipment={"whiteboard"},
        ),
        large=MeetingRoom(
            name="Boardroom",
            code="BR-3",
            capacity=20,
            floor_number=3,
            building="North",
            equipment={"projector", "whiteboard", "video"},
        ),
        closed=MeetingRoom(
            name="Storage",
            code="ST-0",
            capacity=4,
            floor_number=0,
            is_active=False,
        ),
    )
    for room in vars(seeded).values():
        await engine.room_repo.upsert(room)
    return seeded


@pytest.fixture
def book(engine: SimpleNamespace):
    """Book an external meeting as its host and return the Meeting."""

    async def _book(host_id, start, duration_minutes=60, participant_ids=(), **kwargs):
        request = ExternalMeetingRequest(
            host_id=host_id,
            start_time=start,
            duration_minutes=duration_minutes,
            participant_ids=list(participant_ids),
            **kwargs,
        )
        result = await engine.orchestrator.create_meeting(request, host_id)
        return result.meeting

    return _book


@pytest.fixture
async def client(
    db_client: TursoClient,
    event_store: EventStore,
    event_bus: EventBus,
    dispatcher: NotificationDispatcher,
) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    # Set up app state
    app.state.db = db_client
    app.state.event_store = event_store
    app.state.event_bus = event_bus
    app.state.notification_dispatcher = dispatcher
    await init_scheduling(app, db_client, event_store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up app state
    for name in (
        "db",
        "event_store",
        "event_bus",
        "notification_dispatcher",
        "principal_repo",
        "room_repo",
        "meeting_repo",
        "override_repo",
        "availability_index",
        "slot_computer",
        "conflict_detector",
        "room_allocator",
        "delegation_authority",
        "orchestrator",
    ):
        if hasattr(app.state, name):
            delattr(app.state, name)
