"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.router import api_router
from src.config import settings
from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.notifications.dispatcher import NotificationDispatcher
from src.repositories import (
    AvailabilityBlockRepository,
    DelegationRepository,
    MeetingRepository,
    OverrideRecordRepository,
    PrincipalRepository,
    RoomRepository,
)
from src.scheduling import (
    AvailabilityIndex,
    BookingOrchestrator,
    ConflictDetector,
    DelegationAuthority,
    KeyedLockManager,
    OverrideCascade,
    RoomAllocator,
    SlotComputer,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def init_scheduling(app: FastAPI, db: TursoClient, event_store: EventStore) -> None:
    """Create repositories and engine services and register them in app state.

    Args:
        app: Application whose state receives the services
        db: Connected database client
        event_store: Store whose rows join every write batch
    """
    principal_repo = PrincipalRepository(db)
    room_repo = RoomRepository(db)
    meeting_repo = MeetingRepository(db)
    block_repo = AvailabilityBlockRepository(db)
    delegation_repo = DelegationRepository(db)
    override_repo = OverrideRecordRepository(db)
    for repo in (
        principal_repo,
        room_repo,
        meeting_repo,
        block_repo,
        delegation_repo,
        override_repo,
    ):
        await repo.initialize()
    logger.info("Scheduling tables initialized")

    event_bus: EventBus = app.state.event_bus
    locks = KeyedLockManager()

    index = AvailabilityIndex(principal_repo, meeting_repo, block_repo)
    detector = ConflictDetector(index)
    rooms = RoomAllocator(room_repo, meeting_repo)
    delegation = DelegationAuthority(
        db,
        principal_repo,
        delegation_repo,
        event_store=event_store,
        event_bus=event_bus,
        locks=locks,
    )
    cascade = OverrideCascade(
        db,
        detector,
        meeting_repo,
        override_repo,
        event_store=event_store,
        event_bus=event_bus,
    )

    app.state.principal_repo = principal_repo
    app.state.room_repo = room_repo
    app.state.meeting_repo = meeting_repo
    app.state.override_repo = override_repo
    app.state.availability_index = index
    app.state.slot_computer = SlotComputer(index)
    app.state.conflict_detector = detector
    app.state.room_allocator = rooms
    app.state.delegation_authority = delegation
    app.state.orchestrator = BookingOrchestrator(
        db,
        index,
        detector,
        rooms,
        delegation,
        cascade,
        meeting_repo,
        block_repo,
        locks,
        event_store=event_store,
        event_bus=event_bus,
    )
    logger.info("Booking engine initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Initialize event store schema
    - Initialize event bus and notification dispatcher
    - Initialize repositories and the booking engine

    Shutdown:
    - Close database connection
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    event_store = EventStore(db)
    await event_store.init_schema()
    app.state.event_store = event_store

    # Event rows are committed with state changes, so the bus only publishes
    event_bus = EventBus()
    app.state.event_bus = event_bus

    dispatcher = NotificationDispatcher()
    dispatcher.register(event_bus)
    app.state.notification_dispatcher = dispatcher
    logger.info("Event bus and notification dispatcher initialized")

    await init_scheduling(app, db, event_store)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Meeting scheduling and conflict-resolution engine",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
