"""Service status and readiness probes."""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from src.config import settings
from src.events.types import MeetingScheduled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class ServiceStatus(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    facility_timezone: str
    checked_at: datetime


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Per-component results; ``events_recorded`` is None when the store is down."""

    status: str
    checks: dict[str, str]
    events_recorded: int | None = None


async def _check_database(request: Request) -> str:
    db = getattr(request.app.state, "db", None)
    if db is None:
        return "not_configured"
    return "ok" if await db.is_healthy() else "failed"


async def _check_booking_engine(request: Request) -> str:
    return "ok" if getattr(request.app.state, "orchestrator", None) else "not_configured"


async def _check_notifications(request: Request) -> str:
    bus = getattr(request.app.state, "event_bus", None)
    if bus is None:
        return "not_configured"
    # The dispatcher attaches to MeetingScheduled when registered
    return "ok" if bus.subscriber_count(MeetingScheduled) else "no_subscribers"


_CHECKS: dict[str, Callable[[Request], Awaitable[str]]] = {
    "database": _check_database,
    "booking_engine": _check_booking_engine,
    "notifications": _check_notifications,
}


@router.get("/", response_model=ServiceStatus)
async def service_status() -> ServiceStatus:
    return ServiceStatus(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env,
        facility_timezone=settings.facility_timezone,
        checked_at=datetime.now(UTC),
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request, response: Response) -> ReadinessResponse:
    """Whether bookings can be accepted.

    Answers 503 while any component is missing or failing so an
    orchestrator stops routing traffic to this instance.
    """
    checks = {name: await check(request) for name, check in _CHECKS.items()}

    events_recorded = None
    store = getattr(request.app.state, "event_store", None)
    if store is None:
        checks["event_store"] = "not_configured"
    else:
        try:
            events_recorded = await store.count_events()
            checks["event_store"] = "ok"
        except Exception as e:
            logger.warning(f"Event store readiness check failed: {e}")
            checks["event_store"] = "failed"

    ready = all(result == "ok" for result in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        checks=checks,
        events_recorded=events_recorded,
    )
