"""Shared dependencies for the scheduling routers.

Services live on ``app.state`` (wired in ``src.main``). The acting
principal always arrives explicitly in the ``X-Actor-Id`` header.
"""

from uuid import UUID

from fastapi import Header, HTTPException, Request

from src.repositories.override_repo import OverrideRecordRepository
from src.repositories.room_repo import RoomRepository
from src.scheduling.availability import AvailabilityIndex
from src.scheduling.booking import BookingOrchestrator
from src.scheduling.conflicts import ConflictDetector
from src.scheduling.delegation import DelegationAuthority
from src.scheduling.errors import SchedulingError
from src.scheduling.rooms import RoomAllocator
from src.scheduling.slots import SlotComputer


def http_error(err: SchedulingError) -> HTTPException:
    """Map an engine error to its HTTP response."""
    return HTTPException(status_code=err.status_code, detail=err.to_dict())


def get_actor_id(x_actor_id: UUID = Header(description="Acting principal")) -> UUID:
    """Acting principal from the X-Actor-Id header."""
    return x_actor_id


def _state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=500, detail=f"{name} not initialized")
    return service


def get_orchestrator(request: Request) -> BookingOrchestrator:
    return _state(request, "orchestrator")


def get_availability_index(request: Request) -> AvailabilityIndex:
    return _state(request, "availability_index")


def get_slot_computer(request: Request) -> SlotComputer:
    return _state(request, "slot_computer")


def get_conflict_detector(request: Request) -> ConflictDetector:
    return _state(request, "conflict_detector")


def get_room_allocator(request: Request) -> RoomAllocator:
    return _state(request, "room_allocator")


def get_room_repo(request: Request) -> RoomRepository:
    return _state(request, "room_repo")


def get_delegation_authority(request: Request) -> DelegationAuthority:
    return _state(request, "delegation_authority")


def get_override_repo(request: Request) -> OverrideRecordRepository:
    return _state(request, "override_repo")
