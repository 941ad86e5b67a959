"""API router aggregation."""

from fastapi import APIRouter

from src.api.availability_blocks import router as availability_blocks_router
from src.api.delegations import router as delegations_router
from src.api.health import router as health_router
from src.api.meetings import router as meetings_router
from src.api.rooms import router as rooms_router
from src.api.scheduling import router as scheduling_router

api_router = APIRouter()
api_router.include_router(health_router)
# Slot computation, availability checks, busy time
api_router.include_router(scheduling_router)
# Booking entry point and meeting lifecycle
api_router.include_router(meetings_router)
api_router.include_router(availability_blocks_router)
api_router.include_router(delegations_router)
api_router.include_router(rooms_router)
