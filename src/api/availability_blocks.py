"""Availability block API endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from src.api.deps import get_actor_id, get_orchestrator, http_error
from src.clock import to_facility_time
from src.models.availability import AvailabilityBlock, BlockCategory
from src.scheduling.booking import BookingOrchestrator
from src.scheduling.errors import SchedulingError

router = APIRouter(prefix="/availability-blocks", tags=["availability"])


class CreateBlockRequest(BaseModel):
    """Request body for declaring busy time."""

    principal_id: UUID
    start_time: datetime
    end_time: datetime
    category: BlockCategory = BlockCategory.BUSY
    all_day: bool = False
    reason: str | None = Field(default=None, max_length=255)


@router.post("", response_model=AvailabilityBlock, status_code=201)
async def create_block(
    body: CreateBlockRequest,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> AvailabilityBlock:
    """Block time for a principal (self, delegate or admin)."""
    try:
        return await orchestrator.create_availability_block(
            principal_id=body.principal_id,
            start=to_facility_time(body.start_time),
            end=to_facility_time(body.end_time),
            category=body.category,
            all_day=body.all_day,
            reason=body.reason,
            acting_as_id=actor_id,
        )
    except SchedulingError as e:
        raise http_error(e) from e


class UpdateBlockRequest(BaseModel):
    """Fields to change; omitted fields keep their stored value."""

    start_time: datetime | None = None
    end_time: datetime | None = None
    category: BlockCategory | None = None
    reason: str | None = Field(default=None, max_length=255)


@router.patch("/{block_id}", response_model=AvailabilityBlock)
async def update_block(
    block_id: UUID,
    body: UpdateBlockRequest,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> AvailabilityBlock:
    try:
        return await orchestrator.update_availability_block(
            block_id,
            actor_id,
            start=to_facility_time(body.start_time) if body.start_time else None,
            end=to_facility_time(body.end_time) if body.end_time else None,
            category=body.category,
            reason=body.reason,
        )
    except SchedulingError as e:
        raise http_error(e) from e


@router.get("", response_model=list[AvailabilityBlock])
async def list_blocks(
    principal_id: UUID,
    start: datetime,
    end: datetime,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> list[AvailabilityBlock]:
    """Blocks of a principal overlapping [start, end)."""
    try:
        return await orchestrator.availability_blocks(
            principal_id, to_facility_time(start), to_facility_time(end)
        )
    except SchedulingError as e:
        raise http_error(e) from e


@router.delete("/{block_id}", status_code=204)
async def delete_block(
    block_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> Response:
    """Delete an availability block."""
    try:
        await orchestrator.delete_availability_block(block_id, actor_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return Response(status_code=204)
