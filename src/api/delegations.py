"""Delegation API endpoints (secretary-to-employee assignments)."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_actor_id, get_delegation_authority, http_error
from src.clock import to_facility_time
from src.models.delegation import DelegationAssignment
from src.models.principal import Principal
from src.scheduling.delegation import DelegationAuthority
from src.scheduling.errors import SchedulingError

router = APIRouter(prefix="/delegations", tags=["delegations"])


class AssignDelegateRequest(BaseModel):
    """Request body for assigning a secretary to an employee."""

    secretary_id: UUID
    employee_id: UUID
    valid_until: datetime | None = None


@router.post("", response_model=DelegationAssignment, status_code=201)
async def assign_delegate(
    body: AssignDelegateRequest,
    actor_id: UUID = Depends(get_actor_id),
    authority: DelegationAuthority = Depends(get_delegation_authority),
) -> DelegationAssignment:
    """Assign a secretary (admin only)."""
    valid_until = to_facility_time(body.valid_until) if body.valid_until else None
    try:
        return await authority.assign_delegate(
            body.secretary_id, body.employee_id, actor_id, valid_until
        )
    except SchedulingError as e:
        raise http_error(e) from e


@router.delete("/{assignment_id}", response_model=DelegationAssignment)
async def revoke_delegate(
    assignment_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    authority: DelegationAuthority = Depends(get_delegation_authority),
) -> DelegationAssignment:
    """Deactivate an assignment (admin only)."""
    try:
        return await authority.revoke_delegate(assignment_id, actor_id)
    except SchedulingError as e:
        raise http_error(e) from e


@router.get("/secretaries/{secretary_id}/principals", response_model=list[Principal])
async def assigned_principals(
    secretary_id: UUID,
    authority: DelegationAuthority = Depends(get_delegation_authority),
) -> list[Principal]:
    """Employees a secretary currently represents."""
    return await authority.assigned_principals(secretary_id)
