"""Delegated booking authority.

Decides whether an actor may book or block time for a principal, and owns
the rule that an employee has at most one active secretary.
"""

from datetime import datetime
from uuid import UUID

import structlog

from src.clock import facility_now
from src.config import Settings, settings
from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.events.types import DelegateAssigned, DelegateRevoked
from src.models.delegation import DelegationAssignment
from src.models.principal import Principal, PrincipalRole
from src.repositories.delegation_repo import DelegationRepository
from src.repositories.principal_repo import PrincipalRepository
from src.repositories.unit_of_work import TransactionFailed, UnitOfWork
from src.scheduling.errors import (
    AssignmentNotFound,
    ConflictingAssignment,
    Forbidden,
    InvalidRequest,
    PersistenceFailed,
    PrincipalNotFound,
)
from src.scheduling.locks import KeyedLockManager

logger = structlog.get_logger()


class DelegationAuthority:
    """Authority checks and delegation assignment management.

    Authority is never transitive: a secretary of a secretary gains
    nothing from the second assignment.
    """

    def __init__(
        self,
        db: TursoClient,
        principals: PrincipalRepository,
        assignments: DelegationRepository,
        event_store: EventStore | None = None,
        event_bus: EventBus | None = None,
        locks: KeyedLockManager | None = None,
        config: Settings | None = None,
    ):
        self._db = db
        self._locks = locks or KeyedLockManager()
        self._principals = principals
        self._assignments = assignments
        self._event_store = event_store
        self._event_bus = event_bus
        self._settings = config or settings

    async def can_act_for(
        self,
        actor_id: UUID,
        principal_id: UUID,
        at: datetime | None = None,
    ) -> bool:
        """Check if the actor may act on behalf of the principal.

        True when the actor is the active principal itself, an active
        admin, or holds an effective assignment for the principal.
        """
        actor = await self._principals.get(actor_id)
        if actor is None or not actor.is_active:
            return False
        if actor_id == principal_id or actor.is_admin:
            return True
        assignment = await self._assignments.active_for_employee(principal_id)
        return (
            assignment is not None
            and assignment.secretary_id == actor_id
            and assignment.is_effective(at or facility_now())
        )

    async def ensure_can_act_for(
        self,
        actor_id: UUID,
        principal_id: UUID,
        at: datetime | None = None,
    ) -> None:
        """Raise Forbidden unless the actor may act for the principal."""
        if not await self.can_act_for(actor_id, principal_id, at):
            logger.info(
                "delegation check failed",
                actor_id=str(actor_id),
                principal_id=str(principal_id),
            )
            raise Forbidden(actor_id, principal_id)

    async def assigned_principals(self, secretary_id: UUID) -> list[Principal]:
        """Employees a secretary currently represents."""
        now = facility_now()
        assignments = await self._assignments.active_for_secretary(secretary_id)
        ids = [a.employee_id for a in assignments if a.is_effective(now)]
        found = await self._principals.get_many(ids)
        return [found[pid] for pid in ids if pid in found]

    async def assign_delegate(
        self,
        secretary_id: UUID,
        employee_id: UUID,
        acting_admin_id: UUID,
        valid_until: datetime | None = None,
    ) -> DelegationAssignment:
        """Make a secretary the delegate of an employee.

        If the employee already has an active secretary, the configured
        policy applies: ``replace`` deactivates the prior assignment in the
        same batch, ``reject`` raises ConflictingAssignment. Assigning the
        pair that is already in effect returns the existing assignment. An
        assignment past its ``valid_until`` is deactivated and replaced
        under either policy.

        Args:
            secretary_id: Principal with the secretary role
            employee_id: Principal being represented
            acting_admin_id: Admin approving the assignment
            valid_until: Optional end of the assignment

        Returns:
            The active assignment

        Raises:
            Forbidden: Actor is not an active admin
            PrincipalNotFound: Unknown secretary or employee
            InvalidRequest: Wrong role, inactive principal, self-assignment
            ConflictingAssignment: Prior assignment exists under ``reject``
            PersistenceFailed: The write batch could not be committed
        """
        admin = await self._principals.get(acting_admin_id)
        if admin is None or not admin.is_admin:
            raise Forbidden(acting_admin_id, employee_id)

        secretary = await self._require(secretary_id)
        employee = await self._require(employee_id)
        if secretary_id == employee_id:
            raise InvalidRequest(
                "A principal cannot be their own delegate",
                {"principal_id": str(secretary_id)},
            )
        if secretary.role != PrincipalRole.SECRETARY or not secretary.is_active:
            raise InvalidRequest(
                "Delegate must be an active secretary",
                {"secretary_id": str(secretary_id), "role": secretary.role.value},
            )
        if not employee.is_active:
            raise InvalidRequest(
                "Employee is not active", {"employee_id": str(employee_id)}
            )

        now = facility_now()
        if valid_until is not None and valid_until <= now:
            raise InvalidRequest(
                "valid_until must be in the future",
                {"valid_until": valid_until.isoformat()},
            )

        async with self._locks.hold([f"delegation:{employee_id}"]):
            existing = await self._assignments.active_for_employee(employee_id)
            # Rows past valid_until stay flagged active until replaced
            current = existing if existing and existing.is_effective(now) else None
            if current is not None and current.secretary_id == secretary_id:
                return current
            if current is not None and self._settings.delegation_conflict_policy == "reject":
                logger.info(
                    "delegation assignment rejected",
                    employee_id=str(employee_id),
                    existing_secretary_id=str(current.secretary_id),
                )
                raise ConflictingAssignment(
                    "Employee already has an active secretary",
                    {
                        "employee_id": str(employee_id),
                        "assignment_id": str(current.id),
                        "secretary_id": str(current.secretary_id),
                    },
                )

            assignment = DelegationAssignment(
                secretary_id=secretary_id,
                employee_id=employee_id,
                assigned_at=now,
                assigned_by=acting_admin_id,
                valid_until=valid_until,
            )
            uow = UnitOfWork(self._db, self._event_store)
            if existing is not None:
                uow.add(self._assignments.deactivate_statement(existing.id, now))
            uow.add(self._assignments.insert_statement(assignment))
            uow.record(
                DelegateAssigned(
                    aggregate_id=assignment.id,
                    secretary_id=secretary_id,
                    employee_id=employee_id,
                    assigned_by=acting_admin_id,
                    replaced_assignment_id=existing.id if existing else None,
                )
            )
            await self._commit(uow, "assign")

        logger.info(
            "delegate assigned",
            assignment_id=str(assignment.id),
            secretary_id=str(secretary_id),
            employee_id=str(employee_id),
            replaced=existing is not None,
        )
        return assignment

    async def revoke_delegate(
        self,
        assignment_id: UUID,
        acting_admin_id: UUID,
    ) -> DelegationAssignment:
        """Deactivate an assignment.

        Raises:
            Forbidden: Actor is not an active admin
            AssignmentNotFound: Unknown assignment
            InvalidRequest: Assignment already inactive
        """
        admin = await self._principals.get(acting_admin_id)
        assignment = await self._assignments.get(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        if admin is None or not admin.is_admin:
            raise Forbidden(acting_admin_id, assignment.employee_id)
        if not assignment.is_active:
            raise InvalidRequest(
                "Assignment is already inactive",
                {"assignment_id": str(assignment_id)},
            )

        now = facility_now()
        uow = UnitOfWork(self._db, self._event_store)
        uow.add(self._assignments.deactivate_statement(assignment_id, now))
        uow.record(
            DelegateRevoked(
                aggregate_id=assignment_id,
                secretary_id=assignment.secretary_id,
                employee_id=assignment.employee_id,
                revoked_by=acting_admin_id,
            )
        )
        await self._commit(uow, "revoke")

        logger.info("delegate revoked", assignment_id=str(assignment_id))
        return assignment.model_copy(update={"is_active": False, "deactivated_at": now})

    async def _require(self, principal_id: UUID) -> Principal:
        principal = await self._principals.get(principal_id)
        if principal is None:
            raise PrincipalNotFound(principal_id)
        return principal

    async def _commit(self, uow: UnitOfWork, operation: str) -> None:
        try:
            await uow.commit()
        except TransactionFailed as e:
            raise PersistenceFailed(
                f"Delegation {operation} could not be saved",
                {"error": str(e)},
            ) from e
        if self._event_bus is not None:
            await self._event_bus.publish_committed(uow.events)
