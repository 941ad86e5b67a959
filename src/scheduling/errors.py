"""Typed errors for the scheduling engine.

Every rejected path surfaces one of these. Each carries a stable code and
the HTTP status the API layer maps it to.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from src.scheduling.schemas import AvailabilityReport


class SchedulingError(Exception):
    """Base class for engine errors."""

    code = "SCHEDULING_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidRequest(SchedulingError):
    """Malformed time range, duration or request shape."""

    code = "INVALID_REQUEST"
    status_code = 422


class SlotRangeUnavailable(InvalidRequest):
    """A contiguous slot selection contains an unavailable sub-slot."""

    code = "SLOT_RANGE_UNAVAILABLE"
    status_code = 409


class InvalidStatusTransition(InvalidRequest):
    """Meeting lifecycle does not allow the requested status change."""

    code = "INVALID_STATUS_TRANSITION"
    status_code = 409


class ConfigurationMissing(SchedulingError):
    """No working hours configured for the principal or facility."""

    code = "CONFIGURATION_MISSING"
    status_code = 422


class Forbidden(SchedulingError):
    """Actor lacks authority over the principal."""

    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, actor_id: UUID, principal_id: UUID):
        super().__init__(
            "Actor is not authorized to act for this principal",
            {"actor_id": str(actor_id), "principal_id": str(principal_id)},
        )


class NotFound(SchedulingError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    entity = "Entity"

    def __init__(self, entity_id: UUID):
        super().__init__(f"{self.entity} {entity_id} not found", {"id": str(entity_id)})


class PrincipalNotFound(NotFound):
    code = "PRINCIPAL_NOT_FOUND"
    entity = "Principal"


class MeetingNotFound(NotFound):
    code = "MEETING_NOT_FOUND"
    entity = "Meeting"


class RoomNotFound(NotFound):
    code = "ROOM_NOT_FOUND"
    entity = "Meeting room"


class BlockNotFound(NotFound):
    code = "BLOCK_NOT_FOUND"
    entity = "Availability block"


class AssignmentNotFound(NotFound):
    code = "ASSIGNMENT_NOT_FOUND"
    entity = "Delegation assignment"


class ConflictDetected(SchedulingError):
    """Participants are already committed; caller decides how to proceed."""

    code = "CONFLICT_DETECTED"
    status_code = 409

    def __init__(self, report: "AvailabilityReport"):
        super().__init__(
            "One or more participants have conflicting commitments",
            report.model_dump(mode="json"),
        )
        self.report = report


class ConflictsNoLongerPresent(SchedulingError):
    """Override requested but the conflicts disappeared since the last check."""

    code = "CONFLICTS_NO_LONGER_PRESENT"
    status_code = 409


class OverrideReasonRequired(SchedulingError):
    code = "OVERRIDE_REASON_REQUIRED"
    status_code = 422


class CapacityExceeded(SchedulingError):
    code = "CAPACITY_EXCEEDED"
    status_code = 422


class RoomInactive(SchedulingError):
    code = "ROOM_INACTIVE"
    status_code = 422


class RoomOccupied(SchedulingError):
    code = "ROOM_OCCUPIED"
    status_code = 409

    def __init__(self, room_id: UUID, conflicting_meeting_id: UUID):
        super().__init__(
            "Room is already booked for an overlapping window",
            {
                "room_id": str(room_id),
                "conflicting_meeting_id": str(conflicting_meeting_id),
            },
        )
        self.conflicting_meeting_id = conflicting_meeting_id


class ConflictingAssignment(SchedulingError):
    """Employee already has an active secretary and policy is reject."""

    code = "CONFLICTING_ASSIGNMENT"
    status_code = 409


class PersistenceFailed(SchedulingError):
    """Transactional write failed and was rolled back."""

    code = "PERSISTENCE_FAILED"
    status_code = 503


class BookingPersistenceFailed(PersistenceFailed):
    code = "BOOKING_PERSISTENCE_FAILED"


class OverridePersistenceFailed(PersistenceFailed):
    code = "OVERRIDE_PERSISTENCE_FAILED"
