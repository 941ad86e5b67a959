"""Schemas for notification hand-off.

The engine never delivers messages. It describes what should be sent and
to whom; a sender owned by the delivery subsystem does the rest.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    INVITATION = "invitation"
    CANCELLATION = "cancellation"


class NotificationRequest(BaseModel):
    """One message for one recipient.

    Principals are addressed by id (the delivery subsystem resolves their
    contact details); visitors by email.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: NotificationKind
    meeting_id: UUID
    recipient_principal_id: UUID | None = Field(default=None)
    recipient_email: str | None = Field(default=None)
    subject: str
    body: str
    source_event_id: UUID = Field(description="Event the request was built from")


class NotificationRecord(BaseModel):
    """Audit entry for one hand-off attempt."""

    request: NotificationRequest
    handed_off_at: datetime
    success: bool
    error: str | None = None
