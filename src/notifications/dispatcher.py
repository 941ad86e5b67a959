"""Notification dispatcher for meeting events.

Subscribes to committed meeting events on the EventBus, builds one
NotificationRequest per affected principal or visitor, and hands them to a
pluggable sender with a full audit trail.
"""

from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

import structlog

from src.events.bus import EventBus
from src.events.types import MeetingCancelled, MeetingScheduled
from src.notifications.schemas import (
    NotificationKind,
    NotificationRecord,
    NotificationRequest,
)

logger = structlog.get_logger()


class NotificationSender(Protocol):
    """Delivery seam owned by the messaging subsystem."""

    async def send(self, request: NotificationRequest) -> None: ...


class InMemoryOutbox:
    """Default sender: keeps requests in memory for a delivery worker to drain."""

    def __init__(self) -> None:
        self._pending: list[NotificationRequest] = []

    async def send(self, request: NotificationRequest) -> None:
        self._pending.append(request)

    def drain(self) -> list[NotificationRequest]:
        """Return and forget every pending request."""
        pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        return len(self._pending)


def _when(start: datetime) -> str:
    return start.strftime("%Y-%m-%d %H:%M")


class NotificationDispatcher:
    """Turns meeting events into notification requests.

    Sender failures are recorded in the audit log and never propagate back
    to the booking that produced the event.
    """

    def __init__(self, sender: NotificationSender | None = None):
        """Initialize with a sender.

        Args:
            sender: Delivery seam; defaults to an in-memory outbox
        """
        self._sender = sender or InMemoryOutbox()
        self._audit_log: list[NotificationRecord] = []

    @property
    def sender(self) -> NotificationSender:
        return self._sender

    def register(self, bus: EventBus) -> None:
        """Subscribe to the meeting events this dispatcher handles."""
        bus.subscribe(MeetingScheduled, self.on_meeting_scheduled)
        bus.subscribe(MeetingCancelled, self.on_meeting_cancelled)

    async def on_meeting_scheduled(self, event: MeetingScheduled) -> None:
        """Invite everyone attending a newly scheduled meeting."""
        subject = f"Meeting invitation: {_when(event.start_time)}"
        lines = [
            "You are invited to a meeting.",
            f"When: {_when(event.start_time)} ({event.duration_minutes} minutes)",
        ]
        if event.location:
            lines.append(f"Where: {event.location}")
        lines.append(f"Purpose: {event.purpose or 'N/A'}")
        body = "\n".join(lines)

        await self._dispatch(
            NotificationKind.INVITATION,
            event.aggregate_id,
            event.event_id,
            event.principal_ids,
            event.visitor_emails,
            subject,
            body,
        )

    async def on_meeting_cancelled(self, event: MeetingCancelled) -> None:
        """Tell everyone attending a cancelled meeting, with the reason."""
        subject = f"Meeting cancelled: {_when(event.start_time)}"
        if event.superseded_by:
            opening = "Your meeting has been cancelled due to a scheduling conflict."
        else:
            opening = "Your meeting has been cancelled."
        lines = [opening, f"When: {_when(event.start_time)}"]
        if event.location:
            lines.append(f"Where: {event.location}")
        lines.append(f"Purpose: {event.purpose or 'N/A'}")
        if event.reason:
            lines.append(f"Reason: {event.reason}")
        lines.append("Please reschedule at your convenience.")
        body = "\n".join(lines)

        await self._dispatch(
            NotificationKind.CANCELLATION,
            event.aggregate_id,
            event.event_id,
            event.principal_ids,
            event.visitor_emails,
            subject,
            body,
        )

    async def _dispatch(
        self,
        kind: NotificationKind,
        meeting_id: UUID | None,
        event_id: UUID,
        principal_ids: list[UUID],
        visitor_emails: list[str],
        subject: str,
        body: str,
    ) -> None:
        if meeting_id is None:
            logger.warning("meeting event without aggregate id", event_id=str(event_id))
            return

        requests = [
            NotificationRequest(
                kind=kind,
                meeting_id=meeting_id,
                recipient_principal_id=pid,
                subject=subject,
                body=body,
                source_event_id=event_id,
            )
            for pid in principal_ids
        ]
        requests.extend(
            NotificationRequest(
                kind=kind,
                meeting_id=meeting_id,
                recipient_email=email,
                subject=subject,
                body=body,
                source_event_id=event_id,
            )
            for email in visitor_emails
        )

        for request in requests:
            try:
                await self._sender.send(request)
            except Exception as e:
                self._record_audit(request, success=False, error=str(e))
            else:
                self._record_audit(request, success=True)

        logger.info(
            "notifications handed off",
            kind=kind.value,
            meeting_id=str(meeting_id),
            count=len(requests),
        )

    def _record_audit(
        self,
        request: NotificationRequest,
        success: bool,
        error: str | None = None,
    ) -> None:
        self._audit_log.append(
            NotificationRecord(
                request=request,
                handed_off_at=datetime.now(UTC),
                success=success,
                error=error,
            )
        )
        if not success:
            logger.warning(
                "notification hand-off failed",
                meeting_id=str(request.meeting_id),
                error=error,
            )

    def get_audit_log(self) -> list[NotificationRecord]:
        """Return copy of audit log."""
        return list(self._audit_log)

    def clear_audit_log(self) -> None:
        """Clear audit log."""
        self._audit_log.clear()
