"""Notification hand-off for committed scheduling events."""

from src.notifications.dispatcher import (
    InMemoryOutbox,
    NotificationDispatcher,
    NotificationSender,
)
from src.notifications.schemas import (
    NotificationKind,
    NotificationRecord,
    NotificationRequest,
)

__all__ = [
    "InMemoryOutbox",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationRecord",
    "NotificationRequest",
    "NotificationSender",
]
