"""Event infrastructure for the scheduling engine.

Provides:
- Event: Base class for all domain events
- EventBus: In-process pub/sub for event routing
- EventStore: Append-only event persistence (transactional outbox)
"""

from src.events.base import Event
from src.events.bus import EventBus
from src.events.store import EventStore
from src.events.types import (
    AvailabilityBlockCreated,
    AvailabilityBlockDeleted,
    AvailabilityBlockUpdated,
    ConflictOverridden,
    DelegateAssigned,
    DelegateRevoked,
    MeetingCancelled,
    MeetingScheduled,
    MeetingStatusChanged,
)

__all__ = [
    # Base
    "Event",
    # Infrastructure
    "EventBus",
    "EventStore",
    # Event types
    "MeetingScheduled",
    "MeetingCancelled",
    "MeetingStatusChanged",
    "ConflictOverridden",
    "AvailabilityBlockCreated",
    "AvailabilityBlockUpdated",
    "AvailabilityBlockDeleted",
    "DelegateAssigned",
    "DelegateRevoked",
]
