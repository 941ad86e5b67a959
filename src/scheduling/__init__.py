"""Meeting scheduling and conflict-resolution engine.

Components, leaf first:
- AvailabilityIndex: busy intervals from meetings and availability blocks
- SlotComputer: bookable slots within working hours
- ConflictDetector: per-participant overlapping commitments
- RoomAllocator: room capacity and double-booking checks
- DelegationAuthority: who may act for whom
- OverrideCascade: cancel conflicts and force-book atomically
- BookingOrchestrator: entry point composing all of the above
"""

from src.scheduling.availability import AvailabilityIndex, merge_sources
from src.scheduling.booking import BookingOrchestrator
from src.scheduling.conflicts import ConflictDetector
from src.scheduling.delegation import DelegationAuthority
from src.scheduling.errors import SchedulingError
from src.scheduling.locks import KeyedLockManager
from src.scheduling.override import OverrideCascade
from src.scheduling.rooms import RoomAllocator
from src.scheduling.slots import SlotComputer, SlotSequence

__all__ = [
    "AvailabilityIndex",
    "BookingOrchestrator",
    "ConflictDetector",
    "DelegationAuthority",
    "KeyedLockManager",
    "OverrideCascade",
    "RoomAllocator",
    "SchedulingError",
    "SlotComputer",
    "SlotSequence",
    "merge_sources",
]
