"""Canonical data models for the visitor scheduling engine.

This module exports all domain models used throughout the application:
- BaseEntity: Base class with id, timestamps
- Principal: People the engine schedules for
- Meeting / Participant: Booked meetings and their attendees
- AvailabilityBlock: Manually declared busy time
- MeetingRoom: Bookable rooms
- ConflictOverrideRecord: Override audit trail
- DelegationAssignment: Secretary authority over an employee
"""

from src.models.availability import AvailabilityBlock, BlockCategory
from src.models.base import BaseEntity
from src.models.delegation import DelegationAssignment
from src.models.meeting import (
    COMMITTED_STATUSES,
    Meeting,
    MeetingKind,
    MeetingStatus,
)
from src.models.override import ConflictOverrideRecord
from src.models.participant import Participant
from src.models.principal import Principal, PrincipalRole
from src.models.room import MeetingRoom

__all__ = [
    # Base
    "BaseEntity",
    # People
    "Principal",
    "PrincipalRole",
    "Participant",
    # Meeting
    "Meeting",
    "MeetingKind",
    "MeetingStatus",
    "COMMITTED_STATUSES",
    # Calendar
    "AvailabilityBlock",
    "BlockCategory",
    "MeetingRoom",
    # Audit / authority
    "ConflictOverrideRecord",
    "DelegationAssignment",
]
