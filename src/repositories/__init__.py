"""Repository layer for data persistence.

Provides repository classes for persisting scheduling data to the database.
Write methods return statements so one engine operation can commit all of
its changes through a single UnitOfWork batch.
"""

from src.repositories.availability_repo import AvailabilityBlockRepository
from src.repositories.delegation_repo import DelegationRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.override_repo import OverrideRecordRepository
from src.repositories.principal_repo import PrincipalRepository
from src.repositories.room_repo import RoomRepository
from src.repositories.unit_of_work import TransactionFailed, UnitOfWork

__all__ = [
    "AvailabilityBlockRepository",
    "DelegationRepository",
    "MeetingRepository",
    "OverrideRecordRepository",
    "PrincipalRepository",
    "RoomRepository",
    "TransactionFailed",
    "UnitOfWork",
]
