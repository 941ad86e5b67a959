"""Repository for meeting room reference data."""

import json
from uuid import UUID

from src.db.turso import TursoClient
from src.models.room import MeetingRoom

_COLUMNS = "id, name, code, capacity, floor_number, building, equipment, is_active"


def _row_to_room(row) -> MeetingRoom:
    return MeetingRoom(
        id=UUID(row[0]),
        name=row[1],
        code=row[2],
        capacity=row[3],
        floor_number=row[4],
        building=row[5],
        equipment=set(json.loads(row[6] or "[]")),
        is_active=bool(row[7]),
    )


class RoomRepository:
    """Static room data. The engine never mutates rooms while booking."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create meeting_rooms table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS meeting_rooms (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                code TEXT NOT NULL UNIQUE,
                capacity INTEGER NOT NULL,
                floor_number INTEGER NOT NULL,
                building TEXT,
                equipment TEXT NOT NULL DEFAULT '[]',
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_rooms_location
            ON meeting_rooms(building, floor_number)
            """,
            ]
        )

    async def upsert(self, room: MeetingRoom) -> None:
        """Insert or replace a room (seeding by facilities admin)."""
        await self._db.execute(
            f"""
            INSERT INTO meeting_rooms ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                code = excluded.code,
                capacity = excluded.capacity,
                floor_number = excluded.floor_number,
                building = excluded.building,
                equipment = excluded.equipment,
                is_active = excluded.is_active
            """,
            [
                str(room.id),
                room.name,
                room.code,
                room.capacity,
                room.floor_number,
                room.building,
                json.dumps(sorted(room.equipment)),
                int(room.is_active),
            ],
        )

    async def get(self, room_id: UUID) -> MeetingRoom | None:
        """Get a room by id."""
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM meeting_rooms WHERE id = ?",
            [str(room_id)],
        )
        if not result.rows:
            return None
        return _row_to_room(result.rows[0])

    async def list_rooms(
        self,
        active_only: bool = True,
        floor_number: int | None = None,
        building: str | None = None,
        min_capacity: int | None = None,
        equipment: set[str] | None = None,
    ) -> list[MeetingRoom]:
        """List rooms with optional filters.

        Args:
            active_only: Exclude inactive rooms
            floor_number: Only rooms on this floor
            building: Only rooms in this building
            min_capacity: Only rooms holding at least this many people
            equipment: Only rooms offering every listed capability

        Returns:
            Rooms ordered by floor and name
        """
        where_clauses: list[str] = []
        params: list = []
        if active_only:
            where_clauses.append("is_active = 1")
        if floor_number is not None:
            where_clauses.append("floor_number = ?")
            params.append(floor_number)
        if building:
            where_clauses.append("building = ?")
            params.append(building)
        if min_capacity is not None:
            where_clauses.append("capacity >= ?")
            params.append(min_capacity)

        where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        result = await self._db.execute(
            f"SELECT {_COLUMNS} FROM meeting_rooms {where_sql} "
            "ORDER BY floor_number, name",
            params,
        )
        rooms = [_row_to_room(row) for row in result.rows]
        # Equipment lives in a JSON column; filter in Python
        if equipment:
            rooms = [r for r in rooms if equipment <= r.equipment]
        return rooms
