"""Repository for meetings and their participants.

Meetings are append-only history: rows are inserted and their status
updated, never deleted. Writes are returned as statements so callers can
commit them inside one transactional batch.
"""

from collections import defaultdict
from datetime import date, datetime
from uuid import UUID

from libsql_client import Statement

from src.clock import from_db, to_db
from src.db.turso import TursoClient
from src.models.base import utc_now
from src.models.meeting import COMMITTED_STATUSES, Meeting, MeetingKind, MeetingStatus
from src.models.participant import Participant

_MEETING_COLUMNS = (
    "m.id, m.host_id, m.start_time, m.duration_minutes, m.status, m.meeting_type, "
    "m.meeting_room_id, m.purpose, m.location, m.visit_start_date, m.visit_end_date, "
    "m.booked_by_secretary_id, m.primary_principal_id, m.created_at, m.updated_at"
)

_PARTICIPANT_COLUMNS = (
    "id, meeting_id, principal_id, visitor_name, visitor_email, visitor_phone, "
    "visitor_company, is_primary, is_organizer, check_in_time, check_out_time"
)

_COMMITTED_SQL = ", ".join(f"'{s.value}'" for s in COMMITTED_STATUSES)


def _uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def _row_to_meeting(row) -> Meeting:
    return Meeting(
        id=UUID(row[0]),
        host_id=UUID(row[1]),
        start_time=from_db(row[2]),
        duration_minutes=row[3],
        status=MeetingStatus(row[4]),
        kind=MeetingKind(row[5]),
        room_id=_uuid(row[6]),
        purpose=row[7],
        location=row[8],
        visit_start_date=date.fromisoformat(row[9]) if row[9] else None,
        visit_end_date=date.fromisoformat(row[10]) if row[10] else None,
        booked_by_delegate_id=_uuid(row[11]),
        primary_principal_id=_uuid(row[12]),
        **Meeting.audit_fields(row[13], row[14]),
    )


def _row_to_participant(row) -> Participant:
    return Participant(
        id=UUID(row[0]),
        meeting_id=UUID(row[1]),
        principal_id=_uuid(row[2]),
        visitor_name=row[3],
        visitor_email=row[4],
        visitor_phone=row[5],
        visitor_company=row[6],
        is_primary=bool(row[7]),
        is_organizer=bool(row[8]),
        check_in_time=from_db(row[9]),
        check_out_time=from_db(row[10]),
    )


class MeetingRepository:
    """Persistence for meetings and participants.

    Overlap queries use half-open intervals on the stored start_time and
    end_time columns (ISO strings compare chronologically).
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create meetings and participants tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS meetings (
                id TEXT PRIMARY KEY,
                host_id TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                duration_minutes INTEGER NOT NULL,
                status TEXT NOT NULL,
                meeting_type TEXT NOT NULL DEFAULT 'external',
                meeting_room_id TEXT,
                purpose TEXT,
                location TEXT,
                visit_start_date TEXT,
                visit_end_date TEXT,
                is_multi_day INTEGER NOT NULL DEFAULT 0,
                booked_by_secretary_id TEXT,
                primary_principal_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_meetings_host_window
            ON meetings(host_id, status, start_time, end_time)
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_meetings_room_window
            ON meetings(meeting_room_id, status, start_time, end_time)
            """,
                """
            CREATE TABLE IF NOT EXISTS meeting_participants (
                id TEXT PRIMARY KEY,
                meeting_id TEXT NOT NULL REFERENCES meetings(id),
                principal_id TEXT,
                visitor_name TEXT,
                visitor_email TEXT,
                visitor_phone TEXT,
                visitor_company TEXT,
                is_primary INTEGER NOT NULL DEFAULT 0,
                is_organizer INTEGER NOT NULL DEFAULT 0,
                check_in_time TEXT,
                check_out_time TEXT,
                UNIQUE(meeting_id, principal_id)
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_participants_principal
            ON meeting_participants(principal_id)
            """,
            ]
        )

    def insert_statements(self, meeting: Meeting) -> list[Statement]:
        """Statements that persist a new meeting and its participants.

        Args:
            meeting: Meeting to persist

        Returns:
            Statements for the caller's batch
        """
        statements = [
            Statement(
                """
                INSERT INTO meetings
                    (id, host_id, start_time, end_time, duration_minutes, status,
                     meeting_type, meeting_room_id, purpose, location,
                     visit_start_date, visit_end_date, is_multi_day,
                     booked_by_secretary_id, primary_principal_id,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    str(meeting.id),
                    str(meeting.host_id),
                    to_db(meeting.start_time),
                    to_db(meeting.end_time),
                    meeting.duration_minutes,
                    meeting.status.value,
                    meeting.kind.value,
                    str(meeting.room_id) if meeting.room_id else None,
                    meeting.purpose,
                    meeting.location,
                    meeting.visit_start_date.isoformat() if meeting.visit_start_date else None,
                    meeting.visit_end_date.isoformat() if meeting.visit_end_date else None,
                    int(meeting.is_multi_day),
                    str(meeting.booked_by_delegate_id) if meeting.booked_by_delegate_id else None,
                    str(meeting.primary_principal_id) if meeting.primary_principal_id else None,
                    *meeting.audit_values(),
                ],
            )
        ]
        for p in meeting.participants:
            statements.append(
                Statement(
                    f"INSERT INTO meeting_participants ({_PARTICIPANT_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        str(p.id),
                        str(meeting.id),
                        str(p.principal_id) if p.principal_id else None,
                        p.visitor_name,
                        p.visitor_email,
                        p.visitor_phone,
                        p.visitor_company,
                        int(p.is_primary),
                        int(p.is_organizer),
                        to_db(p.check_in_time) if p.check_in_time else None,
                        to_db(p.check_out_time) if p.check_out_time else None,
                    ],
                )
            )
        return statements

    def status_statement(
        self,
        meeting_id: UUID,
        new_status: MeetingStatus,
        expected: tuple[MeetingStatus, ...],
    ) -> Statement:
        """Statement moving a meeting to a new status.

        The update only applies while the meeting is in one of the
        expected statuses, so a terminal status is never left.
        """
        placeholders = ", ".join("?" for _ in expected)
        return Statement(
            f"""
            UPDATE meetings SET status = ?, updated_at = ?
            WHERE id = ? AND status IN ({placeholders})
            """,
            [
                new_status.value,
                utc_now().isoformat(),
                str(meeting_id),
                *(s.value for s in expected),
            ],
        )

    def cancel_statement(self, meeting_id: UUID) -> Statement:
        """Statement cancelling a scheduled or active meeting."""
        return self.status_statement(
            meeting_id, MeetingStatus.CANCELLED, COMMITTED_STATUSES
        )

    async def get(self, meeting_id: UUID) -> Meeting | None:
        """Get a meeting with its participants.

        Args:
            meeting_id: Meeting identifier

        Returns:
            Meeting or None if not found
        """
        meetings = await self._fetch(
            f"SELECT {_MEETING_COLUMNS} FROM meetings m WHERE m.id = ?",
            [str(meeting_id)],
        )
        return meetings[0] if meetings else None

    async def committed_for_principals(
        self,
        principal_ids: list[UUID],
        start: datetime,
        end: datetime,
        exclude_meeting_id: UUID | None = None,
    ) -> dict[UUID, list[Meeting]]:
        """Scheduled/active meetings overlapping [start, end) per principal.

        A principal is involved when hosting or listed as participant.

        Args:
            principal_ids: Principals to check
            start: Window start
            end: Window end (exclusive)
            exclude_meeting_id: Meeting to ignore

        Returns:
            Mapping of principal id to meetings ordered by start then id.
            Principals without meetings are absent.
        """
        if not principal_ids:
            return {}
        placeholders = ", ".join("?" for _ in principal_ids)
        params: list = [str(pid) for pid in principal_ids] * 2
        params += [to_db(end), to_db(start)]
        exclude_sql = ""
        if exclude_meeting_id:
            exclude_sql = "AND m.id != ?"
            params.append(str(exclude_meeting_id))

        result = await self._db.execute(
            f"""
            SELECT {_MEETING_COLUMNS}, link.principal_id
            FROM meetings m
            JOIN (
                SELECT id AS meeting_id, host_id AS principal_id
                FROM meetings WHERE host_id IN ({placeholders})
                UNION
                SELECT meeting_id, principal_id
                FROM meeting_participants WHERE principal_id IN ({placeholders})
            ) link ON link.meeting_id = m.id
            WHERE m.status IN ({_COMMITTED_SQL})
              AND m.start_time < ? AND m.end_time > ?
              {exclude_sql}
            ORDER BY m.start_time, m.id
            """,
            params,
        )

        meetings: dict[UUID, Meeting] = {}
        by_principal: dict[UUID, list[Meeting]] = defaultdict(list)
        for row in result.rows:
            meeting_id = UUID(row[0])
            if meeting_id not in meetings:
                meetings[meeting_id] = _row_to_meeting(row)
            by_principal[UUID(row[15])].append(meetings[meeting_id])

        await self._attach_participants(list(meetings.values()))
        return dict(by_principal)

    async def committed_in_room(
        self,
        room_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Meeting]:
        """Scheduled/active meetings occupying a room during [start, end)."""
        return await self._fetch(
            f"""
            SELECT {_MEETING_COLUMNS} FROM meetings m
            WHERE m.meeting_room_id = ?
              AND m.status IN ({_COMMITTED_SQL})
              AND m.start_time < ? AND m.end_time > ?
            ORDER BY m.start_time, m.id
            """,
            [str(room_id), to_db(end), to_db(start)],
        )

    async def list_for_host(
        self,
        host_id: UUID,
        start: datetime,
        end: datetime,
        status: MeetingStatus | None = None,
    ) -> list[Meeting]:
        """Meetings a principal hosts that start within [start, end)."""
        params: list = [str(host_id), to_db(start), to_db(end)]
        status_sql = ""
        if status:
            status_sql = "AND m.status = ?"
            params.append(status.value)
        return await self._fetch(
            f"""
            SELECT {_MEETING_COLUMNS} FROM meetings m
            WHERE m.host_id = ? AND m.start_time >= ? AND m.start_time < ?
            {status_sql}
            ORDER BY m.start_time, m.id
            """,
            params,
        )

    async def _fetch(self, sql: str, params: list) -> list[Meeting]:
        result = await self._db.execute(sql, params)
        meetings = [_row_to_meeting(row) for row in result.rows]
        await self._attach_participants(meetings)
        return meetings

    async def _attach_participants(self, meetings: list[Meeting]) -> None:
        """Load participants for many meetings in one query."""
        if not meetings:
            return
        placeholders = ", ".join("?" for _ in meetings)
        result = await self._db.execute(
            f"""
            SELECT {_PARTICIPANT_COLUMNS} FROM meeting_participants
            WHERE meeting_id IN ({placeholders})
            ORDER BY is_organizer DESC, is_primary DESC, id
            """,
            [str(m.id) for m in meetings],
        )
        grouped: dict[UUID, list[Participant]] = defaultdict(list)
        for row in result.rows:
            participant = _row_to_participant(row)
            grouped[participant.meeting_id].append(participant)
        for meeting in meetings:
            meeting.participants = grouped.get(meeting.id, [])
