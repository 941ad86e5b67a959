"""Integration tests for scheduling API endpoints."""

from datetime import datetime
from uuid import uuid4

from httpx import AsyncClient


class TestSlots:
    """Tests for GET /scheduling/slots."""

    async def test_slots_mark_busy_times(self, client: AsyncClient, people, book) -> None:
        await book(people.host.id, datetime(2030, 6, 3, 10, 0), 60)

        response = await client.get(
            "/scheduling/slots",
            params={
                "host_id": str(people.host.id),
                "day": "2030-06-03",
                "duration_minutes": 30,
            },
        )

        assert response.status_code == 200
        slots = response.json()["slots"]
        assert len(slots) == 16
        assert [s["time"] for s in slots if not s["available"]] == ["10:00", "10:30"]

    async def test_unknown_host(self, client: AsyncClient) -> None:
        response = await client.get(
            "/scheduling/slots",
            params={"host_id": str(uuid4()), "day": "2030-06-03", "duration_minutes": 30},
        )
        assert response.status_code == 404

    async def test_duration_must_be_positive(self, client: AsyncClient, people) -> None:
        response = await client.get(
            "/scheduling/slots",
            params={"host_id": str(people.host.id), "day": "2030-06-03", "duration_minutes": 0},
        )
        assert response.status_code == 422


class TestValidateRange:
    """Tests for POST /scheduling/slots/validate-range."""

    async def test_free_range(self, client: AsyncClient, people) -> None:
        response = await client.post(
            "/scheduling/slots/validate-range",
            json={
                "host_id": str(people.host.id),
                "start_time": "2030-06-03T09:00:00",
                "duration_minutes": 90,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert [s["time"] for s in data["slots"]] == ["09:00", "09:30", "10:00"]

    async def test_range_with_busy_slot(self, client: AsyncClient, people, book) -> None:
        await book(people.host.id, datetime(2030, 6, 3, 10, 0), 30)

        response = await client.post(
            "/scheduling/slots/validate-range",
            json={
                "host_id": str(people.host.id),
                "start_time": "2030-06-03T09:00:00",
                "duration_minutes": 90,
            },
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "SLOT_RANGE_UNAVAILABLE"
        assert detail["details"]["unavailable"] == ["2030-06-03T10:00:00"]


class TestCheckAvailability:
    """Tests for POST /scheduling/check-availability."""

    async def test_reports_conflicted_participant(
        self, client: AsyncClient, people, book
    ) -> None:
        a, b = people.employee_a.id, people.employee_b.id
        existing = await book(a, datetime(2030, 6, 3, 14, 0), 60, purpose="Budget sync")

        response = await client.post(
            "/scheduling/check-availability",
            json={
                "participant_ids": [str(a), str(b)],
                "proposed_start": "2030-06-03T14:30:00",
                "duration_minutes": 30,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["has_conflicts"] is True
        assert len(data["conflicted_participants"]) == 1
        conflict = data["conflicted_participants"][0]["conflicts"][0]
        assert conflict["meeting_id"] == str(existing.id)
        assert conflict["purpose"] == "Budget sync"
        assert conflict["duration_minutes"] == 60

    async def test_everyone_free(self, client: AsyncClient, people) -> None:
        response = await client.post(
            "/scheduling/check-availability",
            json={
                "participant_ids": [str(people.employee_a.id)],
                "proposed_start": "2030-06-03T14:30:00",
                "duration_minutes": 30,
            },
        )

        assert response.json() == {"has_conflicts": False, "conflicted_participants": []}

    async def test_requires_participants(self, client: AsyncClient) -> None:
        response = await client.post(
            "/scheduling/check-availability",
            json={
                "participant_ids": [],
                "proposed_start": "2030-06-03T14:30:00",
                "duration_minutes": 30,
            },
        )
        assert response.status_code == 422


class TestBusyIntervals:
    async def test_merged_intervals_with_sources(
        self, client: AsyncClient, people, book
    ) -> None:
        a = people.employee_a.id
        await book(a, datetime(2030, 6, 3, 9, 0), 60)
        await book(a, datetime(2030, 6, 3, 10, 0), 30)

        response = await client.get(
            f"/scheduling/principals/{a}/busy",
            params={"start": "2030-06-03T00:00:00", "end": "2030-06-04T00:00:00"},
        )

        assert response.status_code == 200
        intervals = response.json()
        assert len(intervals) == 1
        assert intervals[0]["start"] == "2030-06-03T09:00:00"
        assert intervals[0]["end"] == "2030-06-03T10:30:00"
        assert len(intervals[0]["sources"]) == 2

    async def test_inverted_range(self, client: AsyncClient, people) -> None:
        response = await client.get(
            f"/scheduling/principals/{people.employee_a.id}/busy",
            params={"start": "2030-06-04T00:00:00", "end": "2030-06-03T00:00:00"},
        )
        assert response.status_code == 422
