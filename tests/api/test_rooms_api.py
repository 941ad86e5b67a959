"""Integration tests for meeting room API endpoints."""

from uuid import uuid4

from httpx import AsyncClient


class TestListRooms:
    async def test_active_rooms_only(self, client: AsyncClient, rooms) -> None:
        response = await client.get("/rooms")

        assert response.status_code == 200
        assert [r["code"] for r in response.json()] == ["HD-1", "BR-3"]

    async def test_include_inactive(self, client: AsyncClient, rooms) -> None:
        response = await client.get("/rooms", params={"include_inactive": "true"})
        assert "ST-0" in [r["code"] for r in response.json()]

    async def test_filters(self, client: AsyncClient, rooms) -> None:
        by_capacity = await client.get("/rooms", params={"min_capacity": 10})
        by_equipment = await client.get("/rooms", params={"equipment": ["video"]})
        by_floor = await client.get("/rooms", params={"floor_number": 1})

        assert [r["code"] for r in by_capacity.json()] == ["BR-3"]
        assert [r["code"] for r in by_equipment.json()] == ["BR-3"]
        assert [r["code"] for r in by_floor.json()] == ["HD-1"]


class TestCheckRoom:
    async def test_status_in_body(self, client: AsyncClient, rooms) -> None:
        ok = await client.get(
            f"/rooms/{rooms.small.id}/check",
            params={
                "start": "2030-06-03T10:00:00",
                "duration_minutes": 60,
                "participant_count": 6,
            },
        )
        too_many = await client.get(
            f"/rooms/{rooms.small.id}/check",
            params={
                "start": "2030-06-03T10:00:00",
                "duration_minutes": 60,
                "participant_count": 8,
            },
        )

        assert ok.status_code == 200
        assert ok.json()["status"] == "ok"
        assert too_many.status_code == 200
        assert too_many.json()["status"] == "capacity_exceeded"

    async def test_unknown_room(self, client: AsyncClient) -> None:
        response = await client.get(
            f"/rooms/{uuid4()}/check",
            params={
                "start": "2030-06-03T10:00:00",
                "duration_minutes": 60,
                "participant_count": 2,
            },
        )
        assert response.status_code == 404


class TestRoomSchedule:
    async def test_schedule_and_occupancy(self, client: AsyncClient, people, rooms) -> None:
        headers = {"X-Actor-Id": str(people.host.id)}
        booking = {
            "kind": "internal",
            "host_id": str(people.host.id),
            "start_time": "2030-06-03T10:00:00",
            "duration_minutes": 60,
            "room_id": str(rooms.small.id),
        }
        created = await client.post("/meetings", json=booking, headers=headers)

        other = dict(booking, host_id=str(people.employee_b.id))
        occupied = await client.post(
            "/meetings", json=other, headers={"X-Actor-Id": str(people.employee_b.id)}
        )
        schedule = await client.get(
            f"/rooms/{rooms.small.id}/schedule", params={"day": "2030-06-03"}
        )

        assert occupied.status_code == 409
        assert occupied.json()["detail"]["code"] == "ROOM_OCCUPIED"
        assert [m["id"] for m in schedule.json()] == [created.json()["meeting_id"]]
