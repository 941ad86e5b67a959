"""Integration tests for availability block API endpoints."""

from uuid import uuid4

from httpx import AsyncClient


def _block(principal_id, **extra) -> dict:
    body = {
        "principal_id": str(principal_id),
        "start_time": "2030-06-03T12:00:00",
        "end_time": "2030-06-03T13:00:00",
    }
    body.update(extra)
    return body


class TestAvailabilityBlocksAPI:
    async def test_create_list_delete(self, client: AsyncClient, people) -> None:
        a = people.employee_a.id
        headers = {"X-Actor-Id": str(a)}

        created = await client.post(
            "/availability-blocks",
            json=_block(a, category="time_off", reason="Dentist"),
            headers=headers,
        )
        assert created.status_code == 201
        block = created.json()
        assert block["category"] == "time_off"
        assert block["created_by"] == str(a)

        listed = await client.get(
            "/availability-blocks",
            params={
                "principal_id": str(a),
                "start": "2030-06-03T00:00:00",
                "end": "2030-06-04T00:00:00",
            },
        )
        assert [b["id"] for b in listed.json()] == [block["id"]]

        deleted = await client.delete(f"/availability-blocks/{block['id']}", headers=headers)
        assert deleted.status_code == 204

        again = await client.delete(f"/availability-blocks/{block['id']}", headers=headers)
        assert again.status_code == 404
        assert again.json()["detail"]["code"] == "BLOCK_NOT_FOUND"

    async def test_block_makes_slots_unavailable(self, client: AsyncClient, people) -> None:
        host = people.host.id
        await client.post(
            "/availability-blocks", json=_block(host), headers={"X-Actor-Id": str(host)}
        )

        response = await client.get(
            "/scheduling/slots",
            params={"host_id": str(host), "day": "2030-06-03", "duration_minutes": 30},
        )

        busy = [s["time"] for s in response.json()["slots"] if not s["available"]]
        assert busy == ["12:00", "12:30"]

    async def test_all_day_block(self, client: AsyncClient, people) -> None:
        a = people.employee_a.id
        response = await client.post(
            "/availability-blocks",
            json=_block(a, all_day=True, category="time_off"),
            headers={"X-Actor-Id": str(a)},
        )

        block = response.json()
        assert block["start_time"] == "2030-06-03T00:00:00"
        assert block["end_time"] == "2030-06-04T00:00:00"

    async def test_unrelated_actor_forbidden(self, client: AsyncClient, people) -> None:
        response = await client.post(
            "/availability-blocks",
            json=_block(people.employee_a.id),
            headers={"X-Actor-Id": str(people.employee_b.id)},
        )
        assert response.status_code == 403

    async def test_inverted_block(self, client: AsyncClient, people) -> None:
        a = people.employee_a.id
        response = await client.post(
            "/availability-blocks",
            json=_block(a, end_time="2030-06-03T11:00:00"),
            headers={"X-Actor-Id": str(a)},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_REQUEST"

    async def test_unknown_principal(self, client: AsyncClient, people) -> None:
        response = await client.post(
            "/availability-blocks",
            json=_block(uuid4()),
            headers={"X-Actor-Id": str(people.admin.id)},
        )
        assert response.status_code == 404

    async def test_overlapping_block_conflicts(self, client: AsyncClient, people) -> None:
        a = people.employee_a.id
        headers = {"X-Actor-Id": str(a)}
        await client.post("/availability-blocks", json=_block(a), headers=headers)

        response = await client.post(
            "/availability-blocks",
            json=_block(a, start_time="2030-06-03T12:30:00", end_time="2030-06-03T14:00:00"),
            headers=headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CONFLICT_DETECTED"

    async def test_update_block(self, client: AsyncClient, people) -> None:
        a = people.employee_a.id
        headers = {"X-Actor-Id": str(a)}
        created = await client.post("/availability-blocks", json=_block(a), headers=headers)
        block_id = created.json()["id"]

        response = await client.patch(
            f"/availability-blocks/{block_id}",
            json={"start_time": "2030-06-03T15:00:00", "end_time": "2030-06-03T16:00:00"},
            headers=headers,
        )

        assert response.status_code == 200
        block = response.json()
        assert block["id"] == block_id
        assert block["start_time"] == "2030-06-03T15:00:00"
        assert block["category"] == "busy"

    async def test_update_unknown_block(self, client: AsyncClient, people) -> None:
        response = await client.patch(
            f"/availability-blocks/{uuid4()}",
            json={"reason": "Moved"},
            headers={"X-Actor-Id": str(people.admin.id)},
        )
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "BLOCK_NOT_FOUND"
