"""Tests for DelegationRepository."""

from datetime import datetime
from uuid import uuid4

import pytest

from src.db.turso import TursoClient
from src.models.delegation import DelegationAssignment
from src.repositories.delegation_repo import DelegationRepository

NOW = datetime(2030, 6, 3, 9, 0)


@pytest.fixture
async def repo(db_client: TursoClient) -> DelegationRepository:
    repository = DelegationRepository(db_client)
    await repository.initialize()
    return repository


def _assignment(secretary, employee) -> DelegationAssignment:
    return DelegationAssignment(secretary_id=secretary, employee_id=employee, assigned_at=NOW)


class TestDelegationRepository:
    """Tests for assignment persistence."""

    @pytest.mark.asyncio
    async def test_active_lookups(self, db_client, repo):
        secretary = uuid4()
        first = _assignment(secretary, uuid4())
        second = _assignment(secretary, uuid4())
        await db_client.execute_batch(
            [repo.insert_statement(first), repo.insert_statement(second)]
        )

        by_employee = await repo.active_for_employee(first.employee_id)
        by_secretary = await repo.active_for_secretary(secretary)

        assert by_employee.id == first.id
        assert {a.id for a in by_secretary} == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_second_active_assignment_for_employee_rejected(self, db_client, repo):
        """The partial unique index allows one active row per employee."""
        employee = uuid4()
        await db_client.execute_batch([repo.insert_statement(_assignment(uuid4(), employee))])

        with pytest.raises(Exception):
            await db_client.execute_batch(
                [repo.insert_statement(_assignment(uuid4(), employee))]
            )

    @pytest.mark.asyncio
    async def test_deactivate_then_replace_in_one_batch(self, db_client, repo):
        employee = uuid4()
        old = _assignment(uuid4(), employee)
        await db_client.execute_batch([repo.insert_statement(old)])

        new = _assignment(uuid4(), employee)
        await db_client.execute_batch(
            [repo.deactivate_statement(old.id, NOW), repo.insert_statement(new)]
        )

        active = await repo.active_for_employee(employee)
        stored_old = await repo.get(old.id)
        assert active.id == new.id
        assert not stored_old.is_active
        assert stored_old.deactivated_at == NOW

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, repo):
        assert await repo.get(uuid4()) is None
