"""Versioning behaviour shared by the SQL and in-memory resource clients."""

from typing import AsyncIterator

import pytest
import pytest_asyncio

from courier.config import DatabaseConfig
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.error import ConflictError, NotFoundError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.infrastructure.memory.resource_client import InMemoryResourceClient
from courier.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    create_tables,
)
from courier.infrastructure.persistence.resource_client import SqlResourceClient


@pytest_asyncio.fixture(params=["memory", "sql"])
async def client(request: pytest.FixtureRequest) -> AsyncIterator[ResourceClient]:
    if request.param == "memory":
        yield InMemoryResourceClient()
        return

    engine = create_db_engine(DatabaseConfig(url="sqlite+aiosqlite:///:memory:"))
    await create_tables(engine)
    try:
        yield SqlResourceClient(create_session_factory(engine))
    finally:
        await engine.dispose()


def _deposit(**kwargs) -> Deposit:
    return Deposit(submission_id="s-1", repository_id="r-1", **kwargs)


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_create_assigns_id_and_first_version(self, client: ResourceClient):
        created = await client.create(_deposit())

        assert created.id
        assert created.version == 1
        fetched = await client.get(Deposit, created.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_create_keeps_caller_id(self, client: ResourceClient):
        created = await client.create(_deposit(id="d-1"))

        assert created.id == "d-1"

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, client: ResourceClient):
        await client.create(_deposit(id="d-1"))

        with pytest.raises(ConflictError):
            await client.create(_deposit(id="d-1"))

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, client: ResourceClient):
        assert await client.get(Deposit, "missing") is None


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_bumps_version(self, client: ResourceClient):
        created = await client.create(_deposit())
        created.deposit_status = DepositStatus.SUBMITTED

        updated = await client.update(created)

        assert updated.version == 2
        fetched = await client.get(Deposit, created.id)
        assert fetched.deposit_status == DepositStatus.SUBMITTED
        assert fetched.version == 2

    @pytest.mark.asyncio
    async def test_stale_version_conflicts_and_leaves_stored_value(self, client: ResourceClient):
        created = await client.create(_deposit())
        first = await client.get(Deposit, created.id)
        second = await client.get(Deposit, created.id)

        first.deposit_status = DepositStatus.ACCEPTED
        await client.update(first)
        second.deposit_status = DepositStatus.REJECTED
        with pytest.raises(ConflictError):
            await client.update(second)

        fetched = await client.get(Deposit, created.id)
        assert fetched.deposit_status == DepositStatus.ACCEPTED
        assert fetched.version == 2

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, client: ResourceClient):
        with pytest.raises(NotFoundError):
            await client.update(_deposit(id="missing", version=1))


class TestQuery:
    @pytest.mark.asyncio
    async def test_filters_on_body_fields(self, client: ResourceClient):
        await client.create(_deposit(id="d-1", deposit_status=DepositStatus.FAILED))
        await client.create(_deposit(id="d-2", deposit_status=DepositStatus.ACCEPTED))
        await client.create(Deposit(id="d-3", submission_id="s-2", repository_id="r-1"))

        failed = await client.query(Deposit, Filter.eq("deposit_status", DepositStatus.FAILED))
        of_s1 = await client.query(Deposit, Filter.eq("submission_id", "s-1"))
        unset = await client.query(Deposit, Filter.is_null("deposit_status"))

        assert [d.id for d in failed] == ["d-1"]
        assert [d.id for d in of_s1] == ["d-1", "d-2"]
        assert [d.id for d in unset] == ["d-3"]

    @pytest.mark.asyncio
    async def test_query_is_scoped_to_type(self, client: ResourceClient):
        await client.create(_deposit(id="d-1"))

        assert await client.query(Repository) == []
