"""ResourceClient backed by a SQL database."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, AsyncIterator, TypeVar
from uuid import uuid4

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from courier.domain.shared.error import ConflictError, NotFoundError, StorageUnavailableError
from courier.domain.shared.model.entity import Resource
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.infrastructure.persistence.tables import resources_table

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)

_RESERVED = {"id", "version"}


def resource_to_body(obj: Resource) -> dict[str, Any]:
    return obj.model_dump(mode="json", exclude=_RESERVED)


def row_to_resource(type_: type[R], row: dict[str, Any]) -> R:
    return type_.model_validate({**row["body"], "id": row["id"], "version": row["version"]})


class SqlResourceClient(ResourceClient):
    """Versioned resource store on a single SQL table.

    Each call runs in its own short transaction so that a read never holds a
    connection while a critical interaction does its work. Updates are a
    conditional ``UPDATE ... WHERE version = :expected``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, type_: type[R], id: str) -> R | None:
        stmt = select(resources_table).where(
            resources_table.c.type == type_.__name__, resources_table.c.id == id
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
        return row_to_resource(type_, dict(row)) if row else None

    async def create(self, obj: R) -> R:
        type_ = type(obj)
        id = obj.id or str(uuid4())
        stmt = insert(resources_table).values(
            type=type_.__name__,
            id=id,
            version=1,
            body=resource_to_body(obj),
            updated_at=datetime.now(UTC),
        )
        try:
            async with self._session() as session:
                await session.execute(stmt)
                await session.commit()
        except IntegrityError as e:
            raise ConflictError(f"{type_.__name__} {id} already exists") from e
        return obj.model_copy(update={"id": id, "version": 1})

    async def update(self, obj: R) -> R:
        type_ = type(obj)
        if obj.id is None:
            raise NotFoundError(f"Cannot update an unsaved {type_.__name__}")

        stmt = (
            update(resources_table)
            .where(
                resources_table.c.type == type_.__name__,
                resources_table.c.id == obj.id,
                resources_table.c.version == obj.version,
            )
            .values(
                version=obj.version + 1,
                body=resource_to_body(obj),
                updated_at=datetime.now(UTC),
            )
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                exists = await session.execute(
                    select(resources_table.c.version).where(
                        resources_table.c.type == type_.__name__,
                        resources_table.c.id == obj.id,
                    )
                )
                stored = exists.scalar_one_or_none()
                if stored is None:
                    raise NotFoundError(f"{type_.__name__} {obj.id} not found")
                raise ConflictError(
                    f"{type_.__name__} {obj.id} is at version {stored}, expected {obj.version}"
                )
            await session.commit()

        logger.debug(f"Updated {type_.__name__} {obj.id} to version {obj.version + 1}")
        return obj.model_copy(update={"version": obj.version + 1})

    async def query(self, type_: type[R], *filters: Filter) -> list[R]:
        stmt = (
            select(resources_table)
            .where(resources_table.c.type == type_.__name__)
            .order_by(resources_table.c.id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            rows = [dict(r) for r in result.mappings().all()]
        # Filters run on the decoded body so they behave the same on every dialect
        return [
            row_to_resource(type_, row)
            for row in rows
            if all(f.matches(row["body"]) for f in filters)
        ]

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except OperationalError as e:
            raise StorageUnavailableError(f"Database unavailable: {e}") from e
