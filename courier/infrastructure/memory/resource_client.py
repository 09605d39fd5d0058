"""In-process ResourceClient for tests and single-run CLI use."""

import asyncio
from typing import Any, TypeVar
from uuid import uuid4

from courier.domain.shared.error import ConflictError, NotFoundError
from courier.domain.shared.model.entity import Resource
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.infrastructure.persistence.resource_client import resource_to_body

R = TypeVar("R", bound=Resource)


class InMemoryResourceClient(ResourceClient):
    """Same versioning rules as the SQL client, held in a dict.

    Objects are stored and returned as copies, so callers never share state
    with the store.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Resource] = {}
        self._lock = asyncio.Lock()

    async def get(self, type_: type[R], id: str) -> R | None:
        stored = self._store.get((type_.__name__, id))
        return stored.model_copy(deep=True) if stored is not None else None  # type: ignore[return-value]

    async def create(self, obj: R) -> R:
        key = (type(obj).__name__, obj.id or str(uuid4()))
        async with self._lock:
            if key in self._store:
                raise ConflictError(f"{key[0]} {key[1]} already exists")
            created = obj.model_copy(update={"id": key[1], "version": 1}, deep=True)
            self._store[key] = created
        return created.model_copy(deep=True)

    async def update(self, obj: R) -> R:
        key = (type(obj).__name__, obj.id or "")
        async with self._lock:
            stored = self._store.get(key)
            if stored is None:
                raise NotFoundError(f"{key[0]} {obj.id} not found")
            if stored.version != obj.version:
                raise ConflictError(
                    f"{key[0]} {obj.id} is at version {stored.version}, expected {obj.version}"
                )
            updated = obj.model_copy(update={"version": obj.version + 1}, deep=True)
            self._store[key] = updated
        return updated.model_copy(deep=True)

    async def query(self, type_: type[R], *filters: Filter) -> list[R]:
        found: list[Any] = [
            r.model_copy(deep=True)
            for (name, _), r in sorted(self._store.items(), key=lambda kv: kv[0])
            if name == type_.__name__ and all(f.matches(resource_to_body(r)) for f in filters)
        ]
        return found
