"""ResourceClient port - access to the versioned system of record."""

from abc import abstractmethod
from typing import Protocol, TypeVar

from courier.domain.shared.model.entity import Resource
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port import Port

R = TypeVar("R", bound=Resource)


class ResourceClient(Port, Protocol):
    """CRUD and query access to versioned resources.

    Every write is conditioned on the version carried by the object. Adapters
    raise ConflictError when the stored version has moved on since the read.
    """

    @abstractmethod
    async def get(self, type_: type[R], id: str) -> R | None:
        """Read a fresh copy of a resource, or None if it does not exist."""
        ...

    @abstractmethod
    async def create(self, obj: R) -> R:
        """Store a new resource and return it with its id and version assigned."""
        ...

    @abstractmethod
    async def update(self, obj: R) -> R:
        """Write a resource if its version still matches; return the stored copy.

        Raises:
            ConflictError: If the stored version differs from obj.version.
            NotFoundError: If the resource does not exist.
        """
        ...

    @abstractmethod
    async def query(self, type_: type[R], *filters: Filter) -> list[R]:
        """Return all resources of a type matching every filter."""
        ...
