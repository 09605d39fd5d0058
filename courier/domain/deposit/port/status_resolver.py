from abc import abstractmethod
from typing import NewType, Protocol

from courier.config import RepositoryConfig
from courier.domain.shared.port import Port


class StatusResolver(Port, Protocol):
    """Fetches and interprets a remote status document.

    Returns the repository's native status value, or None if the document
    carries none. Raises StatusUnreachableError when the remote cannot be
    reached and StatusDocumentError when the document cannot be parsed.
    """

    @abstractmethod
    async def resolve(self, status_ref: str, config: RepositoryConfig) -> str | None: ...


StatusResolvers = NewType("StatusResolvers", dict[str, StatusResolver])
