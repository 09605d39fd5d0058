"""Ports for assembling packages and transferring them to repositories."""

from abc import abstractmethod
from typing import Any, Protocol

from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.model.value import ValueObject
from courier.domain.shared.port import Port


class Package(ValueObject):
    """An assembled, ready-to-send package."""

    name: str
    content_type: str
    content: bytes
    packaging: str | None = None  # Packaging format identifier, e.g. a SWORD packaging URI


class TransportResponse(ValueObject):
    """Acknowledgement returned by a repository after a transfer.

    ``terminal_hint`` is set when the transport already knows the final
    outcome and no polling is needed.
    """

    status_code: int | None = None
    status_ref: str | None = None
    terminal_hint: DepositStatus | None = None
    access_url: str | None = None
    external_ids: tuple[str, ...] = ()


class Assembler(Port, Protocol):
    """Builds a package in a repository-specific format."""

    @abstractmethod
    async def assemble(self, snapshot: DepositSubmission, options: dict[str, Any]) -> Package: ...


class TransportSession(Port, Protocol):
    """An open connection to a repository."""

    @abstractmethod
    async def send(self, package: Package, context: dict[str, Any]) -> TransportResponse: ...

    @abstractmethod
    async def close(self) -> None: ...


class Transport(Port, Protocol):
    """Opens sessions to a repository."""

    @abstractmethod
    async def open(self, options: dict[str, Any]) -> TransportSession: ...
