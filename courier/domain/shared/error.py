"""Error hierarchy for courier.

Error layers:
- CourierError: Base class for all courier errors
- DomainError: Business rule violations and operator-correctable problems
- InfrastructureError: System-level failures like storage/network issues

Remedial errors are the subset of domain errors that need an operator to fix
configuration or data before the work can succeed. They are never retried
automatically.
"""

from collections.abc import Mapping
from typing import Any


class CourierError(Exception):
    """Base class for all courier errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(CourierError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """The stored version no longer matches the version that was read."""


class RemedialError(DomainError):
    """Requires operator correction; carries the offending identifiers."""

    def __init__(self, message: str, **identifiers: Any) -> None:
        super().__init__(message)
        self.identifiers: Mapping[str, Any] = identifiers


class MissingPackagerError(RemedialError):
    """No packager is configured for a repository."""


class MissingRepositoryConfigError(RemedialError):
    """No deposit-processing configuration exists for a repository."""


class MissingStatusResolverError(RemedialError):
    """No status resolver is available for a repository's configuration."""


class StatusDocumentError(RemedialError):
    """A remote status document could not be parsed or interpreted."""


class SubmissionConsistencyError(RemedialError):
    """A submission or its snapshot is not in a state that can be deposited."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(CourierError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """The system of record is unavailable."""


class StatusUnreachableError(InfrastructureError):
    """A remote status endpoint could not be reached. Transient."""


class TransportError(InfrastructureError):
    """Transferring a package to a repository failed."""


class TaskRejectedError(InfrastructureError):
    """The task dispatcher refused a task (saturated or shut down)."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


# =============================================================================
# Wrapping errors
# =============================================================================


class DepositServiceError(CourierError):
    """A failure while processing one (submission, deposit, repository) tuple."""

    def __init__(
        self,
        message: str,
        *,
        submission_id: str | None = None,
        deposit_id: str | None = None,
        repository_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.submission_id = submission_id
        self.deposit_id = deposit_id
        self.repository_id = repository_id


class CriticalInteractionError(CourierError):
    """A critical interaction that the caller required to succeed did not."""

    def __init__(self, message: str, result: Any) -> None:
        super().__init__(message)
        self.result = result
