from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

R = TypeVar("R")
T = TypeVar("T")


class CriticalOutcome(StrEnum):
    """How a critical interaction ended.

    PRECONDITION_FAILED with no throwable is a benign no-op. POSTCONDITION_FAILED
    means the write happened and is persisted but the resource did not end up
    in the expected state.
    """

    SUCCESS = "success"
    READ_FAILED = "read_failed"
    PRECONDITION_FAILED = "precondition_failed"
    CONFLICT = "conflict"
    CRITICAL_FAILED = "critical_failed"
    POSTCONDITION_FAILED = "postcondition_failed"


@dataclass(frozen=True)
class CriticalResult(Generic[R, T]):
    """Result of a critical interaction.

    Attributes:
        outcome: How the interaction ended.
        resource: The most recently read state of the resource.
        result: The value returned by the critical function, if it ran.
        throwable: The error behind a failure, if there was one.
        attempts: Number of read/precondition/critical cycles performed.
    """

    outcome: CriticalOutcome
    resource: R | None = None
    result: T | None = None
    throwable: BaseException | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.outcome is CriticalOutcome.SUCCESS

    @property
    def written(self) -> bool:
        """True if the critical write reached the store."""
        return self.outcome in (CriticalOutcome.SUCCESS, CriticalOutcome.POSTCONDITION_FAILED)

    @property
    def is_noop(self) -> bool:
        return self.outcome is CriticalOutcome.PRECONDITION_FAILED and self.throwable is None

    def __bool__(self) -> bool:
        return self.success
