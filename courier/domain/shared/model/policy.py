from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, Iterable, TypeVar

S = TypeVar("S", bound=StrEnum)


class StatusClass(StrEnum):
    INTERMEDIATE = "intermediate"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class StatusPolicy(Generic[S]):
    """Classifies a status value as intermediate or terminal.

    A missing status has not been assigned yet and is always intermediate.
    """

    terminal: frozenset[S] = field(default_factory=frozenset)

    @classmethod
    def of(cls, terminal: Iterable[S]):
        return cls(terminal=frozenset(terminal))

    def classify(self, status: S | None) -> StatusClass:
        if status is not None and status in self.terminal:
            return StatusClass.TERMINAL
        return StatusClass.INTERMEDIATE

    def is_terminal(self, status: S | None) -> bool:
        return self.classify(status) is StatusClass.TERMINAL

    def is_intermediate(self, status: S | None) -> bool:
        return self.classify(status) is StatusClass.INTERMEDIATE
