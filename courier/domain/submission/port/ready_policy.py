from abc import abstractmethod
from typing import Protocol

from courier.domain.shared.port import Port
from courier.domain.submission.model.resource import Submission


class ReadyPolicy(Port, Protocol):
    """Decides whether a Submission may be fanned out to its repositories."""

    @abstractmethod
    def accept(self, submission: Submission) -> bool: ...
