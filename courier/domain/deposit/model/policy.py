from dataclasses import dataclass, field
from typing import Iterable

from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.model.policy import StatusPolicy

DEFAULT_DEPOSIT_TERMINAL = (DepositStatus.ACCEPTED, DepositStatus.REJECTED)
DEFAULT_DEPOSIT_REJECTED = (DepositStatus.REJECTED,)


@dataclass(frozen=True)
class DepositStatusPolicy(StatusPolicy[DepositStatus]):
    """Classifies Deposit statuses. ACCEPTED and REJECTED are terminal by default.

    ``rejected`` is the class of statuses that count as a failed delivery when
    deposits are aggregated; a submission is only REJECTED when every one of
    its deposits falls in it.
    """

    rejected: frozenset[DepositStatus] = field(
        default_factory=lambda: frozenset(DEFAULT_DEPOSIT_REJECTED)
    )

    @classmethod
    def of(
        cls,
        terminal: Iterable[DepositStatus],
        rejected: Iterable[DepositStatus] = DEFAULT_DEPOSIT_REJECTED,
    ) -> "DepositStatusPolicy":
        return cls(terminal=frozenset(terminal), rejected=frozenset(rejected))

    def is_rejected(self, status: DepositStatus | None) -> bool:
        return status is not None and status in self.rejected
