from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.event import Event


class DepositStatusChanged(Event):
    """A Deposit's status was written by a critical update."""

    deposit_id: str
    submission_id: str
    deposit_status: DepositStatus | None = None
