from courier.domain.shared.event import Event


class DepositChangeReported(Event):
    """An external party reported that a Deposit may have changed."""

    deposit_id: str
