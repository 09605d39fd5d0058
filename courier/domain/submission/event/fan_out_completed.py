from courier.domain.shared.event import Event


class SubmissionFanOutCompleted(Event):
    """Every non link-only repository of a submission has a dispatched DepositTask."""

    submission_id: str
    deposit_ids: list[str] = []
