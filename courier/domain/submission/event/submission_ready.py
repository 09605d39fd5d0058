from courier.domain.shared.event import Event


class SubmissionReady(Event):
    """A submission has been handed over for deposit processing."""

    submission_id: str
