from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from courier.domain.submission.model.value import (
    AggregatedDepositStatus,
    EventType,
    SubmissionStatus,
)
from courier.domain.shared.model.entity import Resource


class Submission(Resource):
    """A scholarly work and its intent to be deposited into repositories."""

    aggregated_deposit_status: AggregatedDepositStatus = AggregatedDepositStatus.NOT_STARTED
    submission_status: SubmissionStatus | None = None
    submitted: bool = False
    submitted_date: datetime | None = None
    repositories: list[str] = []
    publication_id: str | None = None
    metadata: dict[str, Any] = {}


class File(Resource):
    """A file attached to a Submission."""

    submission_id: str
    name: str
    location: str | None = None
    mime_type: str | None = None
    file_role: str | None = None


class SubmissionEvent(Resource):
    """A user action recorded against a Submission."""

    submission_id: str
    event_type: EventType
    performed_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    comment: str | None = None
