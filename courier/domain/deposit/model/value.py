from enum import StrEnum

from courier.domain.shared.model.value import ValueObject


class DepositStatus(StrEnum):
    """Status of one delivery of a submission to one repository."""

    SUBMITTED = "submitted"
    REJECTED = "rejected"
    FAILED = "failed"
    ACCEPTED = "accepted"
    RETRY = "retry"


class CopyStatus(StrEnum):
    """Status of the repository's own copy of a deposited work."""

    COMPLETE = "complete"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    STALLED = "stalled"
    REJECTED = "rejected"


class IntegrationType(StrEnum):
    FULL = "full"
    ONE_WAY = "one-way"
    WEB_LINK = "web-link"

    @property
    def is_link_only(self) -> bool:
        return self is IntegrationType.WEB_LINK


class DepositFile(ValueObject):
    """A file to be delivered, referencing its binary content by location."""

    name: str
    location: str | None = None
    mime_type: str | None = None
    role: str | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.location and self.location.strip())
