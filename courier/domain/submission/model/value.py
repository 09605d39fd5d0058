from enum import StrEnum


class AggregatedDepositStatus(StrEnum):
    """Submission-level rollup of the statuses of its Deposits."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    FAILED = "failed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SubmissionStatus(StrEnum):
    """Broader lifecycle status of a Submission."""

    DRAFT = "draft"
    MANUSCRIPT_REQUIRED = "manuscript-required"
    APPROVAL_REQUESTED = "approval-requested"
    CHANGES_REQUESTED = "changes-requested"
    CANCELLED = "cancelled"
    SUBMITTED = "submitted"
    NEEDS_ATTENTION = "needs-attention"
    COMPLETE = "complete"

    @property
    def is_submitted(self) -> bool:
        return self in _SUBMITTED_STATUSES


_SUBMITTED_STATUSES = frozenset(
    {SubmissionStatus.SUBMITTED, SubmissionStatus.NEEDS_ATTENTION, SubmissionStatus.COMPLETE}
)

# Lifecycle statuses that are never recalculated
FINAL_SUBMISSION_STATUSES = (SubmissionStatus.COMPLETE, SubmissionStatus.CANCELLED)


class EventType(StrEnum):
    """Type of a user action recorded against a Submission."""

    APPROVAL_REQUESTED_NEWUSER = "approval-requested-newuser"
    APPROVAL_REQUESTED = "approval-requested"
    CHANGES_REQUESTED = "changes-requested"
    CANCELLED = "cancelled"
    SUBMITTED = "submitted"
