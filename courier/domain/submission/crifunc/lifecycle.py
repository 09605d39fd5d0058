"""Submission lifecycle status rules.

The lifecycle status is what users see. Before submission it follows the
most recent user action; after submission it follows the state of each
target repository's deposit and copy.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from courier.domain.deposit.model.resource import Deposit, RepositoryCopy
from courier.domain.deposit.model.value import CopyStatus, DepositStatus
from courier.domain.shared.error import InvalidStateError, ValidationError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.submission.model.resource import Submission, SubmissionEvent
from courier.domain.submission.model.value import (
    FINAL_SUBMISSION_STATUSES,
    EventType,
    SubmissionStatus,
)

logger = logging.getLogger(__name__)

_EVENT_STATUS = {
    EventType.APPROVAL_REQUESTED: SubmissionStatus.APPROVAL_REQUESTED,
    EventType.APPROVAL_REQUESTED_NEWUSER: SubmissionStatus.APPROVAL_REQUESTED,
    EventType.SUBMITTED: SubmissionStatus.SUBMITTED,
    EventType.CANCELLED: SubmissionStatus.CANCELLED,
    EventType.CHANGES_REQUESTED: SubmissionStatus.CHANGES_REQUESTED,
}


def calculate_post_submission_status(
    repository_ids: Iterable[str] | None,
    deposits: Iterable[Deposit] | None,
    copies: Iterable[RepositoryCopy] | None,
) -> SubmissionStatus:
    """Status of a submitted Submission, judged repository by repository.

    A RepositoryCopy outranks the Deposit for the same repository: a healthy
    copy clears a rejected deposit.
    """
    by_repository: dict[str, SubmissionStatus | None] = {r: None for r in repository_ids or ()}

    for deposit in deposits or ():
        if deposit.deposit_status is DepositStatus.REJECTED:
            by_repository[deposit.repository_id] = SubmissionStatus.NEEDS_ATTENTION
        else:
            by_repository[deposit.repository_id] = SubmissionStatus.SUBMITTED

    for copy in copies or ():
        if copy.copy_status is CopyStatus.COMPLETE:
            by_repository[copy.repository_id] = SubmissionStatus.COMPLETE
        elif copy.copy_status in (CopyStatus.REJECTED, CopyStatus.STALLED):
            by_repository[copy.repository_id] = SubmissionStatus.NEEDS_ATTENTION
        else:
            by_repository[copy.repository_id] = SubmissionStatus.SUBMITTED

    statuses = set(by_repository.values())
    if SubmissionStatus.NEEDS_ATTENTION in statuses:
        return SubmissionStatus.NEEDS_ATTENTION
    if statuses == {SubmissionStatus.COMPLETE}:
        return SubmissionStatus.COMPLETE
    return SubmissionStatus.SUBMITTED


def calculate_pre_submission_status(
    events: Iterable[SubmissionEvent] | None,
    default: SubmissionStatus | None = None,
) -> SubmissionStatus | None:
    """Status of a Submission that has not been submitted yet."""
    events = list(events or ())
    if not events:
        return default or SubmissionStatus.MANUSCRIPT_REQUIRED
    latest = max(events, key=lambda e: e.performed_date)
    return _EVENT_STATUS.get(latest.event_type)


def validate_status_change(
    submitted: bool,
    from_status: SubmissionStatus | None,
    to_status: SubmissionStatus | None,
) -> None:
    """Reject lifecycle transitions that contradict the submitted flag."""
    if to_status is None:
        raise ValidationError("The new status cannot be null", field="submission_status")

    if submitted:
        if not to_status.is_submitted:
            raise InvalidStateError(
                f"The status `{to_status}` cannot be assigned to a Submission that has "
                f"already been submitted (current status `{from_status}`). "
                "There may be a data issue."
            )
        return

    if to_status.is_submitted:
        raise InvalidStateError(
            f"The status `{to_status}` cannot be assigned to a Submission that has not "
            f"yet been submitted (current status `{from_status}`). There may be a data issue."
        )
    if from_status is not None and from_status.is_submitted:
        raise InvalidStateError(
            f"The current status of the Submission is `{from_status}`, so it was already "
            "submitted and cannot be given a pre-submission status. There may be a data issue."
        )
    if from_status is not None and from_status != to_status:
        logger.warning(
            f"Submission status `{from_status}` conflicts with `{to_status}` calculated "
            "from the most recent SubmissionEvent; pre-submission statuses are set by the "
            "UI, but this mismatch may indicate a data issue."
        )


def is_recalculable(submission: Submission) -> bool:
    """Precondition: a submitted submission whose lifecycle is still open."""
    return (
        submission.submission_status is not None
        and submission.submission_status not in FINAL_SUBMISSION_STATUSES
        and submission.submitted
    )


def has_submitted_status(submission: Submission, _: object) -> bool:
    return submission.submission_status is not None and submission.submitted


async def load_copies(
    resources: ResourceClient, submission: Submission, deposits: list[Deposit]
) -> list[RepositoryCopy]:
    """Copies linked from the deposits plus any recorded against the publication."""
    copies: dict[str, RepositoryCopy] = {}
    for deposit in deposits:
        if deposit.repository_copy_id:
            copy = await resources.get(RepositoryCopy, deposit.repository_copy_id)
            if copy is not None and copy.id is not None:
                copies[copy.id] = copy
    if submission.publication_id:
        for copy in await resources.query(
            RepositoryCopy, Filter.eq("publication_id", submission.publication_id)
        ):
            if copy.id is not None:
                copies.setdefault(copy.id, copy)
    return list(copies.values())


@dataclass
class RecalculateLifecycle:
    """Critical function: recompute a submitted Submission's lifecycle status."""

    resources: ResourceClient

    async def __call__(self, submission: Submission) -> SubmissionStatus:
        if submission.id is None:
            raise ValidationError(
                "Cannot recalculate the lifecycle of an unsaved Submission", field="id"
            )
        deposits = await self.resources.query(Deposit, Filter.eq("submission_id", submission.id))
        copies = await load_copies(self.resources, submission, deposits)
        status = calculate_post_submission_status(submission.repositories, deposits, copies)
        validate_status_change(submission.submitted, submission.submission_status, status)
        submission.submission_status = status
        return status
