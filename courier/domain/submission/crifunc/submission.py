"""Critical-interaction functions for starting and failing a submission's deposits."""

from dataclasses import dataclass
from typing import Callable, Protocol

from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.submission.model.policy import AggregateStatusPolicy
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus


class SnapshotSource(Protocol):
    async def build(self, submission: Submission) -> DepositSubmission: ...


@dataclass
class BeginDeposit:
    """Critical function: snapshot the submission and move it to IN_PROGRESS."""

    snapshots: SnapshotSource

    async def __call__(self, submission: Submission) -> DepositSubmission:
        snapshot = await self.snapshots.build(submission)
        submission.aggregated_deposit_status = AggregatedDepositStatus.IN_PROGRESS
        return snapshot


def deposit_started(submission: Submission, snapshot: DepositSubmission) -> bool:
    """Postcondition for BeginDeposit.

    Raises SubmissionConsistencyError naming the problem if the snapshot
    cannot be delivered.
    """
    if submission.aggregated_deposit_status is not AggregatedDepositStatus.IN_PROGRESS:
        return False
    snapshot.validate()
    return True


def mark_failed(policy: AggregateStatusPolicy) -> tuple[Callable, Callable]:
    """Precondition and critical function pair that marks a Submission FAILED."""

    def precondition(submission: Submission) -> bool:
        return policy.is_intermediate(submission.aggregated_deposit_status)

    def critical(submission: Submission) -> Submission:
        submission.aggregated_deposit_status = AggregatedDepositStatus.FAILED
        return submission

    return precondition, critical


def is_failed(submission: Submission, _: object) -> bool:
    return submission.aggregated_deposit_status is AggregatedDepositStatus.FAILED
