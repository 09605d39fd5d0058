"""Aggregate deposit status: pure rules plus the critical-interaction functions built on them."""

from dataclasses import dataclass
from typing import Callable, Iterable

from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.error import ValidationError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.submission.model.policy import AggregateStatusPolicy
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus


def aggregate_status(
    statuses: Iterable[DepositStatus | None],
    current: AggregatedDepositStatus,
    policy: DepositStatusPolicy,
) -> AggregatedDepositStatus:
    """Compute a submission's aggregate status from its deposits' statuses.

    - no deposits: unchanged
    - all deposits ACCEPTED: ACCEPTED
    - all deposits in the policy's rejected class: REJECTED
    - anything else, including a mix of accepted and rejected deposits:
      IN_PROGRESS (FAILED is kept so operators see it)
    """
    statuses = list(statuses)
    if not statuses:
        return current
    if all(s is DepositStatus.ACCEPTED for s in statuses):
        return AggregatedDepositStatus.ACCEPTED
    if all(policy.is_rejected(s) for s in statuses):
        return AggregatedDepositStatus.REJECTED
    if current is AggregatedDepositStatus.FAILED:
        return current
    return AggregatedDepositStatus.IN_PROGRESS


def is_unsettled(policy: AggregateStatusPolicy) -> Callable[[Submission], bool]:
    """Only submissions whose aggregate status is not yet terminal are recomputed."""

    def precondition(submission: Submission) -> bool:
        return policy.is_intermediate(submission.aggregated_deposit_status)

    return precondition


async def _deposit_statuses(resources: ResourceClient, submission_id: str) -> list[DepositStatus | None]:
    deposits = await resources.query(Deposit, Filter.eq("submission_id", submission_id))
    return [d.deposit_status for d in deposits]


@dataclass
class AggregateDeposits:
    """Critical function: recompute and set the aggregate status from the latest deposits."""

    resources: ResourceClient
    deposit_policy: DepositStatusPolicy

    async def __call__(self, submission: Submission) -> AggregatedDepositStatus:
        if submission.id is None:
            raise ValidationError("Cannot aggregate an unsaved Submission", field="id")
        statuses = await _deposit_statuses(self.resources, submission.id)
        status = aggregate_status(statuses, submission.aggregated_deposit_status, self.deposit_policy)
        submission.aggregated_deposit_status = status
        return status


@dataclass
class AggregateIsConsistent:
    """Postcondition: the stored aggregate matches what the deposits imply right now."""

    resources: ResourceClient
    deposit_policy: DepositStatusPolicy

    async def __call__(self, submission: Submission, result: AggregatedDepositStatus) -> bool:
        if submission.id is None:
            raise ValidationError("Cannot check the aggregate of an unsaved Submission", field="id")
        if submission.aggregated_deposit_status != result:
            return False
        statuses = await _deposit_statuses(self.resources, submission.id)
        return aggregate_status(statuses, result, self.deposit_policy) == result
