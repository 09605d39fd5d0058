import logging

import logfire

from courier.domain.critical.model.result import CriticalResult
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service, for_each
from courier.domain.submission.crifunc.aggregation import (
    AggregateDeposits,
    AggregateIsConsistent,
    is_unsettled,
)
from courier.domain.submission.model.policy import AggregateStatusPolicy
from courier.domain.submission.model.resource import Submission

logger = logging.getLogger(__name__)


class AggregationUpdater(Service):
    """Recomputes a Submission's aggregate deposit status from its Deposits.

    Always recomputes from a fresh read of every Deposit, so interleaved
    updates from different deposits of the same submission converge.
    """

    resources: ResourceClient
    critical: CriticalInteraction
    deposit_policy: DepositStatusPolicy
    aggregate_policy: AggregateStatusPolicy

    async def update(self, submission_id: str) -> CriticalResult:
        result = await self.critical.perform_critical(
            submission_id,
            Submission,
            precondition=is_unsettled(self.aggregate_policy),
            postcondition=AggregateIsConsistent(self.resources, self.deposit_policy),
            critical=AggregateDeposits(self.resources, self.deposit_policy),
        )
        if result.success:
            logger.info(f"Submission {submission_id} aggregate status is {result.result}")
        elif result.is_noop:
            logger.debug(f"Submission {submission_id} aggregate status already settled")
        elif result.written:
            logger.warning(
                f"Submission {submission_id} aggregate status {result.result} is inconsistent "
                f"with its deposits after the update: {result.throwable}"
            )
        else:
            logger.error(
                f"Unable to update aggregate status of Submission {submission_id}: {result.throwable}"
            )
        return result

    async def sweep(self, submission_ids: list[str] | None = None) -> dict[str, CriticalResult]:
        """Update the given submissions, or every one whose aggregate is not terminal."""
        with logfire.span("AggregationUpdater.sweep"):
            if not submission_ids:
                unsettled = await self.resources.query(
                    Submission,
                    Filter.not_in("aggregated_deposit_status", self.aggregate_policy.terminal),
                )
                submission_ids = [str(s.id) for s in unsettled]
            logger.info(f"Aggregation sweep over {len(submission_ids)} submission(s)")

            return await for_each(submission_ids, self.update, what="aggregate Submission")
