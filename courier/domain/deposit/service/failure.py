import logging

from courier.domain.critical.model.result import CriticalResult
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.crifunc import deposit_status
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit
from courier.domain.shared.service import Service
from courier.domain.submission.crifunc import submission as submission_crifunc
from courier.domain.submission.model.policy import AggregateStatusPolicy
from courier.domain.submission.model.resource import Submission

logger = logging.getLogger(__name__)


class FailureRecorder(Service):
    """Records FAILED on deposits and submissions that could not be processed."""

    critical: CriticalInteraction
    deposit_policy: DepositStatusPolicy
    aggregate_policy: AggregateStatusPolicy

    async def mark_deposit_failed(self, deposit_id: str) -> CriticalResult:
        precondition, critical = deposit_status.mark_failed(self.deposit_policy)
        result = await self.critical.perform_critical(
            deposit_id, Deposit, precondition, deposit_status.is_failed, critical
        )
        self._report("Deposit", deposit_id, result)
        return result

    async def mark_submission_failed(self, submission_id: str) -> CriticalResult:
        precondition, critical = submission_crifunc.mark_failed(self.aggregate_policy)
        result = await self.critical.perform_critical(
            submission_id, Submission, precondition, submission_crifunc.is_failed, critical
        )
        self._report("Submission", submission_id, result)
        return result

    def _report(self, kind: str, id: str, result: CriticalResult) -> None:
        if result.success:
            logger.info(f"Marked {kind} {id} as failed")
        elif result.is_noop:
            logger.debug(f"{kind} {id} is already terminal, not marking it failed")
        else:
            logger.error(f"Unable to mark {kind} {id} as failed: {result.throwable}")
