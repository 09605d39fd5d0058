import logging

import logfire

from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.model.packager import PackagerRegistry
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.deposit.port.dispatcher import TaskDispatcher
from courier.domain.deposit.service.failure import FailureRecorder
from courier.domain.deposit.service.snapshot import SnapshotBuilder
from courier.domain.deposit.service.task import DepositTaskFactory
from courier.domain.shared.error import DepositServiceError, NotFoundError, TaskRejectedError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service, for_each
from courier.domain.submission.model.resource import Submission

logger = logging.getLogger(__name__)

_RETRYABLE = (DepositStatus.FAILED, None)


def _is_retryable(deposit: Deposit) -> bool:
    return deposit.deposit_status in _RETRYABLE


def _claim_for_retry(deposit: Deposit) -> Deposit:
    deposit.deposit_status = DepositStatus.RETRY
    return deposit


def _is_claimed(deposit: Deposit, _: object) -> bool:
    return deposit.deposit_status is DepositStatus.RETRY


class DepositRetrier(Service):
    """Dispatches failed (or never started) deposits again."""

    resources: ResourceClient
    critical: CriticalInteraction
    packagers: PackagerRegistry
    snapshots: SnapshotBuilder
    tasks: DepositTaskFactory
    dispatcher: TaskDispatcher
    failures: FailureRecorder

    async def retry(self, deposit_ids: list[str] | None = None) -> list[str]:
        """Retry deposits and return the ids that were dispatched."""
        with logfire.span("DepositRetrier.retry"):
            if not deposit_ids:
                failed = await self.resources.query(
                    Deposit, Filter.eq("deposit_status", DepositStatus.FAILED)
                )
                unset = await self.resources.query(Deposit, Filter.is_null("deposit_status"))
                deposit_ids = [str(d.id) for d in [*failed, *unset]]
            logger.info(f"Retrying {len(deposit_ids)} deposit(s)")

            outcomes = await for_each(deposit_ids, self._retry, what="retry Deposit")
            return [id for id, dispatched in outcomes.items() if dispatched]

    async def _retry(self, deposit_id: str) -> bool:
        deposit = await self.resources.get(Deposit, deposit_id)
        if deposit is None:
            raise NotFoundError(f"Deposit not found: {deposit_id}")
        if not _is_retryable(deposit):
            logger.debug(f"Deposit {deposit_id} is {deposit.deposit_status}, not retrying")
            return False

        repository = await self.resources.get(Repository, deposit.repository_id)
        submission = await self.resources.get(Submission, deposit.submission_id)
        if repository is None or submission is None:
            raise NotFoundError(
                f"Missing Repository {deposit.repository_id} or Submission "
                f"{deposit.submission_id} for Deposit {deposit_id}"
            )

        packager = self.packagers.lookup(repository)
        snapshot = await self.snapshots.build(submission)
        snapshot.validate()

        result = await self.critical.perform_critical(
            deposit_id, Deposit, _is_retryable, _is_claimed, _claim_for_retry
        )
        if result.is_noop:
            return False
        if not result.success or result.resource is None:
            raise DepositServiceError(
                f"Unable to claim Deposit {deposit_id} for retry: {result.throwable}",
                submission_id=submission.id,
                deposit_id=deposit_id,
                repository_id=repository.id,
            )

        task = self.tasks.create(result.resource, snapshot, repository, packager)
        try:
            self.dispatcher.submit(task)
        except TaskRejectedError:
            await self.failures.mark_deposit_failed(deposit_id)
            raise
        logger.info(f"Re-dispatched Deposit {deposit_id} to {repository.name}")
        return True
