import logging

import logfire

from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.model.packager import PackagerRegistry
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.port.dispatcher import TaskDispatcher
from courier.domain.deposit.service.failure import FailureRecorder
from courier.domain.deposit.service.snapshot import SnapshotBuilder
from courier.domain.deposit.service.task import DepositTaskFactory
from courier.domain.shared.error import (
    DepositServiceError,
    SubmissionConsistencyError,
)
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service
from courier.domain.submission.crifunc.submission import BeginDeposit, deposit_started
from courier.domain.submission.event.fan_out_completed import SubmissionFanOutCompleted
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus
from courier.domain.submission.port.ready_policy import ReadyPolicy

logger = logging.getLogger(__name__)


class SubmissionCoordinator(Service):
    """Fans a ready Submission out into one DepositTask per target repository.

    Link-only repositories are skipped. The fan-out stops at the first
    repository that fails; deposits already dispatched are left running. The
    Submission, and the Deposit created for the failing repository if there
    is one, are marked FAILED for operators to pick up.
    """

    resources: ResourceClient
    critical: CriticalInteraction
    ready_policy: ReadyPolicy
    snapshots: SnapshotBuilder
    packagers: PackagerRegistry
    tasks: DepositTaskFactory
    dispatcher: TaskDispatcher
    failures: FailureRecorder
    events: EventBus

    async def process(self, submission_id: str) -> list[Deposit]:
        """Start deposit processing for a submission.

        Returns:
            The Deposits whose tasks were dispatched; empty if the submission
            was not ready (a benign no-op).

        Raises:
            SubmissionConsistencyError: If the submission has nothing deliverable.
            DepositServiceError: If the submission could not be moved to
                IN_PROGRESS, or a per-repository step failed.
        """
        with logfire.span("SubmissionCoordinator.process {submission_id}", submission_id=submission_id):
            submission, snapshot = await self._begin(submission_id)
            if submission is None or snapshot is None:
                return []

            deposits: list[Deposit] = []
            try:
                repositories = await self._target_repositories(submission)
                for repository in repositories:
                    deposits.append(await self._dispatch(submission_id, repository, snapshot))
            except DepositServiceError as e:
                if e.deposit_id:
                    await self.failures.mark_deposit_failed(e.deposit_id)
                await self.failures.mark_submission_failed(submission_id)
                raise

            await self.events.publish(
                SubmissionFanOutCompleted(
                    submission_id=submission_id,
                    deposit_ids=[str(d.id) for d in deposits],
                )
            )
            logger.info(f"Submission {submission_id}: dispatched {len(deposits)} deposit(s)")
            return deposits

    async def _begin(
        self, submission_id: str
    ) -> tuple[Submission | None, DepositSubmission | None]:
        result = await self.critical.perform_critical(
            submission_id,
            Submission,
            precondition=self.ready_policy.accept,
            postcondition=deposit_started,
            critical=BeginDeposit(self.snapshots),
        )
        if result.success:
            return result.resource, result.result
        if result.is_noop:
            logger.debug(f"Submission {submission_id} is not ready for deposit processing")
            return None, None
        if isinstance(result.throwable, SubmissionConsistencyError):
            logger.error(f"Submission {submission_id} cannot be deposited: {result.throwable}")
            raise result.throwable
        raise DepositServiceError(
            f"Unable to update status of {submission_id} to "
            f"'{AggregatedDepositStatus.IN_PROGRESS}': {result.throwable}",
            submission_id=submission_id,
        ) from result.throwable

    async def _target_repositories(self, submission: Submission) -> list[Repository]:
        repositories = []
        for repository_id in submission.repositories:
            repository = await self.resources.get(Repository, repository_id)
            if repository is None:
                raise DepositServiceError(
                    f"Failed to process Deposit for tuple [{submission.id}, None, {repository_id}]: "
                    f"Repository not found",
                    submission_id=submission.id,
                    repository_id=repository_id,
                )
            if repository.integration_type.is_link_only:
                logger.debug(f"Skipping link-only Repository {repository_id}")
                continue
            repositories.append(repository)
        return repositories

    async def _dispatch(
        self, submission_id: str, repository: Repository, snapshot: DepositSubmission
    ) -> Deposit:
        deposit: Deposit | None = None
        try:
            packager = self.packagers.lookup(repository)
            deposit = await self.resources.create(
                Deposit(submission_id=submission_id, repository_id=str(repository.id))
            )
            task = self.tasks.create(deposit, snapshot, repository, packager)
            self.dispatcher.submit(task)
        except Exception as e:
            deposit_id = deposit.id if deposit else None
            logger.error(
                f"Fan-out of Submission {submission_id} stopped at Repository {repository.id}: {e}"
            )
            raise DepositServiceError(
                f"Failed to process Deposit for tuple [{submission_id}, {deposit_id}, "
                f"{repository.id}]: {e}",
                submission_id=submission_id,
                deposit_id=deposit_id,
                repository_id=repository.id,
            ) from e
        return deposit
