"""DepositTask: transfer one package to one repository and interpret the outcome."""

import asyncio
import logging
import time
from enum import StrEnum
from typing import Awaitable, Callable

import logfire

from courier.config import PollingConfig
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.crifunc.deposit_status import (
    ApplyDepositStatus,
    copy_agrees,
    is_updatable,
)
from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.deposit.model.packager import Packager
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.deposit.port.transport import TransportResponse
from courier.domain.deposit.service.failure import FailureRecorder
from courier.domain.deposit.service.resolver import DepositStatusResolver
from courier.domain.shared.error import (
    DepositServiceError,
    StatusUnreachableError,
    TransportError,
    ValidationError,
)
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service

logger = logging.getLogger(__name__)


class TaskState(StrEnum):
    CREATED = "created"
    TRANSFERRING = "transferring"
    TRANSFERRED = "transferred"
    POLLING = "polling"
    RESOLVED = "resolved"
    UPDATING = "updating"
    DONE = "done"
    FAILED = "failed"


class DepositTask:
    """One delivery of a snapshot to one repository.

    CREATED -> TRANSFERRING -> TRANSFERRED -> [POLLING -> RESOLVED] -> UPDATING -> DONE,
    with FAILED reachable from any state.

    A transfer that already reports a terminal outcome skips polling. Otherwise
    the SUBMITTED status and status reference are recorded, and the remote
    status is polled until it changes; each change is written with a critical
    update. The reference is stored as the repository returned it and
    rewritten afresh before every poll. Polling ends when the deposit becomes
    terminal or ``max_wait`` elapses, leaving an intermediate deposit to the
    refresh sweep.
    """

    def __init__(
        self,
        deposit: Deposit,
        snapshot: DepositSubmission,
        repository: Repository,
        packager: Packager,
        *,
        resources: ResourceClient,
        critical: CriticalInteraction,
        resolver: DepositStatusResolver,
        failures: FailureRecorder,
        policy: DepositStatusPolicy,
        events: EventBus,
        polling: PollingConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if deposit.id is None:
            raise ValidationError("Cannot run a DepositTask for an unsaved Deposit", field="id")
        self.deposit = deposit
        self.snapshot = snapshot
        self.repository = repository
        self.packager = packager
        self._resources = resources
        self._critical = critical
        self._resolver = resolver
        self._failures = failures
        self._policy = policy
        self._events = events
        self._polling = polling
        self._sleep = sleep
        self._clock = clock
        self._state = TaskState.CREATED
        self.history: list[TaskState] = [TaskState.CREATED]
        self.status: DepositStatus | None = deposit.deposit_status

    @property
    def name(self) -> str:
        return f"deposit-{self.deposit.id}"

    @property
    def state(self) -> TaskState:
        return self._state

    def _transition(self, state: TaskState) -> None:
        logger.debug(f"{self.name}: {self._state} -> {state}")
        self._state = state
        self.history.append(state)

    def _error(self, message: str, cause: BaseException | None = None) -> DepositServiceError:
        detail = f": {cause}" if cause is not None else ""
        return DepositServiceError(
            f"{message} for tuple [{self.snapshot.submission_id}, {self.deposit.id}, "
            f"{self.repository.id}]{detail}",
            submission_id=self.snapshot.submission_id,
            deposit_id=self.deposit.id,
            repository_id=self.repository.id,
        )

    async def run(self) -> DepositStatus | None:
        """Run the task to DONE and return the last known deposit status."""
        with logfire.span(
            "DepositTask {deposit_id}",
            deposit_id=self.deposit.id,
            repository_id=self.repository.id,
        ):
            try:
                return await self._run()
            except asyncio.CancelledError:
                logger.info(f"{self.name} cancelled in state {self._state}")
                self._transition(TaskState.FAILED)
                raise

    async def _run(self) -> DepositStatus | None:
        self._transition(TaskState.TRANSFERRING)
        try:
            response = await self._transfer()
        except Exception as e:
            self._transition(TaskState.FAILED)
            await self._failures.mark_deposit_failed(str(self.deposit.id))
            raise self._error("Failed to transfer Deposit", e) from e
        self._transition(TaskState.TRANSFERRED)

        status = response.terminal_hint or DepositStatus.SUBMITTED
        status_ref = response.status_ref

        if not await self._update(status, status_ref, response):
            return self.status
        if self._policy.is_terminal(status):
            self._transition(TaskState.DONE)
            return self.status

        if not status_ref:
            logger.warning(f"{self.name}: no status reference returned, cannot poll")
            self._transition(TaskState.DONE)
            return self.status

        await self._poll(status, status_ref)
        return self.status

    async def _transfer(self) -> TransportResponse:
        options = self.packager.config.options
        package = await self.packager.assembler.assemble(self.snapshot, options)
        session = await self.packager.transport.open(options)
        try:
            response = await session.send(
                package,
                {
                    "submission_id": self.snapshot.submission_id,
                    "deposit_id": self.deposit.id,
                    "repository_id": self.repository.id,
                },
            )
        finally:
            await session.close()
        if response.status_code is not None and response.status_code >= 400:
            raise TransportError(
                f"Repository {self.repository.id} answered with status {response.status_code}"
            )
        logger.info(
            f"{self.name}: transferred to {self.repository.name} (status ref {response.status_ref})"
        )
        return response

    async def _poll(self, last: DepositStatus | None, status_ref: str) -> None:
        deadline = self._clock() + self._polling.max_wait
        config = self.packager.config
        while True:
            self._transition(TaskState.POLLING)
            await self._sleep(self._polling.interval)
            if self._clock() >= deadline:
                logger.info(
                    f"{self.name}: still {last} after {self._polling.max_wait}s, leaving it to the refresh sweep"
                )
                self._transition(TaskState.DONE)
                return

            try:
                status = await self._resolver.resolve_ref(
                    self._resolver.rewrite(status_ref), config
                )
            except StatusUnreachableError as e:
                logger.warning(f"{self.name}: status unreachable, will poll again: {e}")
                continue
            except Exception as e:
                self._transition(TaskState.FAILED)
                raise self._error("Failed to resolve the status of Deposit", e) from e

            if status is None or status == last:
                continue

            self._transition(TaskState.RESOLVED)
            if not await self._update(status, status_ref, None):
                return
            if self._policy.is_terminal(status):
                self._transition(TaskState.DONE)
                return
            last = status

    async def _update(
        self,
        status: DepositStatus,
        status_ref: str | None,
        response: TransportResponse | None,
    ) -> bool:
        """Write a status with a critical update. Returns False if the task should stop."""
        self._transition(TaskState.UPDATING)
        apply = ApplyDepositStatus(
            resources=self._resources,
            status=status,
            status_ref=status_ref,
            publication_id=self.snapshot.publication_id,
            access_url=response.access_url if response else None,
            external_ids=response.external_ids if response else (),
        )
        result = await self._critical.perform_critical(
            str(self.deposit.id),
            Deposit,
            precondition=is_updatable(self._policy),
            postcondition=copy_agrees,
            critical=apply,
        )

        if result.is_noop:
            current = result.resource.deposit_status if result.resource else None
            logger.info(f"{self.name}: deposit already {current}, nothing left to do")
            self.status = current
            self._transition(TaskState.DONE)
            return False

        if not result.written:
            self._transition(TaskState.FAILED)
            raise self._error(f"Unable to update Deposit status to '{status}'", result.throwable)

        if not result.success:
            logger.warning(
                f"{self.name}: status '{status}' written but copy is inconsistent: {result.throwable}"
            )

        self.status = status
        if result.resource is not None:
            self.deposit = result.resource
        await self._events.publish(
            DepositStatusChanged(
                deposit_id=str(self.deposit.id),
                submission_id=self.snapshot.submission_id,
                deposit_status=status,
            )
        )
        return True


class DepositTaskFactory(Service):
    """Creates DepositTasks wired to the shared collaborators."""

    resources: ResourceClient
    critical: CriticalInteraction
    resolver: DepositStatusResolver
    failures: FailureRecorder
    policy: DepositStatusPolicy
    events: EventBus
    polling: PollingConfig

    def create(
        self,
        deposit: Deposit,
        snapshot: DepositSubmission,
        repository: Repository,
        packager: Packager,
    ) -> DepositTask:
        return DepositTask(
            deposit,
            snapshot,
            repository,
            packager,
            resources=self.resources,
            critical=self.critical,
            resolver=self.resolver,
            failures=self.failures,
            policy=self.policy,
            events=self.events,
            polling=self.polling,
        )
