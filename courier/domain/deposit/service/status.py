import logging

import logfire

from courier.domain.critical.model.result import CriticalResult
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.crifunc.deposit_status import (
    ApplyDepositStatus,
    copy_agrees,
    is_refreshable,
)
from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.deposit.service.resolver import DepositStatusResolver
from courier.domain.shared.error import NotFoundError, RemedialError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service, for_each
from courier.domain.submission.model.resource import Submission

logger = logging.getLogger(__name__)


class DepositStatusProcessor(Service):
    """Runs one status-update cycle for a Deposit without long polling.

    The remote status is resolved in a read-only pass over the Deposit. Only a
    terminal status leads to a critical write of the Deposit and its
    RepositoryCopy; an intermediate one leaves both, versions included, as
    they are. The stored status reference is never rewritten.
    """

    resources: ResourceClient
    critical: CriticalInteraction
    resolver: DepositStatusResolver
    policy: DepositStatusPolicy
    events: EventBus

    async def process(self, deposit_id: str) -> CriticalResult:
        with logfire.span("DepositStatusProcessor {deposit_id}", deposit_id=deposit_id):
            deposit = await self.resources.get(Deposit, deposit_id)
            if deposit is None:
                raise NotFoundError(f"Deposit not found: {deposit_id}")
            repository = await self.resources.get(Repository, deposit.repository_id)
            if repository is None:
                raise NotFoundError(
                    f"Repository {deposit.repository_id} of Deposit {deposit_id} not found"
                )
            submission = await self.resources.get(Submission, deposit.submission_id)
            publication_id = submission.publication_id if submission else None

            async def resolve(current: Deposit) -> DepositStatus | None:
                return await self.resolver.resolve(current, repository)

            result = await self.critical.perform_critical(
                deposit_id,
                Deposit,
                precondition=is_refreshable(self.policy),
                postcondition=lambda _deposit, _status: True,
                critical=resolve,
                updates_resource=False,
            )

            if result.success:
                status = result.result
                if not self.policy.is_terminal(status):
                    logger.debug(f"Deposit {deposit_id} still {status}, leaving it unchanged")
                    return result
                apply = ApplyDepositStatus(
                    resources=self.resources,
                    status=status,
                    status_ref=result.resource.deposit_status_ref,
                    publication_id=publication_id,
                )
                result = await self.critical.perform_critical(
                    deposit_id,
                    Deposit,
                    precondition=is_refreshable(self.policy),
                    postcondition=copy_agrees,
                    critical=apply,
                )
                if result.written and result.resource is not None:
                    status = result.resource.deposit_status
                    logger.info(f"Deposit {deposit_id} is now {status}")
                    await self.events.publish(
                        DepositStatusChanged(
                            deposit_id=deposit_id,
                            submission_id=deposit.submission_id,
                            deposit_status=status,
                        )
                    )
                    return result

            if isinstance(result.throwable, RemedialError):
                logger.error(
                    f"Deposit {deposit_id} needs attention: {result.throwable} "
                    f"{dict(result.throwable.identifiers)}"
                )
            elif result.throwable is not None:
                logger.error(f"Unable to process status of Deposit {deposit_id}: {result.throwable}")
            return result


class DepositRefresher(Service):
    """Re-resolves the status of deposits that are still waiting on their repository."""

    resources: ResourceClient
    processor: DepositStatusProcessor

    async def refresh(self, deposit_ids: list[str] | None = None) -> dict[str, CriticalResult]:
        with logfire.span("DepositRefresher.refresh"):
            if not deposit_ids:
                deposits = await self.resources.query(
                    Deposit, Filter.eq("deposit_status", DepositStatus.SUBMITTED)
                )
                deposit_ids = [str(d.id) for d in deposits]
            logger.info(f"Refreshing {len(deposit_ids)} deposit(s)")

            return await for_each(deposit_ids, self.processor.process, what="refresh Deposit")
