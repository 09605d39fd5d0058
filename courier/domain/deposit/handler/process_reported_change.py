"""ProcessReportedDepositChange - handles DepositChangeReported events."""

import logging

from courier.domain.deposit.event.change_reported import DepositChangeReported
from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit
from courier.domain.deposit.service.status import DepositStatusProcessor
from courier.domain.shared.event import EventHandler
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient

logger = logging.getLogger(__name__)


class ProcessReportedDepositChange(EventHandler[DepositChangeReported]):
    """A terminal deposit goes straight to aggregation; an intermediate one is re-resolved."""

    resources: ResourceClient
    processor: DepositStatusProcessor
    policy: DepositStatusPolicy
    events: EventBus

    async def handle(self, event: DepositChangeReported) -> None:
        deposit = await self.resources.get(Deposit, event.deposit_id)
        if deposit is None:
            logger.warning(f"Deposit not found for reported change: {event.deposit_id}")
            return

        if self.policy.is_terminal(deposit.deposit_status):
            await self.events.publish(
                DepositStatusChanged(
                    deposit_id=event.deposit_id,
                    submission_id=deposit.submission_id,
                    deposit_status=deposit.deposit_status,
                )
            )
            return

        await self.processor.process(event.deposit_id)
