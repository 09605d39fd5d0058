"""AggregateOnDepositChange - handles DepositStatusChanged events."""

from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.shared.event import EventHandler
from courier.domain.submission.service.aggregation import AggregationUpdater


class AggregateOnDepositChange(EventHandler[DepositStatusChanged]):
    """Recomputes the parent submission's aggregate status."""

    aggregation: AggregationUpdater

    async def handle(self, event: DepositStatusChanged) -> None:
        await self.aggregation.update(event.submission_id)
