"""UpdateLifecycleOnDepositChange - handles DepositStatusChanged events."""

from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.shared.event import EventHandler
from courier.domain.submission.service.lifecycle import LifecycleUpdater


class UpdateLifecycleOnDepositChange(EventHandler[DepositStatusChanged]):
    """Recalculates the parent submission's lifecycle status."""

    lifecycle: LifecycleUpdater

    async def handle(self, event: DepositStatusChanged) -> None:
        await self.lifecycle.update(event.submission_id)
