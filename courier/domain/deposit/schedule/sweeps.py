import logging
from dataclasses import dataclass
from typing import Any

from courier.domain.deposit.service.retry import DepositRetrier
from courier.domain.deposit.service.status import DepositRefresher
from courier.domain.shared.event import Schedule

logger = logging.getLogger(__name__)


@dataclass
class DepositRefreshSweep(Schedule):
    """Re-resolves the remote status of deposits still SUBMITTED."""

    refresher: DepositRefresher

    async def run(self, deposit_ids: list[str] | None = None, **params: Any) -> None:
        results = await self.refresher.refresh(deposit_ids)
        changed = sum(1 for r in results.values() if r.written)
        logger.info(f"Deposit refresh sweep: {changed}/{len(results)} deposit(s) updated")


@dataclass
class FailedDepositRetrySweep(Schedule):
    """Re-dispatches deposits that failed or never started."""

    retrier: DepositRetrier

    async def run(self, deposit_ids: list[str] | None = None, **params: Any) -> None:
        dispatched = await self.retrier.retry(deposit_ids)
        logger.info(f"Failed deposit sweep: {len(dispatched)} deposit(s) re-dispatched")
