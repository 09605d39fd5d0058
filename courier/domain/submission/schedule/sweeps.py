import logging
from dataclasses import dataclass
from typing import Any

from courier.domain.shared.event import Schedule
from courier.domain.submission.service.aggregation import AggregationUpdater
from courier.domain.submission.service.lifecycle import LifecycleUpdater

logger = logging.getLogger(__name__)


@dataclass
class AggregationSweep(Schedule):
    """Recomputes the aggregate status of every unsettled submission."""

    aggregation: AggregationUpdater

    async def run(self, submission_ids: list[str] | None = None, **params: Any) -> None:
        results = await self.aggregation.sweep(submission_ids)
        updated = sum(1 for r in results.values() if r.success)
        logger.info(f"Aggregation sweep: {updated}/{len(results)} submission(s) updated")


@dataclass
class LifecycleSweep(Schedule):
    """Recalculates the lifecycle status of every open submitted submission."""

    lifecycle: LifecycleUpdater

    async def run(self, submission_ids: list[str] | None = None, **params: Any) -> None:
        results = await self.lifecycle.sweep(submission_ids)
        updated = sum(1 for r in results.values() if r.success)
        logger.info(f"Lifecycle sweep: {updated}/{len(results)} submission(s) updated")
