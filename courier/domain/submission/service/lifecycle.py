import logging

import logfire

from courier.domain.critical.model.result import CriticalResult
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service, for_each
from courier.domain.submission.crifunc.lifecycle import (
    RecalculateLifecycle,
    has_submitted_status,
    is_recalculable,
)
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import FINAL_SUBMISSION_STATUSES

logger = logging.getLogger(__name__)


class LifecycleUpdater(Service):
    """Recalculates the lifecycle status of submitted Submissions."""

    resources: ResourceClient
    critical: CriticalInteraction

    async def update(self, submission_id: str) -> CriticalResult:
        result = await self.critical.perform_critical(
            submission_id,
            Submission,
            precondition=is_recalculable,
            postcondition=has_submitted_status,
            critical=RecalculateLifecycle(self.resources),
        )
        if result.success:
            logger.info(f"Submission {submission_id} status is {result.result}")
        elif result.is_noop:
            logger.debug(f"Submission {submission_id} status is not recalculated")
        else:
            logger.error(f"Unable to update status of Submission {submission_id}: {result.throwable}")
        return result

    async def sweep(self, submission_ids: list[str] | None = None) -> dict[str, CriticalResult]:
        """Update the given submissions, or every one not yet complete or cancelled."""
        with logfire.span("LifecycleUpdater.sweep"):
            if not submission_ids:
                open_submissions = await self.resources.query(
                    Submission, Filter.not_in("submission_status", FINAL_SUBMISSION_STATUSES)
                )
                submission_ids = [str(s.id) for s in open_submissions]
            logger.info(f"Lifecycle sweep over {len(submission_ids)} submission(s)")

            return await for_each(
                submission_ids, self.update, what="update the status of Submission"
            )
