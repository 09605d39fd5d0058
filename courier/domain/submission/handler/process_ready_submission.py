"""ProcessReadySubmission - handles SubmissionReady events."""

import logging

from courier.domain.shared.event import EventHandler
from courier.domain.submission.event.submission_ready import SubmissionReady
from courier.domain.submission.service.coordinator import SubmissionCoordinator

logger = logging.getLogger(__name__)


class ProcessReadySubmission(EventHandler[SubmissionReady]):
    """Fans a ready submission out to its repositories."""

    coordinator: SubmissionCoordinator

    async def handle(self, event: SubmissionReady) -> None:
        deposits = await self.coordinator.process(event.submission_id)
        if deposits:
            logger.info(
                f"Submission {event.submission_id} fanned out to {len(deposits)} repositories"
            )
