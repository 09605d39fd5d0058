"""Submission commands."""

import sys

import cyclopts
from dishka import AsyncContainer

from courier.cli.console import get_console
from courier.cli.util import run_with_container
from courier.domain.shared.error import CourierError
from courier.domain.submission.service.aggregation import AggregationUpdater
from courier.domain.submission.service.coordinator import SubmissionCoordinator
from courier.domain.submission.service.lifecycle import LifecycleUpdater

app = cyclopts.App(name="submissions", help="Deposit submissions and settle their status")


@app.command
def process(submission_id: str) -> None:
    """Fan a ready submission out to its repositories and wait for the transfers.

    Args:
        submission_id: The submission to deposit.
    """
    console = get_console()

    async def _process(container: AsyncContainer) -> list:
        coordinator = await container.get(SubmissionCoordinator)
        return await coordinator.process(submission_id)

    try:
        with console.status(f"Depositing submission {submission_id}"):
            deposits = run_with_container(_process)
    except CourierError as e:
        console.error(f"Failed to process submission {submission_id}", hint=e.message)
        sys.exit(1)

    if not deposits:
        console.warning(f"Submission {submission_id} is not ready; nothing deposited")
        return
    console.success(f"Dispatched {len(deposits)} deposit(s) for submission {submission_id}")
    console.table(
        [d.model_dump() for d in deposits],
        [("id", "Deposit"), ("repository_id", "Repository")],
    )


@app.command
def aggregate(*submission_ids: str) -> None:
    """Recompute aggregate deposit status.

    Args:
        submission_ids: Submissions to update. Defaults to every unsettled submission.
    """

    async def _sweep(container: AsyncContainer) -> dict:
        aggregation = await container.get(AggregationUpdater)
        return await aggregation.sweep(list(submission_ids) or None)

    get_console().critical_results(run_with_container(_sweep), title="Aggregation")


@app.command
def lifecycle(*submission_ids: str) -> None:
    """Recalculate submission lifecycle status.

    Args:
        submission_ids: Submissions to update. Defaults to every open submission.
    """

    async def _sweep(container: AsyncContainer) -> dict:
        updater = await container.get(LifecycleUpdater)
        return await updater.sweep(list(submission_ids) or None)

    get_console().critical_results(run_with_container(_sweep), title="Lifecycle")
