"""Deposit commands."""

import cyclopts
from dishka import AsyncContainer

from courier.cli.console import get_console
from courier.cli.util import run_with_container
from courier.domain.deposit.service.retry import DepositRetrier
from courier.domain.deposit.service.status import DepositRefresher

app = cyclopts.App(name="deposits", help="Refresh and retry deposits")


@app.command
def refresh(*deposit_ids: str) -> None:
    """Re-resolve deposit status from the repositories.

    Args:
        deposit_ids: Deposits to refresh. Defaults to every submitted deposit.
    """

    async def _refresh(container: AsyncContainer) -> dict:
        refresher = await container.get(DepositRefresher)
        return await refresher.refresh(list(deposit_ids) or None)

    get_console().critical_results(run_with_container(_refresh), title="Deposit refresh")


@app.command
def retry(*deposit_ids: str) -> None:
    """Transfer failed deposits again.

    Args:
        deposit_ids: Deposits to retry. Defaults to every failed or unstarted deposit.
    """
    console = get_console()

    async def _retry(container: AsyncContainer) -> list[str]:
        retrier = await container.get(DepositRetrier)
        return await retrier.retry(list(deposit_ids) or None)

    retried = run_with_container(_retry)
    if not retried:
        console.warning("No deposits retried")
        return
    console.success(f"Retried {len(retried)} deposit(s)")
    for deposit_id in retried:
        console.info(f"  {deposit_id}")
