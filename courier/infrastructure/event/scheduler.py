"""Cron-driven sweeps on an apscheduler AsyncScheduler."""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, NewType

from apscheduler import AsyncScheduler
from apscheduler.triggers.cron import CronTrigger
from dishka import AsyncContainer

from courier.domain.shared.event import Schedule
from courier.util.di.scope import Scope

logger = logging.getLogger(__name__)

# Consecutive failures after which a schedule is reported as critical
FAILURE_ALERT_THRESHOLD = 5


@dataclass
class ScheduledSweep:
    """A schedule type bound to its cron expression and parameters."""

    schedule_type: type[Schedule]
    cron: str
    id: str
    params: dict[str, Any] = field(default_factory=dict)


ScheduledSweeps = NewType("ScheduledSweeps", list[ScheduledSweep])


class ScheduleRunner:
    """Runs each configured sweep in its own UOW scope on a cron trigger."""

    def __init__(self, container: AsyncContainer, schedules: ScheduledSweeps) -> None:
        self._container = container
        self._schedules = schedules
        self._scheduler: AsyncScheduler | None = None
        self._exit_stack: AsyncExitStack | None = None
        self._failures: dict[str, int] = {}

    @property
    def schedules(self) -> list[ScheduledSweep]:
        return list(self._schedules)

    async def start(self) -> None:
        if not self._schedules:
            logger.info("No schedules configured")
            return

        self._exit_stack = AsyncExitStack()
        await self._exit_stack.__aenter__()

        self._scheduler = AsyncScheduler()
        await self._exit_stack.enter_async_context(self._scheduler)

        for sweep in self._schedules:
            await self._scheduler.add_schedule(
                self._run_schedule,
                CronTrigger.from_crontab(sweep.cron),
                id=sweep.id,
                kwargs={"sweep": sweep},
            )
            logger.debug(f"Registered schedule {sweep.id} (cron={sweep.cron})")

        await self._scheduler.start_in_background()
        logger.info(f"Scheduler started with {len(self._schedules)} schedules")

    async def stop(self) -> None:
        if self._exit_stack:
            await self._exit_stack.__aexit__(None, None, None)
            self._exit_stack = None
            self._scheduler = None
            logger.info("Scheduler stopped")

    async def run_once(self, sweep: ScheduledSweep) -> None:
        """Run a sweep immediately in a UOW scope, propagating any error."""
        async with self._container(scope=Scope.UOW) as scope:
            schedule = await scope.get(sweep.schedule_type)
            await schedule.run(**sweep.params)

    async def _run_schedule(self, sweep: ScheduledSweep) -> None:
        """Cron task: run a sweep and track consecutive failures."""
        try:
            await self.run_once(sweep)
            self._failures.pop(sweep.id, None)
            logger.debug(f"Ran schedule {sweep.id}")

        except (asyncio.CancelledError, SystemExit, KeyboardInterrupt):
            # Let control exceptions propagate for graceful shutdown
            raise
        except Exception as e:
            failures = self._failures.get(sweep.id, 0) + 1
            self._failures[sweep.id] = failures
            logger.error(f"Failed to run schedule {sweep.id} (failures: {failures}): {e}")
            if failures >= FAILURE_ALERT_THRESHOLD:
                logger.critical(f"Schedule {sweep.id} has failed {failures} consecutive times")

    async def __aenter__(self) -> "ScheduleRunner":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()
