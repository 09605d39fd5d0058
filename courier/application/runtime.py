"""Start and stop the long-running parts of courier."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dishka import AsyncContainer
from sqlalchemy.ext.asyncio import AsyncEngine

from courier.config import Config
from courier.domain.shared.port.event_bus import EventBus
from courier.infrastructure.event.scheduler import ScheduleRunner
from courier.infrastructure.persistence.database import create_tables
from courier.infrastructure.task.dispatcher import AsyncTaskDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def running(
    container: AsyncContainer, *, use_memory: bool = False, schedules: bool = True
) -> AsyncIterator[AsyncContainer]:
    """Run the dispatcher (and optionally the scheduler) for the duration of the block.

    On exit the dispatcher is given ``dispatcher.shutdown_timeout`` seconds to
    drain before its remaining tasks are cancelled.
    """
    config = await container.get(Config)

    if not use_memory and config.database.auto_create:
        await create_tables(await container.get(AsyncEngine))

    # Subscribes the handlers
    await container.get(EventBus)

    dispatcher = await container.get(AsyncTaskDispatcher)
    dispatcher.start()
    try:
        if schedules:
            async with await container.get(ScheduleRunner):
                yield container
        else:
            yield container
    finally:
        await dispatcher.stop(timeout=config.dispatcher.shutdown_timeout)
