"""Helpers for commands that run domain services in process."""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from dishka import AsyncContainer

from courier.application.di import create_container
from courier.application.runtime import running
from courier.config import Config, configure_logging

T = TypeVar("T")


def run_with_container(fn: Callable[[AsyncContainer], Awaitable[T]]) -> T:
    """Run ``fn`` against a started container and wait for dispatched tasks to settle."""
    config = Config()
    configure_logging(config.logging)

    async def main() -> Any:
        container = create_container(config)
        try:
            async with running(container, schedules=False):
                return await fn(container)
        finally:
            await container.close()

    return asyncio.run(main())
