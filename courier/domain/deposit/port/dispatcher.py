import asyncio
from abc import abstractmethod
from typing import Any, Protocol

from courier.domain.shared.port import Port


class Task(Protocol):
    """A unit of asynchronous work accepted by a TaskDispatcher."""

    @property
    def name(self) -> str: ...

    async def run(self) -> Any: ...


class TaskDispatcher(Port, Protocol):
    """Runs tasks on a bounded pool of workers."""

    @abstractmethod
    def submit(self, task: Task) -> "asyncio.Future[Any]":
        """Queue a task for execution.

        Raises:
            TaskRejectedError: If the pool is saturated or not running.
        """
        ...
