"""Bounded pool of asyncio workers for deposit tasks."""

import asyncio
import logging
from typing import Any

from courier.domain.deposit.port.dispatcher import Task, TaskDispatcher
from courier.domain.shared.error import TaskRejectedError

logger = logging.getLogger(__name__)

_Item = tuple[Task, "asyncio.Future[Any]"]


class AsyncTaskDispatcher(TaskDispatcher):
    """Runs submitted tasks on a fixed number of worker coroutines.

    At most ``queue_capacity`` tasks may wait for a worker. Submitting beyond
    that, or while the dispatcher is stopped, raises TaskRejectedError rather
    than blocking the caller.

    Example:
        async with AsyncTaskDispatcher(workers=4, queue_capacity=8) as dispatcher:
            future = dispatcher.submit(task)
            await future
    """

    def __init__(self, workers: int = 4, queue_capacity: int | None = None) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._workers = workers
        self._capacity = queue_capacity if queue_capacity is not None else 2 * workers
        self._queue: asyncio.Queue[_Item] | None = None
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._active = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Tasks waiting for a worker."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def active(self) -> int:
        """Tasks currently being run."""
        return self._active

    def start(self) -> None:
        if self._running:
            return
        self._queue = asyncio.Queue(maxsize=self._capacity)
        self._tasks = [
            asyncio.create_task(self._work(), name=f"dispatcher-worker-{i}")
            for i in range(self._workers)
        ]
        self._running = True
        logger.info(
            f"Task dispatcher started with {self._workers} workers "
            f"(queue capacity {self._capacity})"
        )

    def submit(self, task: Task) -> "asyncio.Future[Any]":
        if not self._running or self._queue is None:
            raise TaskRejectedError(f"Task dispatcher is not running; rejected {task.name}")

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        try:
            self._queue.put_nowait((task, future))
        except asyncio.QueueFull:
            raise TaskRejectedError(
                f"Task dispatcher is saturated ({self._capacity} queued); rejected {task.name}"
            ) from None
        future.add_done_callback(_retrieve)
        logger.debug(f"Queued task {task.name}")
        return future

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop accepting tasks, let queued work drain, then cancel stragglers."""
        if not self._running or self._queue is None:
            return
        self._running = False

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                f"Task dispatcher did not drain within {timeout}s; cancelling "
                f"{self._active} running and {self._queue.qsize()} queued task(s)"
            )

        for worker in self._tasks:
            worker.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

        # Anything still queued will never run
        while not self._queue.empty():
            task, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()

        self._tasks = []
        logger.info("Task dispatcher stopped")

    async def _work(self) -> None:
        assert self._queue is not None
        while True:
            task, future = await self._queue.get()
            self._active += 1
            try:
                if future.cancelled():
                    continue
                result = await task.run()
                if not future.done():
                    future.set_result(result)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.exception(f"Task {task.name} failed: {e}")
                if not future.done():
                    future.set_exception(e)
            finally:
                self._active -= 1
                self._queue.task_done()

    async def __aenter__(self) -> "AsyncTaskDispatcher":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()


def _retrieve(future: "asyncio.Future[Any]") -> None:
    # Failures are already logged by the worker
    if not future.cancelled():
        future.exception()
