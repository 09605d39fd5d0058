"""Unit tests for AsyncTaskDispatcher."""

import asyncio

import pytest

from courier.domain.shared.error import TaskRejectedError
from courier.infrastructure.task.dispatcher import AsyncTaskDispatcher


class GatedTask:
    """Runs until its gate is opened."""

    def __init__(self, name: str, result: object = None) -> None:
        self.name = name
        self.result = result
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def run(self) -> object:
        self.started.set()
        await self.gate.wait()
        return self.result


class FailingTask:
    name = "failing"

    async def run(self) -> None:
        raise RuntimeError("boom")


class TestLifecycle:
    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError):
            AsyncTaskDispatcher(workers=0)

    @pytest.mark.asyncio
    async def test_rejects_when_not_started(self):
        dispatcher = AsyncTaskDispatcher(workers=1)

        with pytest.raises(TaskRejectedError, match="not running"):
            dispatcher.submit(GatedTask("t"))

    @pytest.mark.asyncio
    async def test_rejects_after_stop(self):
        dispatcher = AsyncTaskDispatcher(workers=1)
        dispatcher.start()
        await dispatcher.stop()

        assert not dispatcher.running
        with pytest.raises(TaskRejectedError):
            dispatcher.submit(GatedTask("t"))


class TestSubmit:
    @pytest.mark.asyncio
    async def test_future_carries_result(self):
        async with AsyncTaskDispatcher(workers=2) as dispatcher:
            task = GatedTask("t", result="done")
            future = dispatcher.submit(task)
            task.gate.set()

            assert await future == "done"

    @pytest.mark.asyncio
    async def test_future_carries_failure(self):
        async with AsyncTaskDispatcher(workers=1) as dispatcher:
            future = dispatcher.submit(FailingTask())

            with pytest.raises(RuntimeError, match="boom"):
                await future

    @pytest.mark.asyncio
    async def test_saturated_queue_rejects_without_blocking(self):
        async with AsyncTaskDispatcher(workers=1, queue_capacity=1) as dispatcher:
            running = GatedTask("running")
            dispatcher.submit(running)
            await running.started.wait()

            queued = GatedTask("queued")
            dispatcher.submit(queued)
            with pytest.raises(TaskRejectedError, match="saturated"):
                dispatcher.submit(GatedTask("overflow"))

            assert dispatcher.active == 1
            assert dispatcher.pending == 1
            running.gate.set()
            queued.gate.set()

    @pytest.mark.asyncio
    async def test_default_capacity_is_twice_the_workers(self):
        async with AsyncTaskDispatcher(workers=1) as dispatcher:
            tasks = [GatedTask(f"t{i}") for i in range(4)]
            dispatcher.submit(tasks[0])
            await tasks[0].started.wait()
            dispatcher.submit(tasks[1])
            dispatcher.submit(tasks[2])

            with pytest.raises(TaskRejectedError):
                dispatcher.submit(tasks[3])
            for task in tasks:
                task.gate.set()


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_drains_queued_work(self):
        dispatcher = AsyncTaskDispatcher(workers=1)
        dispatcher.start()
        tasks = [GatedTask(f"t{i}", result=i) for i in range(2)]
        futures = [dispatcher.submit(t) for t in tasks]
        for task in tasks:
            task.gate.set()

        await dispatcher.stop(timeout=1.0)

        assert [f.result() for f in futures] == [0, 1]

    @pytest.mark.asyncio
    async def test_stop_cancels_work_past_timeout(self):
        dispatcher = AsyncTaskDispatcher(workers=1)
        dispatcher.start()
        running = GatedTask("running")
        running_future = dispatcher.submit(running)
        queued_future = dispatcher.submit(GatedTask("queued"))
        await running.started.wait()

        await dispatcher.stop(timeout=0.01)

        assert running_future.cancelled()
        assert queued_future.cancelled()
        assert dispatcher.active == 0
