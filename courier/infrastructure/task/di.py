from dishka import provide

from courier.config import Config
from courier.domain.deposit.port.dispatcher import TaskDispatcher
from courier.infrastructure.task.dispatcher import AsyncTaskDispatcher
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class TaskProvider(Provider):
    @provide(scope=Scope.APP)
    def get_async_dispatcher(self, config: Config) -> AsyncTaskDispatcher:
        return AsyncTaskDispatcher(
            workers=config.dispatcher.workers,
            queue_capacity=config.dispatcher.queue_capacity,
        )

    @provide(scope=Scope.APP)
    def get_dispatcher(self, dispatcher: AsyncTaskDispatcher) -> TaskDispatcher:
        return dispatcher
