from abc import abstractmethod
from typing import Awaitable, Callable, Protocol

from courier.domain.shared.event import Event
from courier.domain.shared.port import Port

EventHandlerFunc = Callable[[Event], Awaitable[None]]


class EventBus(Port, Protocol):
    @abstractmethod
    def subscribe(self, event_type: type[Event], handler: EventHandlerFunc) -> None: ...

    @abstractmethod
    async def publish(self, event: Event) -> None: ...
