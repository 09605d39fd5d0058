import asyncio
import logging
from collections import defaultdict
from typing import Any

from dishka import AsyncContainer

from courier.domain.shared.event import Event, EventHandler
from courier.domain.shared.port.event_bus import EventBus, EventHandlerFunc
from courier.util.di.scope import Scope

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """Delivers events to subscribers in the publishing task.

    Subscribers of one event run concurrently; publish returns once all of
    them have finished.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[Event], list[EventHandlerFunc]] = defaultdict(list)

    def subscribe(self, event_type: type[Event], handler: EventHandlerFunc) -> None:
        self._subscribers[event_type].append(handler)

    async def publish(self, event: Event) -> None:
        event_type = type(event)
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug(f"No handlers for event {event_type.__name__}")
            return

        logger.info(f"Publishing event {event_type.__name__} to {len(handlers)} handlers")

        # concurrent execution
        await asyncio.gather(*[h(event) for h in handlers])


def scoped_handler(container: AsyncContainer, handler_type: type[EventHandler[Any]]) -> EventHandlerFunc:
    """Wrap a handler type so each event is handled in a fresh UOW scope.

    A failing handler is logged and does not affect the publisher or the
    other subscribers; triggers are at-least-once and the sweeps pick up
    anything left behind.
    """

    async def handle(event: Event) -> None:
        try:
            async with container(scope=Scope.UOW) as scope:
                handler = await scope.get(handler_type)
                await handler.handle(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(
                f"Handler {handler_type.__name__} failed for {type(event).__name__} {event.id}: {e}"
            )

    return handle
