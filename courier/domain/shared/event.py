"""Triggers: domain events, their handlers, and cron-driven sweeps.

Events only wake work up. Handlers and sweeps re-read the system of record
before acting, so a lost or repeated event costs at most a redundant pass.
"""

from abc import ABC, ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, dataclass_transform, get_args, get_origin
from uuid import UUID, uuid4

from pydantic import Field

from courier.domain.shared.model.entity import Entity

E = TypeVar("E", bound="Event")


class Event(Entity):
    """Something happened that may require work. Carries identifiers only."""

    id: UUID = Field(default_factory=uuid4)


def _handled_event(cls: type) -> type[Event] | None:
    for base in getattr(cls, "__orig_bases__", ()):
        if get_origin(base) is EventHandler:
            (arg,) = get_args(base)
            if isinstance(arg, type) and issubclass(arg, Event):
                return arg
    return None


@dataclass_transform()
class _EventHandlerMeta(ABCMeta):
    """Turns handler subclasses into dataclasses and records the event they handle."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]) -> type:
        cls = super().__new__(mcs, name, bases, namespace)
        if not any(isinstance(b, mcs) for b in bases):
            return cls
        cls = dataclass(cls)
        event_type = _handled_event(cls)
        if event_type is not None:
            cls.__event_type__ = event_type
        return cls


class EventHandler(Generic[E], metaclass=_EventHandlerMeta):
    """Reacts to one event type.

    Dependencies are declared as fields and injected per unit of work. The
    handled type comes from the generic parameter:

        class AggregateOnDepositChange(EventHandler[DepositStatusChanged]):
            aggregation: AggregationUpdater

            async def handle(self, event: DepositStatusChanged) -> None:
                await self.aggregation.update(event.submission_id)

    Delivery is at-least-once; handle() must tolerate duplicates.
    """

    __event_type__: ClassVar[type[Event]]

    @abstractmethod
    async def handle(self, event: E) -> None: ...


@dataclass
class Schedule(ABC):
    """A sweep run on a cron trigger.

    The cron expression and keyword parameters come from the ``schedules``
    configuration section.
    """

    @abstractmethod
    async def run(self, **params: Any) -> None: ...
