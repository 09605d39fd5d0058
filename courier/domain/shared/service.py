import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, TypeVar, dataclass_transform

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass_transform()
class _ServiceMeta(type):
    """Metaclass that applies @dataclass to subclasses."""

    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            return dataclass(cls)
        return cls


class Service(metaclass=_ServiceMeta):
    """Base class for domain services. Subclasses are automatically dataclasses.

    Services hold no per-call state and are shared by every unit of work and
    every deposit task.
    """


async def for_each(
    ids: Iterable[str], action: Callable[[str], Awaitable[T]], *, what: str
) -> dict[str, T]:
    """Apply ``action`` to each id in turn, collecting the results.

    A failure for one id is logged and does not stop the others; failed ids
    are absent from the returned mapping.
    """
    results: dict[str, T] = {}
    for id in ids:
        try:
            results[id] = await action(id)
        except Exception as e:
            logger.error(f"Unable to {what} {id}: {e}")
    return results
