"""Optimistic-concurrency read/check/write protocol over the ResourceClient."""

import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar

import logfire

from courier.domain.critical.model.result import CriticalOutcome, CriticalResult
from courier.domain.shared.error import ConflictError, InvalidStateError, NotFoundError
from courier.domain.shared.model.entity import Resource
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)
T = TypeVar("T")

Precondition = Callable[[R], bool | Awaitable[bool]]
Postcondition = Callable[[R, T], bool | Awaitable[bool]]
CriticalFunction = Callable[[R], T | Awaitable[T]]


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    value = fn(*args)
    if inspect.isawaitable(value):
        value = await value
    return value


class CriticalInteraction(Service):
    """Performs a precondition/critical/postcondition cycle against one resource.

    The critical function receives a freshly read resource, mutates it and
    returns a derived result. The mutated resource is then written back,
    conditioned on the version observed at read time. A version conflict
    (raised by the write, or by a conditional write made inside the critical
    function) restarts the whole read/precondition/critical cycle, up to
    ``max_attempts`` times.

    After a successful write the resource is re-read and the postcondition is
    evaluated against (resource, result). A failing postcondition does not
    undo the write: the store has no transaction spanning the cycle and the
    check, so the call reports POSTCONDITION_FAILED with the new state.
    """

    resources: ResourceClient
    max_attempts: int = 3

    async def perform_critical(
        self,
        id: str,
        type_: type[R],
        precondition: Precondition,
        postcondition: Postcondition,
        critical: CriticalFunction,
        *,
        updates_resource: bool = True,
    ) -> CriticalResult[R, Any]:
        name = type_.__name__
        with logfire.span("CriticalInteraction {type} {id}", type=name, id=id):
            conflict: ConflictError | None = None
            resource: R | None = None

            for attempt in range(1, self.max_attempts + 1):
                try:
                    resource = await self.resources.get(type_, id)
                except Exception as e:
                    logger.error(f"Unable to read {name} {id}: {e}")
                    return CriticalResult(CriticalOutcome.READ_FAILED, throwable=e, attempts=attempt)
                if resource is None:
                    return CriticalResult(
                        CriticalOutcome.READ_FAILED,
                        throwable=NotFoundError(f"{name} not found: {id}"),
                        attempts=attempt,
                    )

                try:
                    accepted = await _call(precondition, resource)
                except Exception as e:
                    logger.warning(f"Precondition for {name} {id} raised: {e}")
                    return CriticalResult(
                        CriticalOutcome.PRECONDITION_FAILED,
                        resource=resource,
                        throwable=e,
                        attempts=attempt,
                    )
                if not accepted:
                    logger.debug(f"Precondition for {name} {id} not met, nothing to do")
                    return CriticalResult(
                        CriticalOutcome.PRECONDITION_FAILED, resource=resource, attempts=attempt
                    )

                try:
                    result = await _call(critical, resource)
                    if updates_resource:
                        resource = await self.resources.update(resource)
                except ConflictError as e:
                    conflict = e
                    logger.info(
                        f"Version conflict on {name} {id} "
                        f"(attempt {attempt}/{self.max_attempts}), retrying"
                    )
                    continue
                except Exception as e:
                    logger.error(f"Critical update of {name} {id} failed: {e}")
                    return CriticalResult(
                        CriticalOutcome.CRITICAL_FAILED,
                        resource=resource,
                        throwable=e,
                        attempts=attempt,
                    )

                return await self._verify(id, type_, resource, result, postcondition, attempt)

            logger.warning(f"Giving up on {name} {id} after {self.max_attempts} conflicting attempts")
            return CriticalResult(
                CriticalOutcome.CONFLICT,
                resource=resource,
                throwable=conflict,
                attempts=self.max_attempts,
            )

    async def _verify(
        self,
        id: str,
        type_: type[R],
        written: R,
        result: Any,
        postcondition: Postcondition,
        attempt: int,
    ) -> CriticalResult[R, Any]:
        name = type_.__name__
        try:
            resource = await self.resources.get(type_, id) or written
            satisfied = await _call(postcondition, resource, result)
        except Exception as e:
            logger.warning(f"Postcondition for {name} {id} raised after write: {e}")
            return CriticalResult(
                CriticalOutcome.POSTCONDITION_FAILED,
                resource=written,
                result=result,
                throwable=e,
                attempts=attempt,
            )

        if not satisfied:
            message = f"Postcondition failed for {name} {id}; the updated state remains persisted"
            logger.warning(message)
            return CriticalResult(
                CriticalOutcome.POSTCONDITION_FAILED,
                resource=resource,
                result=result,
                throwable=InvalidStateError(message),
                attempts=attempt,
            )

        return CriticalResult(
            CriticalOutcome.SUCCESS, resource=resource, result=result, attempts=attempt
        )
