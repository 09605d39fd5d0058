"""Dependency injection provider for the event system."""

import logging
from typing import Any, NewType

from dishka import AsyncContainer, provide

from courier.config import Config
from courier.domain.deposit.handler import ProcessReportedDepositChange
from courier.domain.deposit.schedule import DepositRefreshSweep, FailedDepositRetrySweep
from courier.domain.shared.error import ConfigurationError
from courier.domain.shared.event import EventHandler, Schedule
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.submission.handler import (
    AggregateOnDepositChange,
    ProcessReadySubmission,
    UpdateLifecycleOnDepositChange,
)
from courier.domain.submission.schedule import AggregationSweep, LifecycleSweep
from courier.infrastructure.event.memory_bus import InMemoryEventBus, scoped_handler
from courier.infrastructure.event.scheduler import (
    ScheduledSweep,
    ScheduledSweeps,
    ScheduleRunner,
)
from courier.util.di.base import Provider
from courier.util.di.scope import Scope

logger = logging.getLogger(__name__)


HandlerTypes = NewType("HandlerTypes", list[type[EventHandler[Any]]])

# All event handlers subscribed on the event bus
HANDLERS: HandlerTypes = HandlerTypes(
    [
        # Submission handlers
        ProcessReadySubmission,
        AggregateOnDepositChange,
        UpdateLifecycleOnDepositChange,
        # Deposit handlers
        ProcessReportedDepositChange,
    ]
)

# Schedule names accepted in configuration
SCHEDULES: dict[str, type[Schedule]] = {
    "aggregation": AggregationSweep,
    "lifecycle": LifecycleSweep,
    "deposit-refresh": DepositRefreshSweep,
    "deposit-retry": FailedDepositRetrySweep,
}


def build_sweeps(config: Config) -> ScheduledSweeps:
    sweeps = []
    for sc in config.schedules:
        if sc.schedule not in SCHEDULES:
            raise ConfigurationError(
                f"Unknown schedule '{sc.schedule}' for {sc.id}. "
                f"Available: {', '.join(sorted(SCHEDULES))}"
            )
        sweeps.append(
            ScheduledSweep(
                schedule_type=SCHEDULES[sc.schedule], cron=sc.cron, id=sc.id, params=sc.params
            )
        )
    return ScheduledSweeps(sweeps)


class EventProvider(Provider):
    """Provides event system components.

    Handlers and Schedules are UOW-scoped (fresh per unit of work).
    The event bus and the schedule runner are APP-scoped singletons.
    """

    # UOW-scoped providers for handlers
    for _handler_type in HANDLERS:
        locals()[_handler_type.__name__] = provide(_handler_type, scope=Scope.UOW)

    # UOW-scoped providers for schedules
    for _schedule_type in SCHEDULES.values():
        locals()[_schedule_type.__name__] = provide(_schedule_type, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_handler_types(self) -> HandlerTypes:
        return HANDLERS

    @provide(scope=Scope.APP)
    def get_event_bus(self, container: AsyncContainer, handler_types: HandlerTypes) -> EventBus:
        bus = InMemoryEventBus()
        for handler_type in handler_types:
            bus.subscribe(handler_type.__event_type__, scoped_handler(container, handler_type))
        logger.info(f"Event bus created with {len(handler_types)} handlers")
        return bus

    @provide(scope=Scope.APP)
    def get_scheduled_sweeps(self, config: Config) -> ScheduledSweeps:
        return build_sweeps(config)

    @provide(scope=Scope.APP)
    def get_schedule_runner(
        self, container: AsyncContainer, sweeps: ScheduledSweeps
    ) -> ScheduleRunner:
        return ScheduleRunner(container, sweeps)
