from dishka import provide

from courier.config import Config, PollingConfig
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.service.failure import FailureRecorder
from courier.domain.deposit.service.resolver import DepositStatusResolver
from courier.domain.deposit.service.retry import DepositRetrier
from courier.domain.deposit.service.snapshot import SnapshotBuilder
from courier.domain.deposit.service.status import DepositRefresher, DepositStatusProcessor
from courier.domain.deposit.service.task import DepositTaskFactory
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class DepositProvider(Provider):
    @provide(scope=Scope.APP)
    def get_deposit_policy(self, config: Config) -> DepositStatusPolicy:
        return DepositStatusPolicy.of(
            config.policies.deposit_terminal, rejected=config.policies.deposit_rejected
        )

    @provide(scope=Scope.APP)
    def get_polling_config(self, config: Config) -> PollingConfig:
        return config.polling

    # Stateless services; tasks hold on to them after the triggering unit of work ends
    status_resolver = provide(DepositStatusResolver, scope=Scope.APP)
    snapshot_builder = provide(SnapshotBuilder, scope=Scope.APP)
    failure_recorder = provide(FailureRecorder, scope=Scope.APP)
    task_factory = provide(DepositTaskFactory, scope=Scope.APP)
    status_processor = provide(DepositStatusProcessor, scope=Scope.APP)
    refresher = provide(DepositRefresher, scope=Scope.APP)
    retrier = provide(DepositRetrier, scope=Scope.APP)
