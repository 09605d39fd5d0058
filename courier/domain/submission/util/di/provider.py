from dishka import provide

from courier.config import Config
from courier.domain.submission.model.policy import AggregateStatusPolicy
from courier.domain.submission.model.ready import SubmittedNotStartedPolicy
from courier.domain.submission.port.ready_policy import ReadyPolicy
from courier.domain.submission.service.aggregation import AggregationUpdater
from courier.domain.submission.service.coordinator import SubmissionCoordinator
from courier.domain.submission.service.lifecycle import LifecycleUpdater
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class SubmissionProvider(Provider):
    @provide(scope=Scope.APP)
    def get_aggregate_policy(self, config: Config) -> AggregateStatusPolicy:
        return AggregateStatusPolicy.of(config.policies.aggregate_terminal)

    ready_policy = provide(SubmittedNotStartedPolicy, scope=Scope.APP, provides=ReadyPolicy)

    coordinator = provide(SubmissionCoordinator, scope=Scope.APP)
    aggregation = provide(AggregationUpdater, scope=Scope.APP)
    lifecycle = provide(LifecycleUpdater, scope=Scope.APP)
