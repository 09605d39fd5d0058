from dishka import provide

from courier.config import Config
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.shared.port.resource_client import ResourceClient
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class CriticalProvider(Provider):
    @provide(scope=Scope.APP)
    def get_critical_interaction(
        self, resources: ResourceClient, config: Config
    ) -> CriticalInteraction:
        return CriticalInteraction(resources=resources, max_attempts=config.critical.max_attempts)
