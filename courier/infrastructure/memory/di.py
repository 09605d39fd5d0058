from dishka import provide

from courier.domain.shared.port.resource_client import ResourceClient
from courier.infrastructure.memory.resource_client import InMemoryResourceClient
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class MemoryProvider(Provider):
    resources = provide(InMemoryResourceClient, scope=Scope.APP, provides=ResourceClient)
