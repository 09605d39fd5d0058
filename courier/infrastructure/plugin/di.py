from dishka import provide

from courier.config import Config
from courier.domain.deposit.model.packager import PackagerRegistry, RepositoryConfigs
from courier.infrastructure.plugin.discovery import (
    build_packagers,
    discover_assemblers,
    discover_transports,
)
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class PluginProvider(Provider):
    @provide(scope=Scope.APP)
    def get_packagers(self, config: Config) -> PackagerRegistry:
        return build_packagers(config.repositories, discover_assemblers(), discover_transports())

    @provide(scope=Scope.APP)
    def get_repository_configs(self, config: Config) -> RepositoryConfigs:
        return RepositoryConfigs(config.repositories)
