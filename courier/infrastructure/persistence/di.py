from dishka import provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from courier.config import Config
from courier.domain.shared.port.resource_client import ResourceClient
from courier.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from courier.infrastructure.persistence.resource_client import SqlResourceClient
from courier.util.di.base import Provider
from courier.util.di.scope import Scope


class PersistenceProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    def get_engine(self, config: Config) -> AsyncEngine:
        return create_db_engine(config.database)

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # Sessions are opened per call, so one client serves the whole app
    @provide(scope=Scope.APP)
    def get_resource_client(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> ResourceClient:
        return SqlResourceClient(session_factory)
