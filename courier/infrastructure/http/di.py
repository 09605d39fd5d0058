"""DI provider for HTTP infrastructure."""

from typing import AsyncIterable, NewType

import httpx
from dishka import provide

from courier.domain.deposit.port.status_resolver import StatusResolvers
from courier.infrastructure.http.atom import AtomStatementResolver
from courier.util.di.base import Provider
from courier.util.di.scope import Scope

# Disambiguate from any other httpx.AsyncClient
StatusHttpClient = NewType("StatusHttpClient", httpx.AsyncClient)

_STATUS_TIMEOUT = httpx.Timeout(
    connect=5.0,
    read=30.0,
    write=5.0,
    pool=5.0,
)


class HttpProvider(Provider):
    """DI provider for remote status resolvers."""

    @provide(scope=Scope.APP)
    async def get_status_http_client(self) -> AsyncIterable[StatusHttpClient]:
        """Dedicated HTTP client for fetching status documents."""
        async with httpx.AsyncClient(timeout=_STATUS_TIMEOUT, follow_redirects=True) as client:
            yield StatusHttpClient(client)

    @provide(scope=Scope.APP)
    def get_status_resolvers(self, client: StatusHttpClient) -> StatusResolvers:
        return StatusResolvers({"atom": AtomStatementResolver(client)})
