"""Dishka integration for the REST API, one UOW scope per HTTP request."""

from dishka import AsyncContainer
from fastapi import FastAPI
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Send
from starlette.types import Scope as AsgiScope

from courier.util.di.scope import Scope


class UowMiddleware:
    """Opens a Scope.UOW child container around each HTTP request.

    Lifespan and other non-HTTP traffic passes through untouched.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: AsgiScope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive, send=send)
        root: AsyncContainer = request.app.state.dishka_container
        async with root({Request: request}, scope=Scope.UOW) as uow:
            request.state.dishka_container = uow
            await self.app(scope, receive, send)


def setup_dishka(container: AsyncContainer, app: FastAPI) -> None:
    app.add_middleware(UowMiddleware)
    app.state.dishka_container = container
