import logging
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from courier.application.api.rest.routes import deposits, health, submissions
from courier.application.di import create_container
from courier.application.runtime import running
from courier.config import Config, configure_logging
from courier.domain.shared.error import (
    CourierError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from courier.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


def _status_for(exc: CourierError) -> int:
    match exc:
        case NotFoundError():
            return 404
        case ValidationError():
            return 422
        case DomainError():
            return 400
        case InfrastructureError():
            return 503
    return 500


def create_app(config: Config | None = None, use_memory: bool = False) -> FastAPI:
    """Create FastAPI application."""
    config = config or Config()

    # Configure logging early
    configure_logging(config.logging)
    logger.info("Starting courier server: %s v%s", config.server.name, config.server.version)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = app.state.dishka_container
        async with running(container, use_memory=use_memory):
            yield
        await container.close()

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app_instance)

    # Setup dependency injection
    container = create_container(config, use_memory=use_memory)
    setup_dishka(container, app_instance)

    # Register routes
    app_instance.include_router(health.router)
    app_instance.include_router(submissions.router)
    app_instance.include_router(deposits.router)

    @app_instance.exception_handler(CourierError)
    async def courier_exception_handler(request: Request, exc: CourierError):
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    # Global exception handler - logs all unhandled exceptions
    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app_instance
