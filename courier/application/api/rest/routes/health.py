"""Health check endpoint."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter

from courier.config import Config
from courier.infrastructure.task.dispatcher import AsyncTaskDispatcher

router = APIRouter(prefix="/api/v1", tags=["health"], route_class=DishkaRoute)


@router.get("/health")
async def health(config: FromDishka[Config], dispatcher: FromDishka[AsyncTaskDispatcher]) -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy" if dispatcher.running else "degraded",
        "version": config.server.version,
        "dispatcher": {"active": dispatcher.active, "pending": dispatcher.pending},
    }
