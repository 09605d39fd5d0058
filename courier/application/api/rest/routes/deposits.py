"""Deposit API routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status
from pydantic import BaseModel

from courier.domain.deposit.event import DepositChangeReported
from courier.domain.deposit.model.resource import Deposit
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.error import NotFoundError
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient

router = APIRouter(
    prefix="/api/v1/deposits",
    tags=["deposits"],
    route_class=DishkaRoute,
)


class DepositResponse(BaseModel):
    id: str
    version: int
    submission_id: str
    repository_id: str
    deposit_status: DepositStatus | None
    deposit_status_ref: str | None
    repository_copy_id: str | None


@router.get("/{deposit_id}")
async def get_deposit(deposit_id: str, resources: FromDishka[ResourceClient]) -> DepositResponse:
    deposit = await resources.get(Deposit, deposit_id)
    if deposit is None:
        raise NotFoundError(f"Deposit not found: {deposit_id}")
    return DepositResponse.model_validate(deposit.model_dump())


@router.post("/{deposit_id}/status-changed", status_code=status.HTTP_202_ACCEPTED)
async def deposit_status_changed(deposit_id: str, events: FromDishka[EventBus]) -> dict:
    """Report that a deposit's status may have changed in the repository."""
    await events.publish(DepositChangeReported(deposit_id=deposit_id))
    return {"deposit_id": deposit_id, "status": "accepted"}
