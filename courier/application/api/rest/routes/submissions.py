"""Submission API routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status
from pydantic import BaseModel

from courier.domain.shared.error import NotFoundError
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.submission.event import SubmissionReady
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus, SubmissionStatus

router = APIRouter(
    prefix="/api/v1/submissions",
    tags=["submissions"],
    route_class=DishkaRoute,
)


class SubmissionResponse(BaseModel):
    id: str
    version: int
    submitted: bool
    aggregated_deposit_status: AggregatedDepositStatus | None
    submission_status: SubmissionStatus | None
    repositories: list[str]


class AcceptedResponse(BaseModel):
    submission_id: str
    status: str = "accepted"


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str, resources: FromDishka[ResourceClient]
) -> SubmissionResponse:
    """Get a submission and its aggregate deposit status."""
    submission = await resources.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError(f"Submission not found: {submission_id}")
    return SubmissionResponse.model_validate(submission.model_dump())


@router.post("/{submission_id}/ready", status_code=status.HTTP_202_ACCEPTED)
async def submission_ready(submission_id: str, events: FromDishka[EventBus]) -> AcceptedResponse:
    """Signal that a submission may be deposited.

    Deposits are transferred in the background; repeating the call is harmless.
    """
    await events.publish(SubmissionReady(submission_id=submission_id))
    return AcceptedResponse(submission_id=submission_id)
