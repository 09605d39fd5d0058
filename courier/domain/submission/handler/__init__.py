"""Submission domain event handlers."""

from courier.domain.submission.handler.aggregate_on_deposit_change import (
    AggregateOnDepositChange,
)
from courier.domain.submission.handler.process_ready_submission import ProcessReadySubmission
from courier.domain.submission.handler.update_lifecycle_on_deposit_change import (
    UpdateLifecycleOnDepositChange,
)

__all__ = ["AggregateOnDepositChange", "ProcessReadySubmission", "UpdateLifecycleOnDepositChange"]
