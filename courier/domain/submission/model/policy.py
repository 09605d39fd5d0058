from dataclasses import dataclass

from courier.domain.shared.model.policy import StatusPolicy
from courier.domain.submission.model.value import AggregatedDepositStatus


@dataclass(frozen=True)
class AggregateStatusPolicy(StatusPolicy[AggregatedDepositStatus]):
    """Classifies Submission aggregate statuses."""


DEFAULT_AGGREGATE_TERMINAL = (AggregatedDepositStatus.ACCEPTED, AggregatedDepositStatus.REJECTED)
