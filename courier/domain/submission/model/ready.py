from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus, SubmissionStatus


class SubmittedNotStartedPolicy:
    """Ready once submitted, while no deposit processing has started and it was not cancelled."""

    def accept(self, submission: Submission) -> bool:
        return (
            submission.submitted
            and submission.aggregated_deposit_status is AggregatedDepositStatus.NOT_STARTED
            and submission.submission_status is not SubmissionStatus.CANCELLED
        )
