from courier.domain.submission.event.fan_out_completed import SubmissionFanOutCompleted
from courier.domain.submission.event.submission_ready import SubmissionReady

__all__ = ["SubmissionFanOutCompleted", "SubmissionReady"]
