from courier.domain.submission.util.di.provider import SubmissionProvider

__all__ = ["SubmissionProvider"]
