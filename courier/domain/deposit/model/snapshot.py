from typing import Any

from courier.domain.deposit.model.value import DepositFile
from courier.domain.shared.error import SubmissionConsistencyError
from courier.domain.shared.model.value import ValueObject


class DepositSubmission(ValueObject):
    """Immutable snapshot of a submission's deliverable content.

    Built once per submission and shared by every DepositTask fanned out
    from it.
    """

    submission_id: str
    publication_id: str | None = None
    metadata: dict[str, Any] = {}
    files: tuple[DepositFile, ...] = ()

    def validate(self) -> None:
        """Raise SubmissionConsistencyError unless the snapshot is deliverable."""
        if not self.files:
            raise SubmissionConsistencyError(
                f"Submission {self.submission_id}: there are no files attached to the submission",
                submission_id=self.submission_id,
            )
        missing = [f.name for f in self.files if not f.has_content]
        if missing:
            raise SubmissionConsistencyError(
                f"Submission {self.submission_id}: missing content location for file(s) "
                f"{', '.join(missing)}",
                submission_id=self.submission_id,
                files=missing,
            )

    @property
    def is_deliverable(self) -> bool:
        return bool(self.files) and all(f.has_content for f in self.files)
