from courier.domain.deposit.model.snapshot import DepositSubmission
from courier.domain.deposit.model.value import DepositFile
from courier.domain.shared.error import ValidationError
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.shared.service import Service
from courier.domain.submission.model.resource import File, Submission


class SnapshotBuilder(Service):
    """Builds the DepositSubmission snapshot for a Submission from its Files."""

    resources: ResourceClient

    async def build(self, submission: Submission) -> DepositSubmission:
        if submission.id is None:
            raise ValidationError("Cannot snapshot an unsaved Submission", field="id")
        files = await self.resources.query(File, Filter.eq("submission_id", submission.id))
        return DepositSubmission(
            submission_id=submission.id,
            publication_id=submission.publication_id,
            metadata=submission.metadata,
            files=tuple(
                DepositFile(
                    name=f.name,
                    location=f.location,
                    mime_type=f.mime_type,
                    role=f.file_role,
                )
                for f in sorted(files, key=lambda f: f.name)
            ),
        )
