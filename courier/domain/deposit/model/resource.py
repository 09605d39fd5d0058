from courier.domain.deposit.model.value import CopyStatus, DepositStatus, IntegrationType
from courier.domain.shared.model.entity import Resource


class Repository(Resource):
    """Static description of a target repository."""

    name: str
    repository_key: str | None = None
    integration_type: IntegrationType = IntegrationType.FULL
    url: str | None = None
    description: str | None = None


class Deposit(Resource):
    """One delivery of a Submission to one Repository."""

    submission_id: str
    repository_id: str
    deposit_status: DepositStatus | None = None
    deposit_status_ref: str | None = None
    repository_copy_id: str | None = None


class RepositoryCopy(Resource):
    """The target repository's copy of a deposited work."""

    repository_id: str
    publication_id: str | None = None
    copy_status: CopyStatus | None = None
    access_url: str | None = None
    external_ids: list[str] = []
