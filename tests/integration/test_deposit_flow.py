"""A submission travels from ready to accepted through the wired container."""

from pathlib import Path

import pytest

from courier.application.di import create_container
from courier.application.runtime import running
from courier.config import Config, PolicyConfig, RepositoryConfig
from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit, Repository, RepositoryCopy
from courier.domain.deposit.model.value import CopyStatus, DepositStatus
from courier.domain.shared.port.event_bus import EventBus
from courier.domain.shared.port.resource_client import ResourceClient
from courier.domain.submission.event import SubmissionReady
from courier.domain.submission.model.resource import File, Submission
from courier.domain.submission.model.value import AggregatedDepositStatus


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        repositories=[
            RepositoryConfig(
                repository_key="archive",
                assembler="json",
                transport="filesystem",
                options={"directory": str(tmp_path / "drop")},
            )
        ]
    )


@pytest.mark.asyncio
async def test_ready_submission_is_deposited_and_aggregated(config: Config, tmp_path: Path):
    container = create_container(config, use_memory=True)
    try:
        async with running(container, use_memory=True, schedules=False):
            resources = await container.get(ResourceClient)
            repository = await resources.create(Repository(id="r-1", name="archive"))
            submission = await resources.create(
                Submission(id="s-1", submitted=True, repositories=[repository.id])
            )
            await resources.create(
                File(submission_id=submission.id, name="paper.pdf", location="file:///paper.pdf")
            )

            events = await container.get(EventBus)
            await events.publish(SubmissionReady(submission_id=submission.id))
        # Leaving the block drains the dispatcher

        deposits = await resources.query(Deposit)
        assert len(deposits) == 1
        deposit = deposits[0]
        assert deposit.deposit_status == DepositStatus.ACCEPTED
        assert deposit.deposit_status_ref.startswith("file://")

        copy = await resources.get(RepositoryCopy, deposit.repository_copy_id)
        assert copy.copy_status == CopyStatus.COMPLETE

        stored = await resources.get(Submission, submission.id)
        assert stored.aggregated_deposit_status == AggregatedDepositStatus.ACCEPTED
        assert (tmp_path / "drop" / deposit.id / "s-1.json").exists()
    finally:
        await container.close()


@pytest.mark.asyncio
async def test_deposit_policy_follows_configuration(config: Config):
    config.policies = PolicyConfig(deposit_rejected=[DepositStatus.REJECTED, DepositStatus.FAILED])
    container = create_container(config, use_memory=True)
    try:
        policy = await container.get(DepositStatusPolicy)

        assert policy.is_terminal(DepositStatus.ACCEPTED)
        assert policy.is_rejected(DepositStatus.FAILED)
        assert not policy.is_rejected(DepositStatus.ACCEPTED)
    finally:
        await container.close()
