"""Unit tests for DepositStatusProcessor and DepositRefresher."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from courier.config import PollingConfig, RepositoryConfig
from courier.domain.critical.model.result import CriticalOutcome
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.event.status_changed import DepositStatusChanged
from courier.domain.deposit.model.packager import RepositoryConfigs
from courier.domain.deposit.model.policy import DEFAULT_DEPOSIT_TERMINAL, DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit, Repository, RepositoryCopy
from courier.domain.deposit.model.value import CopyStatus, DepositStatus
from courier.domain.deposit.port.status_resolver import StatusResolvers
from courier.domain.deposit.service.resolver import DepositStatusResolver
from courier.domain.deposit.service.status import DepositRefresher, DepositStatusProcessor
from courier.domain.shared.error import MissingStatusResolverError
from courier.domain.submission.model.resource import Submission
from courier.infrastructure.memory.resource_client import InMemoryResourceClient

POLICY = DepositStatusPolicy.of(DEFAULT_DEPOSIT_TERMINAL)


@pytest.fixture
def remote() -> MagicMock:
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value="http://dspace.org/state/archived")
    return resolver


@pytest.fixture
def events() -> MagicMock:
    bus = MagicMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def processor(
    resources: InMemoryResourceClient,
    critical: CriticalInteraction,
    remote: MagicMock,
    events: MagicMock,
) -> DepositStatusProcessor:
    resolver = DepositStatusResolver(
        configs=RepositoryConfigs(
            [RepositoryConfig(repository_key="dspace", assembler="json", transport="sword")]
        ),
        resolvers=StatusResolvers({"atom": remote}),
        polling=PollingConfig(
            status_ref_prefix="https://public.example",
            status_ref_replacement="https://internal.example",
        ),
    )
    return DepositStatusProcessor(
        resources=resources, critical=critical, resolver=resolver, policy=POLICY, events=events
    )


async def _submitted_deposit(resources: InMemoryResourceClient) -> Deposit:
    await resources.create(Repository(id="dspace", name="DSpace"))
    submission = await resources.create(Submission(submitted=True, publication_id="pub-1"))
    copy = await resources.create(
        RepositoryCopy(
            repository_id="dspace", publication_id="pub-1", copy_status=CopyStatus.IN_PROGRESS
        )
    )
    return await resources.create(
        Deposit(
            submission_id=submission.id,
            repository_id="dspace",
            deposit_status=DepositStatus.SUBMITTED,
            deposit_status_ref="https://public.example/statement/1",
            repository_copy_id=copy.id,
        )
    )


class TestDepositStatusProcessor:
    @pytest.mark.asyncio
    async def test_terminal_status_is_applied_and_announced(
        self,
        processor: DepositStatusProcessor,
        resources: InMemoryResourceClient,
        remote: MagicMock,
        events: MagicMock,
    ):
        deposit = await _submitted_deposit(resources)

        result = await processor.process(deposit.id)

        assert result.success
        stored = await resources.get(Deposit, deposit.id)
        assert stored.deposit_status is DepositStatus.ACCEPTED
        copy = await resources.get(RepositoryCopy, deposit.repository_copy_id)
        assert copy.copy_status is CopyStatus.COMPLETE
        assert remote.resolve.await_args.args[0] == "https://internal.example/statement/1"
        assert stored.deposit_status_ref == "https://public.example/statement/1"
        event = events.publish.await_args.args[0]
        assert isinstance(event, DepositStatusChanged)
        assert event.deposit_status is DepositStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_intermediate_status_changes_nothing(
        self,
        processor: DepositStatusProcessor,
        resources: InMemoryResourceClient,
        remote: MagicMock,
        events: MagicMock,
    ):
        remote.resolve.return_value = "http://dspace.org/state/inreview"
        deposit = await _submitted_deposit(resources)

        result = await processor.process(deposit.id)

        assert result.success
        assert result.result is DepositStatus.SUBMITTED
        stored = await resources.get(Deposit, deposit.id)
        assert stored.deposit_status is DepositStatus.SUBMITTED
        assert stored.version == deposit.version
        copy = await resources.get(RepositoryCopy, deposit.repository_copy_id)
        assert copy.copy_status is CopyStatus.IN_PROGRESS
        events.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_repeated_refreshes_rewrite_the_stored_ref_each_time(
        self,
        processor: DepositStatusProcessor,
        resources: InMemoryResourceClient,
        remote: MagicMock,
    ):
        processor.resolver.polling = PollingConfig(
            status_ref_prefix="https://public.example/",
            status_ref_replacement="https://public.example/internal/",
        )
        remote.resolve.return_value = "http://dspace.org/state/inreview"
        deposit = await _submitted_deposit(resources)

        await processor.process(deposit.id)
        remote.resolve.return_value = "http://dspace.org/state/archived"
        await processor.process(deposit.id)

        refs = [call.args[0] for call in remote.resolve.await_args_list]
        assert refs == ["https://public.example/internal/statement/1"] * 2
        stored = await resources.get(Deposit, deposit.id)
        assert stored.deposit_status is DepositStatus.ACCEPTED
        assert stored.deposit_status_ref == "https://public.example/statement/1"

    @pytest.mark.asyncio
    async def test_deposit_without_status_ref_is_skipped(
        self, processor: DepositStatusProcessor, resources: InMemoryResourceClient, remote: MagicMock
    ):
        deposit = await resources.create(Deposit(submission_id="s-1", repository_id="dspace"))
        await resources.create(Repository(id="dspace", name="DSpace"))

        result = await processor.process(deposit.id)

        assert result.is_noop
        remote.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_resolver_is_remedial(
        self, processor: DepositStatusProcessor, resources: InMemoryResourceClient
    ):
        processor.resolver.configs = RepositoryConfigs(
            [
                RepositoryConfig(
                    repository_key="dspace",
                    assembler="json",
                    transport="sword",
                    status_resolver="oai",
                )
            ]
        )
        deposit = await _submitted_deposit(resources)

        result = await processor.process(deposit.id)

        assert result.outcome is CriticalOutcome.CRITICAL_FAILED
        assert isinstance(result.throwable, MissingStatusResolverError)
        assert (await resources.get(Deposit, deposit.id)).deposit_status is DepositStatus.SUBMITTED


class TestDepositRefresher:
    @pytest.mark.asyncio
    async def test_refresh_defaults_to_submitted_deposits(
        self, processor: DepositStatusProcessor, resources: InMemoryResourceClient
    ):
        deposit = await _submitted_deposit(resources)
        await resources.create(
            Deposit(submission_id="s-2", repository_id="dspace", deposit_status=DepositStatus.ACCEPTED)
        )
        refresher = DepositRefresher(resources=resources, processor=processor)

        results = await refresher.refresh()

        assert list(results) == [deposit.id]
        assert results[deposit.id].success
