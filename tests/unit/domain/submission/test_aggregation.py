"""Unit tests for aggregate deposit status."""

import asyncio

import pytest

from courier.domain.critical.model.result import CriticalOutcome
from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.model.policy import DEFAULT_DEPOSIT_TERMINAL, DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.shared.error import ValidationError
from courier.domain.submission.crifunc.aggregation import AggregateDeposits, aggregate_status
from courier.domain.submission.model.policy import DEFAULT_AGGREGATE_TERMINAL, AggregateStatusPolicy
from courier.domain.submission.model.resource import Submission
from courier.domain.submission.model.value import AggregatedDepositStatus
from courier.domain.submission.service.aggregation import AggregationUpdater
from courier.infrastructure.memory.resource_client import InMemoryResourceClient

POLICY = DepositStatusPolicy.of(DEFAULT_DEPOSIT_TERMINAL)


class TestAggregateStatus:
    def test_no_deposits_keeps_current(self):
        assert (
            aggregate_status([], AggregatedDepositStatus.NOT_STARTED, POLICY)
            is AggregatedDepositStatus.NOT_STARTED
        )

    def test_all_accepted(self):
        statuses = [DepositStatus.ACCEPTED, DepositStatus.ACCEPTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.IN_PROGRESS, POLICY)
            is AggregatedDepositStatus.ACCEPTED
        )

    def test_any_intermediate_is_in_progress(self):
        statuses = [DepositStatus.ACCEPTED, DepositStatus.SUBMITTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.NOT_STARTED, POLICY)
            is AggregatedDepositStatus.IN_PROGRESS
        )

    def test_unassigned_status_is_intermediate(self):
        assert (
            aggregate_status([None], AggregatedDepositStatus.NOT_STARTED, POLICY)
            is AggregatedDepositStatus.IN_PROGRESS
        )

    def test_failed_aggregate_is_kept_while_intermediate(self):
        statuses = [DepositStatus.FAILED, DepositStatus.ACCEPTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.FAILED, POLICY)
            is AggregatedDepositStatus.FAILED
        )

    def test_mixed_terminal_stays_in_progress(self):
        statuses = [DepositStatus.ACCEPTED, DepositStatus.REJECTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.IN_PROGRESS, POLICY)
            is AggregatedDepositStatus.IN_PROGRESS
        )

    def test_all_rejected_is_rejected(self):
        statuses = [DepositStatus.REJECTED, DepositStatus.REJECTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.IN_PROGRESS, POLICY)
            is AggregatedDepositStatus.REJECTED
        )

    def test_rejected_class_comes_from_policy(self):
        policy = DepositStatusPolicy.of(
            DEFAULT_DEPOSIT_TERMINAL + (DepositStatus.FAILED,),
            rejected=(DepositStatus.REJECTED, DepositStatus.FAILED),
        )
        statuses = [DepositStatus.FAILED, DepositStatus.REJECTED]
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.IN_PROGRESS, policy)
            is AggregatedDepositStatus.REJECTED
        )
        assert (
            aggregate_status(statuses, AggregatedDepositStatus.IN_PROGRESS, POLICY)
            is AggregatedDepositStatus.IN_PROGRESS
        )

    def test_order_does_not_matter(self):
        statuses = [DepositStatus.REJECTED, DepositStatus.SUBMITTED, DepositStatus.ACCEPTED]
        results = {
            aggregate_status(order, AggregatedDepositStatus.IN_PROGRESS, POLICY)
            for order in (statuses, statuses[::-1], statuses[1:] + statuses[:1])
        }
        assert results == {AggregatedDepositStatus.IN_PROGRESS}


@pytest.fixture
def updater(resources: InMemoryResourceClient, critical: CriticalInteraction) -> AggregationUpdater:
    return AggregationUpdater(
        resources=resources,
        critical=critical,
        deposit_policy=POLICY,
        aggregate_policy=AggregateStatusPolicy.of(DEFAULT_AGGREGATE_TERMINAL),
    )


async def _submission_with_deposits(
    resources: InMemoryResourceClient,
    statuses: list[DepositStatus | None],
    aggregate: AggregatedDepositStatus = AggregatedDepositStatus.IN_PROGRESS,
) -> Submission:
    submission = await resources.create(
        Submission(submitted=True, aggregated_deposit_status=aggregate)
    )
    for i, status in enumerate(statuses):
        await resources.create(
            Deposit(submission_id=submission.id, repository_id=f"repo-{i}", deposit_status=status)
        )
    return submission


class TestAggregationUpdater:
    @pytest.mark.asyncio
    async def test_update_sets_accepted(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        submission = await _submission_with_deposits(
            resources, [DepositStatus.ACCEPTED, DepositStatus.ACCEPTED]
        )

        result = await updater.update(submission.id)

        assert result.success
        assert result.result is AggregatedDepositStatus.ACCEPTED
        stored = await resources.get(Submission, submission.id)
        assert stored.aggregated_deposit_status is AggregatedDepositStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_settled_submission_is_left_alone(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        submission = await _submission_with_deposits(
            resources, [DepositStatus.SUBMITTED], aggregate=AggregatedDepositStatus.ACCEPTED
        )

        result = await updater.update(submission.id)

        assert result.is_noop
        stored = await resources.get(Submission, submission.id)
        assert stored.aggregated_deposit_status is AggregatedDepositStatus.ACCEPTED
        assert stored.version == submission.version

    @pytest.mark.asyncio
    async def test_concurrent_updates_converge(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        submission = await _submission_with_deposits(
            resources, [DepositStatus.SUBMITTED, DepositStatus.SUBMITTED]
        )
        deposits = await resources.query(Deposit)

        async def accept(deposit: Deposit):
            deposit.deposit_status = DepositStatus.ACCEPTED
            await resources.update(deposit)
            return await updater.update(submission.id)

        results = await asyncio.gather(*(accept(d) for d in deposits))

        assert all(r.outcome is not CriticalOutcome.CONFLICT for r in results)
        stored = await resources.get(Submission, submission.id)
        assert stored.aggregated_deposit_status is AggregatedDepositStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_sweep_defaults_to_unsettled_submissions(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        open_ = await _submission_with_deposits(resources, [DepositStatus.REJECTED])
        settled = await _submission_with_deposits(
            resources, [DepositStatus.ACCEPTED], aggregate=AggregatedDepositStatus.ACCEPTED
        )

        results = await updater.sweep()

        assert set(results) == {open_.id}
        assert results[open_.id].result is AggregatedDepositStatus.REJECTED
        assert settled.id not in results

    @pytest.mark.asyncio
    async def test_rerun_with_terminal_deposits_is_idempotent(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        submission = await _submission_with_deposits(
            resources, [DepositStatus.REJECTED, DepositStatus.REJECTED]
        )

        first = await updater.update(submission.id)
        after_first = await resources.get(Submission, submission.id)
        second = await updater.update(submission.id)
        after_second = await resources.get(Submission, submission.id)

        assert first.result is AggregatedDepositStatus.REJECTED
        assert second.is_noop
        assert after_second.aggregated_deposit_status is after_first.aggregated_deposit_status
        assert after_second.version == after_first.version

    @pytest.mark.asyncio
    async def test_accepted_and_rejected_deposits_stay_in_progress(
        self, updater: AggregationUpdater, resources: InMemoryResourceClient
    ):
        submission = await _submission_with_deposits(
            resources, [DepositStatus.ACCEPTED, DepositStatus.REJECTED]
        )

        first = await updater.update(submission.id)
        second = await updater.update(submission.id)

        assert first.success
        assert first.result is AggregatedDepositStatus.IN_PROGRESS
        assert second.result is AggregatedDepositStatus.IN_PROGRESS
        stored = await resources.get(Submission, submission.id)
        assert stored.aggregated_deposit_status is AggregatedDepositStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_unsaved_submission_is_invalid(self, resources: InMemoryResourceClient):
        aggregate = AggregateDeposits(resources=resources, deposit_policy=POLICY)

        with pytest.raises(ValidationError):
            await aggregate(Submission(submitted=True))
