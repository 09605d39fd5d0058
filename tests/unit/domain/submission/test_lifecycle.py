"""Unit tests for submission lifecycle status rules."""

from datetime import UTC, datetime, timedelta

import pytest

from courier.domain.critical.service.critical import CriticalInteraction
from courier.domain.deposit.model.resource import Deposit, RepositoryCopy
from courier.domain.deposit.model.value import CopyStatus, DepositStatus
from courier.domain.shared.error import InvalidStateError, ValidationError
from courier.domain.submission.crifunc.lifecycle import (
    calculate_post_submission_status,
    calculate_pre_submission_status,
    validate_status_change,
)
from courier.domain.submission.model.resource import Submission, SubmissionEvent
from courier.domain.submission.model.value import EventType, SubmissionStatus
from courier.domain.submission.service.lifecycle import LifecycleUpdater
from courier.infrastructure.memory.resource_client import InMemoryResourceClient


def _deposit(repo: str, status: DepositStatus | None) -> Deposit:
    return Deposit(submission_id="s-1", repository_id=repo, deposit_status=status)


def _copy(repo: str, status: CopyStatus | None) -> RepositoryCopy:
    return RepositoryCopy(repository_id=repo, copy_status=status)


class TestPostSubmissionStatus:
    def test_repository_without_deposit_is_submitted(self):
        assert calculate_post_submission_status(["r1"], [], []) is SubmissionStatus.SUBMITTED

    def test_rejected_deposit_needs_attention(self):
        status = calculate_post_submission_status(
            ["r1", "r2"],
            [_deposit("r1", DepositStatus.REJECTED), _deposit("r2", DepositStatus.ACCEPTED)],
            [],
        )
        assert status is SubmissionStatus.NEEDS_ATTENTION

    def test_complete_copies_everywhere_is_complete(self):
        status = calculate_post_submission_status(
            ["r1", "r2"],
            [_deposit("r1", DepositStatus.ACCEPTED), _deposit("r2", DepositStatus.ACCEPTED)],
            [_copy("r1", CopyStatus.COMPLETE), _copy("r2", CopyStatus.COMPLETE)],
        )
        assert status is SubmissionStatus.COMPLETE

    def test_complete_copy_clears_a_rejected_deposit(self):
        status = calculate_post_submission_status(
            ["r1"], [_deposit("r1", DepositStatus.REJECTED)], [_copy("r1", CopyStatus.COMPLETE)]
        )
        assert status is SubmissionStatus.COMPLETE

    @pytest.mark.parametrize("copy_status", [CopyStatus.STALLED, CopyStatus.REJECTED])
    def test_unhealthy_copy_needs_attention(self, copy_status: CopyStatus):
        status = calculate_post_submission_status(
            ["r1"], [_deposit("r1", DepositStatus.ACCEPTED)], [_copy("r1", copy_status)]
        )
        assert status is SubmissionStatus.NEEDS_ATTENTION

    def test_in_progress_copy_is_submitted(self):
        status = calculate_post_submission_status(
            ["r1"], [_deposit("r1", DepositStatus.ACCEPTED)], [_copy("r1", CopyStatus.IN_PROGRESS)]
        )
        assert status is SubmissionStatus.SUBMITTED


class TestPreSubmissionStatus:
    def test_no_events_defaults(self):
        assert calculate_pre_submission_status([]) is SubmissionStatus.MANUSCRIPT_REQUIRED
        assert (
            calculate_pre_submission_status(None, SubmissionStatus.DRAFT)
            is SubmissionStatus.DRAFT
        )

    def test_latest_event_wins(self):
        now = datetime.now(UTC)
        events = [
            SubmissionEvent(
                submission_id="s-1",
                event_type=EventType.CHANGES_REQUESTED,
                performed_date=now,
            ),
            SubmissionEvent(
                submission_id="s-1",
                event_type=EventType.APPROVAL_REQUESTED_NEWUSER,
                performed_date=now - timedelta(days=1),
            ),
        ]
        assert calculate_pre_submission_status(events) is SubmissionStatus.CHANGES_REQUESTED


class TestValidateStatusChange:
    def test_null_target_is_invalid(self):
        with pytest.raises(ValidationError):
            validate_status_change(True, SubmissionStatus.SUBMITTED, None)

    def test_submitted_submission_needs_submitted_status(self):
        with pytest.raises(InvalidStateError):
            validate_status_change(True, SubmissionStatus.SUBMITTED, SubmissionStatus.DRAFT)

    def test_unsubmitted_submission_cannot_get_submitted_status(self):
        with pytest.raises(InvalidStateError):
            validate_status_change(False, None, SubmissionStatus.COMPLETE)

    def test_pre_submission_change_is_allowed(self):
        validate_status_change(
            False, SubmissionStatus.APPROVAL_REQUESTED, SubmissionStatus.CHANGES_REQUESTED
        )


class TestLifecycleUpdater:
    @pytest.mark.asyncio
    async def test_update_recalculates_from_deposits_and_copies(
        self, resources: InMemoryResourceClient, critical: CriticalInteraction
    ):
        submission = await resources.create(
            Submission(
                submitted=True,
                submission_status=SubmissionStatus.SUBMITTED,
                repositories=["r1"],
            )
        )
        copy = await resources.create(_copy("r1", CopyStatus.COMPLETE))
        await resources.create(
            Deposit(
                submission_id=submission.id,
                repository_id="r1",
                deposit_status=DepositStatus.ACCEPTED,
                repository_copy_id=copy.id,
            )
        )
        updater = LifecycleUpdater(resources=resources, critical=critical)

        result = await updater.update(submission.id)

        assert result.success
        stored = await resources.get(Submission, submission.id)
        assert stored.submission_status is SubmissionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_final_statuses_are_not_recalculated(
        self, resources: InMemoryResourceClient, critical: CriticalInteraction
    ):
        submission = await resources.create(
            Submission(submitted=True, submission_status=SubmissionStatus.COMPLETE)
        )
        updater = LifecycleUpdater(resources=resources, critical=critical)

        results = await updater.sweep()

        assert submission.id not in results
        assert (await updater.update(submission.id)).is_noop
