"""Precondition, critical and postcondition functions for Deposit status updates."""

from dataclasses import dataclass, field
from typing import Callable

from courier.domain.deposit.model.policy import DepositStatusPolicy
from courier.domain.deposit.model.resource import Deposit, RepositoryCopy
from courier.domain.deposit.model.value import CopyStatus, DepositStatus
from courier.domain.shared.model.query import Filter
from courier.domain.shared.port.resource_client import ResourceClient


def derive_copy_status(
    status: DepositStatus | None, current: CopyStatus | None, exists: bool
) -> CopyStatus | None:
    """Copy status implied by a deposit status.

    Accepted deposits complete the copy and rejected deposits reject it. An
    intermediate status leaves an existing copy alone and starts a new one
    as in-progress.
    """
    if status is DepositStatus.ACCEPTED:
        return CopyStatus.COMPLETE
    if status is DepositStatus.REJECTED:
        return CopyStatus.REJECTED
    if exists:
        return current
    return CopyStatus.IN_PROGRESS


def is_updatable(policy: DepositStatusPolicy) -> Callable[[Deposit], bool]:
    """Only deposits that are not yet terminal may be updated."""

    def precondition(deposit: Deposit) -> bool:
        return policy.is_intermediate(deposit.deposit_status)

    return precondition


def is_refreshable(policy: DepositStatusPolicy) -> Callable[[Deposit], bool]:
    """Deposits whose remote status can be looked up again."""

    def precondition(deposit: Deposit) -> bool:
        return (
            policy.is_intermediate(deposit.deposit_status)
            and bool(deposit.deposit_status_ref)
            and bool(deposit.repository_id)
            and bool(deposit.repository_copy_id)
        )

    return precondition


def copy_agrees(deposit: Deposit, copy: RepositoryCopy | None) -> bool:
    """An accepted deposit must end with a complete copy and a rejected one with a rejected copy."""
    if copy is None:
        return False
    if deposit.deposit_status is DepositStatus.ACCEPTED:
        return copy.copy_status is CopyStatus.COMPLETE
    if deposit.deposit_status is DepositStatus.REJECTED:
        return copy.copy_status is CopyStatus.REJECTED
    return True


@dataclass
class ApplyDepositStatus:
    """Writes a resolved status onto a Deposit and creates or updates its RepositoryCopy.

    Re-applying after a conflict converges on the same state: an existing copy
    is found through the deposit's link, or through its (repository, publication)
    pair, before a new one is created.
    """

    resources: ResourceClient
    status: DepositStatus | None
    status_ref: str | None = None
    publication_id: str | None = None
    access_url: str | None = None
    external_ids: tuple[str, ...] = ()
    _created_id: str | None = field(default=None, init=False, repr=False)

    async def __call__(self, deposit: Deposit) -> RepositoryCopy:
        copy = await self._find_copy(deposit)
        exists = copy is not None
        copy_status = derive_copy_status(self.status, copy.copy_status if copy else None, exists)

        if copy is None:
            copy = await self.resources.create(
                RepositoryCopy(
                    repository_id=deposit.repository_id,
                    publication_id=self.publication_id,
                    copy_status=copy_status,
                    access_url=self.access_url,
                    external_ids=list(self.external_ids),
                )
            )
            self._created_id = copy.id
        elif self._changes(copy, copy_status):
            copy.copy_status = copy_status
            copy.access_url = self.access_url or copy.access_url
            copy.external_ids = sorted(set(copy.external_ids) | set(self.external_ids))
            copy = await self.resources.update(copy)

        deposit.deposit_status = self.status
        if self.status_ref:
            deposit.deposit_status_ref = self.status_ref
        deposit.repository_copy_id = copy.id
        return copy

    def _changes(self, copy: RepositoryCopy, copy_status: CopyStatus | None) -> bool:
        return (
            copy.copy_status != copy_status
            or (self.access_url is not None and copy.access_url != self.access_url)
            or not set(self.external_ids) <= set(copy.external_ids)
        )

    async def _find_copy(self, deposit: Deposit) -> RepositoryCopy | None:
        # A copy created by an attempt whose deposit write then conflicted
        if self._created_id:
            copy = await self.resources.get(RepositoryCopy, self._created_id)
            if copy is not None:
                return copy
        if deposit.repository_copy_id:
            copy = await self.resources.get(RepositoryCopy, deposit.repository_copy_id)
            if copy is not None:
                return copy
        if self.publication_id:
            found = await self.resources.query(
                RepositoryCopy,
                Filter.eq("repository_id", deposit.repository_id),
                Filter.eq("publication_id", self.publication_id),
            )
            if found:
                return found[0]
        return None


def mark_failed(policy: DepositStatusPolicy):
    """Precondition and critical function pair that marks a Deposit FAILED."""

    def precondition(deposit: Deposit) -> bool:
        return policy.is_intermediate(deposit.deposit_status)

    def critical(deposit: Deposit) -> Deposit:
        deposit.deposit_status = DepositStatus.FAILED
        return deposit

    return precondition, critical


def is_failed(deposit: Deposit, _: object) -> bool:
    return deposit.deposit_status is DepositStatus.FAILED
