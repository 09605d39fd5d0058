import logging

from courier.config import PollingConfig, RepositoryConfig
from courier.domain.deposit.model.packager import RepositoryConfigs
from courier.domain.deposit.model.resource import Deposit, Repository
from courier.domain.deposit.model.value import DepositStatus
from courier.domain.deposit.port.status_resolver import StatusResolvers
from courier.domain.shared.error import MissingStatusResolverError, ValidationError
from courier.domain.shared.service import Service

logger = logging.getLogger(__name__)


class DepositStatusResolver(Service):
    """Maps a repository's native status reporting onto DepositStatus.

    The remote document is fetched and parsed by the StatusResolver named in
    the repository's configuration; the native value is then translated with
    the configuration's status mapping.
    """

    configs: RepositoryConfigs
    resolvers: StatusResolvers
    polling: PollingConfig

    def config_for(self, repository: Repository) -> RepositoryConfig:
        return self.configs.lookup(repository)

    def rewrite(self, status_ref: str) -> str:
        rewritten = self.polling.rewrite(status_ref)
        if rewritten != status_ref:
            logger.debug(f"Rewrote status ref {status_ref} -> {rewritten}")
        return rewritten

    async def resolve_ref(self, status_ref: str, config: RepositoryConfig) -> DepositStatus | None:
        resolver = self.resolvers.get(config.status_resolver)
        if resolver is None:
            raise MissingStatusResolverError(
                f"No status resolver '{config.status_resolver}' for repository key "
                f"'{config.repository_key}'",
                repository_key=config.repository_key,
                status_resolver=config.status_resolver,
            )
        native = await resolver.resolve(status_ref, config)
        status = config.map_status(native)
        logger.debug(f"Resolved {status_ref}: native={native!r} status={status}")
        return status

    async def resolve(self, deposit: Deposit, repository: Repository) -> DepositStatus | None:
        if not deposit.deposit_status_ref:
            raise ValidationError(
                f"Deposit {deposit.id} has no status reference", field="deposit_status_ref"
            )
        config = self.config_for(repository)
        return await self.resolve_ref(self.rewrite(deposit.deposit_status_ref), config)
