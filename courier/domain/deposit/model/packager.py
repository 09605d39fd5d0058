from dataclasses import dataclass

from courier.config import RepositoryConfig
from courier.domain.deposit.model.resource import Repository
from courier.domain.deposit.port.transport import Assembler, Transport
from courier.domain.shared.error import MissingPackagerError, MissingRepositoryConfigError


@dataclass(frozen=True)
class Packager:
    """Assembler and transport bundle for one target repository."""

    name: str
    config: RepositoryConfig
    assembler: Assembler
    transport: Transport


def _candidate_keys(repository: Repository) -> list[str]:
    # Lookup order: repository id, then name, then configured key
    return [k for k in (repository.id, repository.name, repository.repository_key) if k]


class RepositoryConfigs:
    """Deposit-processing configurations indexed by repository key."""

    def __init__(self, configs: list[RepositoryConfig]) -> None:
        self._configs = {c.repository_key: c for c in configs}

    def __len__(self) -> int:
        return len(self._configs)

    def find(self, repository: Repository) -> RepositoryConfig | None:
        for key in _candidate_keys(repository):
            if key in self._configs:
                return self._configs[key]
        return None

    def lookup(self, repository: Repository) -> RepositoryConfig:
        config = self.find(repository)
        if config is None:
            raise MissingRepositoryConfigError(
                f"Unable to resolve Repository Configuration for Repository {repository.id}",
                repository_id=repository.id,
            )
        return config


class PackagerRegistry:
    """Packagers indexed by repository key."""

    def __init__(self, packagers: list[Packager]) -> None:
        self._packagers = {p.name: p for p in packagers}

    def __len__(self) -> int:
        return len(self._packagers)

    def names(self) -> list[str]:
        return sorted(self._packagers)

    def find(self, repository: Repository) -> Packager | None:
        for key in _candidate_keys(repository):
            if key in self._packagers:
                return self._packagers[key]
        return None

    def lookup(self, repository: Repository) -> Packager:
        packager = self.find(repository)
        if packager is None:
            raise MissingPackagerError(
                f"No Packager found for Repository {repository.id} "
                f"(tried keys: {', '.join(_candidate_keys(repository))})",
                repository_id=repository.id,
            )
        return packager
