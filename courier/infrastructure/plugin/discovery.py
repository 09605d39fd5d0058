"""Assembler and transport discovery via entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from courier.config import RepositoryConfig
from courier.domain.deposit.model.packager import Packager, PackagerRegistry
from courier.domain.shared.error import ConfigurationError

logger = logging.getLogger(__name__)

ASSEMBLER_GROUP = "courier.assemblers"
TRANSPORT_GROUP = "courier.transports"


def discover(group: str, required: tuple[str, ...]) -> dict[str, type]:
    """Discover plugin classes registered in an entry point group.

    Example pyproject.toml entry:
        [project.entry-points."courier.transports"]
        sword = "courier_sword.transport:SwordTransport"
    """
    plugins: dict[str, type] = {}
    for ep in entry_points(group=group):
        try:
            cls = ep.load()
            _validate_plugin_class(cls, ep.name, required)
            plugins[ep.name] = cls
            logger.debug("Discovered %s plugin: %s -> %s", group, ep.name, cls.__name__)
        except Exception as e:
            logger.warning("Failed to load %s plugin '%s': %s", group, ep.name, e)
    return plugins


def discover_assemblers() -> dict[str, type]:
    return discover(ASSEMBLER_GROUP, ("assemble",))


def discover_transports() -> dict[str, type]:
    return discover(TRANSPORT_GROUP, ("open",))


def _validate_plugin_class(cls: Any, name: str, required: tuple[str, ...]) -> None:
    """Raise TypeError unless cls is a class providing the required methods."""
    if not isinstance(cls, type):
        raise TypeError(f"Plugin {name} must be a class, got {type(cls).__name__}")
    for method in required:
        if not callable(getattr(cls, method, None)):
            raise TypeError(f"Plugin {name} missing '{method}' method")


def build_packagers(
    configs: list[RepositoryConfig],
    assemblers: dict[str, type],
    transports: dict[str, type],
) -> PackagerRegistry:
    """Instantiate one Packager per repository configuration.

    Raises:
        ConfigurationError: If a configuration names an unknown plugin or a
            repository key is configured twice.
    """
    packagers: list[Packager] = []
    seen: set[str] = set()
    for config in configs:
        if config.repository_key in seen:
            raise ConfigurationError(
                f"Duplicate repository configuration '{config.repository_key}'"
            )
        seen.add(config.repository_key)
        packagers.append(
            Packager(
                name=config.repository_key,
                config=config,
                assembler=_instantiate(assemblers, config.assembler, "assembler"),
                transport=_instantiate(transports, config.transport, "transport"),
            )
        )
    logger.info("Configured %d packager(s)", len(packagers))
    return PackagerRegistry(packagers)


def _instantiate(available: dict[str, type], name: str, kind: str) -> Any:
    if name not in available:
        names = ", ".join(sorted(available)) or "(none)"
        raise ConfigurationError(f"Unknown {kind} '{name}'. Available: {names}")
    return available[name]()
