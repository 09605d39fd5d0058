import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from courier.domain.deposit.model.value import DepositStatus
from courier.domain.submission.model.value import AggregatedDepositStatus

# Native SWORD statement states reported by DSpace
SWORD_STATE_MAPPING: dict[str, DepositStatus] = {
    "http://dspace.org/state/archived": DepositStatus.ACCEPTED,
    "http://dspace.org/state/withdrawn": DepositStatus.REJECTED,
    "http://dspace.org/state/inreview": DepositStatus.SUBMITTED,
    "http://dspace.org/state/inprogress": DepositStatus.SUBMITTED,
}


# =============================================================================
# Repository Configuration
# =============================================================================


class RepositoryConfig(BaseModel):
    """Deposit-processing configuration for one target repository.

    ``repository_key`` is matched against a Repository's id, then its name,
    then its repository_key. ``assembler`` and ``transport`` name entry points
    in the ``courier.assemblers`` and ``courier.transports`` groups.
    """

    repository_key: str
    assembler: str
    transport: str
    status_resolver: str = "atom"
    options: dict[str, Any] = {}  # Passed to the assembler, transport and resolver
    status_mapping: dict[str, DepositStatus] = {}
    default_status: DepositStatus | None = None

    def map_status(self, native: str | None) -> DepositStatus | None:
        """Translate a native status into the deposit vocabulary."""
        if native is None:
            return self.default_status
        mapping = self.status_mapping or SWORD_STATE_MAPPING
        return mapping.get(native, self.default_status)


class ScheduleConfig(BaseModel):
    """A cron-driven sweep."""

    id: str
    schedule: str  # "aggregation", "lifecycle", "deposit-refresh", "deposit-retry"
    cron: str  # Cron expression (e.g., "*/10 * * * *")
    params: dict[str, Any] = {}


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by COURIER_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("COURIER_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Server(BaseModel):
    name: str = "Courier"
    version: str = "0.1.0"
    description: str = "Delivers scholarly submissions to custodial repositories"
    host: str = "127.0.0.1"
    port: int = 8000


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///~/.local/share/courier/courier.db"  # XDG data directory
    echo: bool = False
    auto_create: bool = True  # Create tables at startup


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from COURIER_LOG_FILE env var."""
        return os.environ.get("COURIER_LOG_FILE")


class DispatcherConfig(BaseModel):
    workers: int = Field(default=4, ge=1)
    queue_capacity: int | None = None  # Defaults to twice the number of workers
    shutdown_timeout: float = 30.0

    @model_validator(mode="after")
    def _default_capacity(self) -> "DispatcherConfig":
        if self.queue_capacity is None:
            self.queue_capacity = 2 * self.workers
        return self


class CriticalConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1)  # Bound on version-conflict retries


class PollingConfig(BaseModel):
    interval: float = 30.0  # Seconds between status polls
    max_wait: float = 3600.0  # Give up polling after this many seconds
    status_ref_prefix: str | None = None
    status_ref_replacement: str | None = None

    def rewrite(self, status_ref: str) -> str:
        """Apply the configured prefix rewrite to a status reference."""
        if (
            self.status_ref_prefix
            and self.status_ref_replacement is not None
            and status_ref.startswith(self.status_ref_prefix)
        ):
            return self.status_ref_replacement + status_ref[len(self.status_ref_prefix) :]
        return status_ref


class PolicyConfig(BaseModel):
    deposit_terminal: list[DepositStatus] = [DepositStatus.ACCEPTED, DepositStatus.REJECTED]
    deposit_rejected: list[DepositStatus] = [DepositStatus.REJECTED]
    aggregate_terminal: list[AggregatedDepositStatus] = [
        AggregatedDepositStatus.ACCEPTED,
        AggregatedDepositStatus.REJECTED,
    ]


class Config(BaseSettings):
    server: Server = Server()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    dispatcher: DispatcherConfig = DispatcherConfig()
    critical: CriticalConfig = CriticalConfig()
    polling: PollingConfig = PollingConfig()
    policies: PolicyConfig = PolicyConfig()
    repositories: list[RepositoryConfig] = []
    schedules: list[ScheduleConfig] = []

    model_config = {
        "env_prefix": "COURIER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows COURIER_DATABASE__URL override
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - COURIER_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "apscheduler", "uvicorn.access")


def configure_logging(config: LoggingConfig) -> None:
    """Route all logging to stderr, or to COURIER_LOG_FILE when it is set.

    Call once, before the container is built, so that every module logger
    inherits the root handler.
    """
    root = logging.getLogger()
    root.setLevel(config.level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler: logging.Handler
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
