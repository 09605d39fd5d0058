"""Config management commands."""

import json
import sys
from pathlib import Path

import cyclopts
import yaml
from pydantic import ValidationError as PydanticValidationError

from courier.cli.console import get_console
from courier.config import Config
from courier.domain.shared.error import ConfigurationError
from courier.infrastructure.event.di import build_sweeps
from courier.infrastructure.plugin.discovery import (
    build_packagers,
    discover_assemblers,
    discover_transports,
)

app = cyclopts.App(name="config", help="Manage courier configuration")

TEMPLATE = """\
# Courier configuration
# Load with: COURIER_CONFIG_FILE=courier.yaml courier server run

server:
  name: "Courier"

# Database (defaults to SQLite at ~/.local/share/courier/courier.db)
# database:
#   url: "postgresql+asyncpg://courier@localhost/courier"

dispatcher:
  workers: 4
  # queue_capacity: 8   # defaults to twice the number of workers

polling:
  interval: 30
  max_wait: 3600

repositories:
  - repository_key: local
    assembler: json
    transport: filesystem
    options:
      directory: ~/.local/share/courier/outbox

schedules:
  - id: aggregation
    schedule: aggregation
    cron: "*/10 * * * *"
  - id: deposit-refresh
    schedule: deposit-refresh
    cron: "*/15 * * * *"
"""

DEFAULT_CONFIG_NAME = "courier.yaml"


@app.command
def init(path: Path = Path(DEFAULT_CONFIG_NAME)) -> None:
    """Create a new config file from template.

    Args:
        path: Path for the config file. Defaults to ./courier.yaml
    """
    console = get_console()
    if path.exists():
        console.error(f"Config file already exists: {path}")
        sys.exit(1)

    path.write_text(TEMPLATE)
    console.success(f"Created {path}")
    console.info(f"Use it with: COURIER_CONFIG_FILE={path} courier server run")


@app.command
def show(as_json: bool = False) -> None:
    """Show the effective configuration.

    Args:
        as_json: Print JSON instead of YAML.
    """
    console = get_console()
    try:
        config = Config()
    except PydanticValidationError as e:
        console.error("Invalid configuration", hint=str(e))
        sys.exit(1)

    data = config.model_dump(mode="json")
    if as_json:
        console.print(json.dumps(data, indent=2))
    else:
        console.print(yaml.safe_dump(data, sort_keys=False))


@app.command
def check() -> None:
    """Validate the configuration and the configured plugins."""
    console = get_console()
    try:
        config = Config()
        packagers = build_packagers(
            config.repositories, discover_assemblers(), discover_transports()
        )
        sweeps = build_sweeps(config)
    except (PydanticValidationError, ConfigurationError) as e:
        console.error("Invalid configuration", hint=str(e))
        sys.exit(1)

    console.success(
        f"Configuration OK: {len(packagers)} repositories, {len(sweeps)} schedules"
    )
    for name in packagers.names():
        console.info(f"  repository: {name}")
