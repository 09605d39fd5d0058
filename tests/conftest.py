"""Global test fixtures."""

import logfire
import pytest

from courier.domain.critical.service.critical import CriticalInteraction
from courier.infrastructure.memory.resource_client import InMemoryResourceClient

# Spans are recorded locally only
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def resources() -> InMemoryResourceClient:
    return InMemoryResourceClient()


@pytest.fixture
def critical(resources: InMemoryResourceClient) -> CriticalInteraction:
    return CriticalInteraction(resources=resources, max_attempts=3)
