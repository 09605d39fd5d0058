from dishka import AsyncContainer, make_async_container

from courier.config import Config
from courier.domain.critical.util.di import CriticalProvider
from courier.domain.deposit.util.di import DepositProvider
from courier.domain.submission.util.di import SubmissionProvider
from courier.infrastructure.event.di import EventProvider
from courier.infrastructure.http.di import HttpProvider
from courier.infrastructure.memory.di import MemoryProvider
from courier.infrastructure.persistence.di import PersistenceProvider
from courier.infrastructure.plugin.di import PluginProvider
from courier.infrastructure.task.di import TaskProvider
from courier.util.di.scope import Scope


def create_container(config: Config | None = None, use_memory: bool = False) -> AsyncContainer:
    """Build the application container.

    With ``use_memory`` the system of record is held in process, which suits
    tests and one-off local runs.
    """
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        MemoryProvider() if use_memory else PersistenceProvider(),
        HttpProvider(),
        PluginProvider(),
        TaskProvider(),
        EventProvider(),
        CriticalProvider(),
        DepositProvider(),
        SubmissionProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
