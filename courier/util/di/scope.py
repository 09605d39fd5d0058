"""Custom Dishka scopes for courier."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Courier dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (singletons: engine, dispatcher, registries)
    - UOW: Unit of Work (HTTP requests, event handling and scheduled sweeps)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
