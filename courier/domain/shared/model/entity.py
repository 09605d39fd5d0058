from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Base class for domain entities."""

    model_config = ConfigDict(validate_assignment=True)


class Resource(Entity):
    """A versioned entity held by the system of record.

    ``version`` is assigned by the store. A write is only accepted when the
    version carried by the object equals the stored version.
    """

    id: str | None = None
    version: int = 0
