"""Filters for querying the system of record."""

from enum import Enum, StrEnum
from typing import Any

from courier.domain.shared.model.value import ValueObject


class Op(StrEnum):
    EQ = "eq"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return value


class Filter(ValueObject):
    """A predicate over one top-level field of a stored resource body.

    Bodies are compared in their JSON form, so enum members match their values.
    """

    field: str
    op: Op
    value: Any = None

    @classmethod
    def eq(cls, field: str, value: Any) -> "Filter":
        return cls(field=field, op=Op.EQ, value=_plain(value))

    @classmethod
    def in_(cls, field: str, values: Any) -> "Filter":
        return cls(field=field, op=Op.IN, value=_plain(list(values)))

    @classmethod
    def not_in(cls, field: str, values: Any) -> "Filter":
        return cls(field=field, op=Op.NOT_IN, value=_plain(list(values)))

    @classmethod
    def is_null(cls, field: str) -> "Filter":
        return cls(field=field, op=Op.IS_NULL)

    def matches(self, body: dict[str, Any]) -> bool:
        actual = body.get(self.field)
        match self.op:
            case Op.EQ:
                return actual == self.value
            case Op.IN:
                return actual in self.value
            case Op.NOT_IN:
                return actual not in self.value
            case Op.IS_NULL:
                return actual is None
        return False
