"""Record filters shared by queries and change subscriptions"""

import enum
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

_OPS = {"eq", "neq", "in", "gt", "gte", "lt", "lte"}


@dataclass(frozen=True)
class Filter:
    """Single field predicate; a filter list is a conjunction"""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def to_clause(self, model):
        """SQLAlchemy where-clause for `model`"""
        column = getattr(model, self.field)
        value = self.value
        if self.op == "eq":
            return column == value
        if self.op == "neq":
            return column != value
        if self.op == "in":
            return column.in_(list(value))
        if self.op == "gt":
            return column > value
        if self.op == "gte":
            return column >= value
        if self.op == "lt":
            return column < value
        return column <= value

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Evaluate against an in-memory record"""
        actual = normalize(record.get(self.field))
        if self.op == "in":
            return actual in {normalize(v) for v in self.value}

        expected = normalize(self.value)
        if self.op == "eq":
            return actual == expected
        if self.op == "neq":
            return actual != expected
        if actual is None:
            return False
        if self.op == "gt":
            return actual > expected
        if self.op == "gte":
            return actual >= expected
        if self.op == "lt":
            return actual < expected
        return actual <= expected


def normalize(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def matches_all(filters: Iterable[Filter], record: Mapping[str, Any]) -> bool:
    return all(f.matches(record) for f in filters)


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)


def neq(field: str, value: Any) -> Filter:
    return Filter(field, "neq", value)


def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", tuple(values))


def gte(field: str, value: Any) -> Filter:
    return Filter(field, "gte", value)


def lt(field: str, value: Any) -> Filter:
    return Filter(field, "lt", value)
