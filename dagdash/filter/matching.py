"""AND-combined evaluation of filter conditions."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

from .condition import FilterCondition
from .filterable import Filterable

T = TypeVar("T", bound=Filterable)


def matches(item: Filterable, conditions: Sequence[FilterCondition]) -> bool:
    """True when ``item`` satisfies every condition. An empty list matches all."""
    for condition in conditions:
        name = item.primary_field() if condition.is_primary else condition.field
        if not condition.matches_value(item.get_field_value(name)):
            return False
    return True


def filter_items(items: Iterable[T], conditions: Sequence[FilterCondition]) -> list[T]:
    if not conditions:
        return list(items)
    return [item for item in items if matches(item, conditions)]
