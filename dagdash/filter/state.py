"""The four filter states.

Each active state owns its own autocomplete plus the conditions confirmed so
far, in the order they were confirmed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .autocomplete import AutocompleteState
from .condition import FREE_TEXT, FilterCondition, FilterKind


@dataclass
class Inactive:
    """Filter bar hidden."""

    def active_conditions(self, primary_field: str) -> list[FilterCondition]:
        return []

    def confirmed_conditions(self) -> list[FilterCondition]:
        return []


@dataclass
class Default:
    """Typing live against the primary field."""

    autocomplete: AutocompleteState = field(default_factory=AutocompleteState)
    conditions: list[FilterCondition] = field(default_factory=list)

    def active_conditions(self, primary_field: str) -> list[FilterCondition]:
        result = list(self.conditions)
        if self.autocomplete.typed:
            result.append(FilterCondition.primary(primary_field, self.autocomplete.typed))
        return result

    def confirmed_conditions(self) -> list[FilterCondition]:
        return list(self.conditions)


@dataclass
class AttributeSelection:
    """Narrowing down a field name. Only confirmed conditions apply."""

    autocomplete: AutocompleteState = field(default_factory=AutocompleteState)
    conditions: list[FilterCondition] = field(default_factory=list)

    def active_conditions(self, primary_field: str) -> list[FilterCondition]:
        return list(self.conditions)

    def confirmed_conditions(self) -> list[FilterCondition]:
        return list(self.conditions)


@dataclass
class ValueInput:
    """Typing a value for an already chosen field."""

    field: str
    kind: FilterKind = FREE_TEXT
    autocomplete: AutocompleteState = field(default_factory=AutocompleteState)
    conditions: list[FilterCondition] = field(default_factory=list)

    def active_conditions(self, primary_field: str) -> list[FilterCondition]:
        result = list(self.conditions)
        if self.autocomplete.typed:
            result.append(FilterCondition(self.field, self.autocomplete.typed))
        return result

    def confirmed_conditions(self) -> list[FilterCondition]:
        return list(self.conditions)


FilterState = Union[Inactive, Default, AttributeSelection, ValueInput]
