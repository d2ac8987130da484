"""Live filtering for the dashboard tables."""

from .autocomplete import AutocompleteState
from .condition import EnumValues, FilterableField, FilterCondition, FilterKind, FreeText
from .filterable import Filterable
from .machine import FilterStateMachine
from .matching import filter_items, matches
from .state import AttributeSelection, Default, FilterState, Inactive, ValueInput

__all__ = [
    "AttributeSelection",
    "AutocompleteState",
    "Default",
    "EnumValues",
    "FilterCondition",
    "FilterKind",
    "FilterState",
    "Filterable",
    "FilterStateMachine",
    "FilterableField",
    "FreeText",
    "Inactive",
    "ValueInput",
    "filter_items",
    "matches",
]
