"""Keyboard-driven filter state machine.

Transitions::

    Inactive            "/"                -> Default
    Default             ":"                -> AttributeSelection
    AttributeSelection  Space              -> ValueInput (highlighted field)
    AttributeSelection  Backspace (empty)  -> Default
    ValueInput          Space              -> Default (value confirmed)
    ValueInput          Backspace (empty)  -> AttributeSelection (field restored)
    any active          Esc / Enter        -> Inactive

Tab and Shift+Tab move the highlighted candidate and never touch the typed text.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..events import Key
from .autocomplete import AutocompleteState
from .condition import EnumValues, FilterableField, FilterCondition, FilterKind, FREE_TEXT, find_field
from .state import AttributeSelection, Default, FilterState, Inactive, ValueInput


class FilterStateMachine:
    """Live, chainable, multi-attribute filtering for one entity collection."""

    def __init__(self, primary_field: str = "", fields: Sequence[FilterableField] = ()) -> None:
        self.state: FilterState = Inactive()
        self.stored_conditions: list[FilterCondition] = []
        self.primary_field = primary_field
        self.fields: list[FilterableField] = list(fields)
        self.primary_values: list[str] = []
        self.field_values: dict[str, list[str]] = {}

    @classmethod
    def for_type(cls, entity_type) -> FilterStateMachine:
        """Build a machine from a Filterable entity class."""
        return cls(entity_type.primary_field(), entity_type.filterable_fields())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return not isinstance(self.state, Inactive)

    def active_conditions(self) -> list[FilterCondition]:
        """Confirmed conditions plus the one being typed, if any.

        While inactive, the conditions stored on the last deactivation keep
        applying.
        """
        if isinstance(self.state, Inactive):
            return list(self.stored_conditions)
        return self.state.active_conditions(self.primary_field)

    def confirmed_conditions(self) -> list[FilterCondition]:
        if isinstance(self.state, Inactive):
            return list(self.stored_conditions)
        return self.state.confirmed_conditions()

    @property
    def autocomplete(self) -> AutocompleteState | None:
        return getattr(self.state, "autocomplete", None)

    def filter_display(self) -> str:
        return " ".join(c.display() for c in self.active_conditions())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> None:
        """Show the filter bar, restoring whatever was stored on deactivate."""
        primary = [c for c in self.stored_conditions if c.is_primary]
        others = [c for c in self.stored_conditions if not c.is_primary]
        typed = primary[0].value if primary else ""
        self.state = Default(
            autocomplete=AutocompleteState.with_vocabulary(self.primary_values, typed=typed),
            conditions=others + primary[1:],
        )
        self.stored_conditions = []

    def deactivate(self) -> None:
        self.stored_conditions = self.state.active_conditions(self.primary_field)
        self.state = Inactive()

    def clear(self) -> None:
        self.stored_conditions = []
        self.state = Inactive()

    def set_primary_values(self, values: Sequence[str]) -> None:
        self.primary_values = list(dict.fromkeys(values))
        if isinstance(self.state, Default) or (
            isinstance(self.state, ValueInput) and self.state.field == self.primary_field
        ):
            self.state.autocomplete.replace_vocabulary(self.primary_values)

    def set_field_values(self, field_name: str, values: Sequence[str]) -> None:
        self.field_values[field_name] = list(values)

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def update(self, key: Key) -> bool:
        """Apply one key press. Returns True if the filter consumed it."""
        if isinstance(self.state, Inactive):
            if key.is_char("/"):
                self.activate()
                return True
            return False

        if key.key in ("escape", "enter"):
            self.deactivate()
            return True
        if key.key == "tab":
            self.state.autocomplete.next_candidate()
            return True
        if key.key == "shift+tab":
            self.state.autocomplete.prev_candidate()
            return True

        if isinstance(self.state, Default):
            return self._update_default(self.state, key)
        if isinstance(self.state, AttributeSelection):
            return self._update_attribute_selection(self.state, key)
        return self._update_value_input(self.state, key)

    def _update_default(self, state: Default, key: Key) -> bool:
        if key.is_char(":"):
            self._enter_attribute_selection(state.conditions)
            return True
        if key.key == "backspace":
            if not state.autocomplete.pop_char() and state.conditions:
                self._edit_last_condition(state.conditions)
            return True
        if key.is_printable:
            state.autocomplete.push_char(key.character)
            return True
        return False

    def _update_attribute_selection(self, state: AttributeSelection, key: Key) -> bool:
        if key.is_space:
            selected = state.autocomplete.selected()
            if selected is None:
                return True
            kind = self._kind_of(selected)
            self.state = ValueInput(
                field=selected,
                kind=kind,
                autocomplete=AutocompleteState.with_vocabulary(self._value_candidates(selected, kind)),
                conditions=list(state.conditions),
            )
            return True
        if key.key == "backspace":
            if not state.autocomplete.pop_char():
                self.state = Default(
                    autocomplete=AutocompleteState.with_vocabulary(self.primary_values),
                    conditions=list(state.conditions),
                )
            return True
        if key.is_printable:
            state.autocomplete.push_char(key.character)
            return True
        return False

    def _update_value_input(self, state: ValueInput, key: Key) -> bool:
        if key.is_space:
            conditions = list(state.conditions)
            if state.autocomplete.typed:
                conditions.append(FilterCondition(state.field, state.autocomplete.typed))
            self.state = Default(
                autocomplete=AutocompleteState.with_vocabulary(self.primary_values),
                conditions=conditions,
            )
            return True
        if key.key == "backspace":
            if not state.autocomplete.pop_char():
                self.state = AttributeSelection(
                    autocomplete=AutocompleteState.with_vocabulary(self._field_names(), typed=state.field),
                    conditions=list(state.conditions),
                )
            return True
        if key.is_printable:
            state.autocomplete.push_char(key.character)
            return True
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter_attribute_selection(self, conditions: list[FilterCondition]) -> None:
        self.state = AttributeSelection(
            autocomplete=AutocompleteState.with_vocabulary(self._field_names()),
            conditions=list(conditions),
        )

    def _edit_last_condition(self, conditions: list[FilterCondition]) -> None:
        last = conditions[-1]
        field_name = self.primary_field if last.is_primary else last.field
        kind = self._kind_of(field_name)
        self.state = ValueInput(
            field=field_name,
            kind=kind,
            autocomplete=AutocompleteState.with_vocabulary(
                self._value_candidates(field_name, kind), typed=last.value
            ),
            conditions=conditions[:-1],
        )

    def _field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def _kind_of(self, field_name: str) -> FilterKind:
        found = find_field(self.fields, field_name)
        return found.kind if found else FREE_TEXT

    def _value_candidates(self, field_name: str, kind: FilterKind) -> list[str]:
        if isinstance(kind, EnumValues):
            return list(kind.values)
        if field_name == self.primary_field:
            return list(self.primary_values)
        return list(self.field_values.get(field_name, []))
