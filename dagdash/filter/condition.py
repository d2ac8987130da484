"""Filter conditions and the field declarations entities expose."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FreeText:
    """A field whose values are open-ended text."""


@dataclass(frozen=True)
class EnumValues:
    """A field whose values come from a fixed vocabulary."""

    values: tuple[str, ...]


FilterKind = Union[FreeText, EnumValues]

FREE_TEXT = FreeText()


@dataclass(frozen=True)
class FilterableField:
    name: str
    kind: FilterKind = FREE_TEXT
    is_primary: bool = False

    @classmethod
    def primary(cls, name: str) -> FilterableField:
        return cls(name=name, kind=FREE_TEXT, is_primary=True)

    @classmethod
    def free_text(cls, name: str) -> FilterableField:
        return cls(name=name)

    @classmethod
    def enumerated(cls, name: str, values: list[str] | tuple[str, ...]) -> FilterableField:
        return cls(name=name, kind=EnumValues(tuple(values)))


@dataclass(frozen=True)
class FilterCondition:
    """A single ``field contains value`` test.

    When ``is_primary`` is set the condition is evaluated against the entity's
    primary field, whatever ``field`` says.
    """

    field: str
    value: str
    is_primary: bool = False

    @classmethod
    def primary(cls, field: str, value: str) -> FilterCondition:
        return cls(field=field, value=value, is_primary=True)

    def matches_value(self, candidate: str | None) -> bool:
        if candidate is None:
            return False
        return self.value.lower() in candidate.lower()

    def display(self) -> str:
        if self.is_primary:
            return self.value
        return f"{self.field}:{self.value}"


def find_field(fields: list[FilterableField], name: str) -> FilterableField | None:
    for f in fields:
        if f.name == name:
            return f
    return None
