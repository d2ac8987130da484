"""The capability every filterable entity type implements."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .condition import FilterableField


@runtime_checkable
class Filterable(Protocol):
    """Field lookup by name for one displayed entity type.

    ``primary_field`` and ``filterable_fields`` describe the type, so entity
    classes implement them as classmethods. ``get_field_value`` returns None
    for unknown fields or missing values.
    """

    @classmethod
    def primary_field(cls) -> str: ...

    @classmethod
    def filterable_fields(cls) -> list[FilterableField]: ...

    def get_field_value(self, name: str) -> str | None: ...
