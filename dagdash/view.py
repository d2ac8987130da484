"""Immutable snapshots of what the screen should show.

The owner loop builds a :class:`Snapshot` after every state change and hands
it to the UI thread, so rendering never reads live state.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TableRow:
    cells: tuple[str, ...]
    state: str | None = None  # drives row colouring
    # (start, end, state) fractions drawn as a timeline cell after the text cells
    timeline: tuple[tuple[float, float, str | None], ...] | None = None


@dataclass(frozen=True)
class TableView:
    title: str
    columns: tuple[str, ...]
    rows: tuple[TableRow, ...] = ()
    selected: int | None = None
    highlighted: tuple[int, ...] = ()
    total: int = 0
    state_column: int | None = None
    empty_message: str = "Nothing to show"


@dataclass(frozen=True)
class LogView:
    title: str
    tries: tuple[int, ...] = ()
    current_try: int | None = None
    lines: tuple[str, ...] = ()
    scroll: int = 0


@dataclass(frozen=True)
class FilterView:
    mode: str = "inactive"  # inactive | default | attribute | value
    field: str | None = None
    typed: str = ""
    ghost: str = ""
    candidates: tuple[str, ...] = ()
    selected_candidate: int = 0
    conditions: str = ""


@dataclass(frozen=True)
class PopupView:
    title: str
    lines: tuple[str, ...] = ()
    options: tuple[str, ...] = ()
    selected: int | None = None
    scroll: int = 0
    error: bool = False


@dataclass(frozen=True)
class Snapshot:
    panel: str
    breadcrumbs: tuple[str, ...] = ()
    body: TableView | LogView | None = None
    filter: FilterView = field(default_factory=FilterView)
    popup: PopupView | None = None
    errors: PopupView | None = None
    focused: bool = True
    loading: bool = False
    help: str = ""
