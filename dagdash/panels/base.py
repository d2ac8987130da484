"""Shared panel machinery: the filterable table and the panel base class."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..commands import WorkerCommand
from ..events import Event, Key, Mouse, Tick
from ..filter import FilterStateMachine, filter_items
from ..filter.state import AttributeSelection, Default, ValueInput
from ..view import FilterView, PopupView, TableRow, TableView
from .popups import HelpPopup, Popup

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Help rows shared by every table panel
TABLE_COMMANDS: tuple[tuple[str, str, str], ...] = (
    ("j/k", "Move", "Move the cursor down or up"),
    ("G / gg", "Jump", "Jump to the last or first row"),
    ("/", "Filter", "Filter rows, : picks a field"),
)


@dataclass
class NavContext:
    """Where the user currently is. Results are checked against this."""

    server: str | None = None
    dag_id: str | None = None
    dag_run_id: str | None = None
    task_id: str | None = None
    try_number: int = 0
    file_token: str = ""

    def path(self) -> tuple:
        return (self.server, self.dag_id, self.dag_run_id, self.task_id)

    def matches(self, context: tuple) -> bool:
        return self.path()[: len(context)] == tuple(context)


@dataclass
class PanelOutcome:
    """Result of a panel handling one event.

    ``fall_through`` is the event handed back for global handling (None if
    the panel consumed it); ``commands`` go to the worker.
    """

    fall_through: Event | None = None
    commands: list[WorkerCommand] = field(default_factory=list)

    @classmethod
    def consumed(cls, commands: list[WorkerCommand] | None = None) -> PanelOutcome:
        return cls(fall_through=None, commands=commands or [])

    @classmethod
    def passed(cls, event: Event, commands: list[WorkerCommand] | None = None) -> PanelOutcome:
        return cls(fall_through=event, commands=commands or [])


# ---------------------------------------------------------------------------
# FilterableTable
# ---------------------------------------------------------------------------


class FilterableTable(Generic[T]):
    """All items, the filtered view, a cursor, the filter and visual selection."""

    def __init__(self, entity_type, key: Callable[[T], str]) -> None:
        self.all: list[T] = []
        self.items: list[T] = []
        self.selected: int | None = None
        self.filter = FilterStateMachine.for_type(entity_type)
        self.key = key
        self.visual_mode = False
        self.visual_anchor: int | None = None
        self._pending_g = False

    def set_items(self, items: Sequence[T]) -> None:
        """Replace all items, keeping the cursor on the same record if possible."""
        current = self.current()
        current_key = self.key(current) if current is not None else None
        self.all = list(items)
        primary = self.filter.primary_field
        self.filter.set_primary_values(
            [value for value in (item.get_field_value(primary) for item in self.all) if value]
        )
        self.apply_filter(keep_key=current_key)

    def clear(self) -> None:
        self.all = []
        self.items = []
        self.selected = None
        self.visual_mode = False
        self.visual_anchor = None

    def apply_filter(self, keep_key: str | None = None) -> None:
        if keep_key is None:
            current = self.current()
            keep_key = self.key(current) if current is not None else None
        self.items = filter_items(self.all, self.filter.active_conditions())
        if not self.items:
            self.selected = None
        elif keep_key is not None:
            keys = [self.key(item) for item in self.items]
            self.selected = keys.index(keep_key) if keep_key in keys else min(self.selected or 0, len(self.items) - 1)
        else:
            self.selected = 0
        if self.visual_anchor is not None and self.visual_anchor >= len(self.items):
            self.visual_anchor = None
            self.visual_mode = False

    def current(self) -> T | None:
        if self.selected is None or self.selected >= len(self.items):
            return None
        return self.items[self.selected]

    def handle_filter_key(self, key: Key) -> bool:
        if self.filter.update(key):
            self.apply_filter()
            return True
        return False

    # Navigation

    def next(self) -> None:
        if self.items:
            self.selected = 0 if self.selected is None else min(self.selected + 1, len(self.items) - 1)

    def previous(self) -> None:
        if self.items:
            self.selected = 0 if self.selected is None else max(self.selected - 1, 0)

    def handle_navigation(self, key: Key) -> bool:
        pending_g, self._pending_g = self._pending_g, False
        if key.key == "down" or key.is_char("j"):
            self.next()
            return True
        if key.key == "up" or key.is_char("k"):
            self.previous()
            return True
        if key.is_char("G"):
            if self.items:
                self.selected = len(self.items) - 1
            return True
        if key.is_char("g"):
            if pending_g:
                if self.items:
                    self.selected = 0
            else:
                self._pending_g = True
            return True
        return False

    def handle_mouse(self, mouse: Mouse) -> bool:
        if mouse.kind == "scroll_down":
            self.next()
            return True
        if mouse.kind == "scroll_up":
            self.previous()
            return True
        return False

    # Visual selection

    def toggle_visual(self) -> None:
        if self.visual_mode:
            self.visual_mode = False
            self.visual_anchor = None
        elif self.selected is not None:
            self.visual_mode = True
            self.visual_anchor = self.selected

    def visual_range(self) -> range | None:
        if not self.visual_mode or self.visual_anchor is None or self.selected is None:
            return None
        start, end = sorted((self.visual_anchor, self.selected))
        return range(start, end + 1)

    def selected_items(self) -> list[T]:
        """Rows under the visual selection, or just the current row."""
        span = self.visual_range()
        if span is not None:
            return [self.items[i] for i in span if i < len(self.items)]
        current = self.current()
        return [current] if current is not None else []

    # View

    def filter_view(self) -> FilterView:
        machine = self.filter
        state = machine.state
        conditions = machine.filter_display()
        if isinstance(state, Default):
            mode, field_name = "default", None
            conditions = " ".join(c.display() for c in state.conditions)
        elif isinstance(state, AttributeSelection):
            mode, field_name = "attribute", None
            conditions = " ".join(c.display() for c in state.conditions)
        elif isinstance(state, ValueInput):
            mode, field_name = "value", state.field
            conditions = " ".join(c.display() for c in state.conditions)
        else:
            return FilterView(conditions=conditions)
        ac = state.autocomplete
        return FilterView(
            mode=mode,
            field=field_name,
            typed=ac.typed,
            ghost=ac.ghost_suffix(),
            candidates=tuple(ac.candidates),
            selected_candidate=ac.selected_index,
            conditions=conditions,
        )


# ---------------------------------------------------------------------------
# Panel base
# ---------------------------------------------------------------------------


class Panel:
    """One screen of the dashboard.

    Subclasses override ``refresh_commands`` (what to poll), ``handle_key``
    (panel specific keys) and ``view``.
    """

    name = "panel"
    title = "Panel"
    help = ""
    # (key, name, description) rows of the ? popup
    commands: tuple[tuple[str, str, str], ...] = ()

    def __init__(self, refresh_ticks: int = 10) -> None:
        self.refresh_ticks = refresh_ticks
        self.ticks = 0
        self.popup: Popup | None = None
        self.loading = False

    def update(self, event: Event, nav: NavContext) -> PanelOutcome:
        if isinstance(event, Tick):
            self.ticks += 1
            if self.ticks % self.refresh_ticks != 0:
                return PanelOutcome.passed(event)
            return PanelOutcome.passed(event, self.refresh_commands(nav))
        if isinstance(event, Key):
            if self.popup is not None:
                done, commands = self.popup.update(event)
                if done:
                    self.popup = None
                return PanelOutcome.consumed(commands)
            if event.is_char("?") and self.commands:
                self.popup = HelpPopup(f"{self.title} commands", self.commands)
                return PanelOutcome.consumed()
            return self.handle_key(event, nav)
        if isinstance(event, Mouse):
            return self.handle_mouse(event)
        return PanelOutcome.passed(event)

    def refresh_commands(self, nav: NavContext) -> list[WorkerCommand]:
        return []

    def handle_key(self, key: Key, nav: NavContext) -> PanelOutcome:
        return PanelOutcome.passed(key)

    def handle_mouse(self, mouse: Mouse) -> PanelOutcome:
        return PanelOutcome.passed(mouse)

    def reset(self) -> None:
        """Forget data when the panel's context changes."""
        self.ticks = 0
        self.popup = None

    def popup_view(self) -> PopupView | None:
        return self.popup.view() if self.popup is not None else None

    def filter_view(self) -> FilterView:
        return FilterView()

    def view(self):
        raise NotImplementedError


class TablePanel(Panel, Generic[T]):
    """A panel backed by a :class:`FilterableTable`."""

    entity_type: type = object
    columns: tuple[str, ...] = ()
    state_column: int | None = None

    def __init__(self, refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.table: FilterableTable[T] = FilterableTable(self.entity_type, self.item_key)

    @staticmethod
    def item_key(item) -> str:
        raise NotImplementedError

    def set_items(self, items: Sequence[T]) -> None:
        self.table.set_items(items)
        self.loading = False

    def reset(self) -> None:
        super().reset()
        self.table.clear()
        self.loading = True

    def current(self) -> T | None:
        return self.table.current()

    def update(self, event: Event, nav: NavContext) -> PanelOutcome:
        # The filter bar takes keys before popups and panel bindings
        if isinstance(event, Key) and self.popup is None and (self.table.filter.is_active or event.is_char("/")):
            if self.table.handle_filter_key(event):
                return PanelOutcome.consumed()
            if self.table.handle_navigation(event):
                return PanelOutcome.consumed()
            return PanelOutcome.passed(event)
        return super().update(event, nav)

    def handle_key(self, key: Key, nav: NavContext) -> PanelOutcome:
        if self.table.handle_navigation(key):
            return PanelOutcome.consumed()
        if key.is_char("V"):
            self.table.toggle_visual()
            return PanelOutcome.consumed()
        if key.key == "escape" and self.table.visual_mode:
            self.table.toggle_visual()
            return PanelOutcome.consumed()
        return self.handle_action(key, nav)

    def handle_action(self, key: Key, nav: NavContext) -> PanelOutcome:
        return PanelOutcome.passed(key)

    def handle_mouse(self, mouse: Mouse) -> PanelOutcome:
        if self.popup is None and self.table.handle_mouse(mouse):
            return PanelOutcome.consumed()
        return PanelOutcome.passed(mouse)

    def filter_view(self) -> FilterView:
        return self.table.filter_view()

    def row(self, item: T) -> TableRow:
        raise NotImplementedError

    def table_title(self) -> str:
        return self.title

    def view(self) -> TableView:
        span = self.table.visual_range()
        return TableView(
            title=self.table_title(),
            columns=self.columns,
            rows=tuple(self.row(item) for item in self.table.items),
            selected=self.table.selected,
            highlighted=tuple(span) if span is not None else (),
            total=len(self.table.all),
            state_column=self.state_column,
            empty_message="Loading…" if self.loading else "Nothing to show",
        )
