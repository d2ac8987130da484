"""Modal popups owned by panels (and the app-wide error popup)."""

from __future__ import annotations

import calendar
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from ..commands import WorkerCommand
from ..events import Key
from ..models import DagRunDateFilter
from ..view import PopupView

CLOSE_KEYS = ("escape",)


class Popup:
    """Base popup. ``update`` returns ``(done, commands)``."""

    title = ""

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        if key.key in CLOSE_KEYS or key.is_char("q"):
            return True, []
        return False, []

    def view(self) -> PopupView:
        return PopupView(title=self.title)


class ConfirmPopup(Popup):
    """Yes/No confirmation that emits ``commands`` on Yes."""

    OPTIONS = ("Yes", "No")

    def __init__(self, title: str, message: str, commands: Sequence[WorkerCommand]) -> None:
        self.title = title
        self.message = message
        self.commands = list(commands)
        self.selected = 0

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        if key.is_char("y"):
            return True, list(self.commands)
        if key.is_char("n"):
            return True, []
        if key.key in ("left", "right", "tab", "shift+tab") or key.is_char("h") or key.is_char("l"):
            self.selected = 1 - self.selected
            return False, []
        if key.key == "enter":
            return True, list(self.commands) if self.selected == 0 else []
        return super().update(key)

    def view(self) -> PopupView:
        return PopupView(
            title=self.title,
            lines=tuple(self.message.splitlines()),
            options=self.OPTIONS,
            selected=self.selected,
        )


class MarkPopup(Popup):
    """Pick a state to mark the selected rows with."""

    def __init__(
        self,
        title: str,
        targets: Sequence[str],
        statuses: Sequence[str],
        make_command: Callable[[str, str], WorkerCommand],
    ) -> None:
        self.title = title
        self.targets = list(targets)
        self.statuses = list(statuses)
        self.make_command = make_command
        self.selected = 0

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        if key.key == "down" or key.is_char("j"):
            self.selected = (self.selected + 1) % len(self.statuses)
            return False, []
        if key.key == "up" or key.is_char("k"):
            self.selected = (self.selected - 1) % len(self.statuses)
            return False, []
        if key.key == "enter":
            status = self.statuses[self.selected]
            return True, [self.make_command(target, status) for target in self.targets]
        return super().update(key)

    def view(self) -> PopupView:
        if len(self.targets) == 1:
            lines = (f"Mark {self.targets[0]} as:",)
        else:
            lines = (f"Mark {len(self.targets)} items as:",)
        return PopupView(title=self.title, lines=lines, options=tuple(self.statuses), selected=self.selected)


class CodePopup(Popup):
    """Scrollable read-only text, used for DAG source code."""

    def __init__(self, title: str, text: str) -> None:
        self.title = title
        self.lines = text.splitlines() or [""]
        self.scroll = 0

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        if key.key == "enter" or key.is_char("v"):
            return True, []
        if key.key == "down" or key.is_char("j"):
            self.scroll = min(self.scroll + 1, len(self.lines) - 1)
            return False, []
        if key.key == "up" or key.is_char("k"):
            self.scroll = max(self.scroll - 1, 0)
            return False, []
        if key.key == "pagedown":
            self.scroll = min(self.scroll + 20, len(self.lines) - 1)
            return False, []
        if key.key == "pageup":
            self.scroll = max(self.scroll - 20, 0)
            return False, []
        return super().update(key)

    def view(self) -> PopupView:
        return PopupView(title=self.title, lines=tuple(self.lines), scroll=self.scroll)


class ErrorPopup(Popup):
    """Dismissible list of error messages. Dismissed with q or Esc."""

    title = "Error"

    def __init__(self) -> None:
        self.messages: list[str] = []

    def add(self, message: str) -> None:
        if message not in self.messages:
            self.messages.append(message)

    @property
    def visible(self) -> bool:
        return bool(self.messages)

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        done, _ = super().update(key)
        if done:
            self.messages = []
        return done, []

    def view(self) -> PopupView:
        return PopupView(
            title=self.title if len(self.messages) == 1 else f"{len(self.messages)} errors",
            lines=tuple(self.messages) + ("", "Press q or Esc to dismiss"),
            error=True,
        )


class HelpPopup(Popup):
    """Key bindings of the active panel. Toggled with ``?``."""

    def __init__(self, title: str, commands: Sequence[tuple[str, str, str]]) -> None:
        self.title = title
        self.commands = list(commands)

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        if key.key == "enter" or key.is_char("?"):
            return True, []
        return super().update(key)

    def view(self) -> PopupView:
        width = max((len(binding) for binding, _, _ in self.commands), default=0)
        return PopupView(
            title=self.title,
            lines=tuple(f"{binding:>{width}}: {name} - {description}" for binding, name, description in self.commands),
        )


class DateFilterPopup(Popup):
    """Month calendar for picking the start and end of a DAG run date range.

    Space stores the day under the cursor in the field being edited (start
    first, then end), Tab switches fields, ``x`` clears the current one and
    Enter applies the range through ``on_confirm``.
    """

    title = "Filter DAG runs by date"
    FIELDS = ("start", "end")
    MOVES = {"left": -1, "h": -1, "right": 1, "l": 1, "up": -7, "k": -7, "down": 7, "j": 7}

    def __init__(
        self,
        existing: DagRunDateFilter | None,
        on_confirm: Callable[[DagRunDateFilter | None], list[WorkerCommand]],
        today: date | None = None,
    ) -> None:
        existing = existing or DagRunDateFilter()
        self.start = existing.start
        self.end = existing.end
        self.on_confirm = on_confirm
        self.cursor = existing.start or today or date.today()
        self.active = "start"

    def update(self, key: Key) -> tuple[bool, list[WorkerCommand]]:
        step = self.MOVES.get(key.key)
        if step is not None:
            self.cursor += timedelta(days=step)
            return False, []
        if key.is_char("H"):
            self._shift_month(-1)
            return False, []
        if key.is_char("L"):
            self._shift_month(1)
            return False, []
        if key.is_space:
            self._select()
            return False, []
        if key.key == "tab":
            self._switch_field()
            return False, []
        if key.is_char("x"):
            setattr(self, self.active, None)
            return False, []
        if key.key == "enter":
            return True, self.on_confirm(self.date_filter())
        return super().update(key)

    def date_filter(self) -> DagRunDateFilter | None:
        start, end = self.start, self.end
        if start is not None and end is not None and end < start:
            start, end = end, start
        result = DagRunDateFilter(start, end)
        return None if result.is_empty else result

    def _shift_month(self, delta: int) -> None:
        month = self.cursor.month - 1 + delta
        self.cursor = date(self.cursor.year + month // 12, month % 12 + 1, 1)

    def _select(self) -> None:
        setattr(self, self.active, self.cursor)
        if self.active == "start":
            self.active = "end"

    def _switch_field(self) -> None:
        self.active = "end" if self.active == "start" else "start"
        chosen = getattr(self, self.active)
        if chosen is not None:
            self.cursor = chosen

    def _cell(self, day: int) -> str:
        if day == 0:
            return "    "
        current = self.cursor.replace(day=day)
        if current == self.cursor:
            return f"[{day:2}]"
        if current in (self.start, self.end):
            return f"<{day:2}>"
        return f" {day:2} "

    def view(self) -> PopupView:
        lines = []
        for name in self.FIELDS:
            chosen = getattr(self, name)
            marker = ">" if name == self.active else " "
            lines.append(f"{marker} {name.capitalize():<6}{chosen.isoformat() if chosen else '-'}")
        lines.append("")
        lines.append(f"{calendar.month_name[self.cursor.month]} {self.cursor.year}".center(28).rstrip())
        lines.append("".join(f" {name[:2]} " for name in calendar.day_abbr))
        for week in calendar.Calendar().monthdayscalendar(self.cursor.year, self.cursor.month):
            lines.append("".join(self._cell(day) for day in week).rstrip())
        lines.append("")
        lines.append("Space pick  Tab start/end  x clear  H/L month  Enter apply")
        return PopupView(title=self.title, lines=tuple(lines))
