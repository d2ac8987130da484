"""Log panel: one task instance's logs, one try at a time."""

from __future__ import annotations

from ..commands import OpenItem, UpdateTaskLogs
from ..events import Key, Mouse
from ..models import TaskLog
from ..view import LogView
from .base import NavContext, Panel, PanelOutcome

PAGE = 20


class LogPanel(Panel):
    name = "logs"
    title = "Logs"
    help = "[ ] previous/next try  j/k scroll  G end  o open"
    commands = (
        ("[ / ]", "Try", "Previous or next try"),
        ("j/k", "Scroll", "Scroll down or up"),
        ("G / g", "Jump", "Jump to the end or start"),
        ("o", "Open", "Open the task instance in the browser"),
    )

    def __init__(self, refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.logs: list[TaskLog] = []
        self.current: int | None = None
        self.scroll = 0
        self.task_id: str | None = None

    def reset(self) -> None:
        super().reset()
        self.logs = []
        self.current = None
        self.scroll = 0
        self.loading = True

    def set_logs(self, logs: list[TaskLog]) -> None:
        """Replace the logs, staying on the same try unless none was chosen."""
        previous = self.logs[self.current].try_number if self.current is not None and self.logs else None
        self.logs = sorted(logs, key=lambda log: log.try_number)
        self.loading = False
        if not self.logs:
            self.current = None
            return
        tries = [log.try_number for log in self.logs]
        if previous in tries:
            self.current = tries.index(previous)
        else:
            self.current = len(self.logs) - 1
            self.scroll = 0

    def current_log(self) -> TaskLog | None:
        if self.current is None:
            return None
        return self.logs[self.current]

    def refresh_commands(self, nav: NavContext):
        if None in (nav.server, nav.dag_id, nav.dag_run_id, nav.task_id):
            return []
        return [
            UpdateTaskLogs(
                server=nav.server,
                dag_id=nav.dag_id,
                dag_run_id=nav.dag_run_id,
                task_id=nav.task_id,
                try_number=nav.try_number,
            )
        ]

    def _line_count(self) -> int:
        log = self.current_log()
        return len(log.lines) if log else 0

    def _scroll_by(self, delta: int) -> None:
        self.scroll = max(0, min(self.scroll + delta, max(self._line_count() - 1, 0)))

    def handle_key(self, key: Key, nav: NavContext) -> PanelOutcome:
        if key.is_char("[") and self.current:
            self.current -= 1
            self.scroll = 0
            return PanelOutcome.consumed()
        if key.is_char("]") and self.current is not None and self.current < len(self.logs) - 1:
            self.current += 1
            self.scroll = 0
            return PanelOutcome.consumed()
        if key.key == "down" or key.is_char("j"):
            self._scroll_by(1)
            return PanelOutcome.consumed()
        if key.key == "up" or key.is_char("k"):
            self._scroll_by(-1)
            return PanelOutcome.consumed()
        if key.key == "pagedown":
            self._scroll_by(PAGE)
            return PanelOutcome.consumed()
        if key.key == "pageup":
            self._scroll_by(-PAGE)
            return PanelOutcome.consumed()
        if key.is_char("G"):
            self.scroll = max(self._line_count() - 1, 0)
            return PanelOutcome.consumed()
        if key.is_char("g"):
            self.scroll = 0
            return PanelOutcome.consumed()
        if key.is_char("o") and nav.server and nav.task_id:
            return PanelOutcome.consumed(
                [OpenItem(server=nav.server, dag_id=nav.dag_id, dag_run_id=nav.dag_run_id, task_id=nav.task_id)]
            )
        return PanelOutcome.passed(key)

    def handle_mouse(self, mouse: Mouse) -> PanelOutcome:
        if mouse.kind == "scroll_down":
            self._scroll_by(3)
            return PanelOutcome.consumed()
        if mouse.kind == "scroll_up":
            self._scroll_by(-3)
            return PanelOutcome.consumed()
        return PanelOutcome.passed(mouse)

    def view(self) -> LogView:
        log = self.current_log()
        title = f"Logs of {self.task_id}" if self.task_id else self.title
        if log is None:
            return LogView(title=title, lines=("Loading…",) if self.loading else ("No logs",))
        return LogView(
            title=f"{title} (try {log.try_number})",
            tries=tuple(entry.try_number for entry in self.logs),
            current_try=log.try_number,
            lines=tuple(log.lines),
            scroll=self.scroll,
        )
