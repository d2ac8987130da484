"""Textual shell for the dashboard.

Textual only paints and forwards input here. Every key, mouse scroll and
focus change is pushed onto the :class:`EventSource`; the owner loop runs in
a worker thread and hands back a :class:`Snapshot` after each change.
"""

from __future__ import annotations

import logging
from pathlib import Path

from textual import events as textual_events
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Header, Static

from ..events import EventSource, FocusGained, FocusLost, Key, Mouse
from ..loop import run_loop
from ..state import AppState
from ..view import Snapshot
from ..worker import Worker
from .render import render_body, render_breadcrumbs, render_filter, render_help, render_popup

logger = logging.getLogger(__name__)


class DagDashApp(App, inherit_bindings=False):
    """Airflow dashboard: servers, DAGs, DAG runs, task instances, logs."""

    CSS_PATH = Path(__file__).parent / "dashboard.tcss"

    TITLE = "dagdash"
    SUB_TITLE = "Airflow"

    ENABLE_COMMAND_PALETTE = False

    # Everything else goes through the owner loop
    BINDINGS = [Binding("ctrl+q", "quit", "Quit", show=False, priority=True)]

    def __init__(
        self,
        state: AppState,
        events: EventSource,
        worker: Worker,
        server: str | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self._state = state
        self._events = events
        self._worker = worker
        self._server = server
        self.loop_error: BaseException | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="breadcrumbs")
        yield Static(id="body")
        yield Static(id="popup")
        yield Static(id="filter-bar")
        yield Static(id="help-bar")

    def on_mount(self) -> None:
        self.query_one("#popup", Static).display = False
        self._events.start()
        self._run_owner_loop()

    def on_unmount(self) -> None:
        self._events.close()
        self._worker.shutdown()

    # ------------------------------------------------------------------
    # Owner loop
    # ------------------------------------------------------------------

    @work(thread=True, exit_on_error=False, name="owner-loop")
    def _run_owner_loop(self) -> None:
        try:
            run_loop(
                self._state,
                self._events,
                self._worker.submit,
                self._post_snapshot,
                server=self._server,
            )
        except Exception as exc:
            logger.exception("Owner loop crashed")
            self.loop_error = exc
        finally:
            if self.is_running:
                self.call_from_thread(self.exit)

    def _post_snapshot(self, snapshot: Snapshot) -> None:
        """Render on the UI thread and wait, so snapshots never pile up."""
        self.call_from_thread(self._show, snapshot)

    def _show(self, snapshot: Snapshot) -> None:
        body = self.query_one("#body", Static)
        body.update(render_body(snapshot, body.size.height))
        self.query_one("#breadcrumbs", Static).update(render_breadcrumbs(snapshot))
        self.query_one("#filter-bar", Static).update(render_filter(snapshot.filter))
        self.query_one("#help-bar", Static).update(render_help(snapshot))

        popup = self.query_one("#popup", Static)
        shown = snapshot.errors or snapshot.popup
        popup.display = shown is not None
        if shown is not None:
            popup.update(render_popup(shown, self.size.height // 2))

    # ------------------------------------------------------------------
    # Input forwarding
    # ------------------------------------------------------------------

    def on_key(self, event: textual_events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._events.push(Key(event.key, event.character))

    def on_mouse_scroll_down(self, event: textual_events.MouseScrollDown) -> None:
        event.stop()
        self._events.push(Mouse("scroll_down", event.x, event.y))

    def on_mouse_scroll_up(self, event: textual_events.MouseScrollUp) -> None:
        event.stop()
        self._events.push(Mouse("scroll_up", event.x, event.y))

    def on_app_focus(self, event: textual_events.AppFocus) -> None:
        self._events.push(FocusGained())

    def on_app_blur(self, event: textual_events.AppBlur) -> None:
        self._events.push(FocusLost())
