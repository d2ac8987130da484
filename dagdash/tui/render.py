"""Turn snapshots into rich renderables.

Pure functions only; the Textual app decides where each piece goes.
"""

from __future__ import annotations

import math

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..view import FilterView, LogView, PopupView, Snapshot, TableView

STATE_STYLES: dict[str, str] = {
    "success": "green",
    "active": "green",
    "running": "bright_green",
    "failed": "red",
    "upstream_failed": "dark_orange",
    "import_error": "red",
    "queued": "grey62",
    "scheduled": "tan",
    "up_for_retry": "yellow",
    "up_for_reschedule": "turquoise2",
    "restarting": "violet",
    "deferred": "medium_purple",
    "skipped": "hot_pink",
    "removed": "grey42",
    "paused": "grey50",
}

SELECTED_STYLE = "reverse"
HIGHLIGHT_STYLE = "on grey23"
MAX_CANDIDATES = 8
GANTT_WIDTH = 24
GANTT_BAR = "▃"


def state_style(state: str | None) -> str:
    return STATE_STYLES.get(state or "", "")


def visible_window(total: int, selected: int | None, height: int) -> tuple[int, int]:
    """Return the ``[start, end)`` slice of rows that keeps ``selected`` on screen."""
    if height <= 0 or total <= height:
        return 0, total
    if selected is None:
        return 0, height
    start = min(max(selected - height // 2, 0), total - height)
    return start, start + height


def render_timeline(segments, width: int = GANTT_WIDTH) -> Text:
    """Draw each try as a bar at its place in the run's time window."""
    cells: list[str | None] = [None] * width
    for start, end, state in segments:
        first = min(math.floor(start * width), width - 1)
        last = min(max(math.ceil(end * width), first + 1), width)
        for col in range(first, last):
            cells[col] = state or ""
    text = Text()
    for cell in cells:
        if cell is None:
            text.append(" ")
        else:
            text.append(GANTT_BAR, style=state_style(cell))
    return text


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------


def render_breadcrumbs(snapshot: Snapshot) -> Text:
    text = Text()
    if not snapshot.breadcrumbs:
        text.append("no server selected", style="dim")
    for i, crumb in enumerate(snapshot.breadcrumbs):
        if i:
            text.append(" › ", style="dim")
        text.append(crumb, style="bold" if i == len(snapshot.breadcrumbs) - 1 else "")
    if snapshot.loading:
        text.append("  loading…", style="italic dim")
    if not snapshot.focused:
        text.append("  (paused)", style="dim")
    return text


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


def render_table(view: TableView, height: int = 0) -> RenderableType:
    # Title and header take two lines
    start, end = visible_window(len(view.rows), view.selected, height - 2 if height else 0)
    caption = f"{len(view.rows)}/{view.total}" if view.total != len(view.rows) else str(view.total)
    table = Table(
        title=f"{view.title} ({caption})",
        title_justify="left",
        expand=True,
        box=None,
        header_style="bold",
        pad_edge=False,
    )
    for column in view.columns:
        table.add_column(column, no_wrap=True, overflow="ellipsis")

    if not view.rows:
        return Group(table, Text(view.empty_message, style="dim"))

    highlighted = set(view.highlighted)
    for index in range(start, end):
        row = view.rows[index]
        cells: list[RenderableType] = list(row.cells)
        if view.state_column is not None and view.state_column < len(cells):
            cells[view.state_column] = Text(
                row.cells[view.state_column], style=state_style(row.state)
            )
        if row.timeline is not None:
            cells.append(render_timeline(row.timeline))
        style = ""
        if index == view.selected:
            style = SELECTED_STYLE
        elif index in highlighted:
            style = HIGHLIGHT_STYLE
        table.add_row(*cells, style=style)
    return table


def render_log(view: LogView, height: int = 0) -> RenderableType:
    header = Text(view.title, style="bold")
    if view.tries:
        header.append("   tries: ")
        for try_number in view.tries:
            style = "reverse" if try_number == view.current_try else "dim"
            header.append(f" {try_number} ", style=style)

    if not view.lines:
        return Group(header, Text("No log output", style="dim"))

    body_height = height - 1 if height > 1 else len(view.lines)
    lines = view.lines[view.scroll:view.scroll + body_height]
    return Group(header, Text("\n".join(lines)))


def render_body(snapshot: Snapshot, height: int = 0) -> RenderableType:
    body = snapshot.body
    if isinstance(body, TableView):
        return render_table(body, height)
    if isinstance(body, LogView):
        return render_log(body, height)
    return Text("")


# ---------------------------------------------------------------------------
# Filter bar
# ---------------------------------------------------------------------------


def render_filter(view: FilterView) -> Text:
    """One-line filter bar: confirmed conditions, typed text, ghost, candidates."""
    text = Text()
    if view.mode == "inactive":
        if view.conditions:
            text.append("filter: ", style="dim")
            text.append(view.conditions, style="cyan")
        return text

    text.append("/", style="bold cyan")
    if view.conditions:
        text.append(view.conditions + " ", style="cyan")
    if view.mode == "attribute":
        text.append(":", style="bold yellow")
    elif view.mode == "value" and view.field:
        text.append(f"{view.field}:", style="bold yellow")
    text.append(view.typed)
    text.append(view.ghost, style="dim")
    text.append("█", style="blink")

    if view.candidates:
        text.append("   ")
        start, end = visible_window(len(view.candidates), view.selected_candidate, MAX_CANDIDATES)
        if start:
            text.append(f"+{start} ", style="dim")
        for i in range(start, end):
            style = "reverse" if i == view.selected_candidate else "dim"
            text.append(f" {view.candidates[i]} ", style=style)
        if end < len(view.candidates):
            text.append(f" +{len(view.candidates) - end}", style="dim")
    return text


# ---------------------------------------------------------------------------
# Popups
# ---------------------------------------------------------------------------


def render_popup(view: PopupView, height: int = 0) -> Panel:
    lines = view.lines
    if height > 4:
        lines = lines[view.scroll:view.scroll + height - 4]
    body = Text("\n".join(lines))
    if view.options:
        if lines:
            body.append("\n\n")
        for i, option in enumerate(view.options):
            if i:
                body.append("  ")
            style = "reverse" if i == view.selected else ""
            body.append(f" {option} ", style=style)
    return Panel(
        body,
        title=view.title,
        title_align="left",
        border_style="red" if view.error else "cyan",
    )


def render_help(snapshot: Snapshot) -> Text:
    text = Text(snapshot.help, style="dim")
    if snapshot.panel != "config":
        text.append("  Esc back", style="dim")
    text.append("  ? help", style="dim")
    text.append("  q quit", style="dim")
    return text
