"""The owner loop: one event at a time, one render per change."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .commands import RESULT_TYPES
from .config import save_config
from .events import EventSource, Tick
from .state import AppState
from .view import Snapshot

logger = logging.getLogger(__name__)


def run_loop(
    state: AppState,
    events: EventSource,
    submit: Callable,
    render: Callable[[Snapshot], None],
    server: str | None = None,
) -> None:
    """Drive ``state`` until the user quits or ``events`` is closed.

    Blocks only on ``events.next()``. Worker results arrive through the same
    stream as terminal input, so every state change happens here.
    """
    for command in state.start(server):
        submit(command)
    render(state.view())

    while not state.should_quit:
        item = events.next()
        if item is None:
            if events.closed:
                logger.debug("Event source closed, leaving loop")
                break
            continue

        if isinstance(item, RESULT_TYPES):
            commands = state.apply_result(item)
        else:
            dropped = isinstance(item, Tick) and not state.focused
            commands = state.handle_event(item)
            if dropped:
                # Nothing changed, skip the redraw
                continue

        for command in commands:
            submit(command)

        if not state.should_quit:
            render(state.view())

    if state.save_on_exit:
        path = save_config(state.config)
        logger.info("Saved config to %s", path)
