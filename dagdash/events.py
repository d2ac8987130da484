"""Terminal events and the single stream that merges them.

Three producers feed one queue: the terminal input forwarder (keys, mouse,
focus changes), a timer thread emitting ticks, and the worker delivering
command results. The owner loop consumes the queue one item at a time.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

DEFAULT_TICK_RATE = 0.2  # seconds


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Key:
    """A key press, named the way Textual names keys.

    ``key`` is the key name ("escape", "enter", "backspace", "tab",
    "shift+tab", "space", "ctrl+c", "j", ...). ``character`` is the printable
    character, if any.
    """

    key: str
    character: str | None = None

    @classmethod
    def char(cls, ch: str) -> Key:
        return cls(key="space" if ch == " " else ch, character=ch)

    def is_char(self, ch: str) -> bool:
        return self.character == ch

    @property
    def is_space(self) -> bool:
        return self.key == "space"

    @property
    def is_printable(self) -> bool:
        return self.character is not None and len(self.character) == 1 and self.character.isprintable()


@dataclass(frozen=True)
class Mouse:
    kind: str  # "scroll_up" | "scroll_down" | "click"
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class FocusGained:
    pass


@dataclass(frozen=True)
class FocusLost:
    pass


Event = Union[Tick, Key, Mouse, FocusGained, FocusLost]

TICK = Tick()


class _Closed:
    """Sentinel placed on the queue by :meth:`EventSource.close`."""


_CLOSED = _Closed()


# ---------------------------------------------------------------------------
# EventSource
# ---------------------------------------------------------------------------


class EventSource:
    """Fan-in of input, timer and worker results into one blocking stream.

    Ordering within one producer is preserved because every producer puts
    onto the same FIFO queue. Nothing is dropped here; the consumer decides
    which ticks to ignore.
    """

    def __init__(self, tick_rate: float = DEFAULT_TICK_RATE) -> None:
        self.tick_rate = tick_rate
        self._queue: queue.Queue = queue.Queue()
        self._stop = threading.Event()
        self._timer: threading.Thread | None = None

    def start(self) -> None:
        if self._timer is not None:
            return
        self._timer = threading.Thread(target=self._tick_loop, name="dagdash-ticker", daemon=True)
        self._timer.start()

    def _tick_loop(self) -> None:
        while not self._stop.wait(self.tick_rate):
            self._queue.put(TICK)

    def push(self, event: Event) -> None:
        """Offer a terminal event (key, mouse, focus) to the stream."""
        self._queue.put(event)

    def deliver(self, result) -> None:
        """Offer a worker result to the stream. Safe to call from any thread."""
        self._queue.put(result)

    def next(self, timeout: float | None = None):
        """Block until the next event or worker result.

        Returns None once the source has been closed, or when ``timeout``
        elapses with nothing available.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # Leave the sentinel for any other consumer
            self._queue.put(_CLOSED)
            return None
        return item

    def close(self) -> None:
        self._stop.set()
        self._queue.put(_CLOSED)
        if self._timer is not None and self._timer is not threading.current_thread():
            self._timer.join(timeout=1)
        logger.debug("Event source closed")

    @property
    def closed(self) -> bool:
        return self._stop.is_set()
