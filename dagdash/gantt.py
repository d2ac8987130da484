"""Per-task timeline bars for the task instance panel."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .models import TaskInstance, TaskTry

logger = logging.getLogger(__name__)

# A try counts as still going while in one of these states
OPEN_STATES = ("running", "queued", "scheduled")

Segment = tuple[float, float, str | None]


@dataclass
class GanttData:
    """Tries of every task in one DAG run, laid out on a shared time window.

    Rebuilt from the task instance listing on every refresh, which only knows
    each task's latest try. Earlier tries are merged in with
    :meth:`update_tries` once the tries endpoint has answered. Mapped
    instances share their task's bar.
    """

    task_tries: dict[str, list[TaskTry]] = field(default_factory=dict)
    window_start: datetime | None = None
    window_end: datetime | None = None
    now: datetime | None = None

    @classmethod
    def from_task_instances(cls, items: Iterable[TaskInstance], now: datetime | None = None) -> GanttData:
        gantt = cls(now=now)
        for ti in items:
            gantt.task_tries.setdefault(ti.task_id, []).append(TaskTry.of(ti))
        for tries in gantt.task_tries.values():
            tries.sort(key=lambda t: t.try_number)
        gantt.recompute_window()
        return gantt

    def retried_task_ids(self) -> list[str]:
        """Retried tasks whose earlier tries have not been fetched yet."""
        return [
            task_id
            for task_id, tries in self.task_tries.items()
            if tries and tries[-1].try_number > len(tries)
        ]

    def update_tries(self, task_id: str, tries: Iterable[TaskTry]) -> None:
        self.task_tries[task_id] = sorted(tries, key=lambda t: t.try_number)
        logger.debug("Loaded %d tries of %s", len(self.task_tries[task_id]), task_id)
        self.recompute_window()

    def carry_tries(self, previous: GanttData) -> None:
        """Keep fetched history from ``previous`` for tasks still on their same latest try."""
        for task_id, tries in previous.task_tries.items():
            current = self.task_tries.get(task_id)
            if not current or len(tries) <= len(current):
                continue
            if tries[-1].try_number == current[-1].try_number:
                self.task_tries[task_id] = tries[:-1] + current[-1:]
        self.recompute_window()

    def _now(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    def recompute_window(self) -> None:
        starts = [t.start_date for tries in self.task_tries.values() for t in tries if t.start_date]
        ends = [t.end_date for tries in self.task_tries.values() for t in tries if t.end_date]
        still_open = any(t.state in OPEN_STATES for tries in self.task_tries.values() for t in tries)
        self.window_start = min(starts) if starts else None
        if still_open:
            self.window_end = self._now()
        else:
            self.window_end = max(ends) if ends else None

    def ratio(self, moment: datetime) -> float:
        if self.window_start is None or self.window_end is None:
            return 0.0
        total = (self.window_end - self.window_start).total_seconds()
        if total <= 0:
            return 0.0
        return min(max((moment - self.window_start).total_seconds() / total, 0.0), 1.0)

    def segments(self, task_id: str) -> tuple[Segment, ...]:
        """``(start, end, state)`` per try, as fractions of the window."""
        if self.window_start is None or self.window_end is None:
            return ()
        segments = []
        for t in self.task_tries.get(task_id, []):
            if t.start_date is None:
                continue
            end = t.end_date or self._now()
            segments.append((self.ratio(t.start_date), self.ratio(end), t.state))
        return tuple(segments)
