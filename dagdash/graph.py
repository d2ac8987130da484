"""Task dependency graph and task-instance ordering."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, TypeVar

logger = logging.getLogger(__name__)


class TaskLike(Protocol):
    task_id: str
    downstream_task_ids: list[str]


@dataclass
class TaskGraph:
    """A topological order of task ids with O(1) position lookup.

    Built once from the task definitions of a DAG and rebuilt wholesale when
    they are re-fetched. Tasks caught in a cycle never become ready and are
    left out of both structures.
    """

    sorted_task_ids: list[str] = field(default_factory=list)
    task_positions: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_tasks(cls, tasks: Iterable[TaskLike]) -> TaskGraph:
        tasks = list(tasks)
        in_degree: dict[str, int] = {}
        successors: dict[str, list[str]] = {}

        for task in tasks:
            in_degree.setdefault(task.task_id, 0)
            successors.setdefault(task.task_id, [])
        for task in tasks:
            for downstream in task.downstream_task_ids:
                if downstream not in in_degree:
                    # Edge to a task that isn't in the definition list
                    logger.debug("Ignoring edge %s -> %s: unknown task", task.task_id, downstream)
                    continue
                successors[task.task_id].append(downstream)
                in_degree[downstream] += 1

        ready = deque(task_id for task_id, degree in in_degree.items() if degree == 0)
        order: list[str] = []
        while ready:
            task_id = ready.popleft()
            order.append(task_id)
            for downstream in successors[task_id]:
                in_degree[downstream] -= 1
                if in_degree[downstream] == 0:
                    ready.append(downstream)

        if len(order) < len(in_degree):
            logger.info(
                "Task graph has a cycle; %d task(s) left unordered",
                len(in_degree) - len(order),
            )

        return cls(
            sorted_task_ids=order,
            task_positions={task_id: index for index, task_id in enumerate(order)},
        )

    def position(self, task_id: str) -> int | None:
        return self.task_positions.get(task_id)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.task_positions

    def __len__(self) -> int:
        return len(self.sorted_task_ids)


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

T = TypeVar("T")


def _timestamp_key(value: datetime | None) -> tuple[int, datetime]:
    # Missing timestamps sort after every real one
    if value is None:
        return (1, _EPOCH)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (0, value)


def task_instance_sort_key(
    graph: TaskGraph,
    task_id: Callable[[T], str] = lambda item: item.task_id,
    start_date: Callable[[T], datetime | None] = lambda item: item.start_date,
) -> Callable[[T], tuple]:
    """Sort key putting graph members first, by position, then orphans by start date."""

    def key(item: T) -> tuple:
        position = graph.position(task_id(item))
        if position is not None:
            return (0, position, (0, _EPOCH))
        return (1, 0, _timestamp_key(start_date(item)))

    return key


def sort_task_instances(items: list[T], graph: TaskGraph, **accessors) -> None:
    """Sort ``items`` in place using ``graph`` with a start-date fallback.

    Instances whose task is in the graph come first, ordered by graph
    position. Instances whose task is no longer part of the DAG (orphans) come
    last, ordered by start date ascending. The sort is stable, so sorting an
    already sorted list leaves it unchanged.
    """
    items.sort(key=task_instance_sort_key(graph, **accessors))


def sorted_task_instances(items: Sequence[T], graph: TaskGraph, **accessors) -> list[T]:
    result = list(items)
    sort_task_instances(result, graph, **accessors)
    return result
