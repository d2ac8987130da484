"""Task instance panel, ordered by the DAG's task graph."""

from __future__ import annotations

import logging

from ..commands import ClearTaskInstance, MarkTaskInstance, OpenItem, UpdateTaskInstances
from ..events import Key
from ..gantt import GanttData
from ..graph import TaskGraph, sorted_task_instances
from ..models import TASK_INSTANCE_MARK_STATES, TaskInstance, TaskTry
from ..utils import format_duration, format_timestamp
from ..view import TableRow
from .base import TABLE_COMMANDS, NavContext, PanelOutcome, TablePanel
from .popups import ConfirmPopup, MarkPopup

logger = logging.getLogger(__name__)


class TaskInstancePanel(TablePanel[TaskInstance]):
    name = "taskinstances"
    title = "Task instances"
    help = "Enter logs  m mark  c clear  V select  o open  / filter"
    commands = (
        ("Enter", "Logs", "Show the logs of the task instance"),
        ("m", "Mark", "Mark the selected task instances"),
        ("c", "Clear", "Clear the selected task instances and their downstream tasks"),
        ("V", "Select", "Toggle range selection"),
        ("o", "Open", "Open the task instance in the browser"),
    ) + TABLE_COMMANDS
    entity_type = TaskInstance
    columns = ("State", "Task", "Operator", "Try", "Started", "Duration", "Timeline")
    state_column = 0

    def __init__(self, refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.graph: TaskGraph | None = None
        self.dag_run_id: str | None = None
        self.gantt = GanttData()

    @staticmethod
    def item_key(item: TaskInstance) -> str:
        # Mapped tasks share a task_id
        if item.map_index >= 0:
            return f"{item.task_id}[{item.map_index}]"
        return item.task_id

    def table_title(self) -> str:
        return f"Task instances of {self.dag_run_id}" if self.dag_run_id else self.title

    def set_graph(self, graph: TaskGraph | None) -> None:
        """Install a freshly built graph and re-sort what is shown."""
        self.graph = graph
        if self.table.all:
            self.table.set_items(self._sorted(self.table.all))

    def set_task_instances(self, items: list[TaskInstance]) -> None:
        previous = self.gantt
        self.gantt = GanttData.from_task_instances(items)
        self.gantt.carry_tries(previous)
        self.set_items(self._sorted(items))
        self.table.filter.set_field_values(
            "operator", sorted({ti.operator for ti in items if ti.operator})
        )

    def set_tries(self, task_id: str, tries: list[TaskTry]) -> None:
        self.gantt.update_tries(task_id, tries)

    def reset(self) -> None:
        super().reset()
        self.gantt = GanttData()

    def _sorted(self, items: list[TaskInstance]) -> list[TaskInstance]:
        # Map index as a secondary key so mapped instances stay grouped
        items = sorted(items, key=lambda ti: ti.map_index)
        graph = self.graph if self.graph is not None else TaskGraph()
        orphans = [ti.task_id for ti in items if ti.task_id not in graph]
        if orphans and self.graph is not None:
            logger.debug("%d task instance(s) not in the current DAG graph", len(orphans))
        return sorted_task_instances(items, graph)

    def refresh_commands(self, nav: NavContext):
        if nav.server is None or nav.dag_id is None or nav.dag_run_id is None:
            return []
        return [UpdateTaskInstances(server=nav.server, dag_id=nav.dag_id, dag_run_id=nav.dag_run_id)]

    def handle_action(self, key: Key, nav: NavContext) -> PanelOutcome:
        if nav.server is None or nav.dag_id is None or nav.dag_run_id is None:
            return PanelOutcome.passed(key)
        server, dag_id, run_id = nav.server, nav.dag_id, nav.dag_run_id
        task_ids = list(dict.fromkeys(ti.task_id for ti in self.table.selected_items()))
        if not task_ids:
            return PanelOutcome.passed(key)

        if key.is_char("m"):
            self.popup = MarkPopup(
                "Mark task instance",
                task_ids,
                TASK_INSTANCE_MARK_STATES,
                lambda task_id, status: MarkTaskInstance(server, dag_id, run_id, task_id, status),
            )
            self.table.visual_mode = False
            return PanelOutcome.consumed()
        if key.is_char("c"):
            label = task_ids[0] if len(task_ids) == 1 else f"{len(task_ids)} task instances"
            self.popup = ConfirmPopup(
                "Clear task instance",
                f"Clear {label} and its downstream tasks?",
                [ClearTaskInstance(server, dag_id, run_id, task_id) for task_id in task_ids],
            )
            self.table.visual_mode = False
            return PanelOutcome.consumed()
        if key.is_char("o"):
            return PanelOutcome.consumed(
                [OpenItem(server=server, dag_id=dag_id, dag_run_id=run_id, task_id=task_ids[0])]
            )
        return PanelOutcome.passed(key)

    def row(self, item: TaskInstance) -> TableRow:
        task = item.task_id if item.map_index < 0 else f"{item.task_id} [{item.map_index}]"
        return TableRow(
            (
                item.state or "none",
                task,
                item.operator or "",
                f"{item.try_number}/{item.max_tries + 1}" if item.max_tries else str(item.try_number),
                format_timestamp(item.start_date),
                format_duration(item.duration),
            ),
            state=item.state,
            timeline=self.gantt.segments(item.task_id),
        )
