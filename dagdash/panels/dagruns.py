"""DAG run panel."""

from __future__ import annotations

from ..commands import ClearDagRun, GetDagCode, MarkDagRun, OpenItem, TriggerDagRun, UpdateDagRuns
from ..events import Key
from ..models import DAG_RUN_MARK_STATES, DagRun, DagRunDateFilter
from ..utils import format_duration, format_timestamp
from ..view import TableRow
from .base import TABLE_COMMANDS, NavContext, PanelOutcome, TablePanel
from .popups import ConfirmPopup, DateFilterPopup, MarkPopup


class DagRunPanel(TablePanel[DagRun]):
    name = "dagruns"
    title = "DAG runs"
    help = "Enter tasks  m mark  c clear  t trigger  f dates  V select  v source  o open  / filter"
    commands = (
        ("Enter", "Tasks", "Show the task instances of the run"),
        ("c", "Clear", "Clear a DAG run"),
        ("m", "Mark", "Mark a DAG run"),
        ("V", "Select", "Select several runs to mark or clear"),
        ("t", "Trigger", "Trigger a DAG run"),
        ("f", "Dates", "Only show runs in a date range"),
        ("v", "Show", "Show DAG code"),
        ("o", "Open", "Open the run in the browser"),
    ) + TABLE_COMMANDS
    entity_type = DagRun
    columns = ("State", "DAG run", "Logical date", "Type", "Duration")
    state_column = 0

    def __init__(self, refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.dag_id: str | None = None
        self.date_filter: DagRunDateFilter | None = None

    @staticmethod
    def item_key(item: DagRun) -> str:
        return item.dag_run_id

    def table_title(self) -> str:
        title = f"DAG runs of {self.dag_id}" if self.dag_id else self.title
        if self.date_filter is not None:
            title += f" [{self.date_filter.display()}]"
        return title

    def reset(self) -> None:
        super().reset()
        self.date_filter = None

    def refresh_commands(self, nav: NavContext):
        if nav.server is None or nav.dag_id is None:
            return []
        return [UpdateDagRuns(server=nav.server, dag_id=nav.dag_id, date_filter=self.date_filter)]

    def set_date_filter(self, date_filter: DagRunDateFilter | None, nav: NavContext) -> list:
        """Apply a new date range and re-fetch the runs it covers."""
        self.date_filter = date_filter
        self.loading = True
        return self.refresh_commands(nav)

    def handle_action(self, key: Key, nav: NavContext) -> PanelOutcome:
        if nav.server is None or nav.dag_id is None:
            return PanelOutcome.passed(key)
        server, dag_id = nav.server, nav.dag_id

        if key.is_char("t"):
            self.popup = ConfirmPopup(
                "Trigger DAG run",
                f"Trigger a new run of {dag_id}?",
                [TriggerDagRun(server=server, dag_id=dag_id)],
            )
            return PanelOutcome.consumed()
        if key.is_char("f"):
            self.popup = DateFilterPopup(self.date_filter, lambda chosen: self.set_date_filter(chosen, nav))
            return PanelOutcome.consumed()
        if key.is_char("v"):
            return PanelOutcome.consumed(
                [GetDagCode(server=server, dag_id=dag_id, file_token=nav.file_token)]
            )

        run_ids = [run.dag_run_id for run in self.table.selected_items()]
        if not run_ids:
            return PanelOutcome.passed(key)

        if key.is_char("m"):
            self.popup = MarkPopup(
                "Mark DAG run",
                run_ids,
                DAG_RUN_MARK_STATES,
                lambda run_id, status: MarkDagRun(server, dag_id, run_id, status),
            )
            self.table.visual_mode = False
            return PanelOutcome.consumed()
        if key.is_char("c"):
            label = run_ids[0] if len(run_ids) == 1 else f"{len(run_ids)} DAG runs"
            self.popup = ConfirmPopup(
                "Clear DAG run",
                f"Clear {label}?\nAll task instances will be reset.",
                [ClearDagRun(server=server, dag_id=dag_id, dag_run_id=r) for r in run_ids],
            )
            self.table.visual_mode = False
            return PanelOutcome.consumed()
        if key.is_char("o"):
            return PanelOutcome.consumed(
                [OpenItem(server=server, dag_id=dag_id, dag_run_id=run_ids[0])]
            )
        return PanelOutcome.passed(key)

    def row(self, item: DagRun) -> TableRow:
        return TableRow(
            (
                item.state,
                item.dag_run_id,
                format_timestamp(item.logical_date),
                item.run_type,
                format_duration(item.duration),
            ),
            state=item.state,
        )
