"""DAG panel."""

from __future__ import annotations

from ..commands import GetDagCode, OpenItem, ToggleDag, UpdateDags
from ..events import Key
from ..models import Dag, DagStatistic
from ..utils import format_timestamp, truncate
from ..view import TableRow
from .base import TABLE_COMMANDS, NavContext, PanelOutcome, TablePanel

# Run states summarised in the "Runs" column, in display order
STAT_STATES = ("running", "queued", "success", "failed")


class DagPanel(TablePanel[Dag]):
    name = "dags"
    title = "DAGs"
    help = "Enter runs  p pause/unpause  v source  o open  / filter"
    commands = (
        ("Enter", "Runs", "Show the runs of the DAG"),
        ("p", "Pause", "Pause or unpause the DAG"),
        ("v", "Show", "Show DAG code"),
        ("o", "Open", "Open the DAG in the browser"),
    ) + TABLE_COMMANDS
    entity_type = Dag
    columns = ("", "DAG", "Owners", "Tags", "Schedule", "Next run", "Runs")
    state_column = 0

    def __init__(self, refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.stats: dict[str, list[DagStatistic]] = {}

    @staticmethod
    def item_key(item: Dag) -> str:
        return item.dag_id

    def set_dags(self, dags: list[Dag], stats: dict[str, list[DagStatistic]]) -> None:
        self.stats = stats
        self.set_items(sorted(dags, key=lambda d: d.dag_id.lower()))
        self.table.filter.set_field_values("owners", sorted({o for d in dags for o in d.owners}))
        self.table.filter.set_field_values("tags", sorted({t for d in dags for t in d.tags}))

    def reset(self) -> None:
        super().reset()
        self.stats = {}

    def refresh_commands(self, nav: NavContext):
        if nav.server is None:
            return []
        return [UpdateDags(server=nav.server)]

    def handle_action(self, key: Key, nav: NavContext) -> PanelOutcome:
        dag = self.current()
        if dag is None or nav.server is None:
            return PanelOutcome.passed(key)
        if key.is_char("p"):
            # Flip locally so the row reflects the change before the refresh lands
            command = ToggleDag(server=nav.server, dag_id=dag.dag_id, is_paused=dag.is_paused)
            dag.is_paused = not dag.is_paused
            self.table.apply_filter()
            return PanelOutcome.consumed([command])
        if key.is_char("v"):
            return PanelOutcome.consumed(
                [GetDagCode(server=nav.server, dag_id=dag.dag_id, file_token=dag.file_token)]
            )
        if key.is_char("o"):
            return PanelOutcome.consumed([OpenItem(server=nav.server, dag_id=dag.dag_id)])
        return PanelOutcome.passed(key)

    def _stats_summary(self, dag_id: str) -> str:
        counts = {s.state: s.count for s in self.stats.get(dag_id, [])}
        return " ".join(f"{state[0]}:{counts[state]}" for state in STAT_STATES if counts.get(state))

    def row(self, item: Dag) -> TableRow:
        return TableRow(
            (
                "paused" if item.is_paused else "active",
                item.dag_id,
                truncate(", ".join(item.owners), 20),
                truncate(", ".join(item.tags), 24),
                truncate(item.timetable_description, 24),
                format_timestamp(item.next_dagrun),
                self._stats_summary(item.dag_id),
            ),
            state="import_error" if item.has_import_errors else ("paused" if item.is_paused else "active"),
        )
