"""Central dashboard state, owned and mutated by the owner loop only.

``AppState.handle_event`` consumes one event and returns the commands to
submit; ``AppState.apply_result`` consumes one worker result. A fetch result
is applied only while the navigation context it was issued under is still
current, so results may arrive in any order.
"""

from __future__ import annotations

import logging

from .commands import (
    MUTATIONS,
    ClearDagRun,
    ClearTaskInstance,
    CommandFailed,
    DagListing,
    GetDagCode,
    MarkDagRun,
    MarkTaskInstance,
    OpenItem,
    ToggleDag,
    TriggerDagRun,
    UpdateDagRuns,
    UpdateDags,
    UpdateTaskInstances,
    UpdateTaskLogs,
    UpdateTasks,
    UpdateTaskTries,
    WorkerCommand,
    WorkerResult,
    describe,
)
from .config import DashConfig
from .events import Event, FocusGained, FocusLost, Key, Tick
from .graph import TaskGraph
from .panels import (
    CodePopup,
    ConfigPanel,
    DagPanel,
    DagRunPanel,
    ErrorPopup,
    LogPanel,
    NavContext,
    Panel,
    TaskInstancePanel,
)
from .view import Snapshot

logger = logging.getLogger(__name__)

QUIT_KEYS = ("ctrl+c", "ctrl+d")
NEXT_PANEL_KEYS = ("enter", "right")
PREVIOUS_PANEL_KEYS = ("escape", "left")


class AppState:
    """All panel data, navigation and popups."""

    def __init__(self, config: DashConfig) -> None:
        self.config = config
        self.focused = True
        self.ticks = 0
        self.nav = NavContext()
        refresh = config.refresh_ticks

        self.configs = ConfigPanel(config.servers, refresh)
        self.dags = DagPanel(refresh)
        self.dag_runs = DagRunPanel(refresh)
        self.task_instances = TaskInstancePanel(refresh)
        self.logs = LogPanel(refresh)
        self.panels: list[Panel] = [
            self.configs,
            self.dags,
            self.dag_runs,
            self.task_instances,
            self.logs,
        ]
        self.active_index = 0

        self.errors = ErrorPopup()
        self.should_quit = False
        self.save_on_exit = False

    @property
    def active_panel(self) -> Panel:
        return self.panels[self.active_index]

    def start(self, server: str | None = None) -> list[WorkerCommand]:
        """Commands to issue before the first event.

        Jumps straight to the DAG panel when a known server is requested or
        remembered from the last session.
        """
        name = server or self.config.active_server
        if name is None:
            return []
        if self.config.get_server(name) is None:
            logger.warning("Server '%s' is not configured", name)
            self.errors.add(f"Server '{name}' is not configured")
            return []
        return self.select_server(name)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> list[WorkerCommand]:
        if isinstance(event, FocusGained):
            self.focused = True
            return []
        if isinstance(event, FocusLost):
            self.focused = False
            return []
        # No automatic refreshes while the terminal is in the background
        if isinstance(event, Tick) and not self.focused:
            return []

        if isinstance(event, Key) and self.errors.visible:
            self.errors.update(event)
            return []

        outcome = self.active_panel.update(event, self.nav)
        commands = list(outcome.commands)
        fall_through = outcome.fall_through
        if fall_through is None:
            return commands

        if isinstance(fall_through, Tick):
            self.ticks += 1
        elif isinstance(fall_through, Key):
            commands.extend(self._handle_global_key(fall_through))
        return commands

    def _handle_global_key(self, key: Key) -> list[WorkerCommand]:
        if key.key in QUIT_KEYS:
            self.should_quit = True
            return []
        if key.is_char("q"):
            self.should_quit = True
            self.save_on_exit = True
            return []
        if key.key in NEXT_PANEL_KEYS or key.is_char("l"):
            return self.enter_selected()
        if key.key in PREVIOUS_PANEL_KEYS or key.is_char("h"):
            self.previous_panel()
        return []

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select_server(self, name: str) -> list[WorkerCommand]:
        if name != self.nav.server:
            self.nav = NavContext(server=name)
            for panel in self.panels[1:]:
                panel.reset()
            self.task_instances.set_graph(None)
        self.config.active_server = name
        self.active_index = 1
        return [UpdateDags(server=name)]

    def enter_selected(self) -> list[WorkerCommand]:
        """Descend into the row under the cursor."""
        panel = self.active_panel
        nav = self.nav

        if panel is self.configs:
            server = self.configs.current()
            return self.select_server(server.name) if server else []

        if panel is self.dags:
            dag = self.dags.current()
            if dag is None or nav.server is None:
                return []
            if dag.dag_id != nav.dag_id:
                nav.dag_id, nav.dag_run_id, nav.task_id = dag.dag_id, None, None
                for later in self.panels[2:]:
                    later.reset()
                self.task_instances.set_graph(None)
                self.dag_runs.dag_id = dag.dag_id
            nav.file_token = dag.file_token
            self.active_index = 2
            return [
                UpdateDagRuns(server=nav.server, dag_id=dag.dag_id, date_filter=self.dag_runs.date_filter),
                UpdateTasks(server=nav.server, dag_id=dag.dag_id),
            ]

        if panel is self.dag_runs:
            run = self.dag_runs.current()
            if run is None or nav.server is None or nav.dag_id is None:
                return []
            if run.dag_run_id != nav.dag_run_id:
                nav.dag_run_id, nav.task_id = run.dag_run_id, None
                for later in self.panels[3:]:
                    later.reset()
                self.task_instances.dag_run_id = run.dag_run_id
            self.active_index = 3
            return [UpdateTaskInstances(server=nav.server, dag_id=nav.dag_id, dag_run_id=run.dag_run_id)]

        if panel is self.task_instances:
            ti = self.task_instances.current()
            if ti is None or None in (nav.server, nav.dag_id, nav.dag_run_id):
                return []
            if ti.task_id != nav.task_id:
                nav.task_id = ti.task_id
                self.logs.reset()
                self.logs.task_id = ti.task_id
            nav.try_number = ti.try_number
            self.active_index = 4
            return [
                UpdateTaskLogs(
                    server=nav.server,
                    dag_id=nav.dag_id,
                    dag_run_id=nav.dag_run_id,
                    task_id=ti.task_id,
                    try_number=ti.try_number,
                )
            ]

        return []

    def previous_panel(self) -> None:
        self.active_index = max(self.active_index - 1, 0)

    def breadcrumbs(self) -> tuple[str, ...]:
        return tuple(part for part in self.nav.path() if part)

    # ------------------------------------------------------------------
    # Worker results
    # ------------------------------------------------------------------

    def is_stale(self, command: WorkerCommand) -> bool:
        context = command.context
        return context is not None and not self.nav.matches(context)

    def apply_result(self, result: WorkerResult) -> list[WorkerCommand]:
        command = result.command

        if isinstance(command, MUTATIONS):
            if isinstance(result, CommandFailed):
                self.errors.add(f"{describe(command)} failed: {result.error}")
            else:
                logger.info("%s succeeded", describe(command))
            return self._refresh_after(command)

        if isinstance(command, OpenItem):
            if isinstance(result, CommandFailed):
                self.errors.add(f"Could not open browser: {result.error}")
            return []

        if self.is_stale(command):
            logger.debug("Dropping stale result of %s", describe(command))
            return []
        if isinstance(command, UpdateDagRuns) and command.date_filter != self.dag_runs.date_filter:
            logger.debug("Dropping DAG runs fetched for an earlier date range")
            return []

        if isinstance(result, CommandFailed):
            if isinstance(command, UpdateTasks):
                # Without task definitions, instances fall back to start-date order
                logger.warning("Could not load tasks of %s: %s", command.dag_id, result.error)
                self.task_instances.set_graph(None)
                return []
            if isinstance(command, UpdateTaskTries):
                # The bar keeps showing the latest try only
                logger.warning("Could not load tries of %s: %s", command.task_id, result.error)
                return []
            self._panel_for(command).loading = False
            self.errors.add(f"{describe(command)} failed: {result.error}")
            return []

        payload = result.payload
        if isinstance(command, UpdateDags):
            listing: DagListing = payload
            self.dags.set_dags(listing.dags, listing.stats)
        elif isinstance(command, UpdateDagRuns):
            self.dag_runs.set_items(payload)
        elif isinstance(command, UpdateTasks):
            self.task_instances.set_graph(TaskGraph.from_tasks(payload))
        elif isinstance(command, UpdateTaskInstances):
            self.task_instances.set_task_instances(payload)
            return [
                UpdateTaskTries(command.server, command.dag_id, command.dag_run_id, task_id)
                for task_id in self.task_instances.gantt.retried_task_ids()
            ]
        elif isinstance(command, UpdateTaskTries):
            self.task_instances.set_tries(command.task_id, payload)
        elif isinstance(command, UpdateTaskLogs):
            self.logs.set_logs(payload)
        elif isinstance(command, GetDagCode):
            self.active_panel.popup = CodePopup(f"Source of {command.dag_id}", payload or "")
        return []

    def _panel_for(self, command: WorkerCommand) -> Panel:
        if isinstance(command, UpdateDags):
            return self.dags
        if isinstance(command, UpdateDagRuns):
            return self.dag_runs
        if isinstance(command, UpdateTaskInstances):
            return self.task_instances
        if isinstance(command, UpdateTaskLogs):
            return self.logs
        return self.active_panel

    def _refresh_after(self, command: WorkerCommand) -> list[WorkerCommand]:
        """Re-fetch whatever a mutation touched, if it is still on screen."""
        if isinstance(command, ToggleDag):
            refresh: WorkerCommand = UpdateDags(server=command.server)
        elif isinstance(command, (MarkDagRun, ClearDagRun, TriggerDagRun)):
            refresh = UpdateDagRuns(
                server=command.server, dag_id=command.dag_id, date_filter=self.dag_runs.date_filter
            )
        elif isinstance(command, (MarkTaskInstance, ClearTaskInstance)):
            refresh = UpdateTaskInstances(
                server=command.server, dag_id=command.dag_id, dag_run_id=command.dag_run_id
            )
        else:
            return []
        return [] if self.is_stale(refresh) else [refresh]

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def view(self) -> Snapshot:
        panel = self.active_panel
        return Snapshot(
            panel=panel.name,
            breadcrumbs=self.breadcrumbs(),
            body=panel.view(),
            filter=panel.filter_view(),
            popup=panel.popup_view(),
            errors=self.errors.view() if self.errors.visible else None,
            focused=self.focused,
            loading=panel.loading,
            help=panel.help,
        )
