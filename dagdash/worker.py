"""Background execution of worker commands.

The owner loop hands commands to :meth:`Worker.submit` and gets results
back through the ``deliver`` callback (normally ``EventSource.deliver``).
Commands run concurrently on a thread pool; nothing is deduplicated or
cancelled, so two identical submissions produce two results.
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from .client import AirflowClient, DagdashClientError
from .commands import (
    ClearDagRun,
    ClearTaskInstance,
    CommandFailed,
    CommandSucceeded,
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
    UpdateTaskTries,
    UpdateTasks,
    WorkerCommand,
    WorkerResult,
    describe,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _update_dags(client: AirflowClient, cmd: UpdateDags) -> DagListing:
    dags = client.dags.list()
    try:
        stats = client.dags.stats([d.dag_id for d in dags])
    except DagdashClientError as e:
        logger.warning("Could not fetch DAG stats from %s: %s", cmd.server, e)
        stats = {}
    return DagListing(dags=dags, stats=stats)


def _update_dag_runs(client: AirflowClient, cmd: UpdateDagRuns):
    return client.dag_runs.list(cmd.dag_id, date_filter=cmd.date_filter)


def _update_task_instances(client: AirflowClient, cmd: UpdateTaskInstances):
    return client.task_instances.list(cmd.dag_id, cmd.dag_run_id)


def _update_task_tries(client: AirflowClient, cmd: UpdateTaskTries):
    return client.task_instances.tries(cmd.dag_id, cmd.dag_run_id, cmd.task_id)


def _update_tasks(client: AirflowClient, cmd: UpdateTasks):
    return client.tasks.list(cmd.dag_id)


def _update_task_logs(client: AirflowClient, cmd: UpdateTaskLogs):
    last_try = max(cmd.try_number, 1)
    return [
        client.logs.get(cmd.dag_id, cmd.dag_run_id, cmd.task_id, try_number)
        for try_number in range(1, last_try + 1)
    ]


def _get_dag_code(client: AirflowClient, cmd: GetDagCode) -> str:
    return client.dags.source(cmd.dag_id, cmd.file_token)


def _toggle_dag(client: AirflowClient, cmd: ToggleDag) -> None:
    client.dags.toggle(cmd.dag_id, cmd.is_paused)


def _mark_dag_run(client: AirflowClient, cmd: MarkDagRun) -> None:
    client.dag_runs.mark(cmd.dag_id, cmd.dag_run_id, cmd.status)


def _clear_dag_run(client: AirflowClient, cmd: ClearDagRun) -> None:
    client.dag_runs.clear(cmd.dag_id, cmd.dag_run_id)


def _trigger_dag_run(client: AirflowClient, cmd: TriggerDagRun):
    return client.dag_runs.trigger(cmd.dag_id)


def _mark_task_instance(client: AirflowClient, cmd: MarkTaskInstance) -> None:
    client.task_instances.mark(cmd.dag_id, cmd.dag_run_id, cmd.task_id, cmd.status)


def _clear_task_instance(client: AirflowClient, cmd: ClearTaskInstance) -> None:
    client.task_instances.clear(cmd.dag_id, cmd.dag_run_id, cmd.task_id)


HANDLERS: dict[type, Callable] = {
    UpdateDags: _update_dags,
    UpdateDagRuns: _update_dag_runs,
    UpdateTaskInstances: _update_task_instances,
    UpdateTaskTries: _update_task_tries,
    UpdateTasks: _update_tasks,
    UpdateTaskLogs: _update_task_logs,
    GetDagCode: _get_dag_code,
    ToggleDag: _toggle_dag,
    MarkDagRun: _mark_dag_run,
    ClearDagRun: _clear_dag_run,
    TriggerDagRun: _trigger_dag_run,
    MarkTaskInstance: _mark_task_instance,
    ClearTaskInstance: _clear_task_instance,
}


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------


class Worker:
    """Executes commands against the client for each command's server.

    ``resolve_client`` maps a server name to a client (see
    ``ClientRegistry``). The worker keeps no state between commands.
    """

    def __init__(
        self,
        resolve_client: Callable[[str], AirflowClient],
        deliver: Callable[[WorkerResult], None],
        max_workers: int = DEFAULT_MAX_WORKERS,
        open_url: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self._resolve_client = resolve_client
        self._deliver = deliver
        self._open_url = open_url
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dagdash-worker")
        self._closed = False

    def submit(self, command: WorkerCommand) -> None:
        """Queue a command. Its result arrives later through ``deliver``."""
        if self._closed:
            logger.debug("Worker closed, dropping %s", describe(command))
            return
        logger.debug("Submitting %s", describe(command))
        self._executor.submit(self._run, command)

    def _run(self, command: WorkerCommand) -> None:
        try:
            payload = self.execute(command)
        except Exception as exc:
            logger.warning("%s failed: %s", describe(command), exc)
            result: WorkerResult = CommandFailed(
                command=command,
                error=str(exc) or type(exc).__name__,
                error_type=type(exc).__name__,
            )
        else:
            result = CommandSucceeded(command=command, payload=payload)
        self._deliver(result)

    def execute(self, command: WorkerCommand):
        """Run one command synchronously and return its payload."""
        if isinstance(command, OpenItem):
            return self._open_item(command)
        handler = HANDLERS.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown worker command: {command!r}")
        return handler(self._resolve_client(command.server), command)

    def _open_item(self, command: OpenItem) -> str:
        url = command.url
        if url is None:
            client = self._resolve_client(command.server)
            url = client.web_url(command.dag_id, command.dag_run_id, command.task_id)
        logger.info("Opening %s", url)
        self._open_url(url)
        return url

    def shutdown(self, wait: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=False)
