"""Messages between the owner loop and the worker.

A command names one side effect and carries just enough identifying data to
route its result. ``context`` is the navigation key the result is checked
against before it is applied; mutations have no context because their
results carry no panel data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .models import Dag, DagRunDateFilter, DagStatistic


# ---------------------------------------------------------------------------
# Fetches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UpdateDags:
    """List DAGs plus their run-state counts."""

    server: str

    @property
    def context(self) -> tuple:
        return (self.server,)


@dataclass(frozen=True)
class UpdateDagRuns:
    server: str
    dag_id: str
    date_filter: DagRunDateFilter | None = None

    @property
    def context(self) -> tuple:
        return (self.server, self.dag_id)


@dataclass(frozen=True)
class UpdateTaskInstances:
    server: str
    dag_id: str
    dag_run_id: str

    @property
    def context(self) -> tuple:
        return (self.server, self.dag_id, self.dag_run_id)


@dataclass(frozen=True)
class UpdateTaskTries:
    """Fetch every try of one task instance for the timeline column."""

    server: str
    dag_id: str
    dag_run_id: str
    task_id: str

    @property
    def context(self) -> tuple:
        return (self.server, self.dag_id, self.dag_run_id)


@dataclass(frozen=True)
class UpdateTasks:
    """Fetch task definitions to (re)build the task graph of a DAG."""

    server: str
    dag_id: str

    @property
    def context(self) -> tuple:
        return (self.server, self.dag_id)


@dataclass(frozen=True)
class UpdateTaskLogs:
    """Fetch the logs of every try up to ``try_number``."""

    server: str
    dag_id: str
    dag_run_id: str
    task_id: str
    try_number: int

    @property
    def context(self) -> tuple:
        return (self.server, self.dag_id, self.dag_run_id, self.task_id)


@dataclass(frozen=True)
class GetDagCode:
    """Fetch DAG source. Shown over the active panel, so only the server must match."""

    server: str
    dag_id: str
    file_token: str = ""

    @property
    def context(self) -> tuple:
        return (self.server,)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToggleDag:
    server: str
    dag_id: str
    is_paused: bool

    context = None


@dataclass(frozen=True)
class MarkDagRun:
    server: str
    dag_id: str
    dag_run_id: str
    status: str

    context = None


@dataclass(frozen=True)
class ClearDagRun:
    server: str
    dag_id: str
    dag_run_id: str

    context = None


@dataclass(frozen=True)
class TriggerDagRun:
    server: str
    dag_id: str

    context = None


@dataclass(frozen=True)
class MarkTaskInstance:
    server: str
    dag_id: str
    dag_run_id: str
    task_id: str
    status: str

    context = None


@dataclass(frozen=True)
class ClearTaskInstance:
    server: str
    dag_id: str
    dag_run_id: str
    task_id: str

    context = None


@dataclass(frozen=True)
class OpenItem:
    """Open a web UI link in the browser."""

    server: str
    dag_id: str | None = None
    dag_run_id: str | None = None
    task_id: str | None = None
    url: str | None = None

    context = None


WorkerCommand = Union[
    UpdateDags,
    UpdateDagRuns,
    UpdateTaskInstances,
    UpdateTaskTries,
    UpdateTasks,
    UpdateTaskLogs,
    GetDagCode,
    ToggleDag,
    MarkDagRun,
    ClearDagRun,
    TriggerDagRun,
    MarkTaskInstance,
    ClearTaskInstance,
    OpenItem,
]

MUTATIONS = (
    ToggleDag,
    MarkDagRun,
    ClearDagRun,
    TriggerDagRun,
    MarkTaskInstance,
    ClearTaskInstance,
)


def describe(command: WorkerCommand) -> str:
    """Short human-readable label used in error messages and logs."""
    name = type(command).__name__
    fields = [str(v) for k, v in vars(command).items() if k != "server" and v is not None]
    return f"{name}({', '.join(fields)})" if fields else name


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandSucceeded:
    command: WorkerCommand
    payload: Any = None

    ok = True


@dataclass(frozen=True)
class CommandFailed:
    command: WorkerCommand
    error: str
    error_type: str = "Exception"

    ok = False


WorkerResult = Union[CommandSucceeded, CommandFailed]

RESULT_TYPES = (CommandSucceeded, CommandFailed)


@dataclass(frozen=True)
class DagListing:
    """Payload of :class:`UpdateDags`."""

    dags: list[Dag]
    stats: dict[str, list[DagStatistic]]
