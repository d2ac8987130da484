"""Domain records shown in the dashboard panels.

Every record is built from the API's JSON with ``from_dict`` and implements
the Filterable capability (``primary_field``, ``filterable_fields``,
``get_field_value``) so the filter bar can work on any panel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

from .filter import FilterableField
from .utils import parse_timestamp


# ---------------------------------------------------------------------------
# State vocabularies
# ---------------------------------------------------------------------------

DagRunState = Literal["running", "success", "failed", "queued", "up_for_retry"]

DAG_RUN_STATES: list[str] = ["running", "success", "failed", "queued", "up_for_retry"]

DAG_RUN_TYPES: list[str] = ["scheduled", "manual", "backfill", "dataset_triggered"]

TASK_INSTANCE_STATES: list[str] = [
    "running",
    "success",
    "failed",
    "queued",
    "up_for_retry",
    "up_for_reschedule",
    "skipped",
    "deferred",
    "removed",
    "restarting",
]

# States a user may set through the mark popups
DAG_RUN_MARK_STATES: list[str] = ["success", "failed", "queued"]
TASK_INSTANCE_MARK_STATES: list[str] = ["success", "failed", "skipped"]


def _join(values: list[str]) -> str | None:
    return ",".join(values) if values else None


# ---------------------------------------------------------------------------
# DAGs
# ---------------------------------------------------------------------------


@dataclass
class Dag:
    dag_id: str
    is_paused: bool = False
    dag_display_name: str | None = None
    description: str | None = None
    fileloc: str = ""
    file_token: str = ""
    owners: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    has_import_errors: bool = False
    next_dagrun: datetime | None = None
    last_parsed_time: datetime | None = None
    timetable_description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dag:
        tags = [t["name"] if isinstance(t, dict) else str(t) for t in data.get("tags") or []]
        return cls(
            dag_id=data["dag_id"],
            is_paused=bool(data.get("is_paused", False)),
            dag_display_name=data.get("dag_display_name"),
            description=data.get("description"),
            fileloc=data.get("fileloc") or "",
            file_token=data.get("file_token") or "",
            owners=list(data.get("owners") or []),
            tags=tags,
            has_import_errors=bool(data.get("has_import_errors", False)),
            next_dagrun=parse_timestamp(
                data.get("next_dagrun_logical_date") or data.get("next_dagrun")
            ),
            last_parsed_time=parse_timestamp(data.get("last_parsed_time")),
            timetable_description=data.get("timetable_description"),
        )

    @classmethod
    def primary_field(cls) -> str:
        return "dag_id"

    @classmethod
    def filterable_fields(cls) -> list[FilterableField]:
        return [
            FilterableField.primary("dag_id"),
            FilterableField.enumerated("is_paused", ["true", "false"]),
            FilterableField.free_text("owners"),
            FilterableField.free_text("tags"),
        ]

    def get_field_value(self, name: str) -> str | None:
        if name == "dag_id":
            return self.dag_id
        if name == "is_paused":
            return "true" if self.is_paused else "false"
        if name == "owners":
            return _join(self.owners)
        if name == "tags":
            return _join(self.tags)
        return None


@dataclass
class DagStatistic:
    state: str
    count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DagStatistic:
        return cls(state=data["state"], count=int(data.get("count") or 0))


def parse_dag_stats(data: dict[str, Any]) -> dict[str, list[DagStatistic]]:
    """Map dag_id -> run-state counts from a ``dagStats`` response."""
    return {
        entry["dag_id"]: [DagStatistic.from_dict(s) for s in entry.get("stats") or []]
        for entry in data.get("dags") or []
    }


# ---------------------------------------------------------------------------
# DAG runs
# ---------------------------------------------------------------------------


@dataclass
class DagRun:
    dag_id: str
    dag_run_id: str
    state: str = ""
    run_type: str = ""
    logical_date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    data_interval_start: datetime | None = None
    data_interval_end: datetime | None = None
    note: str | None = None
    external_trigger: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DagRun:
        return cls(
            dag_id=data["dag_id"],
            dag_run_id=data["dag_run_id"],
            state=data.get("state") or "",
            run_type=data.get("run_type") or "",
            logical_date=parse_timestamp(data.get("logical_date") or data.get("execution_date")),
            start_date=parse_timestamp(data.get("start_date")),
            end_date=parse_timestamp(data.get("end_date")),
            data_interval_start=parse_timestamp(data.get("data_interval_start")),
            data_interval_end=parse_timestamp(data.get("data_interval_end")),
            note=data.get("note"),
            external_trigger=data.get("external_trigger"),
        )

    @property
    def duration(self) -> float | None:
        if self.start_date is None or self.end_date is None:
            return None
        return (self.end_date - self.start_date).total_seconds()

    @classmethod
    def primary_field(cls) -> str:
        return "dag_run_id"

    @classmethod
    def filterable_fields(cls) -> list[FilterableField]:
        return [
            FilterableField.primary("dag_run_id"),
            FilterableField.enumerated("state", DAG_RUN_STATES),
            FilterableField.enumerated("run_type", DAG_RUN_TYPES),
        ]

    def get_field_value(self, name: str) -> str | None:
        if name == "dag_run_id":
            return self.dag_run_id
        if name == "state":
            return self.state or None
        if name == "run_type":
            return self.run_type or None
        return None


@dataclass(frozen=True)
class DagRunDateFilter:
    """Inclusive logical-date range for the DAG run listing. Either end may be open."""

    start: date | None = None
    end: date | None = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    def display(self) -> str:
        if self.is_empty:
            return ""
        start = self.start.isoformat() if self.start else "..."
        end = self.end.isoformat() if self.end else "..."
        return f"{start} to {end}"


# ---------------------------------------------------------------------------
# Tasks and task instances
# ---------------------------------------------------------------------------


@dataclass
class Task:
    """A task definition: a node and its direct successors."""

    task_id: str
    downstream_task_ids: list[str] = field(default_factory=list)
    operator: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        class_ref = data.get("class_ref") or {}
        return cls(
            task_id=data["task_id"],
            downstream_task_ids=list(data.get("downstream_task_ids") or []),
            operator=data.get("operator_name") or class_ref.get("class_name"),
        )


@dataclass
class TaskInstance:
    task_id: str
    dag_id: str
    dag_run_id: str
    state: str | None = None
    try_number: int = 0
    max_tries: int = 0
    map_index: int = -1
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration: float | None = None
    operator: str | None = None
    hostname: str | None = None
    pool: str = ""
    queue: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskInstance:
        return cls(
            task_id=data["task_id"],
            dag_id=data.get("dag_id") or "",
            dag_run_id=data.get("dag_run_id") or "",
            state=data.get("state"),
            try_number=int(data.get("try_number") or 0),
            max_tries=int(data.get("max_tries") or 0),
            map_index=int(data["map_index"]) if data.get("map_index") is not None else -1,
            start_date=parse_timestamp(data.get("start_date")),
            end_date=parse_timestamp(data.get("end_date")),
            duration=data.get("duration"),
            operator=data.get("operator") or data.get("operator_name"),
            hostname=data.get("hostname"),
            pool=data.get("pool") or "",
            queue=data.get("queue"),
        )

    @classmethod
    def primary_field(cls) -> str:
        return "task_id"

    @classmethod
    def filterable_fields(cls) -> list[FilterableField]:
        return [
            FilterableField.primary("task_id"),
            FilterableField.enumerated("state", TASK_INSTANCE_STATES),
            FilterableField.free_text("operator"),
        ]

    def get_field_value(self, name: str) -> str | None:
        if name == "task_id":
            return self.task_id
        if name == "state":
            return self.state
        if name == "operator":
            return self.operator
        return None


@dataclass
class TaskTry:
    """One attempt of a task instance, as listed by the tries endpoint."""

    try_number: int
    start_date: datetime | None = None
    end_date: datetime | None = None
    state: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskTry:
        return cls(
            try_number=int(data.get("try_number") or 0),
            start_date=parse_timestamp(data.get("start_date")),
            end_date=parse_timestamp(data.get("end_date")),
            state=data.get("state"),
        )

    @classmethod
    def of(cls, ti: TaskInstance) -> TaskTry:
        return cls(ti.try_number, ti.start_date, ti.end_date, ti.state)


@dataclass
class TaskLog:
    try_number: int
    content: str = ""
    continuation_token: str | None = None

    @property
    def lines(self) -> list[str]:
        return self.content.splitlines()
