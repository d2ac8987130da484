"""Shared test fixtures for dagdash tests."""

import re
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from dagdash.config import BasicAuth, DashConfig, ServerConfig, TokenAuth
from dagdash.events import Key
from dagdash.models import Dag, DagRun, Task, TaskInstance, TaskLog

NAMED_KEYS = {
    "<esc>": "escape",
    "<enter>": "enter",
    "<tab>": "tab",
    "<s-tab>": "shift+tab",
    "<bs>": "backspace",
    "<up>": "up",
    "<down>": "down",
    "<left>": "left",
    "<right>": "right",
    "<c-c>": "ctrl+c",
}


def to_keys(*parts: str) -> list[Key]:
    """Turn ``"/sta", "<tab>", " "`` into Key events.

    Plain strings are typed one character at a time; ``<name>`` parts map to
    named keys.
    """
    keys = []
    for part in parts:
        for token in re.split(r"(<[a-z-]+>)", part):
            if token in NAMED_KEYS:
                keys.append(Key(NAMED_KEYS[token]))
            else:
                keys.extend(Key.char(ch) for ch in token)
    return keys


def ts(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, 1, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def keys():
    """Factory turning key names into Key events, see ``to_keys``."""
    return to_keys


@pytest.fixture
def servers():
    return [
        ServerConfig(
            name="local",
            endpoint="http://localhost:8080",
            version="airflow2",
            auth=BasicAuth(username="airflow", password="airflow"),
        ),
        ServerConfig(
            name="prod",
            endpoint="https://airflow.example.com",
            version="airflow3",
            auth=TokenAuth(token="secret"),
        ),
    ]


@pytest.fixture
def dash_config(servers, tmp_path):
    return DashConfig(servers=servers, path=tmp_path / "config.yaml")


@pytest.fixture
def config_file(tmp_path):
    """A config file on disk with two servers."""
    path = tmp_path / "config.yaml"
    path.write_text("""
active_server: local
refresh_ticks: 5
servers:
  - name: local
    endpoint: http://localhost:8080
    version: airflow2
    auth:
      basic: {username: airflow, password: airflow}
  - name: prod
    endpoint: https://airflow.example.com
    version: airflow3
    auth:
      token: {cmd: "echo token"}
""")
    return path


@pytest.fixture
def sample_dags():
    return [
        Dag(dag_id="etl_daily", owners=["data"], tags=["etl"], file_token="tok-etl"),
        Dag(dag_id="reporting", is_paused=True, owners=["bi"], tags=["reports"]),
        Dag(dag_id="cleanup", owners=["ops"]),
    ]


@pytest.fixture
def sample_runs():
    return [
        DagRun(dag_id="etl_daily", dag_run_id="scheduled__2024-05-01", state="success", run_type="scheduled"),
        DagRun(dag_id="etl_daily", dag_run_id="manual__2024-05-02", state="failed", run_type="manual"),
        DagRun(dag_id="etl_daily", dag_run_id="scheduled__2024-05-03", state="running", run_type="scheduled"),
    ]


@pytest.fixture
def sample_tasks():
    """extract -> transform -> load, plus a notify task hanging off extract."""
    return [
        Task(task_id="load"),
        Task(task_id="transform", downstream_task_ids=["load"]),
        Task(task_id="extract", downstream_task_ids=["transform", "notify"]),
        Task(task_id="notify"),
    ]


@pytest.fixture
def sample_task_instances():
    return [
        TaskInstance(task_id="load", dag_id="etl_daily", dag_run_id="run", state="queued", start_date=ts(3)),
        TaskInstance(task_id="extract", dag_id="etl_daily", dag_run_id="run", state="success", try_number=1, start_date=ts(1)),
        TaskInstance(task_id="transform", dag_id="etl_daily", dag_run_id="run", state="running", try_number=2, start_date=ts(2)),
    ]


@pytest.fixture
def fake_client(sample_dags, sample_runs, sample_tasks, sample_task_instances):
    """A MagicMock standing in for AirflowClient with canned answers."""
    client = MagicMock(name="AirflowClient")
    client.dags.list.return_value = sample_dags
    client.dags.stats.return_value = {}
    client.dags.source.return_value = "from airflow import DAG\n"
    client.dag_runs.list.return_value = sample_runs
    client.task_instances.list.return_value = sample_task_instances
    client.tasks.list.return_value = sample_tasks
    client.logs.get.side_effect = lambda dag_id, run_id, task_id, try_number: TaskLog(
        try_number=try_number, content=f"log of try {try_number}"
    )
    client.web_url.return_value = "http://localhost:8080/dags/etl_daily/grid"
    return client
