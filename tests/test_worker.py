"""Tests for dagdash.worker."""

import queue
import threading
from datetime import date
from unittest.mock import MagicMock

import pytest

from dagdash.client import AirflowAPIError
from dagdash.commands import (
    ClearTaskInstance,
    CommandFailed,
    CommandSucceeded,
    DagListing,
    GetDagCode,
    MarkDagRun,
    OpenItem,
    ToggleDag,
    TriggerDagRun,
    UpdateDagRuns,
    UpdateDags,
    UpdateTaskInstances,
    UpdateTaskLogs,
    UpdateTaskTries,
    UpdateTasks,
)
from dagdash.models import DagRunDateFilter, TaskTry
from dagdash.worker import Worker


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def results():
    return queue.Queue()


@pytest.fixture
def opened():
    return []


@pytest.fixture
def worker(fake_client, results, opened):
    w = Worker(lambda server: fake_client, results.put, max_workers=4, open_url=opened.append)
    yield w
    w.shutdown(wait=True)


def collect(results, n, timeout=2):
    return [results.get(timeout=timeout) for _ in range(n)]


# ---------------------------------------------------------------------------
# execute()
# ---------------------------------------------------------------------------


class TestExecute:
    """Synchronous dispatch of each command to the client."""

    def test_update_dags_bundles_stats(self, worker, fake_client, sample_dags):
        fake_client.dags.stats.return_value = {"etl_daily": []}
        listing = worker.execute(UpdateDags("local"))
        assert isinstance(listing, DagListing)
        assert listing.dags == sample_dags
        assert listing.stats == {"etl_daily": []}
        fake_client.dags.stats.assert_called_once_with(["etl_daily", "reporting", "cleanup"])

    def test_update_dags_survives_stats_failure(self, worker, fake_client, sample_dags):
        fake_client.dags.stats.side_effect = AirflowAPIError("boom", status_code=500)
        listing = worker.execute(UpdateDags("local"))
        assert listing.dags == sample_dags
        assert listing.stats == {}

    def test_fetch_commands(self, worker, fake_client, sample_runs, sample_tasks):
        assert worker.execute(UpdateDagRuns("local", "etl_daily")) == sample_runs
        assert worker.execute(UpdateTasks("local", "etl_daily")) == sample_tasks
        worker.execute(UpdateTaskInstances("local", "etl_daily", "run"))
        fake_client.task_instances.list.assert_called_once_with("etl_daily", "run")

    def test_date_range_and_tries(self, worker, fake_client):
        window = DagRunDateFilter(start=date(2024, 5, 1))
        worker.execute(UpdateDagRuns("local", "etl_daily", window))
        fake_client.dag_runs.list.assert_called_once_with("etl_daily", date_filter=window)
        fake_client.task_instances.tries.return_value = [TaskTry(1), TaskTry(2)]
        tries = worker.execute(UpdateTaskTries("local", "etl_daily", "run", "load"))
        assert [t.try_number for t in tries] == [1, 2]
        fake_client.task_instances.tries.assert_called_once_with("etl_daily", "run", "load")

    def test_logs_for_every_try(self, worker, fake_client):
        logs = worker.execute(UpdateTaskLogs("local", "etl_daily", "run", "extract", 3))
        assert [log.try_number for log in logs] == [1, 2, 3]
        assert fake_client.logs.get.call_count == 3

    def test_logs_of_unstarted_task_fetch_first_try(self, worker):
        logs = worker.execute(UpdateTaskLogs("local", "etl_daily", "run", "extract", 0))
        assert [log.try_number for log in logs] == [1]

    def test_dag_code(self, worker, fake_client):
        assert worker.execute(GetDagCode("local", "etl_daily", "tok")) == "from airflow import DAG\n"
        fake_client.dags.source.assert_called_once_with("etl_daily", "tok")

    def test_mutations(self, worker, fake_client):
        worker.execute(ToggleDag("local", "etl_daily", is_paused=False))
        fake_client.dags.toggle.assert_called_once_with("etl_daily", False)

        worker.execute(MarkDagRun("local", "etl_daily", "run", "failed"))
        fake_client.dag_runs.mark.assert_called_once_with("etl_daily", "run", "failed")

        worker.execute(TriggerDagRun("local", "etl_daily"))
        fake_client.dag_runs.trigger.assert_called_once_with("etl_daily")

        worker.execute(ClearTaskInstance("local", "etl_daily", "run", "load"))
        fake_client.task_instances.clear.assert_called_once_with("etl_daily", "run", "load")

    def test_open_item_with_url(self, worker, opened):
        assert worker.execute(OpenItem("local", url="http://x")) == "http://x"
        assert opened == ["http://x"]

    def test_open_item_builds_web_url(self, worker, fake_client, opened):
        worker.execute(OpenItem("local", dag_id="etl_daily"))
        fake_client.web_url.assert_called_once_with("etl_daily", None, None)
        assert opened == ["http://localhost:8080/dags/etl_daily/grid"]

    def test_unknown_command(self, worker):
        with pytest.raises(TypeError):
            worker.execute(object())

    def test_client_resolved_per_server(self, results):
        resolve = MagicMock()
        w = Worker(resolve, results.put)
        try:
            w.execute(UpdateDagRuns("prod", "etl_daily"))
            resolve.assert_called_once_with("prod")
        finally:
            w.shutdown()


# ---------------------------------------------------------------------------
# submit()
# ---------------------------------------------------------------------------


class TestSubmit:
    """Asynchronous execution and result delivery."""

    def test_success_delivered(self, worker, results, sample_runs):
        command = UpdateDagRuns("local", "etl_daily")
        worker.submit(command)
        (result,) = collect(results, 1)
        assert isinstance(result, CommandSucceeded)
        assert result.ok
        assert result.command == command
        assert result.payload == sample_runs

    def test_failure_captured_not_raised(self, worker, results, fake_client):
        fake_client.dag_runs.list.side_effect = AirflowAPIError("server error", status_code=500)
        worker.submit(UpdateDagRuns("local", "etl_daily"))
        (result,) = collect(results, 1)
        assert isinstance(result, CommandFailed)
        assert not result.ok
        assert result.error == "server error"
        assert result.error_type == "AirflowAPIError"

    def test_resolution_failure_captured(self, results):
        def resolve(server):
            raise KeyError(server)

        w = Worker(resolve, results.put)
        try:
            w.submit(UpdateDags("nowhere"))
            (result,) = collect(results, 1)
            assert isinstance(result, CommandFailed)
            assert result.error_type == "KeyError"
        finally:
            w.shutdown(wait=True)

    def test_no_deduplication(self, worker, results, fake_client):
        command = UpdateTasks("local", "etl_daily")
        worker.submit(command)
        worker.submit(command)
        got = collect(results, 2)
        assert [r.command for r in got] == [command, command]
        assert fake_client.tasks.list.call_count == 2

    def test_commands_run_concurrently(self, results, fake_client):
        release = threading.Event()
        started = threading.Barrier(2, timeout=2)

        def slow_list(dag_id, date_filter=None):
            started.wait()
            release.wait(timeout=2)
            return []

        fake_client.dag_runs.list.side_effect = slow_list
        w = Worker(lambda server: fake_client, results.put, max_workers=2)
        try:
            w.submit(UpdateDagRuns("local", "a"))
            w.submit(UpdateDagRuns("local", "b"))
            # Neither call returns until both are inside the client
            release.set()
            got = collect(results, 2)
            assert {r.command.dag_id for r in got} == {"a", "b"}
            assert all(r.ok for r in got)
        finally:
            w.shutdown(wait=True)

    def test_submit_after_shutdown_is_dropped(self, results, fake_client):
        w = Worker(lambda server: fake_client, results.put)
        w.shutdown(wait=True)
        w.submit(UpdateDags("local"))
        assert results.empty()
