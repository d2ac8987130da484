"""Tests for dagdash.gantt: the per-task timeline bars."""

from datetime import datetime, timezone

import pytest

from dagdash.gantt import GanttData
from dagdash.models import TaskInstance, TaskTry


def at(hour: int) -> datetime:
    return datetime(2024, 5, 1, hour, tzinfo=timezone.utc)


def _ti(task_id, start=None, end=None, state="success", try_number=1, map_index=-1):
    return TaskInstance(
        task_id=task_id,
        dag_id="d",
        dag_run_id="r",
        state=state,
        try_number=try_number,
        map_index=map_index,
        start_date=start,
        end_date=end,
    )


class TestWindow:
    """The shared time window."""

    def test_spans_all_tries(self):
        gantt = GanttData.from_task_instances([_ti("a", at(1), at(2)), _ti("b", at(3), at(5))])
        assert gantt.window_start == at(1)
        assert gantt.window_end == at(5)

    def test_open_try_extends_to_now(self):
        gantt = GanttData.from_task_instances(
            [_ti("a", at(1), at(2)), _ti("b", at(2), state="running")], now=at(6)
        )
        assert gantt.window_end == at(6)
        assert gantt.segments("b") == ((0.2, 1.0, "running"),)

    def test_nothing_started(self):
        gantt = GanttData.from_task_instances([_ti("a", state=None)])
        assert gantt.window_start is None
        assert gantt.segments("a") == ()

    @pytest.mark.parametrize("moment, expected", [
        (at(0), 0.0),
        (at(2), 0.5),
        (at(9), 1.0),
    ])
    def test_ratio_clamped(self, moment, expected):
        gantt = GanttData.from_task_instances([_ti("a", at(1), at(3))])
        assert gantt.ratio(moment) == expected

    def test_zero_length_window(self):
        gantt = GanttData.from_task_instances([_ti("a", at(1), at(1))])
        assert gantt.segments("a") == ((0.0, 0.0, "success"),)


class TestTries:
    """Retried tasks and their fetched history."""

    def test_mapped_instances_share_a_bar(self):
        gantt = GanttData.from_task_instances([
            _ti("load", at(1), at(2), map_index=0),
            _ti("load", at(2), at(3), map_index=1),
        ])
        assert len(gantt.segments("load")) == 2
        assert gantt.retried_task_ids() == []

    def test_retried_ids(self):
        gantt = GanttData.from_task_instances([
            _ti("a", at(1), at(2)),
            _ti("b", at(2), at(3), try_number=3),
        ])
        assert gantt.retried_task_ids() == ["b"]

    def test_update_tries_widens_window(self):
        gantt = GanttData.from_task_instances([_ti("b", at(2), at(3), try_number=2)])
        gantt.update_tries("b", [
            TaskTry(2, at(2), at(3), "success"),
            TaskTry(1, at(0), at(1), "failed"),
        ])
        assert gantt.window_start == at(0)
        assert gantt.segments("b") == ((0.0, 1 / 3, "failed"), (2 / 3, 1.0, "success"))
        assert gantt.retried_task_ids() == []

    def test_carry_keeps_history_for_same_try(self):
        previous = GanttData.from_task_instances([_ti("b", at(2), try_number=2, state="running")], now=at(3))
        previous.update_tries("b", [TaskTry(1, at(0), at(1), "failed"), TaskTry(2, at(2), None, "running")])

        current = GanttData.from_task_instances([_ti("b", at(2), at(4), try_number=2)])
        current.carry_tries(previous)
        assert [(t.try_number, t.state) for t in current.task_tries["b"]] == [(1, "failed"), (2, "success")]
        assert current.window_start == at(0)

    def test_carry_drops_history_after_new_try(self):
        previous = GanttData.from_task_instances([_ti("b", at(2), at(3), try_number=2)])
        previous.update_tries("b", [TaskTry(1, at(0), at(1), "failed"), TaskTry(2, at(2), at(3), "failed")])

        current = GanttData.from_task_instances([_ti("b", at(4), at(5), try_number=3)])
        current.carry_tries(previous)
        assert [t.try_number for t in current.task_tries["b"]] == [3]
        assert current.retried_task_ids() == ["b"]
