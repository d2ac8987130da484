"""Tests for dagdash.loop.run_loop driven by a real EventSource."""

from unittest.mock import patch

import pytest

from dagdash.commands import CommandFailed, CommandSucceeded, DagListing, UpdateDagRuns, UpdateDags
from dagdash.events import EventSource, FocusLost, Key, Tick
from dagdash.loop import run_loop
from dagdash.state import AppState


@pytest.fixture
def state(dash_config):
    dash_config.active_server = "local"
    return AppState(dash_config)


@pytest.fixture
def events():
    return EventSource(tick_rate=60)


class Recorder:
    """Collects submitted commands and rendered snapshots."""

    def __init__(self):
        self.submitted = []
        self.snapshots = []

    def submit(self, command):
        self.submitted.append(command)

    def render(self, snapshot):
        self.snapshots.append(snapshot)


def drive(state, events, *items, server=None):
    """Queue ``items``, close the source and run the loop to completion."""
    for item in items:
        if isinstance(item, (CommandSucceeded, CommandFailed)):
            events.deliver(item)
        else:
            events.push(item)
    events.close()
    recorder = Recorder()
    with patch("dagdash.loop.save_config") as save:
        run_loop(state, events, recorder.submit, recorder.render, server=server)
    return recorder, save


class TestRunLoop:
    """Event dispatch, rendering and shutdown."""

    def test_start_commands_submitted_and_rendered(self, state, events):
        recorder, _ = drive(state, events)
        assert recorder.submitted == [UpdateDags("local")]
        assert len(recorder.snapshots) == 1
        assert recorder.snapshots[0].panel == "dags"

    def test_server_argument_overrides_remembered(self, state, events):
        recorder, _ = drive(state, events, server="prod")
        assert recorder.submitted == [UpdateDags("prod")]

    def test_q_quits_and_saves(self, state, events):
        recorder, save = drive(state, events, Key.char("q"), Key.char("j"))
        save.assert_called_once_with(state.config)
        assert state.should_quit
        # No render after quitting
        assert len(recorder.snapshots) == 1

    def test_ctrl_c_quits_without_saving(self, state, events):
        _, save = drive(state, events, Key("ctrl+c", "\x03"))
        assert state.should_quit
        save.assert_not_called()

    def test_closed_source_ends_loop(self, state, events):
        _, save = drive(state, events)
        assert not state.should_quit
        save.assert_not_called()

    def test_results_applied_in_order(self, state, events, sample_dags):
        listing = DagListing(dags=sample_dags, stats={})
        recorder, _ = drive(
            state,
            events,
            CommandSucceeded(UpdateDags("local"), listing),
            Key("enter"),
        )
        assert [d.dag_id for d in state.dags.table.all] == ["cleanup", "etl_daily", "reporting"]
        # Enter descended into the first DAG once the listing had arrived
        assert state.nav.dag_id == "cleanup"
        assert UpdateDagRuns("local", "cleanup") in recorder.submitted
        assert len(recorder.snapshots) == 3

    def test_failed_result_shows_error(self, state, events):
        recorder, _ = drive(state, events, CommandFailed(UpdateDags("local"), "connection refused"))
        assert recorder.snapshots[-1].errors is not None

    def test_ticks_while_unfocused_skip_render(self, state, events):
        recorder, _ = drive(state, events, FocusLost(), Tick(), Tick())
        assert len(recorder.snapshots) == 2
        assert recorder.submitted == [UpdateDags("local")]

    def test_focused_tick_renders(self, state, events):
        recorder, _ = drive(state, events, Tick())
        assert len(recorder.snapshots) == 2
