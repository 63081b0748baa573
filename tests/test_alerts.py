"""Tests for the alert trigger state machine and command runner."""

from __future__ import annotations

import subprocess

import pytest

from conftest import RecordingExecutor
from models.readings import Severity
from services.alerts import AlertTrigger, CommandRunner, TriggerMode
from services.errors import CommandExecutionError

SEQUENCE = [Severity.NORMAL, Severity.WARNING, Severity.CRITICAL, Severity.NORMAL]


def _trigger(mode: TriggerMode) -> tuple[AlertTrigger, RecordingExecutor]:
    executor = RecordingExecutor()
    trigger = AlertTrigger(high_cmd="high", critical_cmd="crit", mode=mode, executor=executor)
    return trigger, executor


def test_trigger_modes_and_default() -> None:
    assert [mode.name for mode in TriggerMode] == ["EVERY_POLL", "ON_ELEVATION"]
    assert TriggerMode("on-elevation") is TriggerMode.ON_ELEVATION
    assert AlertTrigger().mode is TriggerMode.EVERY_POLL


@pytest.mark.parametrize("mode", list(TriggerMode))
def test_normal_warning_critical_normal_sequence(mode: TriggerMode) -> None:
    trigger, executor = _trigger(mode)

    fired = [trigger.update(status) for status in SEQUENCE]

    assert fired == [None, "high", "crit", None]
    assert executor.commands == ["high", "crit"]
    assert trigger.state.idle


def test_every_poll_repeats_while_elevated() -> None:
    trigger, executor = _trigger(TriggerMode.EVERY_POLL)

    for status in [Severity.WARNING, Severity.WARNING, Severity.CRITICAL, Severity.CRITICAL, Severity.WARNING]:
        trigger.update(status)

    assert executor.commands == ["high", "high", "crit", "crit", "high"]


def test_on_elevation_fires_once_per_rise() -> None:
    trigger, executor = _trigger(TriggerMode.ON_ELEVATION)

    for status in [
        Severity.WARNING,
        Severity.WARNING,
        Severity.CRITICAL,
        Severity.CRITICAL,
        Severity.WARNING,
        Severity.CRITICAL,
        Severity.NORMAL,
        Severity.WARNING,
    ]:
        trigger.update(status)

    assert executor.commands == ["high", "crit", "crit", "high"]


def test_state_tracks_last_status() -> None:
    trigger, _ = _trigger(TriggerMode.ON_ELEVATION)

    trigger.update(Severity.CRITICAL)
    assert trigger.state.last_triggered == Severity.CRITICAL
    trigger.update(Severity.WARNING)
    assert trigger.state.last_triggered == Severity.WARNING
    trigger.update(Severity.NORMAL)
    assert trigger.state.idle


def test_empty_command_is_skipped() -> None:
    executor = RecordingExecutor()
    trigger = AlertTrigger(high_cmd="", critical_cmd="crit", executor=executor)

    assert trigger.update(Severity.WARNING) is None
    assert executor.commands == []
    assert trigger.state.last_triggered == Severity.WARNING


def test_failing_command_does_not_refire_on_elevation() -> None:
    class FailingExecutor:
        calls = 0

        def run(self, command: str) -> int:
            self.calls += 1
            raise CommandExecutionError(command, "boom")

    executor = FailingExecutor()
    trigger = AlertTrigger(high_cmd="high", mode=TriggerMode.ON_ELEVATION, executor=executor)

    with pytest.raises(CommandExecutionError):
        trigger.update(Severity.WARNING)
    assert trigger.update(Severity.WARNING) is None
    assert executor.calls == 1


def test_command_runner_uses_shell() -> None:
    calls = []

    def fake_run(command, **kwargs):
        calls.append((command, kwargs))
        return subprocess.CompletedProcess(command, 0)

    assert CommandRunner(runner=fake_run).run("echo hot | wall") == 0
    assert calls == [("echo hot | wall", {"shell": True, "check": False})]


def test_command_runner_raises_on_launch_failure() -> None:
    def fake_run(command, **kwargs):
        raise OSError("no shell")

    with pytest.raises(CommandExecutionError, match="no shell"):
        CommandRunner(runner=fake_run).run("anything")


def test_command_runner_raises_on_nonzero_exit() -> None:
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 3)

    with pytest.raises(CommandExecutionError) as excinfo:
        CommandRunner(runner=fake_run).run("false")
    assert excinfo.value.exit_code == 3
    assert excinfo.value.command == "false"


def test_command_runner_executes_real_shell(tmp_path) -> None:
    marker = tmp_path / "fired"

    CommandRunner().run(f"touch '{marker}'")

    assert marker.exists()
