"""Alert trigger state machine and external command execution."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from models.readings import Severity
from services.errors import CommandExecutionError

logger = logging.getLogger(__name__)


class TriggerMode(str, Enum):
    """How often a sustained non-normal status runs its command."""

    EVERY_POLL = "every-poll"
    ON_ELEVATION = "on-elevation"


class CommandExecutor(Protocol):
    def run(self, command: str) -> int: ...


class CommandRunner:
    """Runs an alert command synchronously through the shell."""

    def __init__(self, runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> None:
        self._runner = runner

    def run(self, command: str) -> int:
        logger.info("executing '%s'", command, extra={"command": command})
        try:
            completed = self._runner(command, shell=True, check=False)
        except OSError as exc:
            raise CommandExecutionError(command, str(exc)) from exc
        if completed.returncode != 0:
            raise CommandExecutionError(
                command,
                f"exit status {completed.returncode}",
                exit_code=completed.returncode,
            )
        logger.debug("command finished", extra={"command": command, "exit_code": 0})
        return completed.returncode


@dataclass
class AlertState:
    last_triggered: Severity = Severity.NORMAL

    @property
    def idle(self) -> bool:
        return self.last_triggered == Severity.NORMAL


class AlertTrigger:
    """Decides when to run the high and critical commands.

    The trigger is ``Idle`` while the status is normal and
    ``Triggered(severity)`` otherwise. In ``EVERY_POLL`` mode the command
    for the current status runs on every non-normal update. In
    ``ON_ELEVATION`` mode it only runs when the status rises above the
    severity that last fired; falling back to normal re-arms it.
    """

    def __init__(
        self,
        high_cmd: str = "",
        critical_cmd: str = "",
        mode: TriggerMode = TriggerMode.EVERY_POLL,
        executor: Optional[CommandExecutor] = None,
    ) -> None:
        self.high_cmd = high_cmd
        self.critical_cmd = critical_cmd
        self.mode = mode
        self.executor: CommandExecutor = executor or CommandRunner()
        self.state = AlertState()

    def command_for(self, status: Severity) -> Optional[str]:
        if status == Severity.CRITICAL:
            return self.critical_cmd
        if status == Severity.WARNING:
            return self.high_cmd
        return None

    def should_fire(self, status: Severity) -> bool:
        if status == Severity.NORMAL:
            return False
        if self.mode is TriggerMode.EVERY_POLL:
            return True
        return status > self.state.last_triggered

    def update(self, status: Severity) -> Optional[str]:
        """Feed one aggregated status; return the command that ran, if any.

        The state moves to the new status before the command runs, so a
        failing command does not fire again for the same elevation.
        """
        status = Severity(status)
        fire = self.should_fire(status)
        self.state.last_triggered = status
        if status == Severity.NORMAL:
            logger.info("temperatures are normal", extra={"severity": status})
            return None

        logger.warning(
            "temperatures are %s",
            "critical" if status == Severity.CRITICAL else "high",
            extra={"severity": status},
        )
        if not fire:
            return None
        command = self.command_for(status)
        if not command:
            logger.warning("no command configured", extra={"severity": status})
            return None
        self.executor.run(command)
        return command
