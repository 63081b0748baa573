"""Error taxonomy for the I/O boundaries. Classification and aggregation never raise."""

from __future__ import annotations


class ProctempError(Exception):
    """Base class for every error raised by proctemp."""


class FatalInitError(ProctempError):
    """The sensor backend could not be initialized."""


class SensorReadError(ProctempError):
    """A channel could not be read during a poll."""


class CommandExecutionError(ProctempError):
    """An alert command could not be launched or exited with a failure status."""

    def __init__(self, command: str, reason: str, exit_code: int | None = None) -> None:
        super().__init__(f"could not execute command {command!r}: {reason}")
        self.command = command
        self.exit_code = exit_code


class ConfigParseError(ProctempError):
    """The persisted options file is malformed or from an incompatible version."""
