from __future__ import annotations

from typing import Iterable

import typer

from models.options import Options
from models.readings import ChannelReport, Severity, Snapshot
from services.units import display_value, format_temperature
from ui.base import UiEvent

_STATUS_COLORS = {
    Severity.NORMAL: typer.colors.GREEN,
    Severity.WARNING: typer.colors.YELLOW,
    Severity.CRITICAL: typer.colors.RED,
}

_STATUS_TEXT = {
    Severity.NORMAL: "normal",
    Severity.WARNING: "high",
    Severity.CRITICAL: "critical",
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def format_channel(report: ChannelReport, fahrenheit: bool) -> str:
    """``45C``, ``52C>50C`` when above high, ``99C>95C!!!`` when above critical."""
    reading = report.reading
    text = format_temperature(reading.current, fahrenheit)
    if report.severity == Severity.CRITICAL:
        text += f">{format_temperature(reading.critical, fahrenheit)}!!!"
    elif report.severity == Severity.WARNING:
        text += f">{format_temperature(reading.high, fahrenheit)}"
    return text


def format_chip_line(chip_name: str, reports: Iterable[ChannelReport], fahrenheit: bool) -> str:
    return f"  {chip_name}:" + "".join(f" {format_channel(report, fahrenheit)}" for report in reports)


def echo_status(status: Severity) -> None:
    typer.secho(
        f"status: {_STATUS_TEXT[status]} ({int(status)})",
        fg=_STATUS_COLORS[status],
    )


def render_snapshot(snapshot: Snapshot, fahrenheit: bool) -> None:
    last_bus: int | None = None
    for bus_id, bus_name, chip_name, reports in snapshot.chips():
        if bus_id != last_bus:
            echo_heading(f"[{bus_id}] {bus_name}")
            last_bus = bus_id
        typer.echo(format_chip_line(chip_name, reports, fahrenheit))
    if not snapshot.reports:
        typer.echo("No temperature sensors found.")
    echo_status(snapshot.status)


def render_channel_details(snapshot: Snapshot, fahrenheit: bool) -> None:
    """One line per channel with its thresholds, for verbose dumps."""
    unit = "F" if fahrenheit else "C"
    for report in snapshot.reports:
        reading = report.reading
        high = f"{display_value(reading.high, fahrenheit):.1f}{unit}" if reading.has_high else "-"
        critical = (
            f"{display_value(reading.critical, fahrenheit):.1f}{unit}" if reading.has_critical else "-"
        )
        typer.echo(
            f"  {report.chip_name}[{report.channel_index}] {report.label}: "
            f"{display_value(reading.current, fahrenheit):.1f}{unit} "
            f"(high {high}, critical {critical}) {report.severity.name.lower()}"
        )


class TextAdapter:
    """Prints each snapshot to stdout; used by ``dump`` and ``watch``."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def render(self, snapshot: Snapshot, options: Options) -> None:
        if self.verbose:
            render_channel_details(snapshot, options.fahrenheit)
            echo_status(snapshot.status)
            return
        render_snapshot(snapshot, options.fahrenheit)

    def wait_event(self, timeout: float) -> UiEvent:
        return UiEvent.quit

    def close(self) -> None:
        return None
