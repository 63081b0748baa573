"""HTML gauge-chart exporter."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from models.options import Options
from models.readings import ChannelReport, Snapshot
from services.units import display_value
from ui.base import DISPLAY_MIN, UiEvent, display_thresholds

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "proctemp.html"

_environment = Environment(
    loader=FileSystemLoader(str(Path(__file__).resolve().parent / "templates")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class GaugeChart:
    title: str
    values: List[Tuple[str, int]]
    minimum: int
    maximum: int
    high: int
    critical: int


def build_gauge(title: str, reports: List[ChannelReport], fahrenheit: bool) -> GaugeChart:
    """Gauge for one chip; the dial tops out five degrees above the hottest critical threshold."""
    high = 0.0
    critical = 0.0
    for report in reports:
        channel_high, channel_critical = display_thresholds(report.reading)
        high = max(high, channel_high)
        critical = max(critical, channel_critical)
    maximum = critical + 5.0

    values = []
    for report in reports:
        clamped = min(max(report.reading.current, DISPLAY_MIN), maximum)
        values.append((str(report.channel_index), round(display_value(clamped, fahrenheit))))

    return GaugeChart(
        title=title,
        values=values,
        minimum=round(display_value(DISPLAY_MIN, fahrenheit)),
        maximum=round(display_value(maximum, fahrenheit)),
        high=round(display_value(high, fahrenheit)),
        critical=round(display_value(critical, fahrenheit)),
    )


def render_html(snapshot: Snapshot, fahrenheit: bool, refresh_seconds: int = 2) -> str:
    charts = [
        build_gauge(f"{bus_name} {chip_name}", reports, fahrenheit)
        for _bus_id, bus_name, chip_name, reports in snapshot.chips()
    ]
    template = _environment.get_template("chart.html")
    return template.render(
        charts=charts,
        refresh_seconds=refresh_seconds,
        status_name=snapshot.status.name.lower(),
    )


class ChartFileAdapter:
    """Rewrites an auto-refreshing HTML page on every poll.

    With ``once`` set the session ends after the first page is written.
    """

    def __init__(
        self,
        output: Path,
        once: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.output = output
        self.once = once
        self._sleep = sleep

    def render(self, snapshot: Snapshot, options: Options) -> None:
        self.output.parent.mkdir(parents=True, exist_ok=True)
        self.output.write_text(render_html(snapshot, options.fahrenheit))
        logger.info("wrote %s", self.output)

    def wait_event(self, timeout: float) -> UiEvent:
        if self.once:
            return UiEvent.quit
        try:
            self._sleep(timeout)
        except KeyboardInterrupt:
            # Ctrl-C is the only way out of a refreshing export
            return UiEvent.quit
        return UiEvent.none

    def close(self) -> None:
        return None
