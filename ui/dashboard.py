"""Curses live dashboard."""

from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import List, Optional

from models.options import MAJOR_REVISION, MINOR_REVISION, Options
from models.readings import Reading, Severity, Snapshot
from services.units import format_temperature
from ui.base import DISPLAY_MIN, UiEvent, display_thresholds, event_for_key

HELP_LINES = (
    "T = change Temperature scale",
    "S = Save configuration options",
    "Q = Quit",
)


@dataclass(frozen=True)
class DashboardRow:
    """One screen line: a chip heading or a channel with its value and bar."""

    text: str
    severity: Optional[Severity] = None
    reading: Optional[Reading] = None


@dataclass(frozen=True)
class BarCell:
    zone: Severity
    filled: bool


def dashboard_rows(snapshot: Snapshot, fahrenheit: bool) -> List[DashboardRow]:
    rows: List[DashboardRow] = []
    for _bus_id, bus_name, chip_name, reports in snapshot.chips():
        rows.append(DashboardRow(text=f"{bus_name} {chip_name}"))
        width = len(str(len(reports)))
        for report in reports:
            value = format_temperature(report.reading.current, fahrenheit)
            rows.append(
                DashboardRow(
                    text=f"{report.channel_index:<{width}} {value:>4}",
                    severity=report.severity,
                    reading=report.reading,
                )
            )
    return rows


def bar_cells(reading: Reading, size: int) -> List[BarCell]:
    """Cells between the brackets of a ``size`` wide bar.

    The scale runs from 40C to five degrees above the critical threshold.
    Zones are coloured green, yellow and red at the high and critical
    thresholds; cells up to the current value are filled.
    """
    high, critical = display_thresholds(reading)
    low = DISPLAY_MIN
    top = max(critical + 5.0, low + 1.0)
    current = min(max(reading.current, low), top)
    filled_len = int(size * (current - low) / (top - low))
    high_at = size * (high - low) / (top - low)
    critical_at = size * (critical - low) / (top - low)

    cells: List[BarCell] = []
    for k in range(1, size - 1):
        if k < high_at:
            zone = Severity.NORMAL
        elif k < critical_at:
            zone = Severity.WARNING
        else:
            zone = Severity.CRITICAL
        cells.append(BarCell(zone=zone, filled=k < filled_len))
    return cells


class DashboardAdapter:
    """Full-screen terminal view refreshed once per poll."""

    def __init__(self, backend_version: str = "") -> None:
        self.backend_version = backend_version
        self.debug = False
        self.screen = None
        self.rows = 0
        self.cols = 0
        self._colors: dict[Severity, int] = {}
        self._banner = 0
        self._init()

    def _init(self) -> None:
        self.screen = curses.initscr()
        curses.noecho()
        curses.cbreak()
        self.screen.keypad(True)
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        self._init_colors()
        self.rows, self.cols = self.screen.getmaxyx()

    def _init_colors(self) -> None:
        if not curses.has_colors():
            self._colors = {severity: 0 for severity in Severity}
            self._banner = 0
            return
        curses.start_color()
        background = curses.COLOR_BLACK
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            pass
        curses.init_pair(1, curses.COLOR_GREEN, background)
        curses.init_pair(2, curses.COLOR_YELLOW, background)
        curses.init_pair(3, curses.COLOR_RED, background)
        curses.init_pair(4, curses.COLOR_BLUE, background)
        self._colors = {
            Severity.NORMAL: curses.color_pair(1),
            Severity.WARNING: curses.color_pair(2),
            Severity.CRITICAL: curses.color_pair(3),
        }
        self._banner = curses.color_pair(4)

    def close(self) -> None:
        if self.screen is None:
            return
        self.screen.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()
        self.screen = None

    def render(self, snapshot: Snapshot, options: Options) -> None:
        assert self.screen is not None
        self.screen.erase()
        bar_col = 12
        bar_size = 2 * self.cols // 3 - bar_col - 5
        for row, line in enumerate(dashboard_rows(snapshot, options.fahrenheit)):
            # the last line holds the version banner
            if row + 1 >= self.rows:
                break
            if line.severity is None:
                self._text(row, 0, line.text, curses.A_NORMAL)
                continue
            self._text(row, 0, line.text, curses.A_BOLD | self._colors[line.severity])
            if line.reading is not None and bar_size > 2:
                self._bar(row, bar_col, bar_size, line.reading)
        self._labels()
        self.screen.refresh()

    def wait_event(self, timeout: float) -> UiEvent:
        assert self.screen is not None
        self.screen.timeout(int(timeout * 1000))
        ch = self.screen.getch()
        if ch == curses.KEY_RESIZE:
            self.close()
            self._init()
            return UiEvent.none
        if ch < 0 or ch > 255:
            return UiEvent.none
        event = event_for_key(chr(ch))
        if event is UiEvent.toggle_debug:
            self.debug = not self.debug
        return event

    def _bar(self, row: int, col: int, size: int, reading: Reading) -> None:
        self._text(row, col, "[", curses.A_BOLD)
        self._text(row, col + size - 1, "]", curses.A_BOLD)
        for offset, cell in enumerate(bar_cells(reading, size), start=1):
            attr = curses.A_BOLD | self._colors[cell.zone]
            if cell.filled:
                self._text(row, col + offset, " ", attr | curses.A_REVERSE)
            else:
                self._text(row, col + offset, "-", attr)

    def _labels(self) -> None:
        col = 2 * self.cols // 3
        row = 0
        for line in HELP_LINES:
            self._text(row, col, line, curses.A_NORMAL)
            row += 1
        if self.debug:
            row += 1
            for line in (
                f"curses version {curses.version.decode()}",
                f"terminal dimensions {self.rows} X {self.cols}",
                f"sensors {self.backend_version}",
                "",
                "YOU ARE IN DEBUG MODE.",
                "PRESS '!' TO TURN OFF DEBUG MODE.",
            ):
                self._text(row, col, line, curses.A_NORMAL)
                row += 1
        banner = f"proctemp version {MAJOR_REVISION}.{MINOR_REVISION}"
        self._text(self.rows - 1, 0, banner, curses.A_BOLD | self._banner)

    def _text(self, row: int, col: int, text: str, attr: int) -> None:
        assert self.screen is not None
        width = self.cols - col
        if row < 0 or row >= self.rows or width <= 0:
            return
        try:
            self.screen.addnstr(row, col, text, width, attr)
        except curses.error:
            # writing the bottom-right cell raises after drawing it
            pass
