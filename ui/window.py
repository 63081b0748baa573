"""Minimal tkinter window listing live readings."""

from __future__ import annotations

import time
import tkinter as tk
from typing import List, Tuple

from models.options import MAJOR_REVISION, MINOR_REVISION, Options
from models.readings import Severity, Snapshot
from services.units import format_temperature
from ui.base import UiEvent, event_for_key

SEVERITY_COLORS = {
    Severity.NORMAL: "dark green",
    Severity.WARNING: "dark orange",
    Severity.CRITICAL: "red",
}


def window_lines(snapshot: Snapshot, fahrenheit: bool) -> List[Tuple[str, str]]:
    """``(text, colour)`` pairs, one per chip and one per channel."""
    lines: List[Tuple[str, str]] = []
    for _bus_id, bus_name, chip_name, reports in snapshot.chips():
        lines.append((f"{bus_name} {chip_name}", "black"))
        for report in reports:
            value = format_temperature(report.reading.current, fahrenheit)
            lines.append((f"    {report.label}: {value}", SEVERITY_COLORS[report.severity]))
    if not lines:
        lines.append(("No temperature sensors found.", "black"))
    return lines


class WindowAdapter:
    """Top-level window pumped from the poll loop instead of ``mainloop``."""

    def __init__(self, backend_version: str = "") -> None:
        self.root = tk.Tk()
        self.root.title(f"proctemp {MAJOR_REVISION}.{MINOR_REVISION}")
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)
        self.root.bind("<Key>", self._on_key)
        self.frame = tk.Frame(self.root, padx=12, pady=12)
        self.frame.pack(fill=tk.BOTH, expand=True)
        self.footer = tk.Label(
            self.root,
            text=f"sensors {backend_version}   T = change scale   S = save   Q = quit",
            anchor="w",
        )
        self.footer.pack(fill=tk.X)
        self._pending = UiEvent.none
        self._closed = False

    def _on_close(self) -> None:
        self._pending = UiEvent.quit

    def _on_key(self, event: tk.Event) -> None:
        if event.char:
            self._pending = event_for_key(event.char)

    def render(self, snapshot: Snapshot, options: Options) -> None:
        for child in self.frame.winfo_children():
            child.destroy()
        for text, colour in window_lines(snapshot, options.fahrenheit):
            tk.Label(self.frame, text=text, fg=colour, anchor="w", font=("TkFixedFont", 11)).pack(fill=tk.X)
        self.root.update()

    def wait_event(self, timeout: float) -> UiEvent:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            self.root.update()
            if self._pending is not UiEvent.none:
                event, self._pending = self._pending, UiEvent.none
                return event
            time.sleep(0.05)
        return UiEvent.none

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.root.destroy()
