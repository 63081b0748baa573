"""Presentation adapter protocol and the shared interactive loop."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

from datastore.options_file import OptionsFile
from models.options import Options
from models.readings import Reading, Snapshot
from services.monitor import Monitor

logger = logging.getLogger(__name__)

# Stand-ins for channels without thresholds; used only to scale bars and gauges.
DISPLAY_HIGH = 80.0
DISPLAY_CRITICAL = 90.0
DISPLAY_MIN = 40.0


class UiEvent(str, Enum):
    none = "none"
    quit = "quit"
    save = "save"
    toggle_units = "toggle_units"
    toggle_debug = "toggle_debug"


KEY_EVENTS = {
    "q": UiEvent.quit,
    "s": UiEvent.save,
    "t": UiEvent.toggle_units,
    "!": UiEvent.toggle_debug,
}


def event_for_key(key: str) -> UiEvent:
    return KEY_EVENTS.get(key.lower(), UiEvent.none)


def display_thresholds(reading: Reading) -> tuple[float, float]:
    """High and critical values to draw, substituting display defaults when unset."""
    high = reading.high if reading.has_high else DISPLAY_HIGH
    critical = reading.critical if reading.has_critical else DISPLAY_CRITICAL
    return high, critical


class PresentationAdapter(Protocol):
    def render(self, snapshot: Snapshot, options: Options) -> None: ...

    def wait_event(self, timeout: float) -> UiEvent:
        """Block for at most ``timeout`` seconds waiting for one user event."""
        ...

    def close(self) -> None: ...


def apply_event(
    event: UiEvent,
    options: Options,
    store: Optional[OptionsFile],
) -> Options:
    if event is UiEvent.toggle_units:
        return options.toggled_units()
    if event is UiEvent.save and store is not None:
        store.save(options)
    return options


def run_session(
    monitor: Monitor,
    adapter: PresentationAdapter,
    options: Options,
    store: Optional[OptionsFile] = None,
    poll_timeout: float = 1.0,
    max_polls: Optional[int] = None,
) -> Options:
    """Poll, render and handle one event per iteration until the user quits.

    The options value is threaded through the loop and returned. Changed
    options are written back on exit.
    """
    polls = 0
    try:
        while max_polls is None or polls < max_polls:
            snapshot = monitor.poll()
            polls += 1
            adapter.render(snapshot, options)
            event = adapter.wait_event(poll_timeout)
            if event is UiEvent.quit:
                break
            options = apply_event(event, options, store)
    finally:
        adapter.close()

    if store is not None and store.is_dirty(options):
        store.save(options)
    return options
