"""Tests for the presentation adapters and the interactive session loop."""

from __future__ import annotations

from typing import List

import pytest

from cli.render import format_channel, format_chip_line
from conftest import StubBackend
from datastore.options_file import OptionsFile
from models.options import Options
from models.readings import BUS_ISA, ChannelReport, Reading, Severity, Snapshot
from services.aggregator import Aggregator
from services.classifier import classify
from services.monitor import Monitor
from ui.base import UiEvent, display_thresholds, event_for_key, run_session
from ui.chart import ChartFileAdapter, build_gauge, render_html
from ui.dashboard import bar_cells, dashboard_rows


def _report(current: float, high=80.0, critical=100.0, index: int = 0) -> ChannelReport:
    reading = Reading(current=current, high=high, critical=critical)
    return ChannelReport(
        bus_id=BUS_ISA,
        bus_name="ISA adapter",
        chip_name="coretemp",
        channel_index=index,
        label=f"Core {index}",
        reading=reading,
        severity=classify(reading),
    )


class ScriptedAdapter:
    def __init__(self, events: List[UiEvent]) -> None:
        self.events = list(events)
        self.rendered: List[tuple[Snapshot, Options]] = []
        self.closed = False

    def render(self, snapshot: Snapshot, options: Options) -> None:
        self.rendered.append((snapshot, options))

    def wait_event(self, timeout: float) -> UiEvent:
        return self.events.pop(0) if self.events else UiEvent.quit

    def close(self) -> None:
        self.closed = True


def test_format_channel_marks_thresholds() -> None:
    assert format_channel(_report(45.0), fahrenheit=False) == "45C"
    assert format_channel(_report(85.0), fahrenheit=False) == "85C>80C"
    assert format_channel(_report(101.0), fahrenheit=False) == "101C>100C!!!"
    assert format_channel(_report(100.0), fahrenheit=True) == "212F>176F"


def test_format_chip_line() -> None:
    reports = [_report(45.0, index=0), _report(85.0, index=1)]

    assert format_chip_line("coretemp", reports, fahrenheit=False) == "  coretemp: 45C 85C>80C"


@pytest.mark.parametrize(
    ("key", "event"),
    [("q", UiEvent.quit), ("Q", UiEvent.quit), ("s", UiEvent.save), ("T", UiEvent.toggle_units), ("!", UiEvent.toggle_debug), ("x", UiEvent.none)],
)
def test_event_for_key(key: str, event: UiEvent) -> None:
    assert event_for_key(key) is event


def test_display_thresholds_default_only_when_unset() -> None:
    assert display_thresholds(Reading(current=50.0)) == (80.0, 90.0)
    assert display_thresholds(Reading(current=50.0, high=70.0, critical=95.0)) == (70.0, 95.0)


def test_session_toggles_units_and_saves_on_exit(tmp_path, stub_backend: StubBackend) -> None:
    store = OptionsFile(tmp_path / "proctemprc")
    options = store.load()
    adapter = ScriptedAdapter([UiEvent.toggle_units, UiEvent.none, UiEvent.quit])

    final = run_session(Monitor(stub_backend), adapter, options, store=store, poll_timeout=0)

    assert [rendered.fahrenheit for _snapshot, rendered in adapter.rendered] == [True, False, False]
    assert final.fahrenheit is False
    assert adapter.closed is True
    assert OptionsFile(store.path).load() == final


def test_session_save_event_writes_immediately(tmp_path, stub_backend: StubBackend) -> None:
    store = OptionsFile(tmp_path / "proctemprc")
    options = store.load()
    writes = []
    real_save = store.save

    def recording_save(value: Options) -> None:
        writes.append(value)
        real_save(value)

    store.save = recording_save  # type: ignore[method-assign]
    adapter = ScriptedAdapter([UiEvent.save, UiEvent.quit])

    run_session(Monitor(stub_backend), adapter, options, store=store, poll_timeout=0)

    # saved on the key press; nothing left to write on exit
    assert writes == [options]


def test_session_respects_max_polls(stub_backend: StubBackend) -> None:
    adapter = ScriptedAdapter([UiEvent.none] * 10)

    run_session(Monitor(stub_backend), adapter, Options(), poll_timeout=0, max_polls=3)

    assert len(adapter.rendered) == 3
    assert stub_backend.enumerations == 3


def test_dashboard_rows_use_classifier_severity() -> None:
    snapshot = Aggregator().summarize([_report(45.0, index=0), _report(101.0, index=1)])

    rows = dashboard_rows(snapshot, fahrenheit=False)

    assert rows[0].text == "ISA adapter coretemp"
    assert rows[0].severity is None
    assert [row.severity for row in rows[1:]] == [Severity.NORMAL, Severity.CRITICAL]
    assert rows[2].text.endswith("101C")


def test_bar_cells_zones_and_fill() -> None:
    cells = bar_cells(Reading(current=72.5, high=80.0, critical=100.0), size=30)

    assert len(cells) == 28
    zones = [cell.zone for cell in cells]
    assert zones[0] == Severity.NORMAL
    assert Severity.WARNING in zones
    assert zones[-1] == Severity.CRITICAL
    assert zones == sorted(zones)
    filled = [cell.filled for cell in cells]
    assert filled[0] is True
    assert filled[-1] is False
    assert filled == sorted(filled, reverse=True)


def test_bar_cells_clamp_out_of_range_values() -> None:
    assert not any(cell.filled for cell in bar_cells(Reading(current=10.0), size=12))
    assert all(cell.filled for cell in bar_cells(Reading(current=500.0), size=12))


def test_build_gauge_scales_to_hottest_critical() -> None:
    reports = [_report(30.0, index=0), _report(120.0, high=90.0, critical=105.0, index=1)]

    gauge = build_gauge("ISA adapter coretemp", reports, fahrenheit=False)

    assert gauge.values == [("0", 40), ("1", 110)]
    assert (gauge.minimum, gauge.maximum) == (40, 110)
    assert (gauge.high, gauge.critical) == (90, 105)


def test_render_html_contains_one_chart_per_chip() -> None:
    snapshot = Aggregator().summarize([_report(45.0, index=0), _report(85.0, index=1)])

    html = render_html(snapshot, fahrenheit=True, refresh_seconds=5)

    assert 'content="5"' in html
    assert "drawChart0();" in html
    assert "drawChart1" not in html
    assert "ISA adapter coretemp<br>" in html
    assert "['1', 185]" in html
    assert "status: warning" in html


def test_chart_adapter_writes_file(tmp_path) -> None:
    output = tmp_path / "out" / "temps.html"
    adapter = ChartFileAdapter(output)
    snapshot = Aggregator().summarize([_report(45.0)])

    adapter.render(snapshot, Options(fahrenheit=False))

    assert "google.visualization.Gauge" in output.read_text()
    assert adapter.wait_event(1.0) is UiEvent.quit


def test_chart_adapter_refresh_sleeps() -> None:
    sleeps = []
    adapter = ChartFileAdapter(output=None, once=False, sleep=sleeps.append)  # type: ignore[arg-type]

    assert adapter.wait_event(2.0) is UiEvent.none
    assert sleeps == [2.0]


def test_window_lines_colour_by_severity() -> None:
    pytest.importorskip("tkinter")
    from ui.window import SEVERITY_COLORS, window_lines

    snapshot = Aggregator().summarize([_report(45.0, index=0), _report(85.0, index=1)])

    lines = window_lines(snapshot, fahrenheit=False)

    assert lines[0] == ("ISA adapter coretemp", "black")
    assert lines[1] == ("    Core 0: 45C", SEVERITY_COLORS[Severity.NORMAL])
    assert lines[2] == ("    Core 1: 85C", SEVERITY_COLORS[Severity.WARNING])
    assert window_lines(Snapshot(status=Severity.NORMAL), fahrenheit=False) == [
        ("No temperature sensors found.", "black")
    ]


def test_chart_adapter_interrupt_quits() -> None:
    def interrupted(_seconds: float) -> None:
        raise KeyboardInterrupt

    adapter = ChartFileAdapter(output=None, once=False, sleep=interrupted)  # type: ignore[arg-type]

    assert adapter.wait_event(2.0) is UiEvent.quit
