from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest

import logging_config
from models.readings import BUS_ISA, BUS_PCI, Bus, Channel, Chip, Reading
from settings import get_settings


class StubBackend:
    """In-memory sensor backend keyed by ``(bus_id, chip, index)``."""

    def __init__(self, layout: Dict[tuple[int, str], List[Reading]], version: str = "stub 1.0") -> None:
        self.layout = layout
        self.version = version
        self.initialized = False
        self.cleaned_up = False
        self.enumerations = 0

    def init(self) -> str:
        self.initialized = True
        return self.version

    def cleanup(self) -> None:
        self.cleaned_up = True

    def enumerate_buses(self) -> List[Bus]:
        self.enumerations += 1
        buses: Dict[int, List[Chip]] = {}
        for (bus_id, chip_name), readings in self.layout.items():
            channels = tuple(
                Channel(index=index, label=f"temp{index + 1}", key=(bus_id, chip_name, index))
                for index in range(len(readings))
            )
            buses.setdefault(bus_id, []).append(Chip(name=chip_name, channels=channels))
        names = {BUS_ISA: "ISA adapter", BUS_PCI: "PCI adapter"}
        return [
            Bus(id=bus_id, name=names.get(bus_id, "Unknown"), chips=tuple(chips))
            for bus_id, chips in sorted(buses.items())
        ]

    def read_channel(self, channel: Channel) -> Reading:
        bus_id, chip_name, index = channel.key
        return self.layout[(bus_id, chip_name)][index]


class RecordingExecutor:
    def __init__(self) -> None:
        self.commands: List[str] = []

    def run(self, command: str) -> int:
        self.commands.append(command)
        return 0


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path) -> Iterator[None]:
    # Leave logging unconfigured so CliRunner's swapped streams are not captured.
    monkeypatch.setattr(logging_config, "_configured", True)
    monkeypatch.setenv("PROCTEMP_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("PROCTEMP_LOG_FILE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def stub_backend() -> StubBackend:
    return StubBackend(
        {
            (BUS_ISA, "coretemp"): [
                Reading(current=45.0, high=80.0, critical=100.0),
                Reading(current=47.0, high=80.0, critical=100.0),
            ],
            (BUS_PCI, "amdgpu"): [Reading(current=60.0, high=95.0, critical=105.0)],
        }
    )


def write_hwmon_chip(
    root: Path,
    hwmon: str,
    name: str,
    temps: Dict[int, tuple[int, Optional[int], Optional[int]]],
    subsystem: Optional[str] = None,
    labels: Optional[Dict[int, str]] = None,
) -> Path:
    """Create ``root/hwmonN`` with ``temp<N>_input/_max/_crit`` files in millidegrees."""
    directory = root / hwmon
    directory.mkdir(parents=True)
    (directory / "name").write_text(f"{name}\n")
    for number, (current, high, critical) in temps.items():
        (directory / f"temp{number}_input").write_text(f"{current}\n")
        if high is not None:
            (directory / f"temp{number}_max").write_text(f"{high}\n")
        if critical is not None:
            (directory / f"temp{number}_crit").write_text(f"{critical}\n")
    for number, label in (labels or {}).items():
        (directory / f"temp{number}_label").write_text(f"{label}\n")
    if subsystem is not None:
        bus_dir = root.parent / "bus" / subsystem
        bus_dir.mkdir(parents=True, exist_ok=True)
        device = root.parent / "devices" / hwmon
        device.mkdir(parents=True)
        (device / "subsystem").symlink_to(bus_dir, target_is_directory=True)
        (directory / "device").symlink_to(device, target_is_directory=True)
    return directory
