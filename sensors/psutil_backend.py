"""Cross-platform backend built on ``psutil.sensors_temperatures``."""

from __future__ import annotations

from typing import Dict, List, Tuple

import psutil

from models.readings import BUS_ACPI, BUS_ISA, BUS_PCI, BUS_VIRTUAL, Bus, Channel, Chip, Reading, bus_name
from services.errors import FatalInitError, SensorReadError

# psutil does not report the parent bus, so it is inferred from the driver.
_CPU_DRIVERS = {
    "coretemp",
    "k8temp",
    "k10temp",
    "zenpower",
    "via_cputemp",
    "cpu_thermal",
    "cpu-thermal",
    "soc_thermal",
}
_PCI_DRIVERS = {"amdgpu", "radeon", "nouveau", "nvidia", "i915", "xe", "nvme"}
_ACPI_DRIVERS = {"acpitz"}


def driver_bus_id(driver: str) -> int:
    if driver in _CPU_DRIVERS:
        return BUS_ISA
    if driver in _PCI_DRIVERS:
        return BUS_PCI
    if driver in _ACPI_DRIVERS:
        return BUS_ACPI
    return BUS_VIRTUAL


def _threshold(value) -> float | None:
    return float(value) if value is not None else None


class PsutilBackend:
    """Reads temperatures through psutil.

    ``enumerate_buses`` takes one psutil sample; ``read_channel`` serves
    values from that sample so a scan sees a consistent view.
    """

    def __init__(self) -> None:
        self._sample: Dict[Tuple[str, int], Reading] = {}

    def init(self) -> str:
        if not hasattr(psutil, "sensors_temperatures"):
            raise FatalInitError("psutil does not support temperature sensors on this platform")
        return f"psutil {psutil.__version__}"

    def cleanup(self) -> None:
        self._sample = {}

    def enumerate_buses(self) -> List[Bus]:
        try:
            temperatures = psutil.sensors_temperatures()
        except (OSError, RuntimeError) as exc:
            raise SensorReadError(f"could not read sensors: {exc}") from exc

        sample: Dict[Tuple[str, int], Reading] = {}
        chips_by_bus: Dict[int, List[Chip]] = {}
        for driver, entries in temperatures.items():
            channels: List[Channel] = []
            for index, entry in enumerate(entries):
                key = (driver, index)
                sample[key] = Reading(
                    current=float(entry.current),
                    high=_threshold(entry.high),
                    critical=_threshold(entry.critical),
                )
                channels.append(Channel(index=index, label=entry.label or f"temp{index + 1}", key=key))
            if channels:
                chip = Chip(name=driver, channels=tuple(channels))
                chips_by_bus.setdefault(driver_bus_id(driver), []).append(chip)

        self._sample = sample
        return [
            Bus(id=bus_id, name=bus_name(bus_id), chips=tuple(chips))
            for bus_id, chips in sorted(chips_by_bus.items())
        ]

    def read_channel(self, channel: Channel) -> Reading:
        try:
            return self._sample[channel.key]
        except KeyError as exc:
            raise SensorReadError(f"channel {channel.key!r} was not part of the last scan") from exc
