"""Value types produced by the sensor backends and consumed by the core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Hashable, Optional, Tuple

# libsensors bus types; the id doubles as the bus identity in scope selection.
BUS_I2C = 0
BUS_ISA = 1
BUS_PCI = 2
BUS_SPI = 3
BUS_VIRTUAL = 4
BUS_ACPI = 5
BUS_HID = 6

BUS_NAMES = {
    BUS_I2C: "I2C adapter",
    BUS_ISA: "ISA adapter",
    BUS_PCI: "PCI adapter",
    BUS_SPI: "SPI adapter",
    BUS_VIRTUAL: "Virtual device",
    BUS_ACPI: "ACPI interface",
    BUS_HID: "HID adapter",
}

# Legacy "no threshold" marker emitted by older sensor bindings.
UNSET = -1.0


class Severity(IntEnum):
    """Ordered classification of a reading; ``max`` is the dominance operator."""

    NORMAL = 0
    WARNING = 1
    CRITICAL = 2


def is_threshold_set(value: Optional[float]) -> bool:
    return value is not None and value > 0


@dataclass(frozen=True, slots=True)
class Reading:
    """Current, high and critical temperatures of one channel in degrees Celsius."""

    current: float
    high: Optional[float] = None
    critical: Optional[float] = None

    @property
    def has_high(self) -> bool:
        return is_threshold_set(self.high)

    @property
    def has_critical(self) -> bool:
        return is_threshold_set(self.critical)


@dataclass(frozen=True, slots=True)
class Channel:
    """One sensor input inside a chip.

    ``key`` is opaque to the core; only the backend that produced the
    channel knows how to read it.
    """

    index: int
    label: str
    key: Hashable = None


@dataclass(frozen=True, slots=True)
class Chip:
    name: str
    channels: Tuple[Channel, ...] = ()


@dataclass(frozen=True, slots=True)
class Bus:
    id: int
    name: str
    chips: Tuple[Chip, ...] = field(default_factory=tuple)


def bus_name(bus_id: int) -> str:
    return BUS_NAMES.get(bus_id, "Unknown")


@dataclass(frozen=True, slots=True)
class ChannelReport:
    """A classified reading, ready for a presentation adapter."""

    bus_id: int
    bus_name: str
    chip_name: str
    channel_index: int
    label: str
    reading: Reading
    severity: Severity


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Outcome of one poll: the aggregated status and every channel report."""

    status: Severity
    reports: Tuple[ChannelReport, ...] = ()

    def chips(self) -> list[tuple[int, str, str, list[ChannelReport]]]:
        """Group reports by chip, preserving poll order.

        Returns ``(bus_id, bus_name, chip_name, reports)`` tuples.
        """
        groups: list[tuple[int, str, str, list[ChannelReport]]] = []
        for report in self.reports:
            if (
                groups
                and groups[-1][0] == report.bus_id
                and groups[-1][2] == report.chip_name
                and report.channel_index > groups[-1][3][-1].channel_index
            ):
                groups[-1][3].append(report)
                continue
            groups.append((report.bus_id, report.bus_name, report.chip_name, [report]))
        return groups
