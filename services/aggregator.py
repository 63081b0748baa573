"""Aggregation of per-channel severities into one status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from models.readings import BUS_ISA, BUS_PCI, Bus, ChannelReport, Severity, Snapshot


@dataclass(frozen=True)
class Scope:
    """Which buses take part in a scan.

    With no restriction every bus is scanned. ``bus_id`` wins over the
    ``cpus``/``gpus`` shortcuts, which select the ISA and PCI buses.
    """

    cpus: bool = False
    gpus: bool = False
    bus_id: Optional[int] = None

    def includes(self, bus: Bus) -> bool:
        if self.bus_id is not None:
            return bus.id == self.bus_id
        if not self.cpus and not self.gpus:
            return True
        return (self.cpus and bus.id == BUS_ISA) or (self.gpus and bus.id == BUS_PCI)

    def describe(self) -> str:
        if self.bus_id is not None:
            return f"bus {self.bus_id}"
        if self.cpus and self.gpus:
            return "CPUs and GPUs"
        if self.cpus:
            return "CPUs"
        if self.gpus:
            return "GPUs"
        return "all buses"


def select_buses(buses: Iterable[Bus], scope: Scope) -> List[Bus]:
    return [bus for bus in buses if scope.includes(bus)]


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, severities: Iterable[Severity]) -> Severity:
        """Return the worst severity, or ``Severity.NORMAL`` for an empty input."""
        status = Severity.NORMAL
        for severity in severities:
            if severity > status:
                status = Severity(severity)
        return status

    def summarize(self, reports: Iterable[ChannelReport]) -> Snapshot:
        collected = tuple(reports)
        status = self.aggregate(report.severity for report in collected)
        return Snapshot(status=status, reports=collected)
