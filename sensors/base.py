"""Sensor backend protocol and the per-poll scan built on top of it."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Protocol, Sequence

from models.readings import Bus, Channel, ChannelReport, Reading
from services.classifier import classify

logger = logging.getLogger(__name__)


class SensorBackend(Protocol):
    """Hardware monitoring source.

    Backends return owned value types; nothing they hand out refers to
    their internal buffers.
    """

    def init(self) -> str:
        """Prepare the backend and return its version string."""
        ...

    def enumerate_buses(self) -> List[Bus]: ...

    def read_channel(self, channel: Channel) -> Reading: ...

    def cleanup(self) -> None: ...


@contextmanager
def open_backend(backend: SensorBackend) -> Iterator[str]:
    """Initialize ``backend`` for the duration of the block and yield its version."""
    version = backend.init()
    logger.info("sensor backend version %s", version)
    try:
        yield version
    finally:
        backend.cleanup()


def read_reports(backend: SensorBackend, buses: Sequence[Bus]) -> List[ChannelReport]:
    """Read and classify every channel of ``buses`` in enumeration order."""
    reports: List[ChannelReport] = []
    for bus in buses:
        for chip in bus.chips:
            for channel in chip.channels:
                reading = backend.read_channel(channel)
                severity = classify(reading)
                logger.debug(
                    "%s %s %s",
                    reading.current,
                    reading.high,
                    reading.critical,
                    extra={"bus_id": bus.id, "chip": chip.name, "channel": channel.index},
                )
                reports.append(
                    ChannelReport(
                        bus_id=bus.id,
                        bus_name=bus.name,
                        chip_name=chip.name,
                        channel_index=channel.index,
                        label=channel.label,
                        reading=reading,
                        severity=severity,
                    )
                )
    return reports
