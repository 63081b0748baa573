"""Linux hwmon sysfs backend.

Walks ``/sys/class/hwmon/hwmon*/``, reads ``temp<N>_input``, ``temp<N>_max``
and ``temp<N>_crit`` in millidegrees and groups chips by the bus type of
their parent device.
"""

from __future__ import annotations

import os
import platform
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from models.readings import (
    BUS_ACPI,
    BUS_HID,
    BUS_I2C,
    BUS_ISA,
    BUS_PCI,
    BUS_SPI,
    BUS_VIRTUAL,
    Bus,
    Channel,
    Chip,
    Reading,
    bus_name,
)
from services.errors import FatalInitError, SensorReadError

_SUBSYSTEM_BUSES = {
    "pci": BUS_PCI,
    "platform": BUS_ISA,
    "of_platform": BUS_ISA,
    "isa": BUS_ISA,
    "i2c": BUS_I2C,
    "spi": BUS_SPI,
    "acpi": BUS_ACPI,
    "hid": BUS_HID,
}

_INPUT_RE = re.compile(r"^temp(\d+)_input$")
_HWMON_RE = re.compile(r"^hwmon(\d+)$")


def _numeric_suffix(pattern: re.Pattern[str], name: str) -> int:
    match = pattern.match(name)
    return int(match.group(1)) if match else -1


def _read_attribute(path: Path) -> Optional[str]:
    """Return the stripped contents of an optional sysfs attribute, or ``None`` if it is absent.

    Any other read failure (EIO, ENODATA, a directory in place of the file)
    is a sensor fault rather than a missing attribute.
    """
    try:
        return path.read_text().strip()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise SensorReadError(f"could not read {path}: {exc}") from exc


def _read_millidegrees(path: Path) -> Optional[float]:
    raw = _read_attribute(path)
    if raw is None:
        return None
    try:
        return int(raw) / 1000.0
    except ValueError as exc:
        raise SensorReadError(f"could not get value from {path}: {raw!r}") from exc


class HwmonBackend:
    """Sensor backend reading the kernel's hwmon class directory."""

    def __init__(self, root: str | os.PathLike[str] = "/sys/class/hwmon") -> None:
        self.root = Path(root)

    def init(self) -> str:
        if not self.root.is_dir():
            raise FatalInitError(f"could not initialize hwmon: {self.root} is not a directory")
        return f"hwmon sysfs ({platform.system()} {platform.release()})"

    def cleanup(self) -> None:
        return None

    def enumerate_buses(self) -> List[Bus]:
        chips_by_bus: Dict[int, List[Chip]] = {}
        for hwmon_dir in self._hwmon_dirs():
            channels = self._channels(hwmon_dir)
            if not channels:
                continue
            chip = Chip(name=self._chip_name(hwmon_dir), channels=tuple(channels))
            chips_by_bus.setdefault(self._bus_id(hwmon_dir), []).append(chip)
        return [
            Bus(id=bus_id, name=bus_name(bus_id), chips=tuple(chips))
            for bus_id, chips in sorted(chips_by_bus.items())
        ]

    def read_channel(self, channel: Channel) -> Reading:
        base = Path(str(channel.key))
        input_path = base.with_name(f"{base.name}_input")
        try:
            current = int(input_path.read_text().strip()) / 1000.0
        except (OSError, ValueError) as exc:
            raise SensorReadError(f"could not get value from {input_path}: {exc}") from exc
        return Reading(
            current=current,
            high=_read_millidegrees(base.with_name(f"{base.name}_max")),
            critical=_read_millidegrees(base.with_name(f"{base.name}_crit")),
        )

    def _hwmon_dirs(self) -> List[Path]:
        dirs = [path for path in self.root.iterdir() if path.is_dir()]
        return sorted(dirs, key=lambda path: (_numeric_suffix(_HWMON_RE, path.name), path.name))

    @staticmethod
    def _chip_name(hwmon_dir: Path) -> str:
        name = _read_attribute(hwmon_dir / "name")
        return name or hwmon_dir.name

    @staticmethod
    def _bus_id(hwmon_dir: Path) -> int:
        subsystem = hwmon_dir / "device" / "subsystem"
        if not subsystem.exists():
            return BUS_VIRTUAL
        return _SUBSYSTEM_BUSES.get(subsystem.resolve().name, BUS_VIRTUAL)

    @staticmethod
    def _channels(hwmon_dir: Path) -> List[Channel]:
        inputs: List[Tuple[int, Path]] = []
        for input_file in hwmon_dir.glob("temp*_input"):
            number = _numeric_suffix(_INPUT_RE, input_file.name)
            if number >= 0:
                inputs.append((number, input_file))
        channels: List[Channel] = []
        for index, (number, input_file) in enumerate(sorted(inputs)):
            stem = f"temp{number}"
            label = _read_attribute(hwmon_dir / f"{stem}_label") or stem
            channels.append(Channel(index=index, label=label, key=str(hwmon_dir / stem)))
        return channels
