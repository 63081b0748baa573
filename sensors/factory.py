from __future__ import annotations

from typing import Optional

from sensors.base import SensorBackend
from sensors.hwmon import HwmonBackend
from services.errors import FatalInitError
from settings import SENSOR_BACKENDS, get_settings


def build_default_backend(name: Optional[str] = None) -> SensorBackend:
    """Build the backend named by ``name`` or by ``PROCTEMP_SENSOR_BACKEND``."""
    settings = get_settings()
    backend_name = settings.sensor_backend if name is None else name.strip().lower()
    if backend_name == "psutil":
        from sensors.psutil_backend import PsutilBackend

        return PsutilBackend()
    if backend_name != "hwmon":
        choices = ", ".join(SENSOR_BACKENDS)
        raise FatalInitError(f"unknown sensor backend {backend_name!r} (choose from {choices})")
    return HwmonBackend(root=settings.hwmon_root)
