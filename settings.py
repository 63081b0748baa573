from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_LOG_LEVEL_ENV = "PROCTEMP_LOG_LEVEL"
_BACKEND_ENV = "PROCTEMP_SENSOR_BACKEND"
_HWMON_ROOT_ENV = "PROCTEMP_HWMON_ROOT"
_CONFIG_DIR_ENV = "PROCTEMP_CONFIG_DIR"
_POLL_INTERVAL_ENV = "PROCTEMP_POLL_INTERVAL"
_LOG_FILE_ENV = "PROCTEMP_LOG_FILE"

DEFAULT_POLL_INTERVAL = 1.0
SENSOR_BACKENDS = ("hwmon", "psutil")


@dataclass(frozen=True)
class Settings:
    log_level: str
    sensor_backend: str
    hwmon_root: str
    config_dir: Path
    poll_interval: float
    log_file: Optional[Path] = None


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_poll_interval(default: float) -> float:
    value = os.getenv(_POLL_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_backend(default: str) -> str:
    candidate = _read_str_env(_BACKEND_ENV, default).lower()
    return candidate if candidate in SENSOR_BACKENDS else default


def _read_log_file() -> Optional[Path]:
    value = _read_optional_env(_LOG_FILE_ENV, None)
    return Path(value).expanduser() if value else None


def _default_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/proctemp``, falling back to ``~/.config/proctemp``."""
    explicit = _read_optional_env(_CONFIG_DIR_ENV, None)
    if explicit:
        return Path(explicit).expanduser()
    xdg = _read_optional_env("XDG_CONFIG_HOME", None)
    if xdg:
        return Path(xdg).expanduser() / "proctemp"
    return Path.home() / ".config" / "proctemp"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        sensor_backend=_read_backend("hwmon"),
        hwmon_root=_read_str_env(_HWMON_ROOT_ENV, "/sys/class/hwmon"),
        config_dir=_default_config_dir(),
        poll_interval=_read_poll_interval(DEFAULT_POLL_INTERVAL),
        log_file=_read_log_file(),
    )
