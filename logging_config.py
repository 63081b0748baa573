from __future__ import annotations

import logging
from enum import Enum
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "bus_id",
    "chip",
    "channel",
    "severity",
    "command",
    "exit_code",
    "config_path",
    "scope",
    "poll",
)

_configured = False


def _render(value: Any) -> str:
    # Severity is an IntEnum; show NORMAL/WARNING/CRITICAL rather than 0/1/2
    if isinstance(value, Enum):
        return value.name
    return str(value)


class ContextualFormatter(logging.Formatter):
    """Appends ``key=value`` pairs for the sensor and alert context of a record."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts = [
            f"{key}={_render(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def _handler(log_level: str | int, log_file: Path | None) -> Dict[str, Any]:
    """stderr by default; a log file keeps the curses dashboard and cron output clean."""
    handler: Dict[str, Any] = {"level": log_level, "formatter": "contextual"}
    if log_file is None:
        handler.update({"class": "logging.StreamHandler", "stream": "ext://sys.stderr"})
    else:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler.update({"class": "logging.FileHandler", "filename": str(log_file), "encoding": "utf-8"})
    return handler


def configure_logging(level: str | int | None = None, log_file: str | Path | None = None) -> None:
    """Configure proctemp logging once per process.

    ``level`` and ``log_file`` override ``PROCTEMP_LOG_LEVEL`` and
    ``PROCTEMP_LOG_FILE``.
    """
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level
    target = Path(log_file).expanduser() if log_file is not None else settings.log_file

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {"default": _handler(log_level, target)},
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
