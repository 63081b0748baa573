from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from models.options import MAJOR_REVISION, MINOR_REVISION, Options
from services.errors import ConfigParseError, ProctempError
from settings import get_settings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "proctemprc"

_KEYS = ("major_revision", "minor_revision", "fahrenheit", "output")


def parse_options(text: str) -> Options:
    """Parse ``key value`` lines into :class:`Options`.

    Unknown keys are ignored and missing keys take their defaults. A
    different major revision, a newer minor revision or a value that does
    not validate raises :class:`ConfigParseError`.
    """
    values: Dict[str, str] = {}
    for line in text.splitlines():
        parts = line.strip().split(None, 1)
        if not parts or parts[0].startswith("#"):
            continue
        key = parts[0]
        if key not in _KEYS:
            logger.debug("ignoring unknown option %s", key)
            continue
        values[key] = parts[1].strip() if len(parts) > 1 else ""

    if not values.get("output"):
        values.pop("output", None)

    try:
        options = Options.model_validate(values)
    except ValidationError as exc:
        raise ConfigParseError(f"cannot parse configuration file: {exc}") from exc

    if options.major_revision != MAJOR_REVISION:
        raise ConfigParseError(
            "configuration file major revision is not the same as this program's major revision number"
        )
    if options.minor_revision > MINOR_REVISION:
        raise ConfigParseError(
            "configuration file revision number is newer than this program's revision number"
        )
    return options


def format_options(options: Options) -> str:
    lines = [
        f"major_revision {options.major_revision}",
        f"minor_revision {options.minor_revision}",
        f"fahrenheit {int(options.fahrenheit)}",
    ]
    if options.output:
        lines.append(f"output {options.output}")
    return "\n".join(lines) + "\n"


class OptionsFile:
    """Key/value options file with dirtiness tracked against the last saved record."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._persisted: Optional[Options] = None

    def load(self) -> Options:
        """Read the file, falling back to defaults when it is missing or invalid."""
        if not self.path.exists():
            logger.info("no configuration file, using defaults", extra={"config_path": self.path})
            self._persisted = None
            return Options()

        logger.info("reading configuration file", extra={"config_path": self.path})
        try:
            options = parse_options(self.path.read_text())
        except (OSError, UnicodeDecodeError) as exc:
            return self._reset(ConfigParseError(f"could not read configuration file: {exc}"))
        except ConfigParseError as exc:
            return self._reset(exc)
        self._persisted = options
        return options

    def save(self, options: Options) -> None:
        logger.info("writing configuration file", extra={"config_path": self.path})
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            self.path.write_text(format_options(options))
        except OSError as exc:
            raise ProctempError(f"could not write configuration file {self.path}: {exc}") from exc
        self._persisted = options

    def is_dirty(self, options: Options) -> bool:
        return options != self._persisted

    def _reset(self, error: ConfigParseError) -> Options:
        logger.warning("%s; setting options to their defaults", error, extra={"config_path": self.path})
        self._persisted = None
        return Options()


def build_default_options_file(config_dir: Optional[str] = None) -> OptionsFile:
    settings = get_settings()
    directory = settings.config_dir if config_dir is None else Path(config_dir)
    return OptionsFile(path=directory / CONFIG_FILENAME)
