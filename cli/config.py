from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from services.aggregator import Scope
from settings import DEFAULT_POLL_INTERVAL, get_settings


@dataclass(frozen=True)
class CLIConfig:
    fahrenheit: Optional[bool] = None
    scope: Scope = field(default_factory=Scope)
    sensor_backend: str = "hwmon"
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def fahrenheit_or(self, default: bool) -> bool:
        """The ``--fahrenheit/--celsius`` choice, or ``default`` when neither was given."""
        return default if self.fahrenheit is None else self.fahrenheit


def load_config(
    fahrenheit: Optional[bool] = None,
    cpus: bool = False,
    gpus: bool = False,
    bus_id: Optional[int] = None,
    sensor_backend: Optional[str] = None,
    poll_interval: Optional[float] = None,
) -> CLIConfig:
    settings = get_settings()
    if poll_interval is None or poll_interval <= 0:
        poll_interval = settings.poll_interval
    return CLIConfig(
        fahrenheit=fahrenheit,
        scope=Scope(cpus=cpus, gpus=gpus, bus_id=bus_id),
        sensor_backend=sensor_backend or settings.sensor_backend,
        poll_interval=poll_interval,
    )
