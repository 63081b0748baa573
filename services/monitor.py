"""Poll orchestration: read sensors, classify, aggregate, and drive alerts."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from models.readings import Severity, Snapshot
from sensors.base import SensorBackend, read_reports
from services.aggregator import Aggregator, Scope, select_buses
from services.alerts import AlertTrigger

logger = logging.getLogger(__name__)


class Monitor:
    """Coordinates one sensor backend with the classifier and aggregator.

    ``debug_severity`` replaces live reads with a fixed status, so the
    backend is never touched and the snapshot carries no reports.
    """

    def __init__(
        self,
        backend: Optional[SensorBackend],
        scope: Scope = Scope(),
        aggregator: Optional[Aggregator] = None,
        debug_severity: Optional[Severity] = None,
    ) -> None:
        if backend is None and debug_severity is None:
            raise ValueError("a sensor backend is required unless a debug severity is forced")
        self.backend = backend
        self.scope = scope
        self.aggregator = aggregator or Aggregator()
        self.debug_severity = debug_severity

    def poll(self) -> Snapshot:
        if self.debug_severity is not None:
            status = Severity(self.debug_severity)
            logger.info("debug override, skipping sensor reads", extra={"severity": status})
            return Snapshot(status=status)

        assert self.backend is not None
        buses = select_buses(self.backend.enumerate_buses(), self.scope)
        logger.debug("checking %s", self.scope.describe(), extra={"scope": self.scope.describe()})
        snapshot = self.aggregator.summarize(read_reports(self.backend, buses))
        return snapshot


def check_once(monitor: Monitor, trigger: AlertTrigger) -> Severity:
    """Poll exactly once, run the matching alert command and return the status."""
    snapshot = monitor.poll()
    trigger.update(snapshot.status)
    return snapshot.status


def watch(
    monitor: Monitor,
    trigger: AlertTrigger,
    interval: float,
    max_polls: Optional[int] = None,
    sleep: Optional[Callable[[float], None]] = None,
    on_snapshot: Optional[Callable[[Snapshot], None]] = None,
) -> Severity:
    """Poll repeatedly, feeding every status to ``trigger``.

    Runs until ``max_polls`` polls have completed, or forever when it is
    ``None``. Returns the status of the last poll.
    """
    sleep = sleep or time.sleep
    status = Severity.NORMAL
    polls = 0
    while max_polls is None or polls < max_polls:
        snapshot = monitor.poll()
        polls += 1
        status = snapshot.status
        logger.debug("poll complete", extra={"poll": polls, "severity": status})
        if on_snapshot is not None:
            on_snapshot(snapshot)
        trigger.update(status)
        if max_polls is not None and polls >= max_polls:
            break
        sleep(interval)
    return status
