"""Severity classification for a single temperature reading."""

from __future__ import annotations

from models.readings import Reading, Severity


def classify(reading: Reading) -> Severity:
    """Map one reading to a severity.

    The critical threshold is checked first, then the high threshold. A
    threshold that is unset is never compared, so a channel without any
    thresholds is always ``Severity.NORMAL``. Comparisons are strict and
    happen in Celsius.
    """
    if reading.has_critical and reading.current > reading.critical:
        return Severity.CRITICAL
    if reading.has_high and reading.current > reading.high:
        return Severity.WARNING
    return Severity.NORMAL
