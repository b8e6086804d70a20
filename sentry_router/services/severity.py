"""Translate source log levels to Sentry severities."""

from typing import Any

from ..models import LogLevel, Severity

_SEVERITY_BY_LEVEL = {
    LogLevel.PROFILE: Severity.DEBUG,
    LogLevel.TRACE: Severity.DEBUG,
    LogLevel.INFO: Severity.INFO,
    LogLevel.WARNING: Severity.WARNING,
    LogLevel.ERROR: Severity.ERROR,
}


def map_severity(level: Any) -> Severity:
    """Return the Sentry severity for *level*; anything unknown is ``info``."""
    try:
        level = LogLevel(level)
    except (ValueError, TypeError):
        return Severity.INFO
    return _SEVERITY_BY_LEVEL.get(level, Severity.INFO)
