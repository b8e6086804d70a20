"""
Sentry log router - ship application log records to Sentry as enriched events
"""

__version__ = "0.1.0"

from .component import SentryComponent
from .config import ComponentConfig, RouterConfig
from .handler import SentryLogHandler
from .models import Event, LogLevel, RawLogRecord, Severity
from .services.dispatcher import LogDispatcher
from .services.normalizer import EventNormalizer

__all__ = [
    "SentryComponent",
    "ComponentConfig",
    "RouterConfig",
    "SentryLogHandler",
    "LogDispatcher",
    "EventNormalizer",
    "RawLogRecord",
    "Event",
    "LogLevel",
    "Severity",
]
