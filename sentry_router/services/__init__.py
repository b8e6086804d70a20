"""
Service layer modules.

The log-to-event pipeline: redaction, severity mapping, stack trace
parsing, context capture, normalisation and dispatch.
"""

from .context import StaticContextProvider, UserIdentity, collect_context, format_context
from .dispatcher import LogDispatcher
from .normalizer import CallbackError, EventNormalizer
from .redaction import filter_paths, redact
from .severity import map_severity
from .stacktrace import parse_stacktrace, strip_call_sites

__all__ = [
    "StaticContextProvider",
    "UserIdentity",
    "collect_context",
    "format_context",
    "LogDispatcher",
    "CallbackError",
    "EventNormalizer",
    "filter_paths",
    "redact",
    "map_severity",
    "parse_stacktrace",
    "strip_call_sites",
]
