"""
Data model for the log-to-event pipeline.

A ``RawLogRecord`` comes in from the host logger, is normalised inside a
fresh ``EnrichmentScope`` and leaves as an ``Event`` (or, for exception
payloads, as the exception itself).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import INTERNAL_FRAME_FILENAME

# ── Levels ───────────────────────────────────────────────────────


class LogLevel(str, Enum):
    """Levels of the source logging system."""

    PROFILE = "profile"
    TRACE = "trace"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_logging(cls, levelno: int) -> "LogLevel":
        """Translate a stdlib ``logging`` level number."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.TRACE


class Severity(str, Enum):
    """Sentry event levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


# ── Payload variants ─────────────────────────────────────────────


@dataclass(frozen=True)
class TextPayload:
    text: str

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class StructuredPayload:
    data: Mapping[str, Any]

    @property
    def raw(self) -> Dict[str, Any]:
        return dict(self.data)


@dataclass(frozen=True)
class ExceptionPayload:
    error: BaseException

    @property
    def raw(self) -> BaseException:
        return self.error


Payload = Union[TextPayload, StructuredPayload, ExceptionPayload]


def as_payload(obj: Any) -> Payload:
    """Wrap an arbitrary logged object in its payload variant."""
    if isinstance(obj, (TextPayload, StructuredPayload, ExceptionPayload)):
        return obj
    if isinstance(obj, BaseException):
        return ExceptionPayload(obj)
    if isinstance(obj, Mapping):
        return StructuredPayload(dict(obj))
    return TextPayload("" if obj is None else str(obj))


@dataclass(frozen=True)
class RawLogRecord:
    """One entry produced by the upstream logger."""

    payload: Payload
    level: Any
    category: str
    timestamp: float

    @classmethod
    def create(cls, message: Any, level: Any, category: str, timestamp: float) -> "RawLogRecord":
        return cls(as_payload(message), level, category, timestamp)


# ── Enrichment scope ─────────────────────────────────────────────


@dataclass
class EnrichmentScope:
    """Per-record user/extra/tags/contexts; created fresh for every record."""

    user: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, Any] = field(default_factory=dict)
    contexts: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    exception: Optional[BaseException] = None


# ── Stack traces ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Frame:
    """A single call-site recovered from log text."""

    filename: str = INTERNAL_FRAME_FILENAME
    lineno: int = 0
    function: str = ""
    class_name: str = ""

    @property
    def is_internal(self) -> bool:
        return self.filename == INTERNAL_FRAME_FILENAME

    def to_sentry(self) -> Dict[str, Any]:
        frame: Dict[str, Any] = {"filename": self.filename, "lineno": self.lineno}
        if not self.is_internal:
            frame["abs_path"] = self.filename
        if self.function:
            frame["function"] = (
                f"{self.class_name}::{self.function}" if self.class_name else self.function
            )
        return frame


@dataclass(frozen=True)
class Stacktrace:
    """Frames ordered outermost first, the order Sentry expects."""

    frames: List[Frame]

    def __len__(self) -> int:
        return len(self.frames)

    def to_sentry(self) -> Dict[str, Any]:
        return {"frames": [f.to_sentry() for f in self.frames]}


# ── Event ────────────────────────────────────────────────────────


@dataclass
class Event:
    """Outbound unit for the generic event-capture path."""

    message: str
    level: Severity = Severity.INFO
    timestamp: Optional[float] = None
    stacktrace: Optional[Stacktrace] = None
    logger: Optional[str] = None

    def to_sentry(self) -> Dict[str, Any]:
        """Render as a Sentry event dict."""
        event: Dict[str, Any] = {"message": self.message, "level": self.level.value}
        if self.logger:
            event["logger"] = self.logger
        if self.timestamp is not None:
            event["timestamp"] = datetime.fromtimestamp(self.timestamp, tz=timezone.utc)
        if self.stacktrace is not None:
            event["stacktrace"] = self.stacktrace.to_sentry()
        return event


@dataclass
class NormalizedRecord:
    """Result of normalising one record: what to send and with which scope."""

    payload: Payload
    scope: EnrichmentScope
    event: Optional[Event] = None
    hint_exception: Optional[BaseException] = None

    @property
    def is_exception(self) -> bool:
        return isinstance(self.payload, ExceptionPayload)
