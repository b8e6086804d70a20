"""
``logging`` integration: a buffering handler that routes records to Sentry.

Attach it like any other handler::

    handler = SentryLogHandler(LogDispatcher(RouterConfig(), component.get_client))
    logging.getLogger().addHandler(handler)

With the default capacity of 1 every record is dispatched as it arrives;
a larger capacity collects records and ships them as one batch when the
buffer fills, the handler is flushed, or it is closed.
"""

import logging
import threading
from logging.handlers import BufferingHandler
from typing import Mapping

from .constants import IGNORED_LOGGERS
from .models import (
    ExceptionPayload,
    LogLevel,
    RawLogRecord,
    StructuredPayload,
    TextPayload,
    as_payload,
)


class SentryLogHandler(BufferingHandler):
    """Collect ``LogRecord`` objects and dispatch them through a ``LogDispatcher``.

    Records logged on the dispatching thread while a batch is being shipped
    (typically from an enrichment callback) are not routed back through
    ``flush``.  They are held and shipped once, as a follow-up batch, after
    the outer batch returns; anything logged while that follow-up batch is
    shipped is dropped.
    """

    def __init__(self, dispatcher, capacity: int = 1, level: int = logging.NOTSET) -> None:
        super().__init__(capacity)
        self.setLevel(level)
        self.dispatcher = dispatcher
        self._local = threading.local()

    def filter(self, record: logging.LogRecord):
        # Our own diagnostics and the SDK's must never re-enter the pipeline.
        if any(record.name == n or record.name.startswith(n + ".") for n in IGNORED_LOGGERS):
            return False
        return super().filter(record)

    @property
    def dispatching(self) -> bool:
        """True while this thread is inside ``flush``."""
        return getattr(self._local, "active", False)

    def emit(self, record: logging.LogRecord) -> None:
        if self.dispatching:
            nested = self._local.nested
            if nested is not None:
                nested.append(record)
            return
        super().emit(record)

    def flush(self) -> None:
        self.acquire()
        try:
            if not self.buffer or self.dispatching:
                return
            pending, self.buffer = self.buffer, []
            self._local.active = True
            self._local.nested = []
            try:
                self._send(pending)
                nested, self._local.nested = self._local.nested, None
                if nested:
                    self._send(nested)
            finally:
                self._local.active = False
                self._local.nested = None
        finally:
            self.release()

    def _send(self, records) -> None:
        try:
            self.dispatcher.dispatch_batch([to_raw_record(r) for r in records])
        except Exception:
            self.handleError(records[-1])


def to_raw_record(record: logging.LogRecord) -> RawLogRecord:
    """
    Convert a stdlib ``LogRecord``.

    ``logger.error(exc)`` and ``logger.info({"message": ..., "tags": ...})``
    keep their exception / mapping payloads.  Anything else becomes text.
    Exception info attached with ``exc_info`` travels as the ``exception``
    key of a structured payload so it reaches Sentry as an event hint.
    """
    if isinstance(record.msg, (BaseException, Mapping)) and not record.args:
        payload = as_payload(record.msg)
    else:
        payload = TextPayload(record.getMessage())

    exc = record.exc_info[1] if record.exc_info else None
    if exc is not None and not isinstance(payload, ExceptionPayload):
        if isinstance(payload, TextPayload):
            payload = StructuredPayload({"message": payload.text, "exception": exc})
        elif "exception" not in payload.data:
            payload = StructuredPayload({**payload.data, "exception": exc})

    return RawLogRecord(
        payload=payload,
        level=LogLevel.from_logging(record.levelno),
        category=record.name,
        timestamp=record.created,
    )
