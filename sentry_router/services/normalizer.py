"""
Turn one raw log record into a Sentry-ready event.

The normaliser works out what kind of payload it was given, pulls the
message, tags and extras out of it, adds request/user context and the
configured callbacks, and fills a fresh ``EnrichmentScope``.  It never
talks to Sentry; the dispatcher does that with the result.
"""

import html
import logging
from typing import Any, Dict, Mapping, Optional

from ..config import RouterConfig
from ..models import (
    EnrichmentScope,
    Event,
    ExceptionPayload,
    Frame,
    NormalizedRecord,
    RawLogRecord,
    StructuredPayload,
    TextPayload,
)
from .context import ContextProvider, StaticContextProvider, collect_context, format_context
from .severity import map_severity
from .stacktrace import FrameBuilder, parse_stacktrace, strip_call_sites

logger = logging.getLogger(__name__)


class CallbackError(Exception):
    """Raised when a configured enrichment callback fails."""

    def __init__(self, callback: str, error: BaseException):
        super().__init__(f"{callback} failed: {error!r}")
        self.callback = callback
        self.error = error


class EventNormalizer:
    """Build a ``NormalizedRecord`` from a ``RawLogRecord``.

    Usage::

        normalizer = EventNormalizer(RouterConfig(), FlaskContextProvider())
        result = normalizer.normalize(record)
        result.event.to_sentry()
    """

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        provider: Optional[ContextProvider] = None,
        *,
        frame_builder: FrameBuilder = Frame,
    ) -> None:
        self.config = config or RouterConfig()
        self.provider = provider or StaticContextProvider()
        self.frame_builder = frame_builder
        self.logger = logger

    def normalize(
        self, record: RawLogRecord, scope: Optional[EnrichmentScope] = None
    ) -> NormalizedRecord:
        """
        Normalise *record* into *scope* (a new one if not given).

        Raises:
            CallbackError: If an enrichment callback raises.
        """
        cfg = self.config
        scope = EnrichmentScope() if scope is None else scope
        payload = record.payload

        message = ""
        tags: Dict[str, Any] = {"category": record.category}
        extra: Dict[str, Any] = {}
        if cfg.include_timestamp:
            extra["timestamp"] = record.timestamp
        user = self._user_data()
        hint_exception: Optional[BaseException] = None
        stacktrace = None

        if isinstance(payload, ExceptionPayload):
            pass
        elif isinstance(payload, StructuredPayload):
            data = dict(payload.data)
            if "msg" in data:
                message = data.pop("msg")
            if "message" in data:
                message = data.pop("message")
            extra_tags = data.pop("tags", None)
            if isinstance(extra_tags, Mapping):
                tags.update(extra_tags)
            elif extra_tags is not None:
                self.logger.debug("Ignoring non-mapping tags: %r", extra_tags)
            exception = data.pop("exception", None)
            if isinstance(exception, BaseException):
                hint_exception = exception
            extra.update(data)
        elif isinstance(payload, TextPayload):
            message = strip_call_sites(payload.text)
            if cfg.keep_full_message:
                extra["full_message"] = payload.text
            stacktrace = parse_stacktrace(payload.text, cfg.trace_pattern, self.frame_builder)
        else:
            raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

        if cfg.context:
            context = collect_context(self.provider.variables(), cfg.log_vars, cfg.mask_vars)
            if cfg.context_mode == "text":
                if context:
                    extra["context"] = format_context(context)
            else:
                for key, value in context.items():
                    scope.contexts[key] = dict(value) if isinstance(value, Mapping) else {"value": value}

        raw = payload.raw
        extra = self._run_callback("extra_callback", raw, extra)
        user = self._run_callback("user_callback", raw, user)
        tags = self._run_callback("tags_callback", raw, tags)

        scope.user.update(user)
        scope.extra.update(extra)
        # Falsy tag values are never sent.
        scope.tags.update({key: value for key, value in tags.items() if value})

        if isinstance(payload, ExceptionPayload):
            scope.exception = payload.error
            return NormalizedRecord(payload=payload, scope=scope)

        scope.exception = hint_exception
        event = Event(
            message="" if message is None else str(message),
            level=map_severity(record.level),
            timestamp=record.timestamp if cfg.include_timestamp else None,
            stacktrace=stacktrace,
            logger=record.category or None,
        )
        return NormalizedRecord(
            payload=payload, scope=scope, event=event, hint_exception=hint_exception
        )

    # ── Internals ────────────────────────────────────────────────

    def _user_data(self) -> Dict[str, Any]:
        user: Dict[str, Any] = {}

        ip = self.provider.client_ip()
        if ip:
            user["ip_address"] = ip

        # User enrichment is best-effort; a broken session must not block delivery.
        try:
            identity = self.provider.current_user()
        except Exception:
            self.logger.debug("Could not resolve current user", exc_info=True)
            return user

        if identity is not None:
            user["id"] = identity.id
            name = identity.name
            if name is not None:
                if self.config.escape_user_name:
                    name = html.escape(str(name))
                user[self.config.user_name_field] = name
        return user

    def _run_callback(self, name: str, raw: Any, current: Dict[str, Any]) -> Dict[str, Any]:
        callback = getattr(self.config, name)
        if callback is None:
            return current
        try:
            result = callback(raw, dict(current))
        except Exception as exc:
            raise CallbackError(name, exc) from exc
        return dict(result or {})
