"""Tests for SentryLogHandler and LogRecord conversion."""

import logging

import pytest

from sentry_router.config import RouterConfig
from sentry_router.handler import SentryLogHandler, to_raw_record
from sentry_router.models import ExceptionPayload, LogLevel, StructuredPayload, TextPayload
from sentry_router.services.dispatcher import LogDispatcher


def _record(msg, *args, level=logging.ERROR, name="app", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="app.py",
        lineno=1,
        msg=msg,
        args=args or None,
        exc_info=exc_info,
    )


@pytest.fixture
def logger(recording_client):
    log = logging.getLogger("test_sentry_handler")
    log.setLevel(logging.DEBUG)
    log.propagate = False
    handler = SentryLogHandler(LogDispatcher(RouterConfig(context=False), recording_client))
    log.addHandler(handler)
    yield log
    log.removeHandler(handler)
    handler.close()


# ── Conversion ───────────────────────────────────────────────────


class TestToRawRecord:
    def test_text(self):
        raw = to_raw_record(_record("Hello %s", "world", level=logging.WARNING))
        assert raw.payload == TextPayload("Hello world")
        assert raw.level is LogLevel.WARNING
        assert raw.category == "app"
        assert isinstance(raw.timestamp, float)

    def test_mapping(self):
        raw = to_raw_record(_record({"message": "m", "tags": {"a": 1}}))
        assert raw.payload == StructuredPayload({"message": "m", "tags": {"a": 1}})

    def test_exception(self):
        err = ValueError("bad")
        raw = to_raw_record(_record(err))
        assert raw.payload == ExceptionPayload(err)

    def test_exc_info_becomes_side_channel(self):
        try:
            raise KeyError("k")
        except KeyError as exc:
            err = exc
            raw = to_raw_record(_record("lookup failed", exc_info=(KeyError, exc, exc.__traceback__)))
        assert isinstance(raw.payload, StructuredPayload)
        assert raw.payload.data == {"message": "lookup failed", "exception": err}

    def test_debug_maps_to_trace(self):
        assert to_raw_record(_record("x", level=logging.DEBUG)).level is LogLevel.TRACE


# ── Handler ──────────────────────────────────────────────────────


class TestSentryLogHandler:
    def test_dispatches_each_record(self, logger, recording_client):
        logger.warning("first")
        logger.error("second")
        assert [c["event"]["message"] for c in recording_client.captured] == ["first", "second"]
        assert recording_client.captured[0]["event"]["level"] == "warning"

    def test_logged_exception(self, logger, recording_client):
        err = RuntimeError("crash")
        logger.error(err)
        assert recording_client.captured[0]["kind"] == "exception"
        assert recording_client.captured[0]["error"] is err

    def test_logger_exception_attaches_hint(self, logger, recording_client):
        try:
            raise ZeroDivisionError("div")
        except ZeroDivisionError:
            logger.exception("math failed")
        captured = recording_client.captured[0]
        assert captured["event"]["message"] == "math failed"
        assert captured["hint"]["exc_info"][0] is ZeroDivisionError

    def test_buffering(self, recording_client):
        handler = SentryLogHandler(
            LogDispatcher(RouterConfig(context=False), recording_client), capacity=3
        )
        handler.handle(_record("a"))
        handler.handle(_record("b"))
        assert recording_client.captured == []
        handler.handle(_record("c"))
        assert len(recording_client.captured) == 3

    def test_close_flushes(self, recording_client):
        handler = SentryLogHandler(
            LogDispatcher(RouterConfig(context=False), recording_client), capacity=10
        )
        handler.handle(_record("pending"))
        handler.close()
        assert recording_client.captured[0]["event"]["message"] == "pending"

    @pytest.mark.parametrize("name", ["sentry_router.dispatcher", "sentry_sdk.errors", "sentry_router"])
    def test_own_loggers_ignored(self, recording_client, name):
        handler = SentryLogHandler(LogDispatcher(RouterConfig(context=False), recording_client))
        handler.handle(_record("internal", name=name))
        assert recording_client.captured == []

    def test_similar_names_not_ignored(self, recording_client):
        handler = SentryLogHandler(LogDispatcher(RouterConfig(context=False), recording_client))
        handler.handle(_record("external", name="sentry_routerish"))
        assert len(recording_client.captured) == 1

    def test_dispatch_errors_go_to_handle_error(self, recording_client, monkeypatch):
        def boom(payload, extra):
            raise ValueError("broken callback")

        handler = SentryLogHandler(
            LogDispatcher(RouterConfig(context=False, extra_callback=boom), recording_client)
        )
        errors = []
        monkeypatch.setattr(handler, "handleError", errors.append)
        handler.handle(_record("x"))
        assert len(errors) == 1
        assert handler.buffer == []

    def test_reentrant_logging_is_not_duplicated(self, logger, recording_client):
        def extra_cb(payload, extra):
            if payload == "outer":
                logger.info("inner")
            return extra

        logger.handlers[0].dispatcher.config.extra_callback = extra_cb
        logger.error("outer")
        messages = [c["event"]["message"] for c in recording_client.captured]
        assert sorted(messages) == ["inner", "outer"]

    def test_callback_logging_every_record_sends_one_follow_up(self, logger, recording_client):
        def extra_cb(payload, extra):
            logger.debug("enriching %s", payload)
            return extra

        handler = logger.handlers[0]
        handler.dispatcher.config.extra_callback = extra_cb
        logger.error("outer")
        messages = [c["event"]["message"] for c in recording_client.captured]
        assert messages == ["outer", "enriching outer"]
        assert handler.buffer == []
        assert not handler.dispatching

    def test_handler_usable_after_nested_logging(self, logger, recording_client):
        def extra_cb(payload, extra):
            logger.debug("enriching %s", payload)
            return extra

        logger.handlers[0].dispatcher.config.extra_callback = extra_cb
        logger.error("first")
        logger.error("second")
        messages = [c["event"]["message"] for c in recording_client.captured]
        assert messages == ["first", "enriching first", "second", "enriching second"]
