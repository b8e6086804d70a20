"""
Test fixtures and configuration for pytest
"""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pytest

from sentry_router.component import unregister_component
from sentry_router.config import RouterConfig
from sentry_router.models import LogLevel, RawLogRecord
from sentry_router.services.context import StaticContextProvider, UserIdentity

# ── Recording delivery client ────────────────────────────────────
# Stands in for the Sentry SDK: every capture stores a snapshot of the
# scope that was active at the time.


class RecordingScope:
    def __init__(self) -> None:
        self.user: Optional[Dict[str, Any]] = None
        self.extras: Dict[str, Any] = {}
        self.tags: Dict[str, Any] = {}
        self.contexts: Dict[str, Any] = {}

    def set_user(self, value):
        self.user = value

    def set_extra(self, key, value):
        self.extras[key] = value

    def set_tag(self, key, value):
        self.tags[key] = value

    def set_context(self, key, value):
        self.contexts[key] = value

    def snapshot(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "extras": dict(self.extras),
            "tags": dict(self.tags),
            "contexts": dict(self.contexts),
        }


class RecordingClient:
    def __init__(self, active: bool = True) -> None:
        self.active = active
        self.captured: List[Dict[str, Any]] = []
        self.opened = 0
        self.closed = 0
        self._scopes: List[RecordingScope] = []

    def is_active(self) -> bool:
        return self.active

    @contextmanager
    def isolated_scope(self):
        self.opened += 1
        scope = RecordingScope()
        self._scopes.append(scope)
        try:
            yield scope
        finally:
            self._scopes.pop()
            self.closed += 1

    def capture_exception(self, error):
        self.captured.append({"kind": "exception", "error": error, **self._scopes[-1].snapshot()})

    def capture_event(self, event, hint=None):
        self.captured.append({"kind": "event", "event": event, "hint": hint, **self._scopes[-1].snapshot()})


@pytest.fixture
def recording_client():
    return RecordingClient()


@pytest.fixture
def make_client():
    return RecordingClient


@pytest.fixture
def provider():
    """Provider with a typical request snapshot and a logged-in user."""
    return StaticContextProvider(
        {
            "GET": {"page": "2"},
            "POST": {"password": "hunter2", "title": "Hello"},
            "FILES": {},
            "COOKIE": {"sid": "abc"},
            "SESSION": {"cart": 3},
            "SERVER": {
                "HTTP_HOST": "example.com",
                "HTTP_AUTHORIZATION": "Bearer secret-token",
                "HTTP_COOKIE": "sid=abc",
                "REQUEST_METHOD": "GET",
            },
        },
        client_ip="10.0.0.1",
        user=UserIdentity(id=42, name="alice"),
    )


@pytest.fixture
def router_config():
    return RouterConfig(context=False)


@pytest.fixture
def make_record():
    """Build a RawLogRecord with sensible defaults."""

    def _make(message: Any, level=LogLevel.ERROR, category: str = "app", timestamp: float = 1700000000.5):
        return RawLogRecord.create(message, level, category, timestamp)

    return _make


@pytest.fixture(autouse=True)
def _clean_component_registry():
    yield
    unregister_component("sentry")
    unregister_component("test-sentry")
