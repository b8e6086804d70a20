"""Delivery client: the boundary between the pipeline and the Sentry SDK."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol

import sentry_sdk

from ..models import EnrichmentScope


class ScopeWriter(Protocol):
    """The scope setters the pipeline needs (a subset of ``sentry_sdk.Scope``)."""

    def set_user(self, value: Optional[Dict[str, Any]]) -> None: ...

    def set_extra(self, key: str, value: Any) -> None: ...

    def set_tag(self, key: str, value: Any) -> None: ...

    def set_context(self, key: str, value: Dict[str, Any]) -> None: ...


class DeliveryClient(Protocol):
    """Anything that can ship events inside an isolated scope."""

    def is_active(self) -> bool: ...

    def isolated_scope(self): ...

    def capture_exception(self, error: BaseException) -> Optional[str]: ...

    def capture_event(
        self, event: Dict[str, Any], hint: Optional[Dict[str, Any]] = None
    ) -> Optional[str]: ...


class SentryDeliveryClient:
    """Ship events through ``sentry_sdk``.

    Without an explicit client the globally initialised one is used, so
    the adapter can be created before ``sentry_sdk.init`` runs.
    """

    def __init__(self, client: Optional["sentry_sdk.Client"] = None) -> None:
        self._client = client

    @property
    def client(self):
        return self._client if self._client is not None else sentry_sdk.get_client()

    def is_active(self) -> bool:
        return self.client.is_active()

    @contextmanager
    def isolated_scope(self) -> Iterator["sentry_sdk.Scope"]:
        """Fork a new current scope; it is dropped when the block exits."""
        with sentry_sdk.new_scope() as scope:
            if self._client is not None:
                scope.set_client(self._client)
            yield scope

    def capture_exception(self, error: BaseException) -> Optional[str]:
        return sentry_sdk.capture_exception(error)

    def capture_event(
        self, event: Dict[str, Any], hint: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        return sentry_sdk.capture_event(event, hint=hint)


def apply_scope(writer: ScopeWriter, scope: EnrichmentScope) -> None:
    """Copy a normalised ``EnrichmentScope`` onto the delivery client's scope."""
    if scope.user:
        writer.set_user(dict(scope.user))
    for key, value in scope.extra.items():
        writer.set_extra(str(key), value)
    for key, value in scope.tags.items():
        writer.set_tag(str(key), value)
    for key, value in scope.contexts.items():
        writer.set_context(str(key), value)


def event_hint(exception: Optional[BaseException]) -> Optional[Dict[str, Any]]:
    """Hint bundle carrying an auxiliary exception, or ``None`` without one."""
    if exception is None:
        return None
    return {"exc_info": (type(exception), exception, exception.__traceback__)}
