"""
Sentry component: SDK initialisation and the named-component registry.

A component owns the SDK set-up (DSN, client options) and hands out the
delivery client.  Routers find their component by name, so several
routers can share one SDK client and a router configured before the
component exists simply skips its batches until the component is
initialised.
"""

import logging
import threading
from typing import Any, Dict, Optional

import sentry_sdk
from flask import Flask
from markupsafe import Markup
from sentry_sdk.integrations.logging import LoggingIntegration

from .browser import render_browser_snippet, user_context
from .clients.sentry_client import DeliveryClient, SentryDeliveryClient
from .config import ComponentConfig, RouterConfig
from .constants import DEFAULT_COMPONENT
from .services.context import ContextProvider

_registry: Dict[str, "SentryComponent"] = {}
_registry_lock = threading.Lock()

_logger = logging.getLogger(__name__)


class SentryComponent:
    """Initialise the Sentry SDK and expose it as a delivery client.

    Usage::

        component = SentryComponent(ComponentConfig(dsn=dsn)).init()
        component.attach_handler(logging.getLogger())
    """

    def __init__(self, config: ComponentConfig, name: str = DEFAULT_COMPONENT) -> None:
        self.config = config
        self.name = name
        self._client: Optional[DeliveryClient] = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> "SentryComponent":
        """Initialise the SDK (when enabled) and register under ``self.name``."""
        if self.config.enable:
            sentry_sdk.init(**self.client_options())
            _logger.debug("Sentry SDK initialised", extra={"component": self.name})
        self._initialized = True
        register_component(self.name, self)
        return self

    def client_options(self) -> Dict[str, Any]:
        """SDK options: defaults merged with the configured ``client_options``."""
        defaults: Dict[str, Any] = {
            "dsn": self.config.dsn,
            "in_app_exclude": ["logging", "sentry_router"],
            # The router ships log records itself; the SDK's logging hooks would duplicate them.
            "integrations": [LoggingIntegration(level=None, event_level=None)],
        }
        return _merge(defaults, self.config.client_options)

    def get_client(self) -> Optional[DeliveryClient]:
        """The delivery client, or ``None`` when the component is disabled."""
        if not self.config.enable:
            return None
        if self._client is None:
            self._client = SentryDeliveryClient()
        return self._client

    def set_client(self, client: Optional[DeliveryClient]) -> "SentryComponent":
        self._client = client
        return self

    # ── Integration helpers ──────────────────────────────────────

    def attach_handler(
        self,
        logger: Optional[logging.Logger] = None,
        router_config: Optional[RouterConfig] = None,
        provider: Optional[ContextProvider] = None,
        *,
        capacity: int = 1,
        level: int = logging.NOTSET,
    ):
        """Create a ``SentryLogHandler`` routed to this component and attach it."""
        from .handler import SentryLogHandler
        from .services.dispatcher import LogDispatcher

        router_config = router_config or RouterConfig(component=self.name)
        dispatcher = LogDispatcher(router_config, self.get_client, provider)
        handler = SentryLogHandler(dispatcher, capacity=capacity, level=level)
        (logger or logging.getLogger()).addHandler(handler)
        return handler

    def browser_snippet(
        self,
        options: Optional[Dict[str, Any]] = None,
        contexts: Optional[Dict[str, Any]] = None,
        provider: Optional[ContextProvider] = None,
    ) -> str:
        """Script tags that initialise the browser SDK with this DSN."""
        js_options = self.config.client_js_options if options is None else options
        user = user_context(provider) if provider is not None else None
        return render_browser_snippet(self.config.dsn, js_options, user=user, contexts=contexts)

    def install_flask(self, app: Flask, provider: Optional[ContextProvider] = None) -> None:
        """Register under ``app.extensions`` and expose ``sentry_browser_snippet`` to templates."""
        app.extensions[self.name] = self
        if not self.config.use_js:
            return

        if provider is None:
            from .clients.flask_context import FlaskContextProvider

            provider = FlaskContextProvider()

        @app.context_processor
        def _sentry_browser_snippet():
            return {"sentry_browser_snippet": Markup(self.browser_snippet(provider=provider))}


# ── Registry ─────────────────────────────────────────────────────


def register_component(name: str, component: SentryComponent) -> None:
    with _registry_lock:
        _registry[name] = component


def get_component(name: str) -> Optional[SentryComponent]:
    with _registry_lock:
        return _registry.get(name)


def unregister_component(name: str) -> None:
    with _registry_lock:
        _registry.pop(name, None)


def resolve_client(name: str) -> Optional[DeliveryClient]:
    """Look up the delivery client of component *name*; ``None`` if unusable."""
    component = get_component(name)
    if component is None:
        _logger.debug("'%s' does not exist", name, extra={"component": name})
        return None
    if not component.is_initialized:
        _logger.debug("'%s' not initialized", name, extra={"component": name})
        return None
    return component.get_client()


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive merge: dicts merge, lists concatenate, other values override."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = _merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = current + value
        else:
            result[key] = value
    return result
