"""
Collaborators outside the pipeline.

- ``sentry_client``  – delivery client over ``sentry_sdk``
- ``flask_context``  – request/session/user snapshots from Flask
"""

from .flask_context import FlaskContextProvider
from .sentry_client import SentryDeliveryClient, apply_scope, event_hint

__all__ = [
    "FlaskContextProvider",
    "SentryDeliveryClient",
    "apply_scope",
    "event_hint",
]
