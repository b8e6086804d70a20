"""
Request/session/server context capture.

The collector never reads process globals itself; it asks an injected
``ContextProvider`` for a snapshot, filters it down to the configured
include list, masks sensitive paths and hands back a payload that can be
attached to an event either as named context blocks or as one text block.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

from .redaction import filter_paths, redact


@dataclass(frozen=True)
class UserIdentity:
    """The authenticated (non-guest) user behind the current request."""

    id: Any
    name: Optional[str] = None


class ContextProvider(Protocol):
    """Read-only view of the host's request/session/server state."""

    def variables(self) -> Mapping[str, Any]:
        """Variable groups keyed by name (``GET``, ``POST``, ``SERVER`` ...)."""

    def client_ip(self) -> Optional[str]:
        """Remote address of the active request, if any."""

    def current_user(self) -> Optional[UserIdentity]:
        """The logged-in user, or ``None`` for guests / no session."""


class StaticContextProvider:
    """Provider backed by plain values; used in tests and non-web processes."""

    def __init__(
        self,
        variables: Optional[Mapping[str, Any]] = None,
        *,
        client_ip: Optional[str] = None,
        user: Optional[UserIdentity] = None,
        include_environ: bool = False,
    ) -> None:
        self._variables: Dict[str, Any] = dict(variables or {})
        if include_environ:
            self._variables.setdefault("SERVER", dict(os.environ))
        self._client_ip = client_ip
        self._user = user

    def variables(self) -> Mapping[str, Any]:
        return self._variables

    def client_ip(self) -> Optional[str]:
        return self._client_ip

    def current_user(self) -> Optional[UserIdentity]:
        return self._user


def collect_context(
    variables: Mapping[str, Any],
    include: Iterable[str],
    mask: Iterable[str],
) -> Dict[str, Any]:
    """
    Snapshot the included variable groups with sensitive paths masked.

    Args:
        variables: Group name → value, as returned by a provider.
        include: Include rules (``var``, ``var.key``, ``!var.key``).
        mask: Dotted paths replaced with the mask token when present.

    Returns:
        Group name → value, without empty groups.  *variables* is not
        modified.
    """
    context = redact(filter_paths(variables, include), mask)
    return {key: value for key, value in context.items() if value}


def format_context(context: Mapping[str, Any]) -> str:
    """Render *context* as ``$GROUP = <value>`` blocks separated by blank lines."""
    blocks = []
    for key, value in context.items():
        dumped = json.dumps(value, indent=4, default=str, ensure_ascii=False)
        blocks.append(f"${key} = {dumped}")
    return "\n\n".join(blocks)
