"""Browser-side reporting: script snippets that initialise the Sentry JS SDK."""

import html
from typing import Any, Dict, List, Mapping, Optional

from jinja2.utils import htmlsafe_json_dumps

from .constants import BROWSER_BUNDLE_URL
from .services.context import ContextProvider


def render_browser_snippet(
    dsn: str,
    options: Optional[Mapping[str, Any]] = None,
    *,
    user: Optional[Mapping[str, Any]] = None,
    contexts: Optional[Mapping[str, Any]] = None,
    script_url: str = BROWSER_BUNDLE_URL,
) -> str:
    """
    Build the ``<script>`` tags for a page.

    Args:
        dsn: Project DSN; ``options`` may not override it.
        options: Extra ``Sentry.init`` options.
        user: User context passed to ``Sentry.setUser``.
        contexts: Named contexts passed to ``Sentry.setContext``.
        script_url: Location of the browser bundle.

    Returns:
        HTML markup; every value is JSON-encoded with ``<``, ``>``, ``&``
        and ``'`` escaped so it is safe inside a script element.
    """
    config: Dict[str, Any] = {"dsn": dsn}
    config.update({k: v for k, v in (options or {}).items() if k != "dsn"})

    lines: List[str] = [f"Sentry.init({htmlsafe_json_dumps(config)});"]
    for key, value in (contexts or {}).items():
        lines.append(
            f"Sentry.setContext({htmlsafe_json_dumps(key)}, {htmlsafe_json_dumps(value)});"
        )
    if user:
        lines.append(f"Sentry.setUser({htmlsafe_json_dumps(dict(user))});")

    return (
        f'<script src="{html.escape(script_url, quote=True)}" crossorigin="anonymous"></script>\n'
        "<script>\n" + "\n".join(lines) + "\n</script>"
    )


def user_context(provider: ContextProvider) -> Optional[Dict[str, Any]]:
    """``{"id", "username"}`` of the logged-in user, HTML-escaped; ``None`` for guests."""
    user = provider.current_user()
    if user is None:
        return None
    return {
        "id": user.id,
        "username": html.escape(str(user.name)) if user.name is not None else None,
    }
