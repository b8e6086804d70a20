"""Context provider that reads the active Flask request, session and user."""

from typing import Any, Dict, Mapping, Optional

from flask import g, has_request_context, request, session

from ..services.context import UserIdentity


class FlaskContextProvider:
    """Snapshot Flask request state as variable groups.

    Groups: ``GET`` (query string), ``POST`` (form body), ``FILES``
    (uploaded file names), ``COOKIE``, ``SESSION`` and ``SERVER`` (the
    WSGI environ, string values only).  Outside a request every method
    returns an empty result.

    The user is taken from ``g.user`` or ``request.current_user``; dicts
    with ``id``/``username``/``name`` keys and objects with the same
    attributes are both understood.
    """

    def variables(self) -> Mapping[str, Any]:
        if not has_request_context():
            return {}
        return {
            "GET": request.args.to_dict(),
            "POST": request.form.to_dict(),
            "FILES": {key: f.filename for key, f in request.files.items()},
            "COOKIE": dict(request.cookies),
            "SESSION": dict(session),
            "SERVER": {k: v for k, v in request.environ.items() if isinstance(v, str)},
        }

    def client_ip(self) -> Optional[str]:
        if not has_request_context():
            return None
        return request.remote_addr

    def current_user(self) -> Optional[UserIdentity]:
        if not has_request_context():
            return None
        user = g.get("user") or getattr(request, "current_user", None)
        if not user:
            return None
        if isinstance(user, dict):
            return _identity_from_dict(user)
        if getattr(user, "is_anonymous", False):
            return None
        name = getattr(user, "username", None) or getattr(user, "name", None)
        return UserIdentity(id=getattr(user, "id", name), name=name)


def _identity_from_dict(user: Dict[str, Any]) -> Optional[UserIdentity]:
    name = user.get("username") or user.get("name")
    user_id = user.get("id", name)
    if user_id is None:
        return None
    return UserIdentity(id=user_id, name=name)
