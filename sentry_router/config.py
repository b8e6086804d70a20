"""
Configuration loading and validation for the Sentry log router.

Config files are JSON with two sections::

    {
        "sentry": {"dsn": "${SENTRY_DSN:-}", "enable": true, ...},
        "log_router": {"context": true, "log_vars": ["GET", "SERVER"], ...}
    }

String values may use ``${ENV_VAR:-default}`` placeholders; a ``.env`` file
in the working directory is loaded first.
"""

import importlib
import json
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from dotenv import load_dotenv

from .constants import (
    CONTEXT_MODES,
    DEFAULT_COMPONENT,
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOG_VARS,
    DEFAULT_MASK_VARS,
    TRACE_PATTERN,
    USER_NAME_FIELDS,
)

load_dotenv()

Callback = Callable[[Any, Dict[str, Any]], Dict[str, Any]]

_CALLBACK_KEYS = ("extra_callback", "user_callback", "tags_callback")
_LIST_KEYS = ("log_vars", "mask_vars")


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class RouterConfig:
    """Per-router settings: which component to ship to and how to enrich events."""

    component: str = DEFAULT_COMPONENT
    context: bool = True
    context_mode: str = "contexts"
    log_vars: List[str] = field(default_factory=lambda: list(DEFAULT_LOG_VARS))
    mask_vars: List[str] = field(default_factory=lambda: list(DEFAULT_MASK_VARS))
    extra_callback: Optional[Callback] = None
    user_callback: Optional[Callback] = None
    tags_callback: Optional[Callback] = None
    include_timestamp: bool = True
    keep_full_message: bool = True
    user_name_field: str = "username"
    escape_user_name: bool = False
    trace_pattern: str = TRACE_PATTERN


@dataclass
class ComponentConfig:
    """Sentry SDK settings."""

    dsn: str = ""
    enable: bool = True
    client_options: Dict[str, Any] = field(default_factory=dict)
    use_js: bool = False
    client_js_options: Dict[str, Any] = field(default_factory=dict)


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from a JSON file and resolve ``${ENV_VAR:-default}``
    placeholders in all string values.

    Args:
        config_path: Path to the config file (relative to the working directory)

    Returns:
        Fully-resolved configuration dictionary.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    full_path = Path(config_path)

    if not full_path.exists():
        raise ConfigError(f"Configuration file not found: {full_path}")

    try:
        with open(full_path, "r") as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {full_path}: {exc}") from exc

    return _resolve(config)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate a config dict.

    Returns:
        A list of human-readable error strings.  Empty means valid.
    """
    errors: List[str] = []

    sentry = config.get("sentry", {})
    router = config.get("log_router", {})

    if not isinstance(sentry, dict):
        errors.append("Config section 'sentry' must be an object")
        sentry = {}
    if not isinstance(router, dict):
        errors.append("Config section 'log_router' must be an object")
        router = {}

    dsn = sentry.get("dsn", "")
    if sentry.get("enable", True) and not dsn:
        errors.append("Missing required key 'dsn' in config section 'sentry'")
    if isinstance(dsn, str) and dsn.startswith("${"):
        errors.append(
            f"sentry.dsn is an unresolved placeholder: '{dsn}'. "
            "Set the SENTRY_DSN environment variable."
        )

    mode = router.get("context_mode", "contexts")
    if mode not in CONTEXT_MODES:
        errors.append(
            f"log_router.context_mode must be one of {sorted(CONTEXT_MODES)}, got '{mode}'"
        )

    name_field = router.get("user_name_field", "username")
    if name_field not in USER_NAME_FIELDS:
        errors.append(
            f"log_router.user_name_field must be one of {sorted(USER_NAME_FIELDS)}, "
            f"got '{name_field}'"
        )

    for key in _LIST_KEYS:
        value = router.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(f"log_router.{key} must be a list of dotted paths")

    for key in _CALLBACK_KEYS:
        value = router.get(key)
        if value is not None and not callable(value) and not _is_import_string(value):
            errors.append(f"log_router.{key} must be a 'module:function' import string")

    return errors


def router_config_from_dict(data: Dict[str, Any]) -> RouterConfig:
    """Build a ``RouterConfig`` from a ``log_router`` section."""
    known = {f.name for f in fields(RouterConfig)}
    kwargs = {k: v for k, v in data.items() if k in known}
    for key in _CALLBACK_KEYS:
        if isinstance(kwargs.get(key), str):
            kwargs[key] = import_callback(kwargs[key])
    for key in _LIST_KEYS:
        if key in kwargs:
            kwargs[key] = list(kwargs[key])
    return RouterConfig(**kwargs)


def component_config_from_dict(data: Dict[str, Any]) -> ComponentConfig:
    """Build a ``ComponentConfig`` from a ``sentry`` section."""
    known = {f.name for f in fields(ComponentConfig)}
    return ComponentConfig(**{k: v for k, v in data.items() if k in known})


def import_callback(reference: str) -> Callback:
    """Resolve ``package.module:function`` to the callable it names."""
    if not _is_import_string(reference):
        raise ConfigError(f"Invalid callback reference: '{reference}'")
    module_name, _, attr = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
        func = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Cannot import callback '{reference}': {exc}") from exc
    if not callable(func):
        raise ConfigError(f"Callback '{reference}' is not callable")
    return func


# ── Private helpers ──────────────────────────────────────────────

_PLACEHOLDER_RE = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")
_IMPORT_RE = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$")


def _is_import_string(value: Any) -> bool:
    return isinstance(value, str) and bool(_IMPORT_RE.match(value))


def _resolve(obj: Any) -> Any:
    """Recursively resolve ``${ENV_VAR:-default}`` in string values."""
    if isinstance(obj, str):
        return _PLACEHOLDER_RE.sub(_replace_match, obj)
    elif isinstance(obj, dict):
        return {k: _resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve(v) for v in obj]
    return obj


def _replace_match(m: re.Match) -> str:
    var = m.group(1)
    default = m.group(2) if m.group(2) is not None else ""
    return os.environ.get(var, default)
