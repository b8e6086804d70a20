"""
Dotted-path filtering and masking for nested variable snapshots.

Paths look like ``SERVER.HTTP_AUTHORIZATION``: the first segment names a
variable group, the rest descend mapping keys.  A path that does not
resolve is skipped, never an error.
"""

import copy
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional

from ..constants import MASK_TOKEN

_MISSING = object()


def redact(structure: Mapping[str, Any], paths: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of *structure* with every existing path in *paths* masked.

    Values that resolve to ``None`` are left alone.  The caller's structure is
    never touched, and running the result through again changes nothing.
    """
    result = copy.deepcopy(dict(structure))
    for path in paths:
        keys = path.split(".")
        parent = _resolve_parent(result, keys)
        if parent is None:
            continue
        if parent.get(keys[-1]) is not None:
            parent[keys[-1]] = MASK_TOKEN
    return result


def filter_paths(structure: Mapping[str, Any], rules: Iterable[str]) -> Dict[str, Any]:
    """Keep only what *rules* include.

    Each rule is one of:

    - ``var``      keep the whole ``var`` group
    - ``var.key``  keep only ``var[key]`` (may nest further)
    - ``!var.key`` drop ``var[key]`` from whatever was kept
    """
    result: Dict[str, Any] = {}
    excludes = []

    for rule in rules:
        if rule.startswith("!"):
            excludes.append(rule[1:])
            continue
        keys = rule.split(".")
        value = get_path(structure, keys)
        if value is _MISSING:
            continue
        target = result
        for key in keys[:-1]:
            existing = target.get(key)
            if not isinstance(existing, MutableMapping):
                existing = {}
                target[key] = existing
            target = existing
        target[keys[-1]] = copy.deepcopy(value)

    for rule in excludes:
        keys = rule.split(".")
        parent = _resolve_parent(result, keys)
        if parent is not None:
            parent.pop(keys[-1], None)

    return result


def get_path(structure: Any, keys: Iterable[str], default: Any = _MISSING) -> Any:
    """Descend *structure* following *keys*; *default* if any step is missing."""
    node = structure
    for key in keys:
        if not isinstance(node, Mapping) or key not in node:
            return default
        node = node[key]
    return node


def _resolve_parent(structure: Any, keys: list) -> Optional[MutableMapping]:
    parent = get_path(structure, keys[:-1], None)
    if not isinstance(parent, MutableMapping) or keys[-1] not in parent:
        return None
    return parent
