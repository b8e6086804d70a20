"""
Recover call stacks from free-form log text.

The upstream logger flattens call-sites into the message string, e.g.::

    This is Warning in /app/protected/controllers/SiteController.php:286
    Stack trace:
    #0 /app/framework/web/actions/CInlineAction.php(49): SiteController->actionIndex()
    #1 /app/framework/web/CController.php(308): CInlineAction->runWithParams()
    #2 /app/index.php(21): CWebApplication->run()

The parser scans the text for call-site tokens and rebuilds a
``Stacktrace``.  Each frame found is put in front of the ones found before
it, so a trace listed innermost-first comes out outermost-first.
"""

import re
from typing import Callable, Dict, Optional, Pattern, Union

from ..constants import (
    CALL_SITE_MARKER,
    CALL_SITE_PATTERN,
    INTERNAL_FRAME_FILENAME,
    STACK_TRACE_MARKER,
    TRACE_PATTERN,
)
from ..models import Frame, Stacktrace

FrameBuilder = Callable[..., Frame]

_TRACE_RE = re.compile(TRACE_PATTERN, re.MULTILINE)
_CALL_SITE_RE = re.compile(CALL_SITE_PATTERN)


def has_trace_markers(text: str) -> bool:
    """Cheap gate so ordinary messages are never run through the pattern."""
    return STACK_TRACE_MARKER in text or CALL_SITE_MARKER in text


def parse_stacktrace(
    text: str,
    pattern: Union[str, Pattern, None] = None,
    frame_builder: FrameBuilder = Frame,
) -> Optional[Stacktrace]:
    """
    Parse call-sites out of *text*.

    Args:
        text: The raw log message.
        pattern: Override for the call-site pattern.  Groups are looked up
            by the names ``file``, ``line``, ``cls`` and ``func``; repeated
            alternatives may use ``file_2``, ``line_2`` and so on.
        frame_builder: Called as ``frame_builder(filename=, lineno=,
            function=, class_name=)`` for every match.

    Returns:
        A ``Stacktrace``, or ``None`` when the text carries no markers or
        nothing matched.
    """
    if not isinstance(text, str) or not has_trace_markers(text):
        return None

    if pattern is None:
        regex = _TRACE_RE
    elif isinstance(pattern, str):
        regex = re.compile(pattern, re.MULTILINE)
    else:
        regex = pattern

    frames = []
    for match in regex.finditer(text):
        groups = match.groupdict()
        line = _group(groups, "line")
        frame = frame_builder(
            filename=_group(groups, "file").strip() or INTERNAL_FRAME_FILENAME,
            lineno=int(line) if line else 0,
            function=_group(groups, "func").strip(),
            class_name=_group(groups, "cls").strip(),
        )
        frames.insert(0, frame)

    if not frames:
        return None
    return Stacktrace(frames)


def strip_call_sites(text: str) -> str:
    """First line of *text* without the stack trace or ``in <file>:<line>`` noise."""
    head = text.split(STACK_TRACE_MARKER, 1)[0]
    first_line = head.lstrip().split("\n", 1)[0]
    return _CALL_SITE_RE.sub("", first_line).strip()


def _group(groups: Dict[str, Optional[str]], name: str) -> str:
    """First non-empty value among ``name`` and its ``name_<n>`` variants."""
    prefix = name + "_"
    for key, value in groups.items():
        if value and (key == name or key.startswith(prefix)):
            return value
    return ""
