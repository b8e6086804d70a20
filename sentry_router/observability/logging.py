"""
Structured logging for the router's own diagnostics.

Every diagnostic goes to stderr, either as single-line JSON objects
(``LOG_FORMAT=json``) or in a coloured human-readable form, and optionally
to a rotating file.  JSON lines carry ``timestamp``, ``level``, ``logger``,
``message``, ``service`` and ``version`` plus any well-known ``extra`` keys.

These loggers live under the ``sentry_router`` namespace, which the
``SentryLogHandler`` never forwards, so diagnostics cannot loop back into
the pipeline they describe.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..constants import APP_VERSION, LOG_BACKUP_COUNT, LOG_MAX_BYTES

# Default service name, overridable via LOG_SERVICE_NAME env var
SERVICE_NAME: str = os.environ.get("LOG_SERVICE_NAME", "sentry-log-router")


# ── JSON Formatter ───────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit each record as a single-line JSON object."""

    # Keys that are promoted from ``extra`` to the top-level JSON.
    _PROMOTE_KEYS = frozenset(
        {
            "component",
            "category",
            "batch_size",
            "dispatched",
            "callback",
            "error_type",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "version": APP_VERSION,
        }

        if record.levelno <= logging.DEBUG or record.levelno >= logging.ERROR:
            entry["func"] = record.funcName
            entry["line"] = record.lineno

        for key in self._PROMOTE_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
            entry["error_type"] = record.exc_info[0].__name__

        return json.dumps(entry, default=str, ensure_ascii=False)


# ── Plain Formatter (dev / console) ─────────────────────────────


class _DevFormatter(logging.Formatter):
    """Human-readable coloured output for local development."""

    _COLORS = {
        "DEBUG": "\033[36m",     # cyan
        "INFO": "\033[32m",      # green
        "WARNING": "\033[33m",   # yellow
        "ERROR": "\033[31m",     # red
        "CRITICAL": "\033[35m",  # magenta
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        base = (
            f"{color}{ts} {record.levelname:<8}{self._RESET} "
            f"{record.name} {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


# ── Logger Factory ───────────────────────────────────────────────


def setup_structured_logger(
    name: str,
    log_file: Union[str, Path, None] = None,
    *,
    level: Optional[int] = None,
    debug: bool = False,
) -> logging.Logger:
    """Create (or retrieve) a structured logger.

    Args:
        name: Logger name.
        log_file: Optional path of a rotating JSON log file.
        level: Explicit level (overrides *debug*).
        debug: If ``True``, sets level to ``DEBUG``.

    Returns:
        A configured ``logging.Logger``.
    """
    if level is None:
        env_debug = os.environ.get("SENTRY_ROUTER_DEBUG", "").lower() in ("1", "true", "yes")
        level = logging.DEBUG if (debug or env_debug) else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_JsonFormatter())
        logger.addHandler(file_handler)

    # ── Console handler: JSON in prod, coloured in dev ───────────
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    use_json_console = os.environ.get("LOG_FORMAT", "").lower() == "json"
    if use_json_console:
        console_handler.setFormatter(_JsonFormatter())
    else:
        console_handler.setFormatter(_DevFormatter())

    logger.addHandler(console_handler)

    return logger
