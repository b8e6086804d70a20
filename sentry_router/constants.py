"""
Centralised constants for the Sentry log router.

Default variable lists, mask tokens, sentinel values and the call-site
pattern live here so they can be imported by any module without circular
dependencies.
"""

# ── Version ──────────────────────────────────────────────────────
APP_VERSION = "0.1.0"

# ── Component defaults ───────────────────────────────────────────
DEFAULT_COMPONENT = "sentry"
DEFAULT_CONFIG_PATH = "config.json"

# ── Redaction ────────────────────────────────────────────────────
MASK_TOKEN = "***"

# Variable groups captured as event context unless configured otherwise.
# Cookies are left out on purpose; add "COOKIE" to opt in.
DEFAULT_LOG_VARS = (
    "GET",
    "POST",
    "FILES",
    "SESSION",
    "SERVER",
)

# Paths that are always replaced with MASK_TOKEN when present.
DEFAULT_MASK_VARS = (
    "SERVER.HTTP_AUTHORIZATION",
    "SERVER.REMOTE_USER",
    "SERVER.HTTP_COOKIE",
)

CONTEXT_MODES = frozenset({"contexts", "text"})
USER_NAME_FIELDS = frozenset({"username", "name"})

# ── Stack traces ─────────────────────────────────────────────────
INTERNAL_FRAME_FILENAME = "[internal]"
STACK_TRACE_MARKER = "Stack trace:"
CALL_SITE_MARKER = "in /"

# Alternatives, in order of precedence:
#   in <file>:<line>
#   (<file>:<line>)
#   in <file>(<line>)
#   #<n> <file>(<line>): <class>-><function>  or  <class>::<function>
TRACE_PATTERN = (
    r"in (?P<file>.*)\:(?P<line>\d+)"
    r"|\((?P<file_2>.*)\:(?P<line_2>\d+)\)"
    r"|in (?P<file_3>[^(]+)\((?P<line_3>\d+)\)"
    r"|(?P<number>\d+) (?P<file_4>[^(]+)\((?P<line_4>\d+)\): "
    r"(?P<cls>[^-]+)(?:->|::)(?P<func>[^\(]+)"
)

# Call-site suffixes removed from the first line of a text message.
CALL_SITE_PATTERN = r"(in |\().*?:\d+\)?"

# ── Logging ──────────────────────────────────────────────────────
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5

# Loggers whose records the handler never forwards (reentrancy guard).
IGNORED_LOGGERS = ("sentry_router", "sentry_sdk")

# ── Browser snippet ──────────────────────────────────────────────
BROWSER_BUNDLE_URL = "https://browser.sentry-cdn.com/8.0.0/bundle.min.js"
