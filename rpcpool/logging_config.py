"""Structured JSON logging configuration.

Configures Python logging to emit JSON-formatted log entries with required
fields: level, timestamp, logger, message. Pool events attach their fields
through ``extra`` (event, network_id, url, transport, latency_ms,
failure_count, backoff_ms, valid_count).

SECURITY: RPC URLs frequently embed API keys (userinfo, query string, or a
long path token). Those parts are redacted before anything is written.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from urllib.parse import urlsplit, urlunsplit


# Patterns that should be redacted from log output
_SENSITIVE_PATTERNS = re.compile(
    r"(api.key|apikey|secret|password|token|authorization)"
    r"[\s]*[=:]\s*\S+",
    re.IGNORECASE,
)

# Long opaque path segments, e.g. /v3/<project-key>
_PATH_TOKEN = re.compile(r"^[A-Za-z0-9_\-]{24,}$")

# URLs embedded in free-form messages
_URL_IN_TEXT = re.compile(r"\b(?:https?|wss?)://[^\s'\"<>]+")

_EVENT_FIELDS = (
    "event",
    "network_id",
    "transport",
    "latency_ms",
    "failure_count",
    "backoff_ms",
    "valid_count",
)


def redact_url(url: str) -> str:
    """Strip credentials, query, fragment, and opaque path tokens from a URL."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return "[REDACTED]"
    if not parts.scheme or not parts.netloc:
        return url

    host = parts.hostname or ""
    if port is not None:
        host = f"{host}:{port}"
    path = "/".join(
        "[REDACTED]" if _PATH_TOKEN.match(segment) else segment
        for segment in parts.path.split("/")
    )
    return urlunsplit((parts.scheme, host, path, "", ""))


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON with structured fields.

    Each entry contains at minimum: level, timestamp, logger, message.
    Additional fields can be attached via the ``extra`` dict on log calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self._sanitize(record.getMessage()),
        }

        if hasattr(record, "url"):
            entry["url"] = redact_url(str(getattr(record, "url")))

        for name in _EVENT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)

        # Exception info
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self._sanitize(
                self.formatException(record.exc_info)
            )

        return json.dumps(entry, default=str)

    @staticmethod
    def _sanitize(text: str) -> str:
        """Remove sensitive values from log text."""
        text = _URL_IN_TEXT.sub(lambda m: redact_url(m.group(0)), text)
        return _SENSITIVE_PATTERNS.sub("[REDACTED]", text)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with JSON formatting.

    Parameters
    ----------
    level:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
