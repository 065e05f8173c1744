"""Logging setup for the mdnotes API.

Services log one line per state change and describe it with a small fixed
vocabulary of ``extra`` fields: who (``user_id``), what (``file_id``,
``group_id``, ``provider``) and how many (``affected``, ``restored``,
``conflicts`` ...). The JSON formatter lifts those fields to the top level
in a stable order, nests the request fields written by the middleware
under ``http`` and keeps anything else under ``extra``. The text formatter
appends the same fields as ``key=value`` pairs.

Bearer tokens, raw JWTs and ``password=``/``token=`` style values are
redacted before any formatter sees the record.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# Set by RequestContextMiddleware for the duration of a request.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Domain fields, in output order.
EVENT_FIELDS = (
    "user_id",
    "file_id",
    "group_id",
    "provider",
    "requested",
    "affected",
    "restored",
    "deleted",
    "conflicts",
    "detached_files",
)

# Written by the request middleware and the exception handler.
HTTP_FIELDS = ("method", "path", "status_code", "duration_ms", "error_code")

_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

_SECRET_PATTERNS = [
    re.compile(r"(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}"),
    re.compile(r"\beyJ[a-zA-Z0-9_\-]{10,}\.[a-zA-Z0-9_\-]{10,}\.[a-zA-Z0-9_\-]{10,}"),
    re.compile(
        r"(?i)((?:password|secret|token|access_token|refresh_token|authorization)[=:]\s*)[^\s,'\"]{6,}"
    ),
]

REDACTED = "***REDACTED***"


def redact(text: str) -> str:
    """Replace anything that looks like a credential in *text*."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: (m.group(1) if m.lastindex else "") + REDACTED, text)
    return text


def record_fields(record: logging.LogRecord) -> Dict[str, Dict[str, Any]]:
    """Split the caller's ``extra`` into ``event``, ``http`` and leftover fields."""
    custom = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
    event = {k: custom.pop(k) for k in EVENT_FIELDS if k in custom}
    http = {k: custom.pop(k) for k in HTTP_FIELDS if k in custom}
    return {"event": event, "http": http, "extra": custom}


class SecretRedactionFilter(logging.Filter):
    """Redacts the rendered message and every string-valued extra field."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = ()
        for key, value in list(record.__dict__.items()):
            if key not in _RECORD_ATTRS and isinstance(value, str):
                setattr(record, key, redact(value))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    ``{"timestamp", "level", "logger", "message", "request_id"?, <event fields>,
    "http"?, "extra"?, "exc_info"?}``
    """

    def format(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = request_id_var.get()
        if rid:
            payload["request_id"] = rid
        payload.update(fields["event"])
        if fields["http"]:
            payload["http"] = fields["http"]
        if fields["extra"]:
            payload["extra"] = fields["extra"]
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


class KeyValueFormatter(logging.Formatter):
    """``2024-05-01 12:00:00 INFO mdnotes.x: File created user_id=u1 file_id=f1``"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = redact(super().format(record))
        fields = record_fields(record)
        pairs = {**fields["event"], **fields["http"]}
        rid = request_id_var.get()
        if rid:
            pairs["request_id"] = rid
        if not pairs:
            return line
        # Pairs go on the first line; a traceback, if any, follows.
        head, sep, rest = line.partition("\n")
        return head + " " + " ".join(f"{k}={v}" for k, v in pairs.items()) + sep + rest


def build_handler(log_format: str = "json", stream: Optional[TextIO] = None) -> logging.Handler:
    """Stream handler with redaction and the formatter for *log_format* (``json`` or ``text``)."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(SecretRedactionFilter())
    handler.setFormatter(JsonFormatter() if log_format == "json" else KeyValueFormatter())
    return handler


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the mdnotes handler on the root logger.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to INFO.
        log_format: ``"json"`` or ``"text"``. Defaults to ``"json"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(build_handler(fmt))
    root.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    logging.getLogger(__name__).info("Logging configured", extra={"level": level, "format": fmt})
