"""
Structured logging for the publishing service.

- JSON lines in production, one readable line per record elsewhere.
- request_id bound per HTTP request through a ContextVar.
- Domain context (content, instructor, bucket, stream) carried as record
  attributes so both formatters can surface it.
- log_event helper for publication events, with truncation of free-form extras.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Record attributes promoted into structured output when present
CONTEXT_FIELDS = ("content_id", "instructor_id", "event_type", "bucket", "stream", "error_code")

EXTRA_VALUE_LIMIT = 500


def get_request_id() -> Optional[str]:
    return request_id_ctx_var.get()


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for bound, label in ((10, "<10ms"), (100, "10-100ms"), (500, "100-500ms"), (1000, "500-1000ms")):
        if latency_ms < bound:
            return label
    return ">=1000ms"


def _context(record: logging.LogRecord) -> Dict[str, object]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


class RequestIdFilter(logging.Filter):
    """Fill request_id from the current request when the caller did not pass one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            **_context(record),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        parts = [self.formatTime(record, "%H:%M:%S"), record.levelname, "[doremi]"]
        if rid:
            parts.append(f"[rid={rid}]")
        parts.append(record.getMessage())
        context = _context(record)
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()))
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(env: str = "development", level: str = "INFO") -> None:
    """Install the single stdout handler on the "doremi" logger."""
    logger = logging.getLogger("doremi")
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # uvicorn keeps its own handlers
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False


def _truncate(value) -> str:
    text = str(value)
    if len(text) <= EXTRA_VALUE_LIMIT:
        return text
    return text[:EXTRA_VALUE_LIMIT] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    instructor_id: Optional[str] = None,
    content_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Log a publication event on the "doremi" logger with its domain context attached."""
    logger = logging.getLogger("doremi")
    if not logger.handlers:
        # Workers and tests may log before main configured anything
        from doremi.core.config import settings

        configure_logging(settings.ENV, settings.LOG_LEVEL)

    payload: Dict[str, object] = {
        "request_id": request_id or get_request_id(),
        "instructor_id": instructor_id,
        "content_id": content_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    for key, value in (extra or {}).items():
        payload[key] = _truncate(value)

    getattr(logger, level, logger.info)(msg, extra=payload)
