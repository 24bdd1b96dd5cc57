"""
Structured JSON logging for the portal.

One JSON object per line: timestamp, level, correlation_id, module, message,
plus whichever sync identifiers (customer_id, job_uuid, ...) are passed via
``extra=`` or bound to the current context with bind_log_fields().

The HTTP middleware sets a correlation id per request; the sync worker sets
one per pass so every line of a bulk sync can be grepped together.
"""
import json
import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
log_fields_ctx: ContextVar[dict] = ContextVar("log_fields", default={})

SYNC_FIELDS = (
    "customer_id",
    "booking_id",
    "job_uuid",
    "company_uuid",
    "attachment_uuid",
    "error_code",
)

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx")


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def set_correlation_id(cid: str) -> None:
    correlation_id_ctx.set(cid)


def generate_correlation_id() -> str:
    """UUID4 hex, 32 chars."""
    return uuid.uuid4().hex


@contextmanager
def bind_log_fields(**fields) -> Iterator[None]:
    """
    Attach sync identifiers to every log line emitted inside the block.
    Nested blocks add to the outer fields; explicit ``extra=`` values win.
    """
    token = log_fields_ctx.set({**log_fields_ctx.get(), **fields})
    try:
        yield
    finally:
        log_fields_ctx.reset(token)


class StructuredJsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "correlation_id": get_correlation_id(),
            "module": record.name,
            "message": record.getMessage(),
        }

        bound = log_fields_ctx.get()
        for key in SYNC_FIELDS:
            value = getattr(record, key, None)
            if value is None:
                value = bound.get(key)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_structured_logging(log_level: str = "INFO") -> None:
    """
    Route all logging through one stdout handler with JSON output.
    Call once at startup. Unknown level names fall back to INFO.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
