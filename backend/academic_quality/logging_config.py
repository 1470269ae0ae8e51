"""
Structured JSON logging.

Every record is written to stdout as one JSON object:

    {"timestamp": "...Z", "level": "INFO", "message": "...",
     "channel": "feedback", "context": {"request_id": "..."}, "extra": {}}

Channels: http, db, auth, feedback, aggregation. Secret or identifying
keys (passwords, access tokens, anonymity tokens) are masked before a
record is rendered, whichever channel emits it.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from academic_quality.config import LOG_LEVEL

LOGGER_PREFIX = "academic_quality"
CHANNELS = ("http", "db", "auth", "feedback", "aggregation")

# Keys whose values never reach the log output
MASKED_KEYS = frozenset({"password", "password_hash", "access_token", "anonymous_token"})
MASK = "***"

# Request being served by the current task; empty outside a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _masked(data: dict) -> dict:
    return {key: (MASK if key in MASKED_KEYS else value) for key, value in (data or {}).items()}


def _channel_of(record: logging.LogRecord) -> str:
    channel = getattr(record, "channel", None)
    if channel:
        return channel
    prefix = LOGGER_PREFIX + "."
    return record.name[len(prefix):] if record.name.startswith(prefix) else "app"


class StructuredJsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": _channel_of(record),
            "context": {"request_id": request_id_var.get(), **_masked(getattr(record, "context", None))},
            "extra": _masked(getattr(record, "extra_data", None)),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging() -> logging.Logger:
    """Route every logger through one stdout JSON handler at LOG_LEVEL."""
    level = getattr(logging, LOG_LEVEL, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for channel in CHANNELS:
        get_logger(channel).setLevel(level)
    return root


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Log a message with business context (ids) and extra metadata (timings, counts).

    `level` is a level name such as "INFO" or "WARNING".
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={"context": context or {}, "extra_data": extra_data or {}},
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
