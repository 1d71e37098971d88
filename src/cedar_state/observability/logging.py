"""Logging setup for the Cedar state engine.

Records are written as JSON lines. Store and executor logs pass their
context through ``extra={"extra_fields": {...}}``; the keys that identify
the state being touched (``state_key``, ``setter_key``, ``request_id``) are
written right after the level so one key's history is easy to grep.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional


STATE_CONTEXT_FIELDS = ("state_key", "setter_key", "request_id")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("name", logging.INFO, "path", 1, "msg", None, None).__dict__
) | {"message", "asctime", "stack_info"}


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def _context(self, record: logging.LogRecord) -> dict[str, Any]:
        context: dict[str, Any] = {}
        for name, value in record.__dict__.items():
            if name in _RESERVED_ATTRS:
                continue
            if name == "extra_fields" and isinstance(value, dict):
                context.update(value)
            else:
                context[name] = value
        return context

    def format(self, record: logging.LogRecord) -> str:
        context = self._context(record)

        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
        }
        for name in STATE_CONTEXT_FIELDS:
            value = context.pop(name, None)
            if value is not None:
                log_entry[name] = value
        log_entry["message"] = record.getMessage()
        log_entry["logger"] = record.name
        log_entry["source"] = f"{record.module}:{record.lineno}"
        log_entry.update(context)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=repr)


def setup_logging(level: Optional[str] = None):
    """Routes every logger to stdout through JsonFormatter.

    Args:
        level: Optional log level override. Defaults to the
            CEDAR_STATE_LOG_LEVEL env var, then LOG_LEVEL, then INFO.
    """
    log_level = (
        level
        or os.environ.get("CEDAR_STATE_LOG_LEVEL")
        or os.environ.get("LOG_LEVEL", "INFO")
    ).upper()

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
