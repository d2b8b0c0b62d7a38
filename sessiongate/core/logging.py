"""sessiongate logging.

Gate decisions are logged with structured context passed through ``extra``
(rejection kind, revocation reason, method, path, subject). Only the names in
``CONTEXT_FIELDS`` are ever emitted, so a credential or Authorization header
passed by mistake never reaches the log output.
"""

import json
import logging
import sys
from typing import Any, Literal

CONTEXT_FIELDS = ("rejection", "reason", "method", "path", "subject_id", "removed")

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty libraries; raised to DEBUG only when the app itself is at DEBUG
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def log_context(record: logging.LogRecord) -> dict[str, Any]:
    """Whitelisted ``extra`` fields attached to ``record``."""
    context = {}
    for field in CONTEXT_FIELDS:
        value = getattr(record, field, None)
        if value is not None:
            # Enum members log by value
            context[field] = getattr(value, "value", value)
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context fields sit beside the message."""

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(log_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable single line with context appended as ``key=value`` pairs."""

    def __init__(self):
        super().__init__(fmt=DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = log_context(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable output
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(level.upper())

    noisy_level = logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    get_logger("logging").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the sessiongate prefix."""
    return logging.getLogger(f"sessiongate.{name}")
