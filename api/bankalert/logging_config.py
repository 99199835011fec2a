"""
Structured logging for the alert normalizer.

Batch and per-item records carry context such as `profile`, `matched_rules`
and `payload_source`. The API logs JSON lines for the log aggregator; the CLI
logs the same context as `key=value` pairs on stderr so stdout stays clean
for records.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, TextIO

SERVICE_NAME = "bankalert"

# Attributes every LogRecord has; anything else came in through `extra=`.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed via `extra=` / `log_with_context`, in insertion order."""
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context fields sit next to the message."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(record_context(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text line followed by the record's context as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={json.dumps(v, default=str)}" for k, v in context.items())
        return f"{line} [{pairs}]"


def setup_structured_logging(
    use_json: bool = True, log_level: str = "INFO", stream: TextIO = sys.stdout
) -> logging.Logger:
    """
    Replace the root logger's handlers with a single console handler.

    Args:
        use_json: JSON lines when True, `ContextFormatter` text otherwise.
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Where the console handler writes.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter() if use_json else ContextFormatter())
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context fields.

    Example:
        log_with_context(logger, logging.DEBUG, "alert normalized", profile="canara", message_id="m-1")
    """
    logger.log(level, message, extra=dict(context))
