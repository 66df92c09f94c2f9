"""Logging configuration for the Dreamteller client."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Credentials that may ride along in extra_data; never written to a log line
SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "token",
        "id_token",
        "idtoken",
        "refresh_token",
        "refreshtoken",
        "password",
        "repeat_password",
        "fcm",
        "api_key",
        "key",
    }
)
REDACTED = "[REDACTED]"


def redact(data: Any) -> Any:
    """Copy of ``data`` with credential values replaced, at any nesting depth."""
    if isinstance(data, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with client context merged in and credentials masked."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            log_data.update(redact(extra_data))

        return json.dumps(log_data, default=str)


def configure_logging(debug: bool = False) -> logging.Logger:
    """
    Configure client logging.

    Args:
        debug: Enable debug logging.

    Returns:
        Configured root client logger.
    """
    logger = logging.getLogger("dreamteller")

    # Remove existing handlers
    logger.handlers.clear()

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())

    logger.addHandler(console_handler)

    # httpx logs full request URLs at INFO, and Firebase calls carry the API key in the query
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module.

    Args:
        name: Logger name (usually __name__).

    Returns:
        Logger instance.
    """
    if name == "dreamteller" or name.startswith("dreamteller."):
        return logging.getLogger(name)
    return logging.getLogger(f"dreamteller.{name}")
