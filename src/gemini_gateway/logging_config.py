"""Logging setup for the gateway.

Modules log through ``logging.getLogger(__name__)``; this module installs
the handlers once, at startup, with text or JSON output.

Usage:
    from gemini_gateway.logging_config import configure_logging

    configure_logging(level="DEBUG", format="json")

Environment Variables:
    GATEWAY_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    GATEWAY_LOG_FORMAT: Output format ("text" or "json")
    GATEWAY_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that are chatty at INFO/DEBUG
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    {"timestamp": "...", "level": "INFO", "logger": "gemini_gateway.gateway.server",
     "message": "[00001_101500_chat_hi] request_complete: ...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> None:
    """Configure root logging.

    Subsequent calls are ignored unless ``force=True``. Arguments win over
    the GATEWAY_LOG_* environment variables, which win over the defaults
    (INFO, text, no file).

    Raises:
        ValueError: unknown level or format
    """
    global _configured
    if _configured and not force:
        return

    level = (level or os.environ.get("GATEWAY_LOG_LEVEL") or "INFO").upper()
    format = format or os.environ.get("GATEWAY_LOG_FORMAT") or "text"  # type: ignore[assignment]
    file_path = file_path or os.environ.get("GATEWAY_LOG_FILE")

    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {format}")

    formatter: logging.Formatter
    if format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if numeric_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
