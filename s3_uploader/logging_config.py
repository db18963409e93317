"""
Logging Configuration — One stderr handler for the whole pipeline.

Conversion and upload failures never reach the host as exceptions, so the
log is where operators see them. Callers attach the attachment id, object
key, codec backend or upload status as ``extra=`` fields; both formatters
render them.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from s3_uploader.logging_config import setup_logging

    setup_logging()            # CLI startup
    setup_logging("DEBUG", "json")
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Extra fields callers may pass with extra={...}
CONTEXT_FIELDS = ("attachment_id", "object_key", "backend", "status")

# Chatty at INFO/DEBUG; only their warnings are worth seeing
THIRD_PARTY_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "PIL", "werkzeug")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """The CONTEXT_FIELDS present on a record, in declaration order."""
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, context, exception."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    Terminal output for operators.

        12:34:56 WARNING [ingest         ] Upload failed  attachment_id=42 object_key=2024/a.webp
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool | None = None):
        super().__init__()
        self.color = sys.stderr.isatty() if color is None else color

    def _level(self, name: str) -> str:
        if not self.color:
            return f"{name:7}"
        return f"{self.LEVEL_COLORS.get(name, '')}{name:7}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        source = record.name.rsplit(".", 1)[-1][:15]
        line = f"{stamp} {self._level(record.levelname)} [{source:15}] {record.getMessage()}"

        context = record_context(record)
        if context:
            line += "  " + " ".join(f"{k}={v}" for k, v in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


FORMATTERS = {
    "json": JSONFormatter,
    "text": HumanFormatter,
}


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """
    Replace the root logger's handlers with a single stderr handler.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; falls back to LOG_LEVEL, then INFO.
        format_type: json or text; falls back to LOG_FORMAT, then text.
               Unknown names use text.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    format_name = (format_type or os.environ.get("LOG_FORMAT") or "text").lower()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(FORMATTERS.get(format_name, HumanFormatter)())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured: level={level_name}, format={format_name}")
