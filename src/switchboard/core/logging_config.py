"""Logging setup for Switchboard.

Gateway log lines are prefixed with the request trace id ("[<trace_id>] ...").
Text output keeps that prefix as-is; JSON output lifts it into its own
"trace_id" field so log pipelines can group lines per request.

Environment Variables:
    SWITCHBOARD_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SWITCHBOARD_LOG_FORMAT: Output format ("text" or "json")
    SWITCHBOARD_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRACE_PREFIX = re.compile(r"^\[([^\]\s]+)\] ")

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per log line.

    {"timestamp": ..., "level": "INFO", "logger": "switchboard.gateway.tracing",
     "trace_id": "00001_143000_1msgs_hi", "message": "request_complete: ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        match = _TRACE_PREFIX.match(message)
        if match:
            log_data["trace_id"] = match.group(1)
            message = message[match.end() :]
        log_data["message"] = message

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> None:
    """Install root handlers once at startup.

    Arguments fall back to the SWITCHBOARD_LOG_* environment variables.
    Later calls are no-ops unless force=True.

    Raises:
        ValueError: If level or format is not recognized.
    """
    global _configured
    if _configured and not force:
        return

    level = level or os.environ.get("SWITCHBOARD_LOG_LEVEL", "INFO")
    format = format or os.environ.get("SWITCHBOARD_LOG_FORMAT", "text")  # type: ignore[assignment]
    file_path = file_path or os.environ.get("SWITCHBOARD_LOG_FILE")

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {format}")

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_path:
        handlers.append(logging.FileHandler(file_path))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    _configured = True


def set_level(level: str, logger_name: str | None = None) -> None:
    """Set the level of one logger (the root logger when name is None)."""
    logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))
