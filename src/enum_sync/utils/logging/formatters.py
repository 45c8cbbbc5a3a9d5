"""
Custom log formatters for structured and console logging.

Provides JSON formatter for structured logs and console formatter
with color support for human-readable output.
"""

import json
import logging
import os
import sys
import traceback
from datetime import UTC, datetime

# LogRecord attributes that are never reported as extra context
RESERVED_FIELDS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})

# Extra attributes reported as top-level keys rather than under "context"
PROMOTED_FIELDS = ("connection", "table")


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_FIELDS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging

    Outputs one JSON object per record. The database (connection) and table a
    record refers to are top-level keys so log pipelines can index them; any
    other extra attributes are grouped under "context".
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_hostname: bool = True,
        app_name: str = "enum-sync",
    ):
        """
        Initialize JSON formatter

        Args:
            include_timestamp: Include ISO8601 timestamp
            include_hostname: Include hostname in log records
            app_name: Application name to include in logs
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_hostname = include_hostname
        self.app_name = app_name
        self.hostname = os.uname().nodename if include_hostname else None

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "app": self.app_name,
        }

        if self.include_timestamp:
            log_data["timestamp"] = datetime.fromtimestamp(
                record.created, UTC
            ).isoformat()

        if self.include_hostname and self.hostname:
            log_data["hostname"] = self.hostname

        log_data["source"] = f"{record.module}:{record.lineno}"
        # parallel workers run in pool threads
        log_data["thread"] = record.threadName

        if record.exc_info:
            error = record.exc_info[1]
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(error),
                "traceback": traceback.format_exception(*record.exc_info),
            }
            if getattr(error, "connection", None):
                log_data.setdefault("connection", error.connection)

        extra_data = _extra_fields(record)
        for key in PROMOTED_FIELDS:
            if key in extra_data:
                log_data[key] = extra_data.pop(key)
        if extra_data:
            log_data["context"] = extra_data

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with colors
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        try:
            formatted = super().format(record)
        finally:
            # other handlers share this record
            record.levelname = levelname

        extra_items = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        if extra_items:
            formatted += f" [{', '.join(extra_items)}]"

        return formatted
