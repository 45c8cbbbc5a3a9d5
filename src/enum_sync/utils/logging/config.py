"""
Logging configuration for enum-sync.

Logs go to stderr (colored, or JSON lines for log shippers) and optionally
to a rotated file, leaving stdout to the scripts and listings printed by the
plan and list commands.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

# Vault HTTP calls and the OTLP exporter log every request at INFO/DEBUG
QUIET_LOGGERS = ("urllib3", "requests", "opentelemetry")


def _formatter(json_format: bool, app_name: str, use_colors: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name)
    return ConsoleFormatter(use_colors=use_colors)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "enum-sync",
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 5,
) -> None:
    """
    Configure root logging for a sync run

    Replaces any handlers already installed on the root logger, so it is
    safe to call once per CLI invocation.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotated log file (parent directories are created)
        console_output: Log to stderr
        json_format: JSON lines on every handler instead of text
        app_name: "app" field of JSON records
        max_bytes: Log file size that triggers rotation
        backup_count: Rotated log files kept
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_formatter(json_format, app_name, use_colors=True))
        handlers.append(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(_formatter(json_format, app_name, use_colors=False))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )
