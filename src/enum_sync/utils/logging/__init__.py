"""
Structured logging configuration for enum-sync

Provides JSON-formatted or colored console logging, contextual loggers, and
the hierarchical SyncLogger sink used by the synchronization engine.

Usage:
    from enum_sync.utils.logging import setup_logging, SyncLogger

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/enum-sync/app.log")

    sink = SyncLogger("enum_sync")
    with sink.open_block("Updating database app on db01"):
        sink.info("Color: 3 inserted, 0 updated, 0 deleted")
"""

from .config import setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger, SyncLogger

__all__ = [
    "setup_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
    "SyncLogger",
]
