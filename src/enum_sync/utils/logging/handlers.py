"""
Custom logging wrappers.

Provides ContextLogger for adding contextual information to log messages
and SyncLogger, the hierarchical sink the synchronization engine reports to.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger("my_module", table_name="Color")
        logger.info("Applying plan", inserted=3)
        # Output includes both table_name and inserted
    """

    def __init__(self, name: str, **context):
        """
        Initialize context logger

        Args:
            name: Logger name
            **context: Contextual key-value pairs to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(
        self,
        level: int,
        msg: str,
        *args,
        exc_info=None,
        **kwargs
    ) -> None:
        extra = {**self.context, **kwargs}

        self.logger.log(
            level,
            msg,
            *args,
            exc_info=exc_info,
            extra=extra,
        )

    def debug(self, msg: str, *args, **kwargs) -> None:
        """Log debug message with context"""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        """Log info message with context"""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        """Log warning message with context"""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        """Log error message with context"""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        """Log critical message with context"""
        self._log(logging.CRITICAL, msg, *args, exc_info=exc_info, **kwargs)

    def update_context(self, **context) -> None:
        """Update the context for this logger"""
        self.context.update(context)

    def get_context(self) -> dict[str, Any]:
        """Get a copy of the current context"""
        return self.context.copy()


class SyncLogger(ContextLogger):
    """
    Hierarchical log sink for synchronization runs.

    Messages logged inside open_block() are indented one level per open block.
    A child sink created with create_child() buffers its records and replays
    them into its parent, in order and without interleaving, when it is
    closed. Parallel workers each write to their own child.

    Usage:
        sink = SyncLogger("enum_sync")
        with sink.open_block("Updating database app on db01"):
            sink.info("Color: 2 inserted, 0 updated, 0 deleted")

        with sink.create_child() as child:
            child.info("logged from a worker thread")
    """

    INDENT = "  "

    def __init__(self, name: str = "enum_sync", parent: "SyncLogger | None" = None, **context):
        super().__init__(name, **context)
        self._parent = parent
        self._depth = parent._depth if parent is not None else 0
        self._records: list[tuple] | None = [] if parent is not None else None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def buffered(self) -> bool:
        return self._records is not None

    def _log(
        self,
        level: int,
        msg: str,
        *args,
        exc_info=None,
        **kwargs
    ) -> None:
        msg = f"{self.INDENT * self._depth}{msg}"
        extra = {**self.context, **kwargs}

        with self._lock:
            if self._records is not None:
                self._records.append((level, msg, args, exc_info, extra))
                return

        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def _replay(self, records: list[tuple]) -> None:
        with self._lock:
            if self._records is not None:
                self._records.extend(records)
                return

            # Emitting under the lock keeps each child's records contiguous
            for level, msg, args, exc_info, extra in records:
                self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    @contextmanager
    def open_block(self, description: str):
        """
        Log a description and indent everything logged until the block exits.

        Yields:
            This sink
        """
        self.info(description)
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1

    def exception(self, error: BaseException) -> None:
        """
        Log an exception with its traceback, once.

        Errors already marked with is_logged are skipped, so an error that is
        re-raised through several layers appears in the log a single time.
        """
        if getattr(error, "is_logged", False):
            return

        self.error(
            f"{type(error).__name__}: {error}",
            exc_info=(type(error), error, error.__traceback__),
        )
        error.is_logged = True

    def create_child(self, **context) -> "SyncLogger":
        """Create a buffered child sink that flushes into this sink on close."""
        return SyncLogger(self.logger.name, parent=self, **{**self.context, **context})

    def close(self) -> None:
        """Flush buffered records to the parent sink."""
        if self._closed:
            return
        self._closed = True

        if self._parent is None:
            return

        with self._lock:
            records, self._records = self._records or [], None

        self._parent._replay(records)

    def __enter__(self) -> "SyncLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
