"""
Synchronization across one or many databases.

For each database, every enum definition is read, planned and applied in
the order given. Databases are independent: in parallel mode each one runs
on its own worker thread with its own child log sink, and a failed database
never stops the others. Sequential mode stops at the first failure.

Usage:
    writer = EnumSyncWriter(default_registry.definitions())
    writer.synchronize_many(
        ["Driver={ODBC Driver 18 for SQL Server};Server=db01;Database=app;...",
         "postgresql://sync@db02/app"],
        DeletionMode.REMOVE,
    )
"""

import logging
import os
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any

from opentelemetry import trace

from .connections import ConnectionFactory, describe_connection, open_connection, scoped_connection
from .definitions import DeletionMode, EnumDefinition, validate_definitions
from .dialects import DatabaseType
from .errors import AggregateFailure, DataAccessError, EnumSyncError
from .executor import apply_plan
from .metrics import ENUM_ACTIVE_WORKERS, ENUM_DATABASES_SYNCED, ENUM_TABLE_SYNC_TIME
from .planner import ChangePlan, create_plan
from .reader import get_table_rows, read_table
from .utils.logging import SyncLogger
from .utils.tracing import trace_operation

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle of one database within a run."""

    PENDING = "pending"
    CONNECTING = "connecting"
    SYNCING = "syncing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ConnectionOutcome:
    """Result of synchronizing one database."""

    connection: str
    state: ConnectionState = ConnectionState.PENDING
    tables_synced: int = 0
    error: Exception | None = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state == ConnectionState.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "connection": self.connection,
            "state": self.state.value,
            "tables_synced": self.tables_synced,
            "error": str(self.error) if self.error is not None else None,
            "error_type": type(self.error).__name__ if self.error is not None else None,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class TablePreview:
    """Planned changes for one table, computed without applying them."""

    definition: EnumDefinition
    plan: ChangePlan
    table_exists: bool
    database_type: DatabaseType


class EnumSyncWriter:
    """
    Writes a fixed list of enum definitions to databases.

    Args:
        definitions: Enum definitions, processed in this order for every database
        connection_factory: Opens a connection for a connection string
        max_workers: Parallel worker cap (default: number of CPUs)
    """

    def __init__(
        self,
        definitions: Iterable[EnumDefinition],
        connection_factory: ConnectionFactory = open_connection,
        max_workers: int | None = None,
    ):
        self.enums: tuple[EnumDefinition, ...] = tuple(validate_definitions(definitions))
        self.connection_factory = connection_factory
        self.max_workers = max_workers or os.cpu_count() or 1

    def synchronize_one(
        self,
        connection: Any,
        deletion_mode: DeletionMode | str,
        sync_logger: SyncLogger | None = None,
        description: str = "database",
        outcome: ConnectionOutcome | None = None,
    ) -> int:
        """
        Synchronize every enum table on an already-open connection.

        The first failing table stops the remaining tables. The connection is
        left open.

        Returns:
            Number of tables synchronized

        Raises:
            DataAccessError: If reading or writing a table fails
            PolicyViolation: If orphan rows exist under deletion mode "error"
        """
        deletion_mode = DeletionMode.parse(deletion_mode)
        sink = sync_logger or SyncLogger()

        if not self.enums:
            return 0

        with sink.open_block(f"Updating {description}"):
            try:
                for index, definition in enumerate(self.enums):
                    if outcome is not None:
                        outcome.state = ConnectionState.SYNCING

                    with ENUM_TABLE_SYNC_TIME.labels(table=definition.qualified_name).time():
                        existing_rows = get_table_rows(connection, definition)
                        plan = create_plan(definition, existing_rows, deletion_mode)
                        apply_plan(connection, definition, plan, sink)

                    if outcome is not None:
                        outcome.tables_synced = index + 1
            except Exception as e:
                sink.exception(e)
                raise

        return len(self.enums)

    def synchronize_database(
        self,
        connection_string: str,
        deletion_mode: DeletionMode | str,
        sync_logger: SyncLogger | None = None,
    ) -> ConnectionOutcome:
        """
        Open a connection, synchronize every enum table, and close it.

        No connection is opened when there are no definitions.

        Raises:
            EnumSyncError: The failure, with its connection attribute set
        """
        outcome = self._run_database(connection_string, DeletionMode.parse(deletion_mode), sync_logger or SyncLogger())
        if outcome.error is not None:
            raise outcome.error
        return outcome

    def synchronize_many(
        self,
        connection_strings: Iterable[str],
        deletion_mode: DeletionMode | str,
        sync_logger: SyncLogger | None = None,
        parallel: bool = True,
    ) -> list[ConnectionOutcome]:
        """
        Synchronize every enum table in each database.

        Args:
            connection_strings: Target databases
            deletion_mode: Orphan row policy
            sync_logger: Sink for progress and errors
            parallel: Run databases concurrently (up to max_workers at a time)

        Returns:
            One outcome per connection string, in input order

        Raises:
            AggregateFailure: Parallel mode, after all databases finished,
                if any of them failed
            EnumSyncError: Sequential mode, the first database failure;
                remaining databases are skipped
        """
        connection_strings = list(connection_strings)
        deletion_mode = DeletionMode.parse(deletion_mode)
        sink = sync_logger or SyncLogger()

        if not parallel:
            return [
                self.synchronize_database(connection_string, deletion_mode, sink)
                for connection_string in connection_strings
            ]

        if not connection_strings:
            return []

        outcomes: list[ConnectionOutcome | None] = [None] * len(connection_strings)
        errors: list[tuple[int, Exception]] = []
        errors_lock = threading.Lock()
        workers = min(self.max_workers, len(connection_strings))
        start_time = time.monotonic()

        with trace_operation(
            "synchronize_many",
            kind=trace.SpanKind.INTERNAL,
            database_count=len(connection_strings),
            max_workers=workers,
        ):
            def worker(index: int, connection_string: str) -> None:
                ENUM_ACTIVE_WORKERS.inc()
                try:
                    with sink.create_child() as child:
                        outcome = self._run_database(connection_string, deletion_mode, child)
                finally:
                    ENUM_ACTIVE_WORKERS.dec()

                outcomes[index] = outcome
                if outcome.error is not None:
                    with errors_lock:
                        errors.append((index, outcome.error))

            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(worker, index, connection_string)
                    for index, connection_string in enumerate(connection_strings)
                ]
                for future in futures:
                    future.result()

        results = [outcome for outcome in outcomes if outcome is not None]
        duration = time.monotonic() - start_time
        failed = len(errors)

        logger.info(
            f"Parallel synchronization complete: "
            f"{len(results) - failed} succeeded, {failed} failed "
            f"out of {len(connection_strings)} database(s) in {duration:.2f}s"
        )

        if errors:
            ordered = [error for _, error in sorted(errors, key=lambda item: item[0])]
            failure = AggregateFailure(ordered, results)
            sink.error(f"{failure}: {', '.join(str(e.connection) for e in ordered if isinstance(e, EnumSyncError))}")
            raise failure

        return results

    def preview_database(
        self,
        connection_string: str,
        deletion_mode: DeletionMode | str,
    ) -> list[TablePreview]:
        """
        Read and plan every enum table without applying anything.

        Raises:
            DataAccessError: If a table cannot be read
            PolicyViolation: If orphan rows exist under deletion mode "error"
        """
        deletion_mode = DeletionMode.parse(deletion_mode)
        if not self.enums:
            return []

        previews = []
        with scoped_connection(connection_string, self.connection_factory) as connection:
            database_type = DatabaseType.from_connection(connection)
            for definition in self.enums:
                exists, existing_rows = read_table(connection, definition)
                plan = create_plan(definition, existing_rows, deletion_mode)
                previews.append(TablePreview(definition, plan, exists, database_type))

        return previews

    def _run_database(
        self,
        connection_string: str,
        deletion_mode: DeletionMode,
        sink: SyncLogger,
    ) -> ConnectionOutcome:
        """Synchronize one database, capturing any failure in the outcome."""
        outcome = ConnectionOutcome("unknown on unknown")

        if not self.enums:
            outcome.connection = describe_connection(connection_string)
            outcome.state = ConnectionState.SUCCEEDED
            return outcome

        start_time = time.monotonic()

        with trace_operation("synchronize_database", kind=trace.SpanKind.CLIENT) as span:
            try:
                description = outcome.connection = describe_connection(connection_string)
                span.set_attribute("db", description)
                outcome.state = ConnectionState.CONNECTING
                with scoped_connection(connection_string, self.connection_factory) as connection:
                    self.synchronize_one(
                        connection, deletion_mode, sink, description=description, outcome=outcome
                    )
            except Exception as e:
                if isinstance(e, EnumSyncError):
                    error = e
                else:
                    error = DataAccessError(
                        f"Unable to update {outcome.connection}: {e}",
                        is_logged=getattr(e, "is_logged", False),
                    )
                    error.__cause__ = e
                if error.connection is None:
                    error.connection = outcome.connection

                sink.exception(error)
                outcome.state = ConnectionState.FAILED
                outcome.error = error
                ENUM_DATABASES_SYNCED.labels(status="failed").inc()
            else:
                outcome.state = ConnectionState.SUCCEEDED
                ENUM_DATABASES_SYNCED.labels(status="succeeded").inc()
            finally:
                outcome.duration_seconds = time.monotonic() - start_time

        return outcome


def synchronize_one(
    connection: Any,
    definitions: Sequence[EnumDefinition],
    deletion_mode: DeletionMode | str,
    sync_logger: SyncLogger | None = None,
) -> int:
    """Synchronize enum tables on an open connection (see EnumSyncWriter.synchronize_one)."""
    return EnumSyncWriter(definitions).synchronize_one(connection, deletion_mode, sync_logger)


def synchronize_many(
    connection_strings: Iterable[str],
    definitions: Sequence[EnumDefinition],
    deletion_mode: DeletionMode | str,
    parallel: bool = True,
    sync_logger: SyncLogger | None = None,
    connection_factory: ConnectionFactory = open_connection,
    max_workers: int | None = None,
) -> list[ConnectionOutcome]:
    """Synchronize enum tables in many databases (see EnumSyncWriter.synchronize_many)."""
    writer = EnumSyncWriter(definitions, connection_factory=connection_factory, max_workers=max_workers)
    return writer.synchronize_many(connection_strings, deletion_mode, sync_logger, parallel=parallel)
