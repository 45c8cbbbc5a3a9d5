"""
End-to-end synchronization tests against SQLite database files.

Exercises the full read, plan and apply cycle across several databases,
including definition changes between runs.
"""

import enum
import sqlite3

import pytest

from enum_sync import (
    AggregateFailure,
    DeletionMode,
    EnumDefinition,
    EnumRegistry,
    EnumSyncWriter,
    PolicyViolation,
    synchronize_many,
)

pytestmark = pytest.mark.integration


class Priority(enum.IntEnum):
    Low = 1
    Medium = 2
    High = 3


class PriorityV2(enum.IntEnum):
    Low = 1
    Normal = 2
    Urgent = 4


def _rows(path, table: str) -> list[tuple]:
    connection = sqlite3.connect(path)
    try:
        return connection.execute(f'SELECT "Id", "Name" FROM "{table}" ORDER BY "Id"').fetchall()
    finally:
        connection.close()


@pytest.fixture
def databases(tmp_path):
    return [tmp_path / f"tenant{i}.db" for i in range(3)]


@pytest.fixture
def urls(databases):
    return [f"sqlite:///{path}" for path in databases]


class TestSqliteSync:
    """Test repeated runs against several databases."""

    def test_first_run_creates_tables(self, databases, urls):
        """Test all tables are created and filled in every database."""
        registry = EnumRegistry()
        registry.add(Priority)

        outcomes = synchronize_many(urls, registry.definitions(), DeletionMode.IGNORE)

        assert all(o.succeeded and o.tables_synced == 1 for o in outcomes)
        for path in databases:
            assert _rows(path, "Priority") == [(1, "Low"), (2, "Medium"), (3, "High")]

    def test_second_run_is_noop(self, databases, urls, caplog):
        """Test re-running an unchanged definition changes nothing."""
        definitions = [EnumDefinition.from_enum(Priority)]
        synchronize_many(urls, definitions, DeletionMode.REMOVE)
        caplog.set_level("INFO")

        synchronize_many(urls, definitions, DeletionMode.REMOVE)

        summaries = [r.getMessage().strip() for r in caplog.records if "inserted" in r.getMessage()]
        assert summaries == ["Priority: 0 inserted, 0 updated, 0 deleted"] * 3

    def test_changed_definition_removes_orphans(self, databases, urls):
        """Test renames, additions and removals under remove."""
        synchronize_many(urls, [EnumDefinition.from_enum(Priority)], DeletionMode.IGNORE)

        synchronize_many(urls, [EnumDefinition.from_enum(PriorityV2, table="Priority")], "remove")

        for path in databases:
            assert _rows(path, "Priority") == [(1, "Low"), (2, "Normal"), (4, "Urgent")]

    def test_changed_definition_keeps_orphans(self, databases, urls):
        """Test orphan rows survive under ignore."""
        synchronize_many(urls, [EnumDefinition.from_enum(Priority)], DeletionMode.IGNORE)

        synchronize_many(urls, [EnumDefinition.from_enum(PriorityV2, table="Priority")], "ignore")

        for path in databases:
            assert _rows(path, "Priority") == [(1, "Low"), (2, "Normal"), (3, "High"), (4, "Urgent")]

    def test_error_mode_leaves_tables_untouched(self, databases, urls):
        """Test orphans under error abort before any change to the table."""
        synchronize_many(urls, [EnumDefinition.from_enum(Priority)], DeletionMode.IGNORE)

        with pytest.raises(AggregateFailure) as exc_info:
            synchronize_many(urls, [EnumDefinition.from_enum(PriorityV2, table="Priority")], "error")

        assert len(exc_info.value.errors) == 3
        assert all(isinstance(e, PolicyViolation) for e in exc_info.value.errors)
        for path in databases:
            assert _rows(path, "Priority") == [(1, "Low"), (2, "Medium"), (3, "High")]

    def test_sequential_matches_parallel(self, tmp_path):
        """Test both modes produce the same tables."""
        definitions = [EnumDefinition.from_enum(Priority), EnumDefinition(table="Flag", rows=((0, "Off"), (1, "On")))]
        parallel_path, sequential_path = tmp_path / "p.db", tmp_path / "s.db"

        writer = EnumSyncWriter(definitions)
        writer.synchronize_many([f"sqlite:///{parallel_path}"], "remove", parallel=True)
        writer.synchronize_many([f"sqlite:///{sequential_path}"], "remove", parallel=False)

        for table in ("Priority", "Flag"):
            assert _rows(parallel_path, table) == _rows(sequential_path, table)
