"""
Pytest configuration and fixtures for enum-sync tests.
Provides shared enum definitions and SQLite databases.
"""

import logging
import os
import sqlite3
from pathlib import Path

import pytest

from enum_sync.definitions import EnumDefinition, EnumRow
from enum_sync.utils.logging import SyncLogger


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def set_test_env_vars(monkeypatch) -> None:
    """Clear environment variables the CLI falls back to."""
    for key in (
        "ENUM_SYNC_CONNECTIONS", "ENUM_SYNC_DELETION_MODE", "ENUM_SYNC_MAX_WORKERS",
        "LOG_LEVEL", "LOG_FILE", "LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)

    defaults = {
        "VAULT_ADDR": "http://localhost:8200",
        "VAULT_TOKEN": "dev-root-token",
    }
    for key, value in defaults.items():
        if key not in os.environ:
            monkeypatch.setenv(key, value)


@pytest.fixture
def color_definition() -> EnumDefinition:
    """Enum definition with three values and no schema."""
    return EnumDefinition(
        table="Color",
        rows=(
            EnumRow(1, "Red"),
            EnumRow(2, "Green"),
            EnumRow(3, "Blue", "The color of the sky"),
        ),
    )


@pytest.fixture
def status_definition() -> EnumDefinition:
    """Second enum definition, without a description column."""
    return EnumDefinition(
        table="OrderStatus",
        rows=((1, "Pending"), (2, "Shipped")),
        id_type="tinyint",
        description_column=None,
    )


@pytest.fixture
def sqlite_connection():
    """In-memory SQLite connection, closed after the test."""
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """Connection string of an empty SQLite database file."""
    return f"sqlite:///{tmp_path / 'enums.db'}"


@pytest.fixture
def sink() -> SyncLogger:
    """Root log sink."""
    return SyncLogger("enum_sync.tests")


def fetch_rows(connection, table: str, columns: str = '"Id", "Name"') -> list[tuple]:
    """Read all rows of a table ordered by id."""
    return connection.execute(f'SELECT {columns} FROM "{table}" ORDER BY "Id"').fetchall()


@pytest.fixture
def read_rows():
    return fetch_rows


@pytest.fixture
def caplog_info(caplog):
    """caplog capturing INFO and above for the enum_sync loggers."""
    caplog.set_level(logging.INFO)
    return caplog
