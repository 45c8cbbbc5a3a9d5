"""
Opening and closing target database connections.

Connection strings are opaque to the engine; the driver is picked from
their form:

- ``postgresql://`` / ``postgres://`` URLs and libpq keyword strings
  (``host=... dbname=...``) use psycopg2
- ``sqlite:///path/to/file.db`` (or ``sqlite://`` for in-memory) uses sqlite3
- anything else is treated as an ODBC connection string for SQL Server
  and uses pyodbc
"""

import logging
import re
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import urlsplit

import psycopg2
from opentelemetry import trace

from .errors import DataAccessError
from .utils.tracing import trace_operation

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10

ConnectionFactory = Callable[[str], Any]

LIBPQ_KEYWORD = re.compile(r"^\s*\w+\s*=\s*\S+(\s+\w+\s*=\s*\S+)*\s*$")


def _is_postgres(connection_string: str) -> bool:
    lowered = connection_string.lower()
    if lowered.startswith(("postgresql://", "postgres://")):
        return True
    # libpq keyword/value strings are space separated, ODBC strings use ';'
    return ";" not in connection_string and bool(LIBPQ_KEYWORD.match(connection_string))


def _sqlite_path(connection_string: str) -> str:
    path = connection_string[len("sqlite://"):]
    if path.startswith("/"):
        path = path[1:]
    return path or ":memory:"


def open_connection(connection_string: str, timeout: int = DEFAULT_CONNECT_TIMEOUT) -> Any:
    """
    Open a DB-API connection for a connection string.

    Connections are returned with autocommit disabled so each enum table is
    applied in its own transaction.

    Raises:
        DataAccessError: If the connection cannot be established
    """
    description = describe_connection(connection_string)

    with trace_operation("db_connect", kind=trace.SpanKind.CLIENT, db=description):
        try:
            if connection_string.lower().startswith("sqlite:"):
                return sqlite3.connect(_sqlite_path(connection_string), timeout=timeout)

            if _is_postgres(connection_string):
                conn = psycopg2.connect(connection_string, connect_timeout=timeout)
                conn.set_session(autocommit=False)
                return conn

            # pyodbc needs the unixODBC runtime, so it is only loaded for ODBC targets
            import pyodbc

            conn = pyodbc.connect(connection_string, timeout=timeout)
            conn.autocommit = False
            return conn
        except Exception as e:
            raise DataAccessError(
                f"Unable to connect to {description}: {e}", connection=description
            ) from e


def close_connection(connection: Any) -> None:
    """Close a connection, logging (never raising) close failures."""
    if connection is None:
        return
    try:
        connection.close()
    except Exception as e:
        logger.warning(f"Error closing connection: {e}")


@contextmanager
def scoped_connection(
    connection_string: str,
    connection_factory: ConnectionFactory = open_connection,
) -> Iterator[Any]:
    """
    Open a connection and guarantee it is closed on every exit path.

    Yields:
        Open DB-API connection
    """
    connection = connection_factory(connection_string)
    try:
        yield connection
    finally:
        close_connection(connection)


def describe_connection(connection_string: str) -> str:
    """
    Human-readable, password-free identity of a connection string.

    Never raises: malformed strings are described as far as they can be
    parsed, so every target has an identity to report failures under.

    Examples:
        "Server=db01;Database=app;Uid=sa;Pwd=x"   -> "app on db01"
        "postgresql://u:p@db02:5432/app"          -> "app on db02:5432"
        "sqlite:///tmp/app.db"                    -> "tmp/app.db"
    """
    if connection_string.lower().startswith("sqlite:"):
        return _sqlite_path(connection_string)

    if connection_string.lower().startswith(("postgresql://", "postgres://")):
        try:
            parts = urlsplit(connection_string)
        except ValueError:
            return "unknown on unknown"
        host = parts.hostname or "localhost"
        try:
            port = parts.port
        except ValueError:
            # Malformed port: report the host part as written, without credentials
            host, port = parts.netloc.rpartition("@")[2] or host, None
        if port:
            host = f"{host}:{port}"
        database = parts.path.lstrip("/") or "postgres"
        return f"{database} on {host}"

    if _is_postgres(connection_string):
        values = dict(
            item.split("=", 1) for item in connection_string.split() if "=" in item
        )
        host = values.get("host", "localhost")
        if "port" in values:
            host = f"{host}:{values['port']}"
        return f"{values.get('dbname', 'postgres')} on {host}"

    server = _extract_from_conn_str(connection_string, ("SERVER", "DATA SOURCE", "ADDRESS", "ADDR"))
    database = _extract_from_conn_str(connection_string, ("DATABASE", "INITIAL CATALOG"))
    return f"{database} on {server}"


def _extract_from_conn_str(conn_str: str, keys: tuple[str, ...]) -> str:
    """Extract a value from an ODBC connection string."""
    for part in conn_str.split(";"):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        if key.strip().upper() in keys:
            return value.strip().strip("{}")
    return "unknown"
