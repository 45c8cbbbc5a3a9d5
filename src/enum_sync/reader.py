"""
Reads the current contents of enum tables.
"""

import logging
from contextlib import closing
from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from .definitions import EnumDefinition
from .dialects import DatabaseType
from .errors import DataAccessError
from .utils.tracing import add_span_attributes, trace_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingRow:
    """
    A row as currently stored in an enum table.

    A NULL name is kept as None; it never matches a defined name, so the
    planner schedules an update that repairs it.
    """

    id: int
    name: str | None


def table_exists(cursor: Any, definition: EnumDefinition, database_type: DatabaseType) -> bool:
    query, params = database_type.table_exists_query(definition)
    cursor.execute(query, params)
    return cursor.fetchone() is not None


def get_table_columns(cursor: Any, definition: EnumDefinition, database_type: DatabaseType) -> set[str]:
    """Lower-cased column names of the definition's table."""
    query, params = database_type.columns_query(definition)
    cursor.execute(query, params)
    return {str(row[0]).lower() for row in cursor.fetchall()}


def get_table_rows(connection: Any, definition: EnumDefinition) -> list[ExistingRow]:
    """
    Read the id and name of every row in the definition's table.

    A missing table is not an error: it reads as empty and is created when
    the plan is applied.

    Args:
        connection: Open DB-API connection
        definition: Enum definition mapping to the table

    Returns:
        Existing rows ordered by id

    Raises:
        DataAccessError: If the query fails or the id/name columns do not
            hold integers/strings
    """
    _, rows = read_table(connection, definition)
    return rows


def read_table(connection: Any, definition: EnumDefinition) -> tuple[bool, list[ExistingRow]]:
    """
    Like get_table_rows(), but also reports whether the table exists.

    Returns:
        (table exists, existing rows ordered by id)
    """
    database_type = DatabaseType.from_connection(connection)
    table = definition.qualified_name

    with trace_operation(
        "read_enum_table",
        kind=trace.SpanKind.CLIENT,
        table=table,
        database_type=database_type.value,
    ):
        try:
            with closing(connection.cursor()) as cursor:
                if not table_exists(cursor, definition, database_type):
                    logger.debug(f"Table {table} does not exist yet")
                    return False, []

                id_column = database_type.quote(definition.id_column)
                name_column = database_type.quote(definition.name_column)
                cursor.execute(
                    f"SELECT {id_column}, {name_column} "
                    f"FROM {database_type.table_name(definition)} "
                    f"ORDER BY {id_column}"
                )
                raw_rows = cursor.fetchall()
        except Exception as e:
            raise DataAccessError(f"Unable to read table {table}: {e}", table=table) from e

        rows = _to_existing_rows(definition, raw_rows)
        add_span_attributes(row_count=len(rows))
        logger.debug(f"Read {len(rows)} row(s) from {table}")
        return True, rows


def _to_existing_rows(definition: EnumDefinition, raw_rows: list) -> list[ExistingRow]:
    table = definition.qualified_name
    rows = []
    seen: set[int] = set()

    for raw_id, raw_name in raw_rows:
        if not isinstance(raw_id, int) or isinstance(raw_id, bool):
            raise DataAccessError(
                f"Table {table}: column {definition.id_column} holds {type(raw_id).__name__} "
                f"values, expected integers",
                table=table,
            )
        if raw_name is not None and not isinstance(raw_name, str):
            raise DataAccessError(
                f"Table {table}: column {definition.name_column} holds {type(raw_name).__name__} "
                f"values, expected strings",
                table=table,
            )
        if raw_id in seen:
            raise DataAccessError(f"Table {table}: id {raw_id} appears more than once", table=table)

        seen.add(raw_id)
        rows.append(ExistingRow(raw_id, raw_name))

    return rows
