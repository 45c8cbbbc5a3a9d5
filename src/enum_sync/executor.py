"""
Plan execution.

Applies a ChangePlan to its table: create the table when absent, then
deletes, updates and inserts, in that order, inside one transaction per
table. Deleting first lets a plan reuse an id or a name that an orphan row
is vacating without tripping the primary key or the unique name constraint.

The same statements can be rendered as a reviewable SQL script with
render_plan_script().
"""

import logging
from contextlib import closing
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from .definitions import RESERVED_NAME_PREFIX, EnumDefinition
from .dialects import DatabaseType
from .errors import DataAccessError
from .metrics import ENUM_ROWS_CHANGED
from .planner import ChangePlan
from .reader import get_table_columns, table_exists
from .utils.logging import SyncLogger
from .utils.tracing import trace_operation

logger = logging.getLogger(__name__)

# (operation, row id, sql, params)
Statement = tuple[str, int, str, tuple]

# Temporary name held by a row between the two phases of a multi-row update
PENDING_NAME = RESERVED_NAME_PREFIX + "{id}"


def build_statements(
    definition: EnumDefinition,
    plan: ChangePlan,
    database_type: DatabaseType,
    include_description: bool = True,
) -> list[Statement]:
    """
    Build the parameterized DML for a plan: deletes, then updates, then inserts.

    When a plan updates more than one row the updates run in two passes:
    each row is renamed to PENDING_NAME, then to its final name, so names
    can move between ids without tripping a unique name constraint.

    Args:
        include_description: Write the description column (only when the
            definition has one and the table has it)
    """
    p = database_type.placeholder
    table = database_type.table_name(definition)
    id_column = database_type.quote(definition.id_column)
    name_column = database_type.quote(definition.name_column)
    with_description = include_description and bool(definition.description_column)
    description_column = database_type.quote(definition.description_column) if with_description else None

    statements: list[Statement] = []

    for row_id in plan.to_delete:
        statements.append((
            "delete",
            row_id,
            f"DELETE FROM {table} WHERE {id_column} = {p}",
            (row_id,),
        ))

    # Park every updated row on a temporary name first
    if len(plan.to_update) > 1:
        for row in plan.to_update:
            statements.append((
                "update",
                row.id,
                f"UPDATE {table} SET {name_column} = {p} WHERE {id_column} = {p}",
                (PENDING_NAME.format(id=row.id), row.id),
            ))

    for row in plan.to_update:
        if with_description:
            sql = f"UPDATE {table} SET {name_column} = {p}, {description_column} = {p} WHERE {id_column} = {p}"
            params = (row.name, row.description, row.id)
        else:
            sql = f"UPDATE {table} SET {name_column} = {p} WHERE {id_column} = {p}"
            params = (row.name, row.id)
        statements.append(("update", row.id, sql, params))

    for row in plan.to_insert:
        if with_description:
            sql = (
                f"INSERT INTO {table} ({id_column}, {name_column}, {description_column}) "
                f"VALUES ({p}, {p}, {p})"
            )
            params = (row.id, row.name, row.description)
        else:
            sql = f"INSERT INTO {table} ({id_column}, {name_column}) VALUES ({p}, {p})"
            params = (row.id, row.name)
        statements.append(("insert", row.id, sql, params))

    return statements


def ensure_table(cursor: Any, definition: EnumDefinition, database_type: DatabaseType) -> bool:
    """
    Create the definition's table if it does not exist.

    Returns:
        True if the table was created
    """
    if table_exists(cursor, definition, database_type):
        return False

    cursor.execute(database_type.create_table_sql(definition))
    return True


def apply_plan(
    connection: Any,
    definition: EnumDefinition,
    plan: ChangePlan,
    sync_logger: SyncLogger | None = None,
) -> dict[str, int]:
    """
    Apply a plan to the definition's table as one unit of work.

    Runs create-if-absent, deletes, updates and inserts on one cursor, then
    commits. Any failure rolls the transaction back and stops the remaining
    statements; on connections in autocommit mode statements that already
    ran stay applied.

    Args:
        connection: Open DB-API connection
        definition: Enum definition the plan was computed for
        plan: Plan from create_plan()
        sync_logger: Sink for the one-line summary

    Returns:
        Counts of inserted, updated and deleted rows

    Raises:
        DataAccessError: If table creation, any statement, or the commit fails
    """
    sink = sync_logger or SyncLogger(__name__)
    database_type = DatabaseType.from_connection(connection)
    table = definition.qualified_name

    with trace_operation(
        "apply_plan",
        kind=trace.SpanKind.CLIENT,
        table=table,
        database_type=database_type.value,
        changes=plan.change_count,
    ):
        try:
            with closing(connection.cursor()) as cursor:
                try:
                    created = ensure_table(cursor, definition, database_type)
                    columns = get_table_columns(cursor, definition, database_type)
                except Exception as e:
                    raise DataAccessError(
                        f"Unable to create or inspect table {table}: {e}", table=table
                    ) from e

                include_description = bool(definition.description_column) and (
                    definition.description_column.lower() in columns
                )
                if definition.description_column and not include_description:
                    logger.debug(
                        f"Table {table} has no {definition.description_column} column, "
                        f"descriptions are not written"
                    )

                for operation, row_id, sql, params in build_statements(
                    definition, plan, database_type, include_description
                ):
                    try:
                        cursor.execute(sql, params)
                    except Exception as e:
                        raise DataAccessError(
                            f"Unable to {operation} id {row_id} in table {table}: {e}",
                            table=table,
                        ) from e

            connection.commit()
        except Exception as e:
            _rollback(connection, table)
            if isinstance(e, DataAccessError):
                raise
            raise DataAccessError(f"Unable to update table {table}: {e}", table=table) from e

    counts = {
        "inserted": len(plan.to_insert),
        "updated": len(plan.to_update),
        "deleted": len(plan.to_delete),
    }
    for operation, count in (("insert", counts["inserted"]), ("update", counts["updated"]), ("delete", counts["deleted"])):
        if count:
            ENUM_ROWS_CHANGED.labels(table=table, operation=operation).inc(count)

    if created:
        sink.info(f"Created table {table}")
    sink.info(
        f"{table}: {counts['inserted']} inserted, {counts['updated']} updated, "
        f"{counts['deleted']} deleted"
    )
    if plan.ignored_ids:
        sink.warning(f"{table}: {len(plan.ignored_ids)} orphan row(s) left in place")

    return counts


def _rollback(connection: Any, table: str) -> None:
    try:
        connection.rollback()
    except Exception as e:
        # Never mask the original failure
        logger.warning(f"Rollback after failed update of {table} failed: {e}")


def render_plan_script(
    definition: EnumDefinition,
    plan: ChangePlan,
    database_type: DatabaseType | str = DatabaseType.SQLSERVER,
    create_table: bool = False,
) -> str:
    """
    Render a plan as an executable SQL script with inlined literals.

    Args:
        definition: Enum definition the plan was computed for
        plan: Plan from create_plan()
        database_type: Dialect to render for
        create_table: Include the CREATE TABLE statement (table is missing)

    Returns:
        SQL script wrapped in a transaction
    """
    database_type = DatabaseType(database_type)

    script_lines = [
        f"-- Enum sync script for {plan.table}",
        f"-- Generated: {datetime.now(UTC).isoformat()}",
        f"-- {plan.summary()}",
        "",
        "BEGIN;" if database_type == DatabaseType.POSTGRESQL else "BEGIN TRANSACTION;",
        "",
    ]

    if create_table:
        script_lines.append(f"{database_type.create_table_sql(definition)};")
        script_lines.append("")

    for operation, row_id, sql, params in build_statements(definition, plan, database_type):
        script_lines.append(f"{_inline(sql, params, database_type)};")

    if plan.ignored_ids:
        script_lines.append("")
        script_lines.append(f"-- Orphan ids left in place: {', '.join(str(i) for i in plan.ignored_ids)}")

    script_lines.append("")
    script_lines.append("COMMIT;")

    return "\n".join(script_lines)


def _inline(sql: str, params: tuple, database_type: DatabaseType) -> str:
    parts = sql.split(database_type.placeholder)
    if len(parts) != len(params) + 1:
        raise ValueError(f"Statement has {len(parts) - 1} placeholders for {len(params)} parameters")

    inlined = [parts[0]]
    for value, part in zip(params, parts[1:]):
        inlined.append(_format_value(value, database_type))
        inlined.append(part)
    return "".join(inlined)


def _format_value(value: Any, database_type: DatabaseType = DatabaseType.SQLSERVER) -> str:
    """Format value as a SQL literal."""
    if value is None:
        return "NULL"

    if isinstance(value, bool):
        if database_type == DatabaseType.POSTGRESQL:
            return "TRUE" if value else "FALSE"
        return "1" if value else "0"

    if isinstance(value, int):
        return str(value)

    escaped = str(value).replace("'", "''")
    if database_type == DatabaseType.SQLSERVER:
        return f"N'{escaped}'"
    return f"'{escaped}'"
