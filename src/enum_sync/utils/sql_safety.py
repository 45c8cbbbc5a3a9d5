"""
SQL safety utilities for preventing SQL injection.

Table, schema and column names of enum tables come from code or config files
and are interpolated into DDL/DML, so they are validated against a strict
ASCII identifier pattern before being quoted.
"""

import re

# Strict ASCII-only pattern for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Quote characters per database type: (open, close)
QUOTE_CHARS = {
    "sqlserver": ("[", "]"),
    "postgresql": ('"', '"'),
    "sqlite": ('"', '"'),
}


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (table name, column name, etc.).

    Raises:
        ValueError: If the identifier is empty or contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not isinstance(identifier, str) or not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def quote_identifier(identifier: str, db_type: str) -> str:
    """
    Safely quote a SQL identifier after validation.

    Args:
        identifier: The identifier to quote (table name, column name, etc.)
        db_type: "sqlserver", "postgresql" or "sqlite"; anything else uses
            ANSI double quotes

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        ValueError: If the identifier is invalid
    """
    validate_identifier(identifier)
    open_quote, close_quote = QUOTE_CHARS.get(db_type, ('"', '"'))
    return f"{open_quote}{identifier}{close_quote}"


def quote_schema_table(schema: str | None, table: str, db_type: str) -> str:
    """
    Safely quote a schema-qualified table name.

    Args:
        schema: Schema name, or None for an unqualified table
        table: Table name
        db_type: Database type for proper quoting style
    """
    quoted_table = quote_identifier(table, db_type)
    if not schema:
        return quoted_table
    return f"{quote_identifier(schema, db_type)}.{quoted_table}"
