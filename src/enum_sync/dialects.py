"""
SQL dialect differences between the supported drivers.

The dialect is detected from the DB-API connection object, so callers never
pass a database type explicitly.
"""

from enum import Enum
from typing import Any

from .definitions import EnumDefinition
from .utils.sql_safety import quote_identifier, quote_schema_table


class DatabaseType(str, Enum):
    """
    Supported database types.

    Inherits from str for JSON serialization compatibility and
    easy comparison with string values.
    """

    SQLSERVER = "sqlserver"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    UNKNOWN = "unknown"

    @classmethod
    def from_connection(cls, connection: Any) -> "DatabaseType":
        """
        Detect database type from the module that defines the connection class
        (pyodbc, psycopg2.extensions, sqlite3).
        """
        module = type(connection).__module__.lower()

        if "pyodbc" in module or "odbc" in module:
            return cls.SQLSERVER
        elif "psycopg" in module:
            return cls.POSTGRESQL
        elif "sqlite" in module:
            return cls.SQLITE
        else:
            return cls.UNKNOWN

    @property
    def placeholder(self) -> str:
        """DB-API parameter marker (pyodbc/sqlite3 use qmark, psycopg2 uses format)."""
        if self == DatabaseType.POSTGRESQL:
            return "%s"
        return "?"

    @property
    def default_schema(self) -> str | None:
        if self == DatabaseType.SQLSERVER:
            return "dbo"
        elif self == DatabaseType.POSTGRESQL:
            return "public"
        return None

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier, self.value)

    def schema_for(self, definition: EnumDefinition) -> str | None:
        # SQLite has no schemas beyond attached database names
        if self == DatabaseType.SQLITE:
            return None
        return definition.schema or self.default_schema

    def table_name(self, definition: EnumDefinition) -> str:
        return quote_schema_table(self.schema_for(definition), definition.table, self.value)

    def table_exists_query(self, definition: EnumDefinition) -> tuple[str, tuple]:
        """Query returning a row when the definition's table exists."""
        p = self.placeholder
        if self == DatabaseType.SQLITE:
            return (
                f"SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = {p}",
                (definition.table,),
            )

        schema = self.schema_for(definition)
        if schema is None:
            return (
                f"SELECT 1 FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_NAME = {p}",
                (definition.table,),
            )
        return (
            f"SELECT 1 FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_SCHEMA = {p} AND TABLE_NAME = {p}",
            (schema, definition.table),
        )

    def columns_query(self, definition: EnumDefinition) -> tuple[str, tuple]:
        """Query returning one row per column name of the definition's table."""
        p = self.placeholder
        if self == DatabaseType.SQLITE:
            return (f"SELECT name FROM pragma_table_info({p})", (definition.table,))

        schema = self.schema_for(definition)
        if schema is None:
            return (
                f"SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS WHERE TABLE_NAME = {p}",
                (definition.table,),
            )
        return (
            f"SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
            f"WHERE TABLE_SCHEMA = {p} AND TABLE_NAME = {p}",
            (schema, definition.table),
        )

    def id_column_type(self, id_type: str) -> str:
        if self == DatabaseType.SQLITE:
            return "INTEGER"
        if self == DatabaseType.SQLSERVER:
            return id_type.upper()
        # PostgreSQL has no single-byte integer type
        return {"tinyint": "SMALLINT"}.get(id_type, id_type.upper())

    @property
    def name_column_type(self) -> str:
        if self == DatabaseType.SQLSERVER:
            return "NVARCHAR(250)"
        elif self == DatabaseType.SQLITE:
            return "TEXT"
        return "VARCHAR(250)"

    @property
    def description_column_type(self) -> str:
        if self == DatabaseType.SQLSERVER:
            return "NVARCHAR(MAX)"
        elif self == DatabaseType.UNKNOWN:
            return "VARCHAR(4000)"
        return "TEXT"

    def create_table_sql(self, definition: EnumDefinition) -> str:
        """CREATE TABLE statement for an enum table (id primary key, unique name)."""
        columns = [
            f"{self.quote(definition.id_column)} {self.id_column_type(definition.id_type)} NOT NULL PRIMARY KEY",
            f"{self.quote(definition.name_column)} {self.name_column_type} NOT NULL UNIQUE",
        ]
        if definition.description_column:
            columns.append(
                f"{self.quote(definition.description_column)} {self.description_column_type} NULL"
            )

        column_sql = ",\n    ".join(columns)
        return f"CREATE TABLE {self.table_name(definition)} (\n    {column_sql}\n)"
