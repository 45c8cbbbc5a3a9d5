"""
Enum definitions: the desired contents of each enum table.

An EnumDefinition is built once per run, either from a Python IntEnum
registered with an EnumRegistry or from a YAML file (see loader.py), and is
never mutated afterwards. All invariants are checked at construction so the
planner can rely on ids and names being unique.

Usage:
    from enum_sync.definitions import enum_table

    @enum_table(schema="dbo", id_type="tinyint")
    class OrderStatus(enum.IntEnum):
        Pending = 1
        Shipped = 2
"""

import enum
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .errors import DefinitionError
from .utils.sql_safety import validate_identifier

logger = logging.getLogger(__name__)

# Inclusive value ranges of the supported id column types
ID_TYPE_RANGES = {
    "tinyint": (0, 2**8 - 1),
    "smallint": (-(2**15), 2**15 - 1),
    "int": (-(2**31), 2**31 - 1),
    "bigint": (-(2**63), 2**63 - 1),
}

MAX_NAME_LENGTH = 250

# Prefix of the temporary names used while applying multi-row updates
RESERVED_NAME_PREFIX = "__enum_sync_pending_"


class DeletionMode(str, enum.Enum):
    """What to do with table rows whose id no longer exists in code."""

    IGNORE = "ignore"
    REMOVE = "remove"
    ERROR = "error"

    @classmethod
    def parse(cls, value: "str | DeletionMode") -> "DeletionMode":
        """Parse a deletion mode name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Invalid deletion mode {value!r}. Expected one of: {choices}") from None


@dataclass(frozen=True)
class EnumRow:
    """One desired row of an enum table."""

    id: int
    name: str
    description: str | None = None


@dataclass(frozen=True)
class EnumDefinition:
    """
    Normalized description of one enum table.

    Rows may be given as EnumRow instances or (id, name[, description])
    tuples; they are stored as a tuple of EnumRow in the order given.

    Raises:
        DefinitionError: On invalid identifiers, unknown id types, ids out of
            range for the id type, or duplicate ids/names
    """

    table: str
    rows: tuple[EnumRow, ...]
    schema: str | None = None
    id_type: str = "int"
    id_column: str = "Id"
    name_column: str = "Name"
    description_column: str | None = "Description"

    def __post_init__(self):
        object.__setattr__(self, "rows", tuple(_coerce_row(row) for row in self.rows))
        self._validate()

    def _validate(self) -> None:
        try:
            validate_identifier(self.table)
            if self.schema is not None:
                validate_identifier(self.schema)
            for column in self.columns:
                validate_identifier(column)
        except ValueError as e:
            raise DefinitionError(f"Enum table {self.table!r}: {e}") from e

        if len(set(self.columns)) != len(self.columns):
            raise DefinitionError(f"Enum table {self.table}: column names must be distinct")

        if self.id_type not in ID_TYPE_RANGES:
            choices = ", ".join(ID_TYPE_RANGES)
            raise DefinitionError(
                f"Enum table {self.table}: unknown id type {self.id_type!r} (expected one of: {choices})"
            )

        low, high = ID_TYPE_RANGES[self.id_type]
        seen_ids: set[int] = set()
        seen_names: dict[str, int] = {}

        for row in self.rows:
            if not isinstance(row.id, int) or isinstance(row.id, bool):
                raise DefinitionError(f"Enum table {self.table}: id {row.id!r} is not an integer")
            if not low <= row.id <= high:
                raise DefinitionError(
                    f"Enum table {self.table}: id {row.id} is out of range for {self.id_type}"
                )
            if not isinstance(row.name, str) or not row.name:
                raise DefinitionError(f"Enum table {self.table}: id {row.id} has an empty name")
            if len(row.name) > MAX_NAME_LENGTH:
                raise DefinitionError(
                    f"Enum table {self.table}: name {row.name[:20]!r}... exceeds {MAX_NAME_LENGTH} characters"
                )
            if row.name.startswith(RESERVED_NAME_PREFIX):
                raise DefinitionError(
                    f"Enum table {self.table}: name {row.name!r} uses the reserved prefix {RESERVED_NAME_PREFIX}"
                )
            if row.id in seen_ids:
                raise DefinitionError(f"Enum table {self.table}: duplicate id {row.id}")
            if row.name in seen_names:
                raise DefinitionError(
                    f"Enum table {self.table}: name {row.name!r} is used by ids "
                    f"{seen_names[row.name]} and {row.id}"
                )
            seen_ids.add(row.id)
            seen_names[row.name] = row.id

    @property
    def columns(self) -> tuple[str, ...]:
        if self.description_column:
            return (self.id_column, self.name_column, self.description_column)
        return (self.id_column, self.name_column)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table

    @classmethod
    def from_enum(
        cls,
        enum_cls: type[enum.Enum],
        table: str | None = None,
        schema: str | None = None,
        id_type: str | None = None,
        **columns,
    ) -> "EnumDefinition":
        """
        Build a definition from an enum class with integer values.

        Aliases are skipped, the table name defaults to the class name, and
        a member's description is taken from its ``description`` attribute
        when present. Without an explicit id_type, "int" is used unless a
        value needs "bigint".
        """
        rows = [
            EnumRow(member.value, name, getattr(member, "description", None))
            for name, member in enum_cls.__members__.items()
            if member.name == name
        ]

        if id_type is None:
            low, high = ID_TYPE_RANGES["int"]
            id_type = "int" if all(low <= row.id <= high for row in rows if isinstance(row.id, int)) else "bigint"

        return cls(
            table=table or enum_cls.__name__,
            rows=tuple(rows),
            schema=schema,
            id_type=id_type,
            **columns,
        )


def _coerce_row(row) -> EnumRow:
    if isinstance(row, EnumRow):
        return row
    if isinstance(row, (tuple, list)) and len(row) in (2, 3):
        return EnumRow(*row)
    raise DefinitionError(f"Cannot interpret {row!r} as an enum row")


def validate_definitions(definitions: Iterable[EnumDefinition]) -> list[EnumDefinition]:
    """
    Check that no two definitions target the same table.

    Returns:
        The definitions as a list, in the order given
    """
    result = list(definitions)
    seen: set[str] = set()
    for definition in result:
        key = definition.qualified_name.lower()
        if key in seen:
            raise DefinitionError(f"More than one enum targets table {definition.qualified_name}")
        seen.add(key)
    return result


class EnumRegistry:
    """
    Explicit registry of enums to replicate.

    Enums are registered with the register() decorator or add(); definitions()
    returns them in registration order.
    """

    def __init__(self):
        self._definitions: dict[str, EnumDefinition] = {}

    def add(self, enum_cls: type[enum.Enum], **options) -> EnumDefinition:
        definition = EnumDefinition.from_enum(enum_cls, **options)
        key = definition.qualified_name.lower()
        if key in self._definitions:
            raise DefinitionError(f"More than one enum targets table {definition.qualified_name}")
        self._definitions[key] = definition
        logger.debug(f"Registered enum {enum_cls.__name__} -> {definition.qualified_name}")
        return definition

    def register(self, table: str | None = None, **options):
        """Class decorator form of add()."""
        def decorator(enum_cls):
            self.add(enum_cls, table=table, **options)
            return enum_cls
        return decorator

    def definitions(self) -> list[EnumDefinition]:
        return list(self._definitions.values())

    def clear(self) -> None:
        self._definitions.clear()

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[EnumDefinition]:
        return iter(self.definitions())


default_registry = EnumRegistry()
enum_table = default_registry.register
