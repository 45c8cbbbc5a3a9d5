"""
enum-sync: keep database lookup tables in step with application enums.

Each enum definition (an IntEnum registered with @enum_table, or an entry
in a YAML file) maps to one table of (id, name[, description]) rows. A sync
reads each table, plans the inserts, updates and deletes that make it match
its definition, and applies them, across any number of SQL Server,
PostgreSQL or SQLite databases.
"""

from .definitions import (
    DeletionMode,
    EnumDefinition,
    EnumRegistry,
    EnumRow,
    default_registry,
    enum_table,
)
from .errors import (
    AggregateFailure,
    DataAccessError,
    DefinitionError,
    EnumSyncError,
    PolicyViolation,
)
from .executor import apply_plan, render_plan_script
from .loader import load_definitions
from .orchestrator import (
    ConnectionOutcome,
    ConnectionState,
    EnumSyncWriter,
    synchronize_many,
    synchronize_one,
)
from .planner import ChangePlan, create_plan
from .reader import ExistingRow, get_table_rows

__version__ = "1.0.0"

__all__ = [
    "AggregateFailure",
    "ChangePlan",
    "ConnectionOutcome",
    "ConnectionState",
    "DataAccessError",
    "DefinitionError",
    "DeletionMode",
    "EnumDefinition",
    "EnumRegistry",
    "EnumRow",
    "EnumSyncError",
    "EnumSyncWriter",
    "ExistingRow",
    "PolicyViolation",
    "apply_plan",
    "create_plan",
    "default_registry",
    "enum_table",
    "get_table_rows",
    "load_definitions",
    "render_plan_script",
    "synchronize_many",
    "synchronize_one",
]
