"""
Reconciliation planner.

Diffs the desired rows of an enum definition against the rows currently in
its table and produces the minimal set of row changes. Planning is pure and
deterministic: every list in a plan is sorted by id.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .definitions import DeletionMode, EnumDefinition, EnumRow
from .errors import PolicyViolation
from .reader import ExistingRow
from .utils.tracing import trace_function

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangePlan:
    """
    Row changes needed to make a table match its enum definition.

    Attributes:
        table: Qualified table name
        to_insert: Rows missing from the table
        to_update: Rows whose stored name differs, carrying the new name
        to_delete: Ids of orphan rows to remove (deletion mode "remove" only)
        ignored_ids: Ids of orphan rows left in place (deletion mode "ignore")
        unchanged: Number of rows that already match
    """

    table: str
    to_insert: tuple[EnumRow, ...] = ()
    to_update: tuple[EnumRow, ...] = ()
    to_delete: tuple[int, ...] = ()
    ignored_ids: tuple[int, ...] = ()
    unchanged: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_update or self.to_delete)

    @property
    def change_count(self) -> int:
        return len(self.to_insert) + len(self.to_update) + len(self.to_delete)

    def summary(self) -> str:
        return (
            f"{len(self.to_insert)} to insert, {len(self.to_update)} to update, "
            f"{len(self.to_delete)} to delete, {self.unchanged} unchanged"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table": self.table,
            "to_insert": [{"id": r.id, "name": r.name} for r in self.to_insert],
            "to_update": [{"id": r.id, "name": r.name} for r in self.to_update],
            "to_delete": list(self.to_delete),
            "ignored_ids": list(self.ignored_ids),
            "unchanged": self.unchanged,
        }


@trace_function("create_plan", component="planner")
def create_plan(
    definition: EnumDefinition,
    existing_rows: Iterable[ExistingRow],
    deletion_mode: DeletionMode | str,
) -> ChangePlan:
    """
    Compute the changes that reconcile a table with its definition.

    Names are compared case-sensitively and exactly. Table rows whose id is
    not in the definition (orphans) are handled per deletion mode: left in
    place ("ignore"), scheduled for deletion ("remove"), or rejected
    ("error") before anything is applied.

    Args:
        definition: Desired table contents
        existing_rows: Rows currently in the table
        deletion_mode: Orphan row policy

    Returns:
        ChangePlan with id-sorted inserts, updates and deletes

    Raises:
        PolicyViolation: If deletion_mode is "error" and orphan rows exist
    """
    deletion_mode = DeletionMode.parse(deletion_mode)
    table = definition.qualified_name

    desired = {row.id: row for row in definition.rows}
    current = {row.id: row for row in existing_rows}

    to_insert = []
    to_update = []
    unchanged = 0

    for row_id in sorted(desired):
        row = desired[row_id]
        existing = current.get(row_id)
        if existing is None:
            to_insert.append(row)
        elif existing.name != row.name:
            to_update.append(row)
        else:
            unchanged += 1

    orphan_ids = sorted(row_id for row_id in current if row_id not in desired)

    to_delete: list[int] = []
    ignored_ids: list[int] = []
    if orphan_ids:
        if deletion_mode == DeletionMode.ERROR:
            raise PolicyViolation(table, orphan_ids)
        elif deletion_mode == DeletionMode.REMOVE:
            to_delete = orphan_ids
        else:
            ignored_ids = orphan_ids
            logger.debug(f"Leaving {len(orphan_ids)} orphan row(s) in {table}: {orphan_ids}")

    return ChangePlan(
        table=table,
        to_insert=tuple(to_insert),
        to_update=tuple(to_update),
        to_delete=tuple(to_delete),
        ignored_ids=tuple(ignored_ids),
        unchanged=unchanged,
    )
