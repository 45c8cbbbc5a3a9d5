"""
Property-based tests for the reconciliation planner using Hypothesis.

Tests invariants that should hold for all inputs:
- Plans partition the ids of both sides
- Applying a plan makes the table match its definition
- Planning is deterministic
"""

import sqlite3

from hypothesis import given, settings, strategies as st

from enum_sync.definitions import DeletionMode, EnumDefinition, EnumRow
from enum_sync.errors import PolicyViolation
from enum_sync.executor import apply_plan
from enum_sync.planner import create_plan
from enum_sync.reader import ExistingRow, get_table_rows

ids = st.integers(min_value=0, max_value=60)
names = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=12,
)
modes = st.sampled_from(list(DeletionMode))


@st.composite
def definitions(draw):
    row_ids = draw(st.lists(ids, unique=True, max_size=15))
    row_names = draw(st.lists(names, unique=True, min_size=len(row_ids), max_size=len(row_ids)))
    return EnumDefinition(
        table="Prop",
        rows=tuple(EnumRow(i, n) for i, n in zip(row_ids, row_names)),
    )


@st.composite
def existing_rows(draw):
    row_ids = draw(st.lists(ids, unique=True, max_size=15))
    return [ExistingRow(i, draw(names)) for i in row_ids]


@given(definition=definitions(), existing=existing_rows(), mode=modes)
def test_plan_partitions_ids(definition, existing, mode):
    """Every id lands in exactly one bucket consistent with the policy."""
    desired_ids = {row.id for row in definition.rows}
    current = {row.id: row.name for row in existing}
    orphan_ids = set(current) - desired_ids

    try:
        plan = create_plan(definition, existing, mode)
    except PolicyViolation as e:
        # Property 1: error mode rejects exactly when orphans exist
        assert mode == DeletionMode.ERROR
        assert set(e.orphan_ids) == orphan_ids and orphan_ids
        return

    inserted = {row.id for row in plan.to_insert}
    updated = {row.id for row in plan.to_update}
    deleted = set(plan.to_delete)
    ignored = set(plan.ignored_ids)

    # Property 2: buckets are disjoint
    assert not inserted & updated
    assert not (inserted | updated) & (deleted | ignored)

    # Property 3: inserts are exactly the missing ids
    assert inserted == desired_ids - set(current)

    # Property 4: updates are exactly the renamed ids
    desired_names = {row.id: row.name for row in definition.rows}
    assert updated == {i for i in desired_ids & set(current) if current[i] != desired_names[i]}
    assert plan.unchanged == len(desired_ids & set(current)) - len(updated)

    # Property 5: orphans follow the deletion policy
    if mode == DeletionMode.REMOVE:
        assert deleted == orphan_ids and not ignored
    else:
        assert ignored == orphan_ids and not deleted

    # Property 6: every list is sorted by id
    assert [row.id for row in plan.to_insert] == sorted(inserted)
    assert [row.id for row in plan.to_update] == sorted(updated)
    assert list(plan.to_delete) == sorted(deleted)


@given(definition=definitions(), existing=existing_rows())
def test_plan_deterministic(definition, existing):
    """Identical inputs in any order produce identical plans."""
    first = create_plan(definition, existing, DeletionMode.IGNORE)
    second = create_plan(definition, list(reversed(existing)), DeletionMode.IGNORE)

    assert first == second


@settings(max_examples=50, deadline=None)
@given(definition=definitions(), existing=existing_rows())
def test_apply_then_replan_is_empty(definition, existing):
    """After applying a remove plan the table equals the definition."""
    connection = sqlite3.connect(":memory:")
    try:
        connection.execute('CREATE TABLE "Prop" ("Id" INTEGER PRIMARY KEY, "Name" TEXT NOT NULL)')
        connection.executemany(
            'INSERT INTO "Prop" VALUES (?, ?)', [(row.id, row.name) for row in existing]
        )
        connection.commit()

        plan = create_plan(definition, get_table_rows(connection, definition), DeletionMode.REMOVE)
        apply_plan(connection, definition, plan)

        rows = get_table_rows(connection, definition)
        assert rows == sorted(
            (ExistingRow(row.id, row.name) for row in definition.rows), key=lambda r: r.id
        )
        assert create_plan(definition, rows, DeletionMode.REMOVE).is_empty
    finally:
        connection.close()
