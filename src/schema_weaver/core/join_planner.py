"""
Join Planner - base table selection and join path resolution.

Plan stage of combined-output assembly. Given a template, its field mapping
and a schema snapshot, decide:
- which table supplies one output row per its own row (the base table)
- how each mapped field reaches its source column (same table, joined, or unresolved)

The plan holds no row values; combined_output executes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

import structlog

from schema_weaver.core.schema import (
    AggregationOp,
    ColumnRef,
    MappingEntry,
    Relationship,
    SchemaSnapshot,
    TargetField,
    parse_source_field_id,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class JoinPath:
    """
    Relationship used to reach a related table, plus its effective direction.

    When reversed, the relationship was declared related → base and its
    endpoints are swapped for lookups.
    """

    relationship: Relationship
    reversed: bool = False

    @property
    def base_column(self) -> str:
        """Column read from the base row."""
        return self.relationship.target.column if self.reversed else self.relationship.source.column

    @property
    def match_column(self) -> str:
        """Column of the related table compared against the base row key."""
        return self.relationship.source.column if self.reversed else self.relationship.target.column


def _best(candidates: list[Relationship]) -> Relationship | None:
    """Highest confidence; first in set order wins ties."""
    best: Relationship | None = None
    for candidate in candidates:
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    return best


def find_join_path(relationships: Sequence[Relationship], from_table: str, to_table: str) -> JoinPath | None:
    """
    Resolve the relationship linking from_table to to_table.

    Forward matches (from_table → to_table) always take precedence over
    reverse ones, regardless of confidence.

    Returns:
        JoinPath, or None when the tables are not related
    """
    forward = _best([r for r in relationships if r.source.table == from_table and r.target.table == to_table])
    if forward is not None:
        return JoinPath(relationship=forward, reversed=False)

    backward = _best([r for r in relationships if r.source.table == to_table and r.target.table == from_table])
    if backward is not None:
        return JoinPath(relationship=backward, reversed=True)

    return None


def select_base_table(
    fields: Sequence[TargetField],
    mapping: Mapping[str, MappingEntry | None],
    snapshot: SchemaSnapshot,
) -> str | None:
    """
    Pick the table supplying the output rows by majority vote of mapped fields.

    Only fields whose referenced table exists and has sample rows vote. Ties go
    to the table encountered first in field order. Without votes, falls back to
    the first snapshot table with sample rows.

    Returns:
        Base table name, or None when no table has sample rows
    """
    votes: dict[str, int] = {}
    for target_field in fields:
        entry = mapping.get(target_field.id)
        ref = parse_source_field_id(entry.source_field_id) if entry else None
        if ref is None:
            continue
        table = snapshot.table(ref.table)
        if table is None or not table.sample_rows:
            continue
        votes[ref.table] = votes.get(ref.table, 0) + 1

    if votes:
        # dicts keep first-seen order, so max() returns the earliest table on ties
        return max(votes, key=lambda name: votes[name])

    for table in snapshot.tables:
        if table.sample_rows:
            return table.name
    return None


@dataclass(frozen=True)
class FieldPlan:
    """How one target field is resolved."""

    target: TargetField
    source: ColumnRef | None = None
    operation: AggregationOp | None = None
    join: JoinPath | None = None

    @property
    def is_mapped(self) -> bool:
        return self.source is not None and self.operation is not None


@dataclass
class JoinPlan:
    """Base table plus per-field resolution for one template build."""

    base_table: str | None
    fields: list[FieldPlan] = field(default_factory=list)


def plan_template(
    fields: Sequence[TargetField],
    mapping: Mapping[str, MappingEntry | None],
    snapshot: SchemaSnapshot,
) -> JoinPlan:
    """
    Build the join plan for a template.

    Unmapped fields, malformed source ids and unknown operations become
    unmapped FieldPlans (their output is null). Join paths are resolved once
    per related table.
    """
    base_table = select_base_table(fields, mapping, snapshot)
    relationships = snapshot.relationships
    joins: dict[str, JoinPath | None] = {}
    plans: list[FieldPlan] = []

    for target_field in fields:
        entry = mapping.get(target_field.id)
        ref = parse_source_field_id(entry.source_field_id) if entry else None
        operation = AggregationOp.parse(entry.operation) if entry else None
        if ref is None or operation is None:
            plans.append(FieldPlan(target=target_field))
            continue

        join = None
        if base_table is not None and ref.table != base_table:
            if ref.table not in joins:
                joins[ref.table] = find_join_path(relationships, base_table, ref.table)
                if joins[ref.table] is None:
                    logger.debug("join_path_missing", base_table=base_table, table=ref.table)
            join = joins[ref.table]

        plans.append(FieldPlan(target=target_field, source=ref, operation=operation, join=join))

    logger.debug(
        "join_plan_built",
        base_table=base_table,
        mapped_fields=sum(1 for p in plans if p.is_mapped),
        joined_tables=sorted(t for t, j in joins.items() if j is not None),
    )
    return JoinPlan(base_table=base_table, fields=plans)
