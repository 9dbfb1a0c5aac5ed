"""
Combined Output - flatten a schema snapshot into a template's target schema.

Execute stage of output assembly (the plan stage lives in join_planner):
1. Plan: pick the base table and resolve a join path per related table
2. Execute: for every base row, compute each target field by direct lookup or
   by aggregating the related rows of another table

Resolution gaps (no join path, blank base key, no related rows) degrade to
null or fallback values; only missing inputs raise.

Example:
    >>> payload = build_combined_output(snapshot, templates, mapping_by_template)
    >>> payload.templates[0].rows[0]
    {'Donor': 'Ada', 'Total Given': 150}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import polars as pl
import structlog

from schema_weaver.core.aggregation import aggregate_value, is_present
from schema_weaver.core.join_planner import FieldPlan, JoinPath, JoinPlan, plan_template
from schema_weaver.core.schema import (
    AggregationOp,
    MappingEntry,
    Row,
    SchemaSnapshot,
    Template,
    as_text,
)

logger = structlog.get_logger()


class OutputPreconditionError(ValueError):
    """Output cannot be built from the given inputs; the caller must fix them."""


class SnapshotUnavailableError(OutputPreconditionError):
    """Raised when no schema snapshot has been saved yet."""

    def __init__(self) -> None:
        super().__init__("No saved snapshot available.")


class TemplateNotMappedError(OutputPreconditionError):
    """Raised when a requested template does not exist or has no mapped fields."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template {template_id!r} not found or has no mappings.")


@dataclass
class OutputTemplate:
    """Flattened rows for one template."""

    template_id: str
    template_name: str
    base_table: str | None
    columns: list[str]
    rows: list[Row]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "templateId": self.template_id,
            "templateName": self.template_name,
            "baseTable": self.base_table,
            "rowCount": self.row_count,
            "columns": list(self.columns),
            "rows": [dict(row) for row in self.rows],
        }

    def to_frame(self) -> pl.DataFrame:
        """
        Rows as a polars DataFrame, columns in template field order.

        Columns mixing incompatible value types are stringified.
        """
        data = {}
        for column in dict.fromkeys(self.columns):
            values = [row.get(column) for row in self.rows]
            data[column] = pl.Series(column, _uniform(values))
        return pl.DataFrame(data)


@dataclass
class OutputPayload:
    """Terminal artifact handed to renderers."""

    templates: list[OutputTemplate] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
            "templates": [template.to_dict() for template in self.templates],
        }


def _uniform(values: list[Any]) -> list[Any]:
    kinds = set()
    for value in values:
        if value is None:
            continue
        if isinstance(value, bool):
            kinds.add("bool")
        elif isinstance(value, (int, float)):
            kinds.add("number")
        elif isinstance(value, str):
            kinds.add("str")
        else:
            kinds.add("other")
    if not kinds:
        return [None for _ in values]
    if kinds == {"number"}:
        if all(isinstance(v, int) for v in values if v is not None):
            return values
        return [None if v is None else float(v) for v in values]
    if len(kinds) == 1 and kinds != {"other"}:
        return values
    return [None if v is None else as_text(v) for v in values]


def related_rows(base_row: Row, join: JoinPath, target_rows: Sequence[Row]) -> list[Row]:
    """
    Rows of the related table whose match column equals the base row key.

    Keys compare as strings. A blank base key matches nothing.
    """
    base_key = base_row.get(join.base_column)
    if not is_present(base_key):
        return []
    key = as_text(base_key)
    return [row for row in target_rows if as_text(row.get(join.match_column)) == key]


def resolve_field(
    plan: FieldPlan,
    base_row: Row,
    base_table: str | None,
    snapshot: SchemaSnapshot,
) -> Any:
    """Compute one output value for one base row."""
    if not plan.is_mapped or base_table is None:
        return None

    source = plan.source
    table = snapshot.table(source.table)
    source_rows: Sequence[Row] = table.sample_rows if table is not None else ()

    if source.table == base_table:
        if plan.operation is AggregationOp.DIRECT:
            return base_row.get(source.column)
        # Same table as the base row: aggregate the whole table
        return aggregate_value(source_rows, source.column, plan.operation)

    rows = related_rows(base_row, plan.join, source_rows) if plan.join is not None else []
    if plan.operation is AggregationOp.DIRECT:
        if rows:
            return rows[0].get(source.column)
        # Whole-table default only when no relationship links the tables
        if plan.join is None and source_rows:
            return source_rows[0].get(source.column)
        return None

    # No related rows (or no path): aggregate the whole table
    return aggregate_value(rows or source_rows, source.column, plan.operation)


def execute_plan(plan: JoinPlan, snapshot: SchemaSnapshot) -> list[Row]:
    """
    Produce one output row per base row, keyed by field display name.

    Without a base table a single all-null seed row is produced.
    """
    base = snapshot.table(plan.base_table) if plan.base_table is not None else None
    seed_rows: Sequence[Row] = base.sample_rows if base is not None and base.sample_rows else ({},)

    rows: list[Row] = []
    for base_row in seed_rows:
        output: Row = {}
        for field_plan in plan.fields:
            output[field_plan.target.name] = resolve_field(field_plan, base_row, plan.base_table, snapshot)
        rows.append(output)
    return rows


def build_combined_rows(
    template: Template,
    mapping: Mapping[str, MappingEntry | None],
    snapshot: SchemaSnapshot,
) -> tuple[list[Row], str | None]:
    """
    Plan and execute a template build.

    Returns:
        Tuple of (rows, base_table)
    """
    plan = plan_template(template.fields, mapping, snapshot)
    rows = execute_plan(plan, snapshot)
    logger.info(
        "combined_rows_built",
        template_id=template.id,
        base_table=plan.base_table,
        row_count=len(rows),
    )
    return rows, plan.base_table


def build_template_output(
    template: Template,
    mapping: Mapping[str, MappingEntry | None],
    snapshot: SchemaSnapshot,
) -> OutputTemplate:
    rows, base_table = build_combined_rows(template, mapping, snapshot)
    return OutputTemplate(
        template_id=template.id,
        template_name=template.name,
        base_table=base_table,
        columns=[f.name for f in template.fields],
        rows=rows,
    )


def has_mapped_fields(template: Template, mapping: Mapping[str, MappingEntry | None] | None) -> bool:
    if not mapping:
        return False
    for target_field in template.fields:
        entry = mapping.get(target_field.id)
        if entry is not None and entry.source_field_id:
            return True
    return False


def build_combined_output(
    snapshot: SchemaSnapshot | None,
    templates: Sequence[Template],
    mapping_by_template: Mapping[str, Mapping[str, MappingEntry | None]],
    template_id: str | None = None,
) -> OutputPayload:
    """
    Build the output payload for one template or for every mapped template.

    Args:
        snapshot: Saved schema snapshot (tables + relationships)
        templates: All known templates
        mapping_by_template: template id → (field id → mapping entry)
        template_id: Restrict the build to this template

    Raises:
        SnapshotUnavailableError: If snapshot is None
        TemplateNotMappedError: If template_id is unknown or has no mapped fields
    """
    if snapshot is None:
        raise SnapshotUnavailableError()

    mapped = [t for t in templates if has_mapped_fields(t, mapping_by_template.get(t.id))]

    if template_id is not None:
        mapped = [t for t in mapped if t.id == template_id]
        if not mapped:
            raise TemplateNotMappedError(template_id)
        mapped = mapped[:1]

    outputs = [build_template_output(t, mapping_by_template.get(t.id) or {}, snapshot) for t in mapped]
    return OutputPayload(templates=outputs)
