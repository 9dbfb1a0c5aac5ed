"""
Schema Snapshot Data Model.

Value objects shared by relationship inference and combined-output assembly:
- ColumnProfile / TableSchema: ingested table metadata (read-only for the core)
- Relationship: directed, scored join hypothesis between two columns
- SchemaSnapshot: tables + merged relationships for one ingestion session
- TargetField / Template / MappingEntry: user-defined output schema and mapping

All types serialize with to_dict()/from_dict() using the camelCase wire names
the persistence and rendering layers exchange.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Scalar = str | int | float | bool | None
Row = dict[str, Any]


class DataType(str, Enum):
    """Profiled column data type."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    UUID = "uuid"
    CURRENCY = "currency"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> DataType:
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


class RelationshipType(str, Enum):
    """Cardinality classification of a relationship."""

    ONE_TO_MANY = "ONE_TO_MANY"
    ONE_TO_ONE = "ONE_TO_ONE"
    MANY_TO_MANY = "MANY_TO_MANY"

    @classmethod
    def parse(cls, value: Any) -> RelationshipType:
        """Case-insensitive lookup; missing or unknown types mean MANY_TO_MANY."""
        normalized = str(value).strip().upper() if value is not None else ""
        return cls.__members__.get(normalized, cls.MANY_TO_MANY)


class AggregationOp(str, Enum):
    """Operation applied to a mapped source column."""

    DIRECT = "DIRECT"
    COUNT = "COUNT"
    COUNT_DISTINCT = "COUNT_DISTINCT"
    SUM = "SUM"
    AVERAGE = "AVERAGE"
    FIRST = "FIRST"
    LAST = "LAST"

    @classmethod
    def parse(cls, value: Any) -> AggregationOp | None:
        """Case-insensitive lookup; missing operation means DIRECT, unknown means None."""
        if value is None or str(value).strip() == "":
            return cls.DIRECT
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


HEURISTIC = "heuristic"


@dataclass(frozen=True)
class ColumnProfile:
    """Profiled column of an ingested table."""

    name: str
    data_type: DataType = DataType.UNKNOWN
    null_ratio: float | None = None
    unique_ratio: float | None = None
    sample_values: tuple[Scalar, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dataType": self.data_type.value,
            "nullRatio": self.null_ratio,
            "uniqueRatio": self.unique_ratio,
            "sampleValues": list(self.sample_values),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnProfile:
        return cls(
            name=str(data["name"]),
            data_type=DataType.parse(data.get("dataType", DataType.UNKNOWN.value)),
            null_ratio=data.get("nullRatio"),
            unique_ratio=data.get("uniqueRatio"),
            sample_values=tuple(data.get("sampleValues") or ()),
        )


@dataclass(frozen=True)
class TableSchema:
    """
    Ingested table: ordered column profiles plus optional sample rows.

    Table names are assumed unique within a snapshot.
    """

    name: str
    columns: tuple[ColumnProfile, ...] = ()
    row_count: int | None = None
    sample_rows: tuple[Row, ...] = ()
    source: str | None = None

    def column(self, name: str) -> ColumnProfile | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "columns": [col.to_dict() for col in self.columns],
            "sampleRows": [dict(row) for row in self.sample_rows],
        }
        if self.row_count is not None:
            data["rowCount"] = self.row_count
        if self.source is not None:
            data["source"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableSchema:
        return cls(
            name=str(data["name"]),
            columns=tuple(ColumnProfile.from_dict(col) for col in data.get("columns") or ()),
            row_count=data.get("rowCount"),
            sample_rows=tuple(dict(row) for row in data.get("sampleRows") or ()),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class ColumnRef:
    """A table.column endpoint of a relationship."""

    table: str
    column: str

    def to_dict(self) -> dict[str, str]:
        return {"table": self.table, "column": self.column}


@dataclass(frozen=True)
class RelationshipEvidence:
    """Component scores behind a relationship's confidence (each 0-1)."""

    name_score: float = 0.0
    type_score: float = 0.0
    overlap_score: float = 0.0
    uniqueness_score: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "nameScore": self.name_score,
            "typeScore": self.type_score,
            "overlapScore": self.overlap_score,
            "uniquenessScore": self.uniqueness_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RelationshipEvidence | None:
        if not data:
            return None
        return cls(
            name_score=float(data.get("nameScore") or 0.0),
            type_score=float(data.get("typeScore") or 0.0),
            overlap_score=float(data.get("overlapScore") or 0.0),
            uniqueness_score=float(data.get("uniquenessScore") or 0.0),
        )


@dataclass(frozen=True)
class Relationship:
    """
    Directed join hypothesis: source column references target column.

    Identity for deduplication is the ordered quadruple returned by key();
    A->B and B->A are distinct relationships.
    """

    source: ColumnRef
    target: ColumnRef
    type: RelationshipType
    confidence: float
    rationale: str = ""
    evidence: RelationshipEvidence | None = None
    suggested_by: str = HEURISTIC

    def key(self) -> tuple[str, str, str, str]:
        return (self.source.table, self.source.column, self.target.table, self.target.column)

    def __str__(self) -> str:
        return (
            f"{self.source.table}.{self.source.column} → {self.target.table}.{self.target.column} "
            f"({self.type.value}, conf={self.confidence:.2f}, by={self.suggested_by})"
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "from": self.source.to_dict(),
            "to": self.target.to_dict(),
            "type": self.type.value,
            "confidence": self.confidence,
            "rationale": self.rationale,
            "suggestedBy": self.suggested_by,
        }
        if self.evidence is not None:
            data["evidence"] = self.evidence.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relationship:
        return cls(
            source=ColumnRef(table=str(data["from"]["table"]), column=str(data["from"]["column"])),
            target=ColumnRef(table=str(data["to"]["table"]), column=str(data["to"]["column"])),
            type=RelationshipType.parse(data.get("type")),
            confidence=float(data.get("confidence", 0.0)),
            rationale=str(data.get("rationale") or ""),
            evidence=RelationshipEvidence.from_dict(data.get("evidence")),
            suggested_by=str(data.get("suggestedBy") or HEURISTIC),
        )


@dataclass(frozen=True)
class SchemaSnapshot:
    """Tables plus merged relationship set for one ingestion session."""

    tables: tuple[TableSchema, ...]
    relationships: tuple[Relationship, ...] = ()
    warnings: tuple[str, ...] = ()

    def table(self, name: str) -> TableSchema | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tables": [table.to_dict() for table in self.tables],
            "relationships": [rel.to_dict() for rel in self.relationships],
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaSnapshot:
        return cls(
            tables=tuple(TableSchema.from_dict(t) for t in data.get("tables") or ()),
            relationships=tuple(Relationship.from_dict(r) for r in data.get("relationships") or ()),
            warnings=tuple(data.get("warnings") or ()),
        )


@dataclass(frozen=True)
class TargetField:
    """One required column of a template's output schema."""

    id: str
    name: str
    description: str | None = None
    required: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetField:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=data.get("description"),
            required=bool(data.get("required", False)),
        )


@dataclass(frozen=True)
class Template:
    """User-defined target schema."""

    id: str
    name: str
    fields: tuple[TargetField, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Template:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            fields=tuple(TargetField.from_dict(f) for f in data.get("fields") or ()),
        )


@dataclass(frozen=True)
class MappingEntry:
    """Assignment of a source column (table.column) and operation to a target field."""

    source_field_id: str | None
    operation: str | None = None
    confidence: float | None = None
    rationale: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MappingEntry | None:
        if data is None:
            return None
        return cls(
            source_field_id=data.get("sourceFieldId"),
            operation=data.get("operation"),
            confidence=data.get("confidence"),
            rationale=data.get("rationale"),
        )


def parse_source_field_id(source_field_id: str | None) -> ColumnRef | None:
    """
    Split "table.column" on the first dot.

    Returns None when there is no dot or either side is empty.
    """
    if not source_field_id:
        return None
    dot = source_field_id.find(".")
    if dot <= 0 or dot == len(source_field_id) - 1:
        return None
    return ColumnRef(table=source_field_id[:dot], column=source_field_id[dot + 1 :])


def as_text(value: Any) -> str:
    """Stringify a scalar the way it renders in exported data ("1.0" → "1", True → "true")."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
