"""Public APIs for relationship inference and combined output."""

from .combined_output import (
    OutputPayload,
    OutputPreconditionError,
    OutputTemplate,
    SnapshotUnavailableError,
    TemplateNotMappedError,
    build_combined_output,
    build_combined_rows,
)
from .join_planner import JoinPath, find_join_path, plan_template, select_base_table
from .profiling import profile_column, profile_frame
from .relationship_detector import InferenceSettings, RelationshipDetector
from .relationship_inference import build_snapshot, infer_relationships, merge_relationships
from .relationship_oracle import RelationshipOracle, parse_relationship_payload
from .schema import (
    AggregationOp,
    ColumnProfile,
    MappingEntry,
    Relationship,
    RelationshipType,
    SchemaSnapshot,
    TableSchema,
    Template,
    TargetField,
)

__all__ = [
    "AggregationOp",
    "ColumnProfile",
    "InferenceSettings",
    "JoinPath",
    "MappingEntry",
    "OutputPayload",
    "OutputPreconditionError",
    "OutputTemplate",
    "Relationship",
    "RelationshipDetector",
    "RelationshipOracle",
    "RelationshipType",
    "SchemaSnapshot",
    "SnapshotUnavailableError",
    "TableSchema",
    "Template",
    "TargetField",
    "TemplateNotMappedError",
    "build_combined_output",
    "build_combined_rows",
    "build_snapshot",
    "find_join_path",
    "infer_relationships",
    "merge_relationships",
    "parse_relationship_payload",
    "plan_template",
    "profile_column",
    "profile_frame",
    "select_base_table",
]
