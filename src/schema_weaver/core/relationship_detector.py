"""
Relationship Detector - Heuristic Key Relationship Discovery

Scores every column pair across every ordered pair of distinct tables and
emits relationships without requiring declared foreign keys:
- Name similarity gate (skip pairs whose names are not alike)
- Type compatibility, sample value overlap and column uniqueness
- Weighted confidence with explainable evidence
- Primary-key naming convention decides ONE_TO_MANY vs MANY_TO_MANY
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import structlog

from schema_weaver.core.config_loader import InferenceConfigDefaults
from schema_weaver.core.schema import (
    HEURISTIC,
    ColumnProfile,
    ColumnRef,
    DataType,
    Relationship,
    RelationshipEvidence,
    RelationshipType,
    TableSchema,
    as_text,
)
from schema_weaver.core.similarity import name_similarity

logger = structlog.get_logger()

_NUMERIC_TYPES = {DataType.NUMBER, DataType.CURRENCY}


@dataclass(frozen=True)
class InferenceSettings:
    """Thresholds and weights for the heuristic confidence score (defaults from config_loader)."""

    name_similarity_gate: float = InferenceConfigDefaults.name_similarity_gate
    min_confidence: float = InferenceConfigDefaults.min_confidence
    name_weight: float = InferenceConfigDefaults.name_weight
    type_weight: float = InferenceConfigDefaults.type_weight
    overlap_weight: float = InferenceConfigDefaults.overlap_weight
    uniqueness_weight: float = InferenceConfigDefaults.uniqueness_weight

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> InferenceSettings:
        """Build settings from load_inference_config() output, ignoring unknown keys."""
        known = {name: float(config[name]) for name in cls.__dataclass_fields__ if name in config}
        return cls(**known)


class RelationshipDetector:
    """
    Detects likely key relationships between profiled tables.

    Works purely on column profiles (names, types, ratios, sample values), so
    it never touches the underlying data source.
    """

    def __init__(self, settings: InferenceSettings | None = None):
        self.settings = settings or InferenceSettings()

    @staticmethod
    def type_score(a: DataType, b: DataType) -> float:
        """
        Score data type compatibility.

        1.0 identical, 0.8 both numeric-family, 0.5 uuid/string, else 0.2.
        """
        if a == b:
            return 1.0
        if a in _NUMERIC_TYPES and b in _NUMERIC_TYPES:
            return 0.8
        if {a, b} == {DataType.UUID, DataType.STRING}:
            return 0.5
        return 0.2

    @staticmethod
    def overlap_score(a: Iterable[Any], b: Iterable[Any]) -> float:
        """
        Fraction of the smaller distinct sample set found in the other.

        Values are compared as strings, nulls ignored; 0.0 when either side has no samples.
        """
        set_a = {as_text(value) for value in a if value is not None}
        set_b = {as_text(value) for value in b if value is not None}
        if not set_a or not set_b:
            return 0.0
        return len(set_a & set_b) / min(len(set_a), len(set_b))

    @staticmethod
    def is_likely_primary_key(table: TableSchema, column: str) -> bool:
        """
        Check whether a column follows the table's primary-key naming convention.

        Accepts "id", "{base}_id" and "{base}id" where base is the last
        underscore-delimited segment of the table name with a trailing "s"
        removed ("crm_donors" → "donor"). Best-effort only: irregular plurals
        and compound names are not recognized.
        """
        if table.column(column) is None:
            return False
        base = table.name.lower().rsplit("_", 1)[-1]
        if base.endswith("s"):
            base = base[:-1]
        name = column.lower()
        return name in ("id", f"{base}_id", f"{base}id")

    def score_pair(
        self,
        source: TableSchema,
        source_col: ColumnProfile,
        target: TableSchema,
        target_col: ColumnProfile,
    ) -> Relationship | None:
        """
        Score one directed column pair.

        Returns None when the pair fails the name gate or the confidence floor.
        """
        settings = self.settings
        name_score = name_similarity(source_col.name, target_col.name)
        if name_score < settings.name_similarity_gate:
            return None

        type_score = self.type_score(source_col.data_type, target_col.data_type)
        overlap = self.overlap_score(source_col.sample_values, target_col.sample_values)
        uniqueness = max(source_col.unique_ratio or 0.0, target_col.unique_ratio or 0.0)

        confidence = min(
            1.0,
            name_score * settings.name_weight
            + type_score * settings.type_weight
            + overlap * settings.overlap_weight
            + uniqueness * settings.uniqueness_weight,
        )
        if confidence < settings.min_confidence:
            return None

        relationship_type = (
            RelationshipType.ONE_TO_MANY
            if self.is_likely_primary_key(target, target_col.name)
            else RelationshipType.MANY_TO_MANY
        )

        return Relationship(
            source=ColumnRef(table=source.name, column=source_col.name),
            target=ColumnRef(table=target.name, column=target_col.name),
            type=relationship_type,
            confidence=round(confidence, 2),
            rationale=(
                f"Name similarity ({name_score:.2f}), type compatibility ({type_score:.2f}), "
                f"overlap ({overlap:.2f})"
            ),
            evidence=RelationshipEvidence(
                name_score=round(name_score, 2),
                type_score=round(type_score, 2),
                overlap_score=round(overlap, 2),
                uniqueness_score=round(uniqueness, 2),
            ),
            suggested_by=HEURISTIC,
        )

    def detect_relationships(self, tables: Sequence[TableSchema]) -> list[Relationship]:
        """
        Score every column pair of every ordered pair of distinct tables.

        Output keeps discovery order (source table, target table, source column,
        target column). Both directions of a table pair are visited as separate
        ordered pairs; no deduplication happens here.

        Args:
            tables: Profiled table schemas

        Returns:
            Heuristic relationships that passed the name gate and confidence floor
        """
        relationships: list[Relationship] = []

        for source in tables:
            for target in tables:
                if source.name == target.name:
                    continue  # Skip self-joins

                for source_col in source.columns:
                    for target_col in target.columns:
                        relationship = self.score_pair(source, source_col, target, target_col)
                        if relationship is None:
                            continue
                        relationships.append(relationship)
                        logger.debug(
                            "relationship_detected",
                            relationship=str(relationship),
                            evidence=relationship.evidence.to_dict() if relationship.evidence else None,
                        )

        logger.info("heuristic_inference_complete", tables=len(tables), relationships=len(relationships))
        return relationships

