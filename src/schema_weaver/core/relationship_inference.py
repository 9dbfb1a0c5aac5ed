"""
Relationship inference entry point.

Combines heuristic detection with optional external suggestions into the
canonical relationship set stored in a SchemaSnapshot.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, Sequence

import structlog

from schema_weaver.core.relationship_detector import InferenceSettings, RelationshipDetector
from schema_weaver.core.relationship_oracle import RelationshipOracle, collect_external_relationships
from schema_weaver.core.schema import Relationship, SchemaSnapshot, TableSchema

logger = structlog.get_logger()

RelationshipKey = tuple[str, str, str, str]


class RelationshipMerger:
    """
    Insertion-ordered, first-writer-wins relationship set.

    Keyed by the directed quadruple (from.table, from.column, to.table, to.column).
    """

    def __init__(self, relationships: Iterable[Relationship] = ()):
        self._by_key: OrderedDict[RelationshipKey, Relationship] = OrderedDict()
        self.add_all(relationships)

    def add(self, relationship: Relationship) -> bool:
        """Insert unless the key is taken. Returns True when inserted."""
        key = relationship.key()
        if key in self._by_key:
            return False
        self._by_key[key] = relationship
        return True

    def add_all(self, relationships: Iterable[Relationship]) -> int:
        return sum(1 for relationship in relationships if self.add(relationship))

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return len(self._by_key)

    def relationships(self) -> list[Relationship]:
        return list(self._by_key.values())


def merge_relationships(base: Iterable[Relationship], extra: Iterable[Relationship]) -> list[Relationship]:
    """
    Merge two relationship lists; base wins on key collision.

    Order is first-seen: every base entry (deduplicated), then extra entries
    whose directed key was not already present.
    """
    merger = RelationshipMerger(base)
    added = merger.add_all(extra)
    logger.debug("relationships_merged", total=len(merger), added_from_extra=added)
    return merger.relationships()


def _infer(
    tables: Sequence[TableSchema],
    oracle: RelationshipOracle | None,
    settings: InferenceSettings | None,
) -> tuple[list[Relationship], str | None]:
    heuristic = RelationshipDetector(settings).detect_relationships(tables)
    external, warning = collect_external_relationships(tables, oracle)
    return merge_relationships(heuristic, external), warning


def infer_relationships(
    tables: Sequence[TableSchema],
    oracle: RelationshipOracle | None = None,
    settings: InferenceSettings | None = None,
) -> list[Relationship]:
    """
    Run heuristic inference and merge in external suggestions.

    Args:
        tables: Profiled table schemas
        oracle: Optional external relationship source; failures count as no suggestions
        settings: Optional thresholds/weights (defaults match the documented constants)

    Returns:
        Canonical relationship set, heuristic entries first
    """
    relationships, _ = _infer(tables, oracle, settings)
    return relationships


def build_snapshot(
    tables: Sequence[TableSchema],
    oracle: RelationshipOracle | None = None,
    settings: InferenceSettings | None = None,
) -> SchemaSnapshot:
    """Infer relationships and package them with the tables as a SchemaSnapshot."""
    relationships, warning = _infer(tables, oracle, settings)
    snapshot = SchemaSnapshot(
        tables=tuple(tables),
        relationships=tuple(relationships),
        warnings=(warning,) if warning else (),
    )
    logger.info(
        "schema_snapshot_built",
        tables=len(snapshot.tables),
        relationships=len(snapshot.relationships),
        warnings=len(snapshot.warnings),
    )
    return snapshot
