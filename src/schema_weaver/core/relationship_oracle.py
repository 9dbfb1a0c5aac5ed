"""
External relationship oracle boundary.

An oracle is any callable that receives the table schemas and returns
relationship suggestions in the Relationship wire shape (raw JSON text, a list
of mappings, or Relationship objects). Typical oracles wrap a language-model
service; the core never calls such a service itself.

Design principles:
- Graceful degradation: a failing or malformed oracle yields no suggestions
- Entries are validated one by one; invalid entries are dropped, not fatal
- Every accepted entry is tagged with the oracle's suggested_by label
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from schema_weaver.core.schema import (
    ColumnRef,
    Relationship,
    RelationshipEvidence,
    RelationshipType,
    TableSchema,
)

logger = structlog.get_logger()

EXTERNAL = "external"

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class RelationshipOracle(Protocol):
    """Callable returning relationship suggestions for a set of tables."""

    def __call__(self, tables: Sequence[TableSchema]) -> Any: ...


class EndpointPayload(BaseModel):
    """One side of a suggested relationship."""

    model_config = ConfigDict(extra="ignore")

    table: str = Field(..., min_length=1)
    column: str = Field(..., min_length=1)


class EvidencePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name_score: float = Field(0.0, alias="nameScore", ge=0.0, le=1.0)
    type_score: float = Field(0.0, alias="typeScore", ge=0.0, le=1.0)
    overlap_score: float = Field(0.0, alias="overlapScore", ge=0.0, le=1.0)
    uniqueness_score: float = Field(0.0, alias="uniquenessScore", ge=0.0, le=1.0)


class RelationshipPayload(BaseModel):
    """Untrusted relationship suggestion as returned by an oracle."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: EndpointPayload = Field(..., alias="from")
    target: EndpointPayload = Field(..., alias="to")
    type: RelationshipType = RelationshipType.MANY_TO_MANY
    confidence: float = 0.0
    rationale: str = ""
    evidence: EvidencePayload | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _default_unknown_type(cls, value: Any) -> Any:
        return RelationshipType.parse(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        if value is None:
            return 0.0
        return max(0.0, min(1.0, float(value)))

    @field_validator("rationale", mode="before")
    @classmethod
    def _rationale_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def to_relationship(self, suggested_by: str) -> Relationship:
        evidence = None
        if self.evidence is not None:
            evidence = RelationshipEvidence(
                name_score=self.evidence.name_score,
                type_score=self.evidence.type_score,
                overlap_score=self.evidence.overlap_score,
                uniqueness_score=self.evidence.uniqueness_score,
            )
        return Relationship(
            source=ColumnRef(table=self.source.table, column=self.source.column),
            target=ColumnRef(table=self.target.table, column=self.target.column),
            type=self.type,
            confidence=self.confidence,
            rationale=self.rationale,
            evidence=evidence,
            suggested_by=suggested_by,
        )


def _decode(raw: Any) -> list[Any] | None:
    """Turn raw oracle output into a list of entries, or None when unusable."""
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)):
        text = raw.decode() if isinstance(raw, bytes) else raw
        text = _CODE_FENCE.sub("", text).strip()
        if not text:
            return []
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(
                "external_relationships_parse_failed",
                error=str(e),
                raw_preview=text[:100],
            )
            return None
    if isinstance(raw, dict):
        # Some services wrap the list: {"relationships": [...]}
        raw = raw.get("relationships", [])
    if not isinstance(raw, (list, tuple)):
        logger.warning("external_relationships_not_a_list", payload_type=type(raw).__name__)
        return None
    return list(raw)


def parse_relationship_payload(raw: Any, suggested_by: str = EXTERNAL) -> list[Relationship]:
    """
    Validate oracle output into Relationship objects.

    Args:
        raw: JSON text (optionally fenced), a list of mappings, or Relationships
        suggested_by: Origin tag applied to every accepted relationship

    Returns:
        Valid relationships in input order; empty list for unusable payloads
    """
    entries = _decode(raw)
    if not entries:
        return []

    relationships: list[Relationship] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, Relationship):
            entry = entry.to_dict()
        try:
            payload = RelationshipPayload.model_validate(entry)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("external_relationship_invalid", index=index, error=str(e))
            continue
        relationships.append(payload.to_relationship(suggested_by))

    return relationships


def collect_external_relationships(
    tables: Sequence[TableSchema],
    oracle: RelationshipOracle | None,
    suggested_by: str = EXTERNAL,
) -> tuple[list[Relationship], str | None]:
    """
    Ask the oracle for suggestions; never raise.

    Returns:
        Tuple of (relationships, warning). warning is None unless the oracle failed.
    """
    if oracle is None:
        return [], None

    try:
        raw = oracle(tables)
    except Exception as e:
        logger.warning("external_relationships_failed", error_type=type(e).__name__, error=str(e))
        return [], f"External relationship suggestions unavailable: {type(e).__name__}: {e}"

    relationships = parse_relationship_payload(raw, suggested_by=suggested_by)
    logger.info("external_relationships_collected", count=len(relationships), suggested_by=suggested_by)
    return relationships, None
