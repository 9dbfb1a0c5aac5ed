"""
Pytest configuration and fixtures for schema_weaver tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from schema_weaver.core.schema import (  # noqa: E402
    ColumnProfile,
    ColumnRef,
    DataType,
    MappingEntry,
    Relationship,
    RelationshipType,
    SchemaSnapshot,
    TableSchema,
    Template,
    TargetField,
)


@pytest.fixture(scope="session")
def project_root():
    """Return project root directory."""
    return Path(__file__).parent.parent


# ============================================================================
# Factory Fixtures (DRY - Single Source of Truth)
# ============================================================================


@pytest.fixture
def make_column():
    """
    Factory for ColumnProfile objects.

    Usage:
        def test_example(make_column):
            col = make_column("donor_id", DataType.UUID, unique_ratio=1.0, samples=["a", "b"])
    """

    def _make(
        name: str,
        data_type: DataType = DataType.STRING,
        unique_ratio: float | None = None,
        samples: list | None = None,
        null_ratio: float | None = 0.0,
    ) -> ColumnProfile:
        return ColumnProfile(
            name=name,
            data_type=data_type,
            null_ratio=null_ratio,
            unique_ratio=unique_ratio,
            sample_values=tuple(samples or ()),
        )

    return _make


@pytest.fixture
def make_relationship():
    """
    Factory for Relationship objects.

    Usage:
        rel = make_relationship("donations.donor_id", "donors.donor_id", confidence=0.9)
    """

    def _make(
        source: str,
        target: str,
        confidence: float = 0.9,
        rel_type: RelationshipType = RelationshipType.ONE_TO_MANY,
        suggested_by: str = "heuristic",
        rationale: str = "",
    ) -> Relationship:
        source_table, source_column = source.split(".", 1)
        target_table, target_column = target.split(".", 1)
        return Relationship(
            source=ColumnRef(source_table, source_column),
            target=ColumnRef(target_table, target_column),
            type=rel_type,
            confidence=confidence,
            rationale=rationale,
            suggested_by=suggested_by,
        )

    return _make


@pytest.fixture
def make_template():
    """
    Factory for a Template plus its mapping.

    Usage:
        template, mapping = make_template({"Donor": "donors.name", "Total": ("donations.amount", "SUM")})
    """

    def _make(
        fields: dict[str, str | tuple[str, str] | None],
        template_id: str = "tpl-1",
        name: str = "Donor Report",
    ) -> tuple[Template, dict[str, MappingEntry | None]]:
        target_fields = []
        mapping: dict[str, MappingEntry | None] = {}
        for index, (field_name, source) in enumerate(fields.items()):
            field_id = f"f{index + 1}"
            target_fields.append(TargetField(id=field_id, name=field_name))
            if source is None:
                mapping[field_id] = None
            elif isinstance(source, tuple):
                mapping[field_id] = MappingEntry(source_field_id=source[0], operation=source[1])
            else:
                mapping[field_id] = MappingEntry(source_field_id=source)
        return Template(id=template_id, name=name, fields=tuple(target_fields)), mapping

    return _make


# ============================================================================
# Donor / Donation Fixtures
# ============================================================================


@pytest.fixture
def donors_table(make_column) -> TableSchema:
    """Donors dimension: donor_id is unique."""
    return TableSchema(
        name="donors",
        columns=(
            make_column("donor_id", DataType.UUID, unique_ratio=1.0, samples=["a", "b", "c"]),
            make_column("name", DataType.STRING, unique_ratio=1.0, samples=["Ada", "Bo", "Cy"]),
        ),
        row_count=3,
        sample_rows=(
            {"donor_id": "a", "name": "Ada"},
            {"donor_id": "b", "name": "Bo"},
            {"donor_id": "c", "name": "Cy"},
        ),
        source="csv",
    )


@pytest.fixture
def donations_table(make_column) -> TableSchema:
    """Donations fact: many rows per donor, one with a string amount."""
    return TableSchema(
        name="donations",
        columns=(
            make_column("donation_id", DataType.STRING, unique_ratio=1.0, samples=["d1", "d2", "d3"]),
            make_column("donor_id", DataType.UUID, unique_ratio=0.67, samples=["a", "b"]),
            make_column("amount", DataType.NUMBER, unique_ratio=1.0, samples=[100, 50, 25]),
        ),
        row_count=3,
        sample_rows=(
            {"donation_id": "d1", "donor_id": "a", "amount": 100},
            {"donation_id": "d2", "donor_id": "a", "amount": 50},
            {"donation_id": "d3", "donor_id": "b", "amount": "25"},
        ),
        source="csv",
    )


@pytest.fixture
def donor_tables(donors_table, donations_table) -> list[TableSchema]:
    return [donors_table, donations_table]


@pytest.fixture
def donor_snapshot(donors_table, donations_table, make_relationship) -> SchemaSnapshot:
    """Snapshot with a single ONE_TO_MANY join donors.donor_id → donations.donor_id."""
    return SchemaSnapshot(
        tables=(donors_table, donations_table),
        relationships=(make_relationship("donors.donor_id", "donations.donor_id", confidence=0.95),),
    )
