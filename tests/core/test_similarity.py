"""
Tests for column name normalization and similarity.

Test name follows: test_unit_scenario_expectedBehavior
"""

import pytest

from schema_weaver.core.similarity import name_similarity, normalize_name


class TestNormalizeName:
    """Test suite for name normalization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("donor_id", "donor"),
            ("Donor ID", "donor"),
            ("DonorID", "donor"),
            ("donor-ids", "donor"),
            ("first_name", "firstname"),
            ("id", ""),
        ],
    )
    def test_normalize_name_strips_case_separators_and_id_suffix(self, raw, expected):
        assert normalize_name(raw) == expected


class TestNameSimilarity:
    """Test suite for edit-distance similarity."""

    def test_name_similarity_identical_after_normalization_returns_one(self):
        # Arrange / Act
        score = name_similarity("donor_id", "DonorId")

        # Assert
        assert score == 1.0

    def test_name_similarity_empty_normalized_name_returns_zero(self):
        # "id" normalizes to the empty string
        assert name_similarity("id", "donor_id") == 0.0
        assert name_similarity("", "donor") == 0.0

    def test_name_similarity_is_symmetric(self):
        assert name_similarity("donor", "donors") == name_similarity("donors", "donor")

    def test_name_similarity_one_edit_uses_longer_length(self):
        # Arrange: "donor" vs "donors" is one insertion over max length 6
        score = name_similarity("donor", "donors")

        # Assert
        assert score == pytest.approx(1 - 1 / 6)

    def test_name_similarity_unrelated_names_below_gate(self):
        assert name_similarity("customer_id", "order_id") < 0.6

    def test_name_similarity_always_within_unit_interval(self):
        for a, b in [("a", "zzzzzzzz"), ("amount", "amt"), ("x", "x")]:
            assert 0.0 <= name_similarity(a, b) <= 1.0
