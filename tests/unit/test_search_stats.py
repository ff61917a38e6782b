"""Unit tests for TF-IDF scoring helpers."""

import math

import pytest

from docs_search.search.stats import (
    FieldLengthStats,
    calculate_idf,
    compute_field_length_stats,
    expansion_weight,
    field_length_norm,
    term_frequency_weight,
)


@pytest.mark.unit
class TestTermFrequencyWeight:
    def test_square_root_damping(self):
        assert term_frequency_weight(1) == 1.0
        assert term_frequency_weight(2) == pytest.approx(math.sqrt(2))
        assert term_frequency_weight(9) == 3.0

    def test_zero_count(self):
        assert term_frequency_weight(0) == 0.0


@pytest.mark.unit
class TestIdf:
    def test_rarer_terms_weigh_more(self):
        assert calculate_idf(1, 10) > calculate_idf(5, 10)

    def test_formula(self):
        assert calculate_idf(2, 10) == pytest.approx(math.log(1 + 10 / 2))

    def test_absent_term(self):
        assert calculate_idf(0, 10) == 0.0
        assert calculate_idf(3, 0) == 0.0


@pytest.mark.unit
class TestNormalization:
    def test_field_length_norm(self):
        assert field_length_norm(4) == 0.5
        assert field_length_norm(0) == 1.0

    def test_expansion_weight(self):
        assert expansion_weight("build", "build") == 1.0
        assert expansion_weight("build", "builder") == pytest.approx(5 / 7)


@pytest.mark.unit
class TestFieldLengthStats:
    def test_compute(self):
        stats = compute_field_length_stats({0: {"body": 4, "title": 1}, 1: {"body": 2, "title": 0}})

        assert stats["body"] == FieldLengthStats(field="body", total_terms=6, document_count=2)
        assert stats["body"].average_length == 3.0
        assert stats["title"].average_length == 0.5

    def test_empty(self):
        assert compute_field_length_stats({}) == {}
        assert FieldLengthStats(field="body", total_terms=0, document_count=0).average_length == 0.0
