"""Statistical helpers for TF-IDF style scoring.

The functions here stay independent of the index structures so they can be
unit tested in isolation and shared by the builder (term weights) and the
query engine (idf, normalization, expansion weighting).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math


@dataclass(frozen=True)
class FieldLengthStats:
    """Aggregated token counts for a field."""

    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_terms / self.document_count


def compute_field_length_stats(doc_info: Mapping[int, Mapping[str, int]]) -> dict[str, FieldLengthStats]:
    """Return aggregate stats for each field given per-document token counts."""

    totals: dict[str, int] = {}
    counts: dict[str, int] = {}
    for lengths in doc_info.values():
        for field_name, length in lengths.items():
            totals[field_name] = totals.get(field_name, 0) + max(length, 0)
            counts[field_name] = counts.get(field_name, 0) + 1
    return {
        field_name: FieldLengthStats(field=field_name, total_terms=totals[field_name], document_count=counts[field_name])
        for field_name in totals
    }


def term_frequency_weight(count: int) -> float:
    """Return the stored tf weight for a raw occurrence count.

    Repeated terms are dampened with a square root, so one occurrence weighs
    ``1.0`` and two weigh ``sqrt(2)``.
    """

    if count <= 0:
        return 0.0
    return math.sqrt(count)


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return ``ln(1 + N / df)``; zero when the term is absent."""

    if doc_freq <= 0 or total_docs <= 0:
        return 0.0
    return math.log1p(total_docs / doc_freq)


def field_length_norm(field_length: int) -> float:
    """Return the ``1 / sqrt(length)`` normalization for a field."""

    if field_length <= 0:
        return 1.0
    return 1.0 / math.sqrt(field_length)


def expansion_weight(query_term: str, indexed_term: str) -> float:
    """Weight of a prefix-expanded match relative to an exact one."""

    if not indexed_term or indexed_term == query_term:
        return 1.0
    return len(query_term) / len(indexed_term)
