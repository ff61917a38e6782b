"""Unit tests for search result value objects."""

from pydantic import ValidationError
import pytest

from docs_search.domain import SearchHit, SearchResponse, SearchStats


@pytest.mark.unit
class TestSearchModels:
    def test_hits_are_frozen(self):
        hit = SearchHit(doc_id=1, url="a.html", score=1.5)

        with pytest.raises(ValidationError):
            hit.score = 2.0

    def test_response_helpers(self):
        response = SearchResponse(
            results=[SearchHit(doc_id=4, url="d.html", score=2.0), SearchHit(doc_id=1, url="a.html", score=1.0)],
            stats=SearchStats(query="cargo", terms=["cargo"], returned=2),
        )

        assert len(response) == 2
        assert response.doc_ids == [4, 1]
        assert response.stats.combine_with == "OR"

    def test_model_dump_is_serializable(self):
        hit = SearchHit(doc_id=0, url="a.html", score=0.5, matched_terms={"cargo": ("body", "title")}, teaser="x")

        assert hit.model_dump()["matched_terms"] == {"cargo": ("body", "title")}
