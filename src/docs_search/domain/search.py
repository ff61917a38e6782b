"""Domain models for search results.

Value objects are frozen pydantic models; a response can be handed to a
presentation layer or cached as is.
"""

from pydantic import BaseModel, ConfigDict, Field


class SearchHit(BaseModel):
    """A single ranked document.

    ``matched_terms`` maps each index token that contributed to the score to
    the sorted names of the fields it matched in.
    """

    model_config = ConfigDict(frozen=True)

    doc_id: int
    url: str
    score: float
    matched_terms: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    title: str = ""
    breadcrumbs: str = ""
    teaser: str = ""


class SearchStats(BaseModel):
    """Debug information for a search call."""

    model_config = ConfigDict(frozen=True)

    query: str
    terms: list[str] = Field(default_factory=list)
    combine_with: str = "OR"
    expanded_terms: int = 0
    candidates: int = 0
    returned: int = 0
    search_time: float = 0.0


class SearchResponse(BaseModel):
    """Ordered hits plus optional statistics."""

    model_config = ConfigDict(frozen=True)

    results: list[SearchHit]
    stats: SearchStats | None = None

    def __len__(self) -> int:
        return len(self.results)

    @property
    def doc_ids(self) -> list[int]:
        return [hit.doc_id for hit in self.results]
