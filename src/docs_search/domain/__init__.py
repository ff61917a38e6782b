"""Domain layer - immutable value objects returned to callers.

Pydantic models with no dependency on the index internals, so results can be
serialized or cached by a presentation layer as they are.
"""

from docs_search.domain.search import SearchHit, SearchResponse, SearchStats


__all__ = ["SearchHit", "SearchResponse", "SearchStats"]
