"""Swappable reference to the index currently being served.

Indexes are immutable, so content changes are published by building a new
index and replacing the reference. Readers take the reference once per query
and keep using it even if a swap happens mid-query.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import threading
from typing import Any

from docs_search.domain.search import SearchResponse
from docs_search.observability.context import bind_index_name
from docs_search.search.engine import SearchEngine
from docs_search.search.index import Document, SearchIndex, build_index
from docs_search.search.query import SearchOptions
from docs_search.search.schema import IndexSchema


logger = logging.getLogger(__name__)


class IndexHolder:
    """Thread-safe holder for the live ``SearchIndex`` and its default options."""

    def __init__(self, index: SearchIndex | None = None, *, options: SearchOptions | None = None) -> None:
        self._lock = threading.Lock()
        self._index = index
        self._options = options or SearchOptions()
        self._generation = 0 if index is None else 1

    @property
    def current(self) -> SearchIndex:
        index = self._index
        if index is None:
            raise LookupError("No index has been published yet")
        return index

    @property
    def options(self) -> SearchOptions:
        return self._options

    @property
    def generation(self) -> int:
        """Number of indexes published so far."""
        return self._generation

    def is_ready(self) -> bool:
        return self._index is not None

    def swap(self, index: SearchIndex, *, options: SearchOptions | None = None) -> SearchIndex | None:
        """Publish ``index`` and return the one it replaces."""

        with self._lock:
            previous = self._index
            self._index = index
            if options is not None:
                self._options = options
            self._generation += 1
            generation = self._generation

        bind_index_name(index.name)
        logger.info(
            "Published index '%s' (%d documents, generation %d)",
            index.name,
            index.document_count,
            generation,
        )
        return previous

    def rebuild(
        self,
        documents: Iterable[Document | Mapping[str, Any]],
        schema: IndexSchema | None = None,
    ) -> SearchIndex:
        """Build a fresh index off to the side, then publish it."""

        index = build_index(documents, schema)
        self.swap(index)
        return index

    def search(self, query_text: str, options: SearchOptions | None = None) -> SearchResponse:
        index = self.current
        return SearchEngine(index, options=self._options).search(query_text, options)
