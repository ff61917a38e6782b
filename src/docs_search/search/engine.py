"""TF-IDF query engine over a built ``SearchIndex``.

The engine is stateless apart from the index it is given: every call keeps
its scores in local accumulators, so one engine (or many) can serve
concurrent queries against the same immutable index.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
import heapq
import logging
import time
from types import MappingProxyType

from opentelemetry.trace import SpanKind

from docs_search.domain.search import SearchHit, SearchResponse, SearchStats
from docs_search.observability import SEARCH_LATENCY, SEARCH_REQUESTS, create_span, track_latency
from docs_search.search.index import SearchIndex
from docs_search.search.query import Query, SearchOptions
from docs_search.search.stats import calculate_idf, expansion_weight, field_length_norm
from docs_search.search.teaser import build_teaser


logger = logging.getLogger(__name__)

# Fields a teaser is cut from before any matched field
_TEASER_FIELD_PREFERENCE = ("body",)


@dataclass(frozen=True)
class RankedDocument:
    """Represents a scored document produced by the engine."""

    doc_id: int
    score: float
    matched_terms: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @property
    def matched_fields(self) -> frozenset[str]:
        found: set[str] = set()
        for fields in self.matched_terms.values():
            found.update(fields)
        return frozenset(found)


@dataclass
class _Accumulator:
    score: float = 0.0
    matched_terms: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    satisfied: set[str] = field(default_factory=set)


class SearchEngine:
    """Answer ranked free-text queries against one index."""

    def __init__(self, index: SearchIndex, *, options: SearchOptions | None = None) -> None:
        self.index = index
        self.options = options or SearchOptions()

    def tokenize_query(self, query_text: str) -> tuple[str, ...]:
        """Return distinct query tokens in first-seen order."""

        if not isinstance(query_text, str):
            return ()
        return tuple(dict.fromkeys(self.index.tokenize(query_text)))

    def parse(self, query_text: str, options: SearchOptions | None = None) -> Query:
        options = options or self.options
        text = query_text if isinstance(query_text, str) else ""
        return Query.from_terms(text, self.tokenize_query(text), options)

    def _fields_in_scope(self, options: SearchOptions) -> list[tuple[str, float]]:
        schema = self.index.schema
        names = schema.field_names if options.fields is None else options.fields
        scoped: list[tuple[str, float]] = []
        for name in names:
            if name not in schema:
                logger.debug("Ignoring unknown field '%s' in search options", name)
                continue
            scoped.append((name, float(options.field_boosts.get(name, schema.get_boost(name)))))
        return scoped

    def _accumulate(self, query: Query) -> tuple[dict[int, _Accumulator], int]:
        index = self.index
        options = query.options
        total_docs = index.document_count
        accumulators: dict[int, _Accumulator] = defaultdict(_Accumulator)
        expanded_keys = 0

        fields = self._fields_in_scope(options)
        for clause in query.clauses:
            for field_name, field_boost in fields:
                if not clause.applies_to(field_name) or field_boost <= 0:
                    continue
                trie = index.get_trie(field_name)
                if trie is None:
                    continue

                keys = trie.expand(clause.term) if clause.use_prefix else [clause.term]
                for key in keys:
                    postings = trie.get_docs(key)
                    if not postings:
                        continue
                    if key != clause.term:
                        expanded_keys += 1
                    idf = calculate_idf(len(postings), total_docs)
                    weight = idf * field_boost * clause.boost * expansion_weight(clause.term, key)
                    for doc_id, tf in postings.items():
                        norm = 1.0
                        if options.normalize_field_length:
                            norm = field_length_norm(index.field_length(doc_id, field_name))
                        acc = accumulators[doc_id]
                        acc.score += tf * weight * norm
                        acc.matched_terms[key].add(field_name)
                        acc.satisfied.add(clause.term)

        required = {clause.term for clause in query.clauses if clause.required}
        if required:
            accumulators = {doc_id: acc for doc_id, acc in accumulators.items() if required <= acc.satisfied}
        return dict(accumulators), expanded_keys

    def score(self, query: Query) -> list[RankedDocument]:
        """Return ranked documents for a parsed query, capped at its limit."""

        if query.is_empty():
            return []
        accumulators, _expanded = self._accumulate(query)
        return self._rank(accumulators, query.options.limit)

    @staticmethod
    def _rank(accumulators: Mapping[int, _Accumulator], limit: int) -> list[RankedDocument]:
        if limit <= 0 or not accumulators:
            return []
        top = heapq.nsmallest(limit, accumulators.items(), key=lambda item: (-item[1].score, item[0]))
        return [
            RankedDocument(
                doc_id=doc_id,
                score=acc.score,
                matched_terms=MappingProxyType({key: frozenset(fields) for key, fields in acc.matched_terms.items()}),
            )
            for doc_id, acc in top
        ]

    def search(self, query_text: str, options: SearchOptions | None = None) -> SearchResponse:
        """Search the index and build hits with teasers."""

        options = options or self.options
        index_name = self.index.name
        with (
            create_span(
                "search.query",
                kind=SpanKind.INTERNAL,
                attributes={
                    "search.query": str(query_text)[:100],
                    "search.limit": options.limit,
                    "search.bool": options.combine_with.value,
                },
            ) as span,
            track_latency(SEARCH_LATENCY, index=index_name),
        ):
            started = time.perf_counter()
            query = self.parse(query_text, options)
            if query.is_empty():
                SEARCH_REQUESTS.labels(index=index_name, mode=options.combine_with.value, outcome="empty").inc()
                span.set_attribute("search.result_count", 0)
                return SearchResponse(
                    results=[],
                    stats=SearchStats(query=query.text, combine_with=options.combine_with.value),
                )

            accumulators, expanded = self._accumulate(query)
            ranked = self._rank(accumulators, options.limit)
            hits = [self._to_hit(doc, options) for doc in ranked]

            outcome = "hit" if hits else "miss"
            SEARCH_REQUESTS.labels(index=index_name, mode=options.combine_with.value, outcome=outcome).inc()
            span.set_attribute("search.result_count", len(hits))
            logger.debug("Query %r matched %d documents, returning %d", query.text, len(accumulators), len(hits))
            return SearchResponse(
                results=hits,
                stats=SearchStats(
                    query=query.text,
                    terms=list(query.terms),
                    combine_with=options.combine_with.value,
                    expanded_terms=expanded,
                    candidates=len(accumulators),
                    returned=len(hits),
                    search_time=time.perf_counter() - started,
                ),
            )

    def _to_hit(self, ranked: RankedDocument, options: SearchOptions) -> SearchHit:
        stored = self.index.get_document(ranked.doc_id) or {}
        return SearchHit(
            doc_id=ranked.doc_id,
            url=self.index.get_url(ranked.doc_id),
            score=ranked.score,
            matched_terms={key: tuple(sorted(fields)) for key, fields in sorted(ranked.matched_terms.items())},
            title=stored.get("title", ""),
            breadcrumbs=stored.get("breadcrumbs", ""),
            teaser=self.teaser_for(ranked, options),
        )

    def teaser_for(self, ranked: RankedDocument, options: SearchOptions | None = None) -> str:
        """Cut a teaser from the body, or from the first matched field when the body is empty."""

        options = options or self.options
        stored = self.index.get_document(ranked.doc_id)
        if not stored:
            return ""

        matched_fields = ranked.matched_fields
        candidates = list(_TEASER_FIELD_PREFERENCE)
        candidates.extend(name for name in self.index.field_names if name in matched_fields and name not in candidates)

        for field_name in candidates:
            text = stored.get(field_name, "")
            if text:
                return build_teaser(
                    text,
                    self.index.pipeline,
                    ranked.matched_terms.keys(),
                    word_count=options.teaser_word_count,
                    style=options.highlight,
                )
        return ""


def search(index: SearchIndex, query_text: str, options: SearchOptions | None = None) -> SearchResponse:
    """Search ``index`` for ``query_text``; a thin wrapper over ``SearchEngine``."""

    return SearchEngine(index, options=options).search(query_text)
