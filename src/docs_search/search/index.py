"""In-memory inverted index and its builder.

``IndexBuilder`` accepts documents, runs every configured field through the
schema's text pipeline, and accumulates one ``TokenTrie`` per field together
with per-document field lengths. ``build()`` seals the builder and returns an
immutable ``SearchIndex`` that any number of concurrent queries can share.
Content changes are handled by building a fresh index and swapping the
reference (see ``docs_search.search.holder``).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any
import warnings

from docs_search.observability import DOCUMENTS_INDEXED, INDEX_DOC_COUNT, create_span
from docs_search.search.analyzers import TextPipeline
from docs_search.search.errors import DuplicateDocumentWarning
from docs_search.search.schema import INDEX_FORMAT_VERSION, IndexSchema, create_default_schema
from docs_search.search.stats import FieldLengthStats, compute_field_length_stats, term_frequency_weight
from docs_search.search.trie import TokenTrie


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A page handed to the builder: numeric id, url and raw field text."""

    id: int
    url: str = ""
    fields: Mapping[str, str] = field(default_factory=dict)

    def text(self, field_name: str) -> str:
        value = self.fields.get(field_name)
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class SearchIndex:
    """Immutable index: per-field tries, document info and stored documents."""

    schema: IndexSchema
    doc_urls: Mapping[int, str]
    doc_info: Mapping[int, Mapping[str, int]]
    documents: Mapping[int, Mapping[str, str]]
    tries: Mapping[str, TokenTrie]
    version: str = INDEX_FORMAT_VERSION
    pipeline: TextPipeline = field(init=False, repr=False, compare=False)
    field_stats: Mapping[str, FieldLengthStats] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pipeline", self.schema.build_pipeline())
        object.__setattr__(self, "field_stats", MappingProxyType(compute_field_length_stats(self.doc_info)))

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def document_count(self) -> int:
        return len(self.doc_info)

    @property
    def field_names(self) -> tuple[str, ...]:
        return self.schema.field_names

    @property
    def doc_ids(self) -> list[int]:
        return sorted(self.doc_info)

    def __len__(self) -> int:
        return self.document_count

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self.doc_info

    def get_url(self, doc_id: int) -> str:
        return self.doc_urls.get(doc_id, "")

    def get_document(self, doc_id: int) -> Mapping[str, str] | None:
        return self.documents.get(doc_id)

    def field_length(self, doc_id: int, field_name: str) -> int:
        return self.doc_info.get(doc_id, {}).get(field_name, 0)

    def get_trie(self, field_name: str) -> TokenTrie | None:
        return self.tries.get(field_name)

    def vocabulary_size(self, field_name: str) -> int:
        trie = self.tries.get(field_name)
        return len(trie) if trie is not None else 0

    def tokenize(self, text: str) -> list[str]:
        """Tokenize text with the pipeline this index was built with."""
        return self.pipeline.tokenize(text)


class IndexBuilder:
    """Accumulate documents into per-field tries.

    Ids are caller supplied (``add_document``) or assigned densely in
    insertion order (``add_page``). Re-adding an id emits
    ``DuplicateDocumentWarning``: the later url, field lengths and stored
    text win, while postings merge (the later weight replaces the earlier one
    for shared tokens and tokens unique to the earlier version keep theirs).
    """

    def __init__(self, schema: IndexSchema | None = None) -> None:
        self.schema = schema or create_default_schema()
        self.pipeline = self.schema.build_pipeline()
        self._tries: dict[str, TokenTrie] = {name: TokenTrie() for name in self.schema.field_names}
        self._doc_urls: dict[int, str] = {}
        self._doc_info: dict[int, dict[str, int]] = {}
        self._documents: dict[int, dict[str, str]] = {}
        self._next_id = 0
        self._sealed = False

    def __len__(self) -> int:
        return len(self._doc_info)

    @property
    def next_id(self) -> int:
        return self._next_id

    def add_page(self, url: str, **fields: str) -> int:
        """Add a page under the next dense id and return that id."""

        doc_id = self._next_id
        self.add_document(Document(id=doc_id, url=url, fields=fields))
        return doc_id

    def add_document(self, document: Document) -> int:
        if self._sealed:
            raise RuntimeError("IndexBuilder has already been built; create a new builder to re-index")

        doc_id = document.id
        if isinstance(doc_id, bool) or not isinstance(doc_id, int) or doc_id < 0:
            msg = f"Document id must be a non-negative integer, got {doc_id!r}"
            raise ValueError(msg)

        if doc_id in self._doc_info:
            logger.warning("Document id %d added twice; later metadata replaces earlier", doc_id)
            warnings.warn(
                f"Document id {doc_id} was already indexed; metadata is overwritten and postings are merged",
                DuplicateDocumentWarning,
                stacklevel=2,
            )

        lengths: dict[str, int] = {}
        for field_name in self.schema.field_names:
            tokens = self.pipeline.tokenize(document.text(field_name))
            lengths[field_name] = len(tokens)
            trie = self._tries[field_name]
            for token, count in Counter(tokens).items():
                trie.add(token, doc_id, term_frequency_weight(count))

        self._doc_info[doc_id] = lengths
        self._doc_urls[doc_id] = document.url
        if self.schema.save_documents:
            stored = {name: document.text(name) for name in self.schema.field_names}
            stored[self.schema.ref] = str(doc_id)
            self._documents[doc_id] = stored

        self._next_id = max(self._next_id, doc_id + 1)
        DOCUMENTS_INDEXED.labels(index=self.schema.name).inc()
        return doc_id

    def add_documents(self, documents: Iterable[Document]) -> int:
        added = 0
        for document in documents:
            self.add_document(document)
            added += 1
        return added

    def build(self) -> SearchIndex:
        """Seal the builder and return the immutable index."""

        with create_span(
            "search.index.build",
            attributes={"search.index": self.schema.name, "search.documents": len(self._doc_info)},
        ):
            self._sealed = True
            index = SearchIndex(
                schema=self.schema,
                doc_urls=MappingProxyType(dict(self._doc_urls)),
                doc_info=MappingProxyType({doc_id: MappingProxyType(info) for doc_id, info in self._doc_info.items()}),
                documents=MappingProxyType(
                    {doc_id: MappingProxyType(stored) for doc_id, stored in self._documents.items()}
                ),
                tries=MappingProxyType(dict(self._tries)),
            )

        INDEX_DOC_COUNT.labels(index=self.schema.name).set(index.document_count)
        logger.info(
            "Built index '%s' with %d documents",
            self.schema.name,
            index.document_count,
            extra={"vocabulary": {name: len(trie) for name, trie in self._tries.items()}},
        )
        return index


def build_index(documents: Iterable[Document | Mapping[str, Any]], schema: IndexSchema | None = None) -> SearchIndex:
    """Build an index in one call.

    Mappings are treated as pages: an optional ``id`` (dense id otherwise),
    an optional ``url``, and field text under the schema's field names.
    """

    builder = IndexBuilder(schema)
    for document in documents:
        if isinstance(document, Document):
            builder.add_document(document)
            continue
        payload = dict(document)
        raw_id = payload.pop("id", None)
        url = str(payload.pop("url", "") or "")
        doc_id = builder.next_id if raw_id is None else int(raw_id)
        builder.add_document(Document(id=doc_id, url=url, fields=payload))
    return builder.build()
