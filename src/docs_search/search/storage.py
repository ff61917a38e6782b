"""Persistence for search indexes.

Indexes are stored in the elasticlunr-compatible artifact shape used by
static documentation generators:

* ``doc_urls`` - list of url strings, position = document id
* ``index`` - ``documentStore`` (``docInfo`` token counts, stored ``docs``,
  ``length``, ``save``), ``fields``, per-field tries under ``index``,
  ``lang``, ``pipeline``, ``ref`` and ``version``
* ``search_options`` / ``results_options`` - default query options

The artifact is written either as plain JSON (``searchindex.json``) or
wrapped for direct inclusion in a page (``searchindex.js``:
``Object.assign(window.search, {...});``). Loading validates every structural
invariant and raises ``MalformedIndexError`` naming the offending key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from types import MappingProxyType
from typing import Any

import orjson

from docs_search.observability import INDEX_DOC_COUNT, INDEX_LOAD_ERRORS
from docs_search.search.analyzers import unknown_pipeline_functions
from docs_search.search.errors import ConfigError, MalformedIndexError
from docs_search.search.index import SearchIndex
from docs_search.search.query import SearchOptions
from docs_search.search.schema import INDEX_FORMAT_VERSION, FieldSpec, IndexSchema
from docs_search.search.trie import TokenTrie


logger = logging.getLogger(__name__)

JS_PREFIX = "Object.assign(window.search, "
JS_SUFFIX = ");"
_JS_WRAPPER = re.compile(rb"^\s*Object\.assign\(\s*window\.search\s*,\s*(?P<body>.*)\)\s*;?\s*$", re.DOTALL)


@dataclass(frozen=True)
class LoadedIndex:
    """An index read from an artifact together with its default options."""

    index: SearchIndex
    options: SearchOptions


def dump_index(index: SearchIndex, options: SearchOptions | None = None) -> dict[str, Any]:
    """Return the artifact as plain Python data."""

    schema = index.schema
    options = options or SearchOptions()
    size = max(index.doc_ids, default=-1) + 1
    doc_urls = [index.get_url(doc_id) for doc_id in range(size)]

    ordered_ids = sorted(index.doc_info, key=str)
    document_store: dict[str, Any] = {
        "docInfo": {str(doc_id): dict(index.doc_info[doc_id]) for doc_id in ordered_ids},
        "length": index.document_count,
        "save": schema.save_documents,
    }
    if schema.save_documents:
        document_store["docs"] = {
            str(doc_id): dict(sorted(index.documents[doc_id].items()))
            for doc_id in ordered_ids
            if doc_id in index.documents
        }

    return {
        "doc_urls": doc_urls,
        "index": {
            "documentStore": document_store,
            "fields": list(schema.field_names),
            "index": {name: index.tries[name].to_dict() for name in schema.field_names},
            "lang": schema.lang,
            "pipeline": list(schema.pipeline),
            "ref": schema.ref,
            "version": index.version,
        },
        "results_options": options.to_results_options_dict(),
        "search_options": options.to_search_options_dict({entry.name: entry.boost for entry in schema.fields}),
    }


def dumps_index(index: SearchIndex, options: SearchOptions | None = None, *, js: bool = False) -> bytes:
    """Serialize to JSON bytes, optionally wrapped as ``searchindex.js``."""

    payload = orjson.dumps(dump_index(index, options))
    if js:
        return JS_PREFIX.encode("utf-8") + payload + JS_SUFFIX.encode("utf-8")
    return payload


def save_index(index: SearchIndex, path: Path, options: SearchOptions | None = None) -> Path:
    """Write the artifact; a ``.js`` suffix selects the JS wrapper."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dumps_index(index, options, js=path.suffix == ".js")
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)
    logger.info("Saved index '%s' (%d documents) to %s", index.name, index.document_count, path)
    return path


def _unwrap(raw: str | bytes) -> bytes:
    payload = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
    match = _JS_WRAPPER.match(payload)
    return match.group("body") if match else payload


def loads_index(raw: str | bytes, *, name: str = "default") -> LoadedIndex:
    """Parse JSON or JS-wrapped artifact text."""

    try:
        data = orjson.loads(_unwrap(raw))
    except orjson.JSONDecodeError as exc:
        INDEX_LOAD_ERRORS.labels(reason="decode").inc()
        raise MalformedIndexError(f"Index payload is not valid JSON: {exc}", key="$") from exc
    return load_index(data, name=name)


def read_index(path: Path) -> LoadedIndex:
    path = Path(path)
    loaded = loads_index(path.read_bytes(), name=path.stem)
    logger.info("Loaded index '%s' (%d documents) from %s", loaded.index.name, loaded.index.document_count, path)
    return loaded


def load_index(data: Any, *, name: str = "default") -> LoadedIndex:
    """Validate artifact data and rebuild the index."""

    try:
        loaded = _load_index(data, name=name)
    except MalformedIndexError as exc:
        INDEX_LOAD_ERRORS.labels(reason="structure").inc()
        logger.warning("Rejected index artifact: %s", exc)
        raise
    INDEX_DOC_COUNT.labels(index=name).set(loaded.index.document_count)
    return loaded


def _require(mapping: Any, key: str, path: str) -> Any:
    if not isinstance(mapping, Mapping):
        raise MalformedIndexError("Expected an object", key=path)
    if key not in mapping:
        raise MalformedIndexError(f"Missing required key '{key}'", key=f"{path}.{key}" if path != "$" else key)
    return mapping[key]


def _parse_doc_id(raw_id: Any, key: str) -> int:
    try:
        doc_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise MalformedIndexError(f"Document id {raw_id!r} is not an integer", key=key) from exc
    if doc_id < 0:
        raise MalformedIndexError(f"Document id {doc_id} is negative", key=key)
    return doc_id


def _load_index(data: Any, *, name: str) -> LoadedIndex:
    doc_urls = _require(data, "doc_urls", "$")
    if not isinstance(doc_urls, list) or not all(isinstance(url, str) for url in doc_urls):
        raise MalformedIndexError("doc_urls must be a list of strings", key="doc_urls")

    body = _require(data, "index", "$")
    field_names = _require(body, "fields", "index")
    if not isinstance(field_names, list) or not all(isinstance(item, str) for item in field_names):
        raise MalformedIndexError("fields must be a list of field names", key="index.fields")

    pipeline = _require(body, "pipeline", "index")
    if not isinstance(pipeline, list):
        raise MalformedIndexError("pipeline must be a list of transform names", key="index.pipeline")
    unknown = unknown_pipeline_functions(pipeline)
    if unknown:
        raise MalformedIndexError(f"Unrecognized pipeline function(s) {unknown}", key="index.pipeline")

    version = str(body.get("version", INDEX_FORMAT_VERSION))
    if version != INDEX_FORMAT_VERSION:
        logger.warning("Index format version %s differs from %s", version, INDEX_FORMAT_VERSION)

    try:
        options = SearchOptions.from_artifact(data.get("search_options"), data.get("results_options"))
    except (AttributeError, TypeError, ValueError) as exc:
        raise MalformedIndexError(f"Invalid search options: {exc}", key="search_options") from exc
    boosts = {name_: boost for name_, boost in options.field_boosts.items() if name_ in field_names}
    try:
        schema = IndexSchema(
            fields=[FieldSpec(field_name, boosts.get(field_name, 1.0)) for field_name in field_names],
            ref=str(body.get("ref", "id")),
            pipeline=pipeline,
            lang=str(body.get("lang", "English")),
            save_documents=bool(_require(_require(body, "documentStore", "index"), "save", "index.documentStore")),
            name=name,
        )
    except ConfigError as exc:
        raise MalformedIndexError(str(exc), key="index.fields") from exc

    raw_tries = _require(body, "index", "index")
    if not isinstance(raw_tries, Mapping):
        raise MalformedIndexError("index must map field names to tries", key="index.index")
    tries: dict[str, TokenTrie] = {}
    for field_name in field_names:
        key = f"index.index.{field_name}"
        if field_name not in raw_tries:
            raise MalformedIndexError(f"Field '{field_name}' has no trie", key=key)
        tries[field_name] = TokenTrie.from_dict(raw_tries[field_name], key=key)

    store = body["documentStore"]
    raw_info = _require(store, "docInfo", "index.documentStore")
    if not isinstance(raw_info, Mapping):
        raise MalformedIndexError("docInfo must be an object", key="index.documentStore.docInfo")

    doc_info: dict[int, Mapping[str, int]] = {}
    for raw_id, counts in raw_info.items():
        key = f"index.documentStore.docInfo.{raw_id}"
        doc_id = _parse_doc_id(raw_id, key)
        if doc_id >= len(doc_urls):
            raise MalformedIndexError(f"Document {doc_id} has no entry in doc_urls", key=key)
        if not isinstance(counts, Mapping):
            raise MalformedIndexError("docInfo entry must be an object", key=key)
        try:
            doc_info[doc_id] = MappingProxyType({field_name: int(counts.get(field_name, 0)) for field_name in field_names})
        except (TypeError, ValueError) as exc:
            raise MalformedIndexError(f"Invalid field length: {exc}", key=key) from exc

    declared = store.get("length")
    if declared is not None and declared != len(doc_info):
        raise MalformedIndexError(
            f"documentStore.length is {declared!r} but docInfo lists {len(doc_info)} documents",
            key="index.documentStore.length",
        )

    for field_name, trie in tries.items():
        for doc_id in sorted(trie.doc_ids()):
            if doc_id >= len(doc_urls):
                raise MalformedIndexError(
                    f"Posting references document {doc_id} absent from doc_urls",
                    key=f"index.index.{field_name}",
                )
            if doc_id not in doc_info:
                raise MalformedIndexError(
                    f"Posting references document {doc_id} absent from docInfo",
                    key=f"index.index.{field_name}",
                )

    documents: dict[int, Mapping[str, str]] = {}
    raw_docs = store.get("docs") or {}
    if not isinstance(raw_docs, Mapping):
        raise MalformedIndexError("docs must be an object", key="index.documentStore.docs")
    for raw_id, stored in raw_docs.items():
        key = f"index.documentStore.docs.{raw_id}"
        doc_id = _parse_doc_id(raw_id, key)
        if not isinstance(stored, Mapping):
            raise MalformedIndexError("Stored document must be an object", key=key)
        documents[doc_id] = MappingProxyType({str(k): "" if v is None else str(v) for k, v in stored.items()})

    index = SearchIndex(
        schema=schema,
        doc_urls=MappingProxyType({doc_id: doc_urls[doc_id] for doc_id in doc_info}),
        doc_info=MappingProxyType(doc_info),
        documents=MappingProxyType(documents),
        tries=MappingProxyType(tries),
        version=version,
    )
    return LoadedIndex(index=index, options=options)
