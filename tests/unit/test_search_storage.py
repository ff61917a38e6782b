"""Unit tests for searchindex artifact persistence."""

from pathlib import Path

import orjson
import pytest

from docs_search.search.engine import search
from docs_search.search.errors import MalformedIndexError
from docs_search.search.index import Document, build_index
from docs_search.search.query import CombineMode, SearchOptions
from docs_search.search.schema import create_default_schema
from docs_search.search.storage import (
    JS_PREFIX,
    dump_index,
    dumps_index,
    load_index,
    loads_index,
    read_index,
    save_index,
)


@pytest.fixture
def artifact(sample_index):
    return orjson.loads(dumps_index(sample_index))


@pytest.mark.unit
class TestDumpIndex:
    """Artifact layout matches the elasticlunr searchindex shape."""

    def test_top_level_shape(self, sample_index):
        data = dump_index(sample_index)

        assert set(data) == {"doc_urls", "index", "results_options", "search_options"}
        assert data["doc_urls"] == ["intro.html", "install.html#install", "config.html"]
        body = data["index"]
        assert body["fields"] == ["title", "body", "breadcrumbs"]
        assert body["pipeline"] == ["trimmer", "stopWordFilter", "stemmer"]
        assert body["ref"] == "id"
        assert body["lang"] == "English"
        assert body["version"] == "0.9.5"
        assert set(body["index"]) == {"title", "body", "breadcrumbs"}

    def test_document_store(self, sample_index):
        store = dump_index(sample_index)["index"]["documentStore"]

        assert store["length"] == 3
        assert store["save"] is True
        assert store["docInfo"]["0"]["title"] == 1
        assert store["docs"]["1"]["title"] == "Installation"
        assert store["docs"]["1"]["id"] == "1"

    def test_default_options(self, sample_index):
        data = dump_index(sample_index)

        assert data["results_options"] == {"limit_results": 30, "teaser_word_count": 30}
        assert data["search_options"]["bool"] == "OR"
        assert data["search_options"]["expand"] is True
        assert data["search_options"]["fields"]["title"] == {"boost": 2.0}

    def test_sparse_ids_leave_empty_urls(self):
        index = build_index([Document(id=0, url="a.html", fields={"body": "a"}), Document(id=3, url="d.html")])

        assert dump_index(index)["doc_urls"] == ["a.html", "", "", "d.html"]

    def test_without_stored_documents(self):
        index = build_index([{"title": "Cargo"}], create_default_schema(save_documents=False))

        store = dump_index(index)["index"]["documentStore"]

        assert store["save"] is False
        assert "docs" not in store


@pytest.mark.unit
class TestLoadIndex:
    """Loading restores an index that answers queries identically."""

    def test_round_trip_preserves_results(self, sample_index):
        loaded = loads_index(dumps_index(sample_index))

        for text in ("builder", "installation", "workspace configuration", "guide"):
            before = search(sample_index, text)
            after = search(loaded.index, text)
            assert after.doc_ids == before.doc_ids
            assert [hit.score for hit in after.results] == pytest.approx([hit.score for hit in before.results])
            assert [hit.teaser for hit in after.results] == [hit.teaser for hit in before.results]

    def test_round_trip_preserves_options(self, sample_index):
        options = SearchOptions(combine_with="AND", expand=False, limit=5, teaser_word_count=12)

        loaded = loads_index(dumps_index(sample_index, options))

        assert loaded.options.combine_with is CombineMode.AND
        assert loaded.options.expand is False
        assert loaded.options.limit == 5
        assert loaded.options.teaser_word_count == 12
        assert loaded.index.schema.get_boost("title") == 2.0

    def test_js_wrapper(self, sample_index):
        raw = dumps_index(sample_index, js=True)

        assert raw.startswith(JS_PREFIX.encode("utf-8"))
        assert raw.endswith(b");")
        assert loads_index(raw).index.document_count == 3

    def test_accepts_text(self, sample_index):
        assert loads_index(dumps_index(sample_index).decode("utf-8")).index.document_count == 3

    def test_save_and_read_by_suffix(self, sample_index, tmp_path):
        js_path = save_index(sample_index, tmp_path / "site" / "searchindex.js")
        json_path = save_index(sample_index, tmp_path / "searchindex.json")

        assert js_path.read_bytes().startswith(b"Object.assign(window.search, ")
        assert json_path.read_bytes().startswith(b"{")
        loaded = read_index(js_path)
        assert loaded.index.name == "searchindex"
        assert loaded.index.doc_ids == [0, 1, 2]
        assert read_index(json_path).index.get_url(2) == "config.html"

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_index(tmp_path / "missing.json")


@pytest.mark.unit
class TestMalformedArtifacts:
    """Structural violations name the offending key."""

    def _key(self, data):
        with pytest.raises(MalformedIndexError) as excinfo:
            load_index(data)
        return excinfo.value.key

    def test_invalid_json(self):
        with pytest.raises(MalformedIndexError, match="not valid JSON") as excinfo:
            loads_index(b"{not json")
        assert excinfo.value.key == "$"

    def test_invalid_utf8(self):
        with pytest.raises(MalformedIndexError, match="not valid JSON") as excinfo:
            loads_index(b'{"doc_urls": ["\xff"]}')
        assert excinfo.value.key == "$"

    def test_invalid_utf8_inside_js_wrapper(self):
        with pytest.raises(MalformedIndexError) as excinfo:
            loads_index(b'Object.assign(window.search, {"doc_urls": ["\xff"]});')
        assert excinfo.value.key == "$"

    def test_tries_must_be_an_object(self, artifact):
        artifact["index"]["index"] = ["title", "body", "breadcrumbs"]

        assert self._key(artifact) == "index.index"

    def test_missing_doc_urls(self, artifact):
        del artifact["doc_urls"]

        assert self._key(artifact) == "doc_urls"

    def test_missing_fields(self, artifact):
        del artifact["index"]["fields"]

        assert self._key(artifact) == "index.fields"

    def test_field_without_trie(self, artifact):
        del artifact["index"]["index"]["body"]

        assert self._key(artifact) == "index.index.body"

    def test_unknown_pipeline_function(self, artifact):
        artifact["index"]["pipeline"] = ["trimmer", "lemmatizer"]

        assert self._key(artifact) == "index.pipeline"

    def test_document_not_addressable_in_doc_urls(self, artifact):
        artifact["doc_urls"] = artifact["doc_urls"][:1]

        assert self._key(artifact) == "index.documentStore.docInfo.1"

    def test_length_mismatch(self, artifact):
        artifact["index"]["documentStore"]["length"] = 7

        assert self._key(artifact) == "index.documentStore.length"

    def test_trie_node_df_mismatch(self, artifact):
        artifact["index"]["index"]["title"]["root"]["df"] = 3

        assert self._key(artifact) == "index.index.title.root.df"

    def test_bad_search_options(self, artifact):
        artifact["search_options"]["bool"] = "XOR"

        assert self._key(artifact) == "search_options"

    def test_error_message_includes_key(self, artifact):
        del artifact["index"]["index"]["title"]

        with pytest.raises(MalformedIndexError, match=r"at 'index\.index\.title'"):
            load_index(artifact)


@pytest.fixture
def elasticlunr_artifact_path():
    return Path(__file__).parent.parent / "fixtures" / "zap_searchindex.js"


@pytest.mark.unit
class TestElasticlunrArtifact:
    """A searchindex.js produced by elasticlunr loads and answers queries."""

    def test_loads(self, elasticlunr_artifact_path):
        loaded = read_index(elasticlunr_artifact_path)

        assert loaded.index.document_count == 10
        assert loaded.index.field_names == ("title", "body", "breadcrumbs")
        assert loaded.index.get_url(5) == "introduction.html#zap-and-rebar3"
        assert loaded.options.combine_with is CombineMode.OR
        assert loaded.options.expand is True
        assert loaded.index.schema.get_boost("title") == 2.0

    def test_answers_queries(self, elasticlunr_artifact_path):
        loaded = read_index(elasticlunr_artifact_path)

        assert search(loaded.index, "zap", loaded.options).doc_ids == [5, 6, 2, 0, 3]
        assert search(loaded.index, "rebar3", loaded.options).doc_ids == [5]
        assert search(loaded.index, "Mix", loaded.options).doc_ids[0] == 6

    def test_rebuilt_title_trie_matches(self, elasticlunr_artifact_path):
        data = orjson.loads(_unwrap_fixture(elasticlunr_artifact_path))
        stored = data["index"]["documentStore"]["docs"]
        documents = [
            Document(id=int(doc_id), url=data["doc_urls"][int(doc_id)], fields={"title": doc["title"]})
            for doc_id, doc in stored.items()
        ]

        rebuilt = build_index(documents, create_default_schema())

        assert rebuilt.get_trie("title").to_dict() == data["index"]["index"]["title"]


def _unwrap_fixture(path):
    raw = path.read_bytes().strip()
    return raw[len(JS_PREFIX) : -len(b");")]
