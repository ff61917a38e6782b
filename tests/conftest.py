"""Shared test fixtures and configuration."""

import os

import pytest

from docs_search.search.index import Document, IndexBuilder
from docs_search.search.schema import create_default_schema


# Complete test environment that overrides ALL configurable values
TEST_ENV = {
    "DOCS_SEARCH_LOG_LEVEL": "info",
    "DOCS_SEARCH_JSON_LOGS": "false",
    "DOCS_SEARCH_LIMIT_RESULTS": "30",
    "DOCS_SEARCH_TEASER_WORD_COUNT": "30",
    "DOCS_SEARCH_HIGHLIGHT": "html",
    "DOCS_SEARCH_COMBINE_WITH": "OR",
    "DOCS_SEARCH_EXPAND": "true",
    "DOCS_SEARCH_NORMALIZE_FIELD_LENGTH": "true",
    "DOCS_SEARCH_TITLE_BOOST": "2.0",
    "DOCS_SEARCH_BODY_BOOST": "1.0",
    "DOCS_SEARCH_BREADCRUMBS_BOOST": "1.0",
    "DOCS_SEARCH_INDEX_PATH": "searchindex.json",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin DOCS_SEARCH_* settings for every test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def sample_pages():
    """A handful of documentation pages covering all default fields."""
    return [
        {
            "url": "intro.html",
            "title": "Introduction",
            "body": "Welcome to the builder guide. The builder turns source files into a static site.",
            "breadcrumbs": "Guide » Introduction",
        },
        {
            "url": "install.html#install",
            "title": "Installation",
            "body": "Install the command line tool with cargo and verify the installation.",
            "breadcrumbs": "Guide » Installation",
        },
        {
            "url": "config.html",
            "title": "Configuration",
            "body": "Workspace configuration lives in a single file. Every workspace declares its targets.",
            "breadcrumbs": "Reference » Configuration",
        },
    ]


@pytest.fixture
def sample_index(sample_pages):
    """Built index over ``sample_pages`` with the default documentation schema."""
    builder = IndexBuilder(create_default_schema(name="sample"))
    for doc_id, page in enumerate(sample_pages):
        fields = {key: value for key, value in page.items() if key != "url"}
        builder.add_document(Document(id=doc_id, url=page["url"], fields=fields))
    return builder.build()
