"""Unit tests for DOCS_SEARCH_* settings."""

from pathlib import Path

from pydantic import ValidationError
import pytest

from docs_search.config import Settings
from docs_search.search.query import CombineMode


@pytest.mark.unit
class TestSettings:
    """Environment variables seed the default search options."""

    def test_defaults_from_test_environment(self):
        settings = Settings()

        assert settings.limit_results == 30
        assert settings.teaser_word_count == 30
        assert settings.combine_with == "OR"
        assert settings.expand is True
        assert settings.index_path == Path("searchindex.json")
        assert settings.field_boosts() == {"title": 2.0, "body": 1.0, "breadcrumbs": 1.0}

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DOCS_SEARCH_COMBINE_WITH", "and")
        monkeypatch.setenv("DOCS_SEARCH_LIMIT_RESULTS", "5")
        monkeypatch.setenv("DOCS_SEARCH_TITLE_BOOST", "4")
        monkeypatch.setenv("DOCS_SEARCH_HIGHLIGHT", "plain")

        settings = Settings()

        assert settings.combine_with == "AND"
        assert settings.limit_results == 5
        assert settings.field_boosts()["title"] == 4.0
        assert settings.highlight == "plain"

    def test_search_options(self, monkeypatch):
        monkeypatch.setenv("DOCS_SEARCH_EXPAND", "false")
        monkeypatch.setenv("DOCS_SEARCH_NORMALIZE_FIELD_LENGTH", "false")

        options = Settings().search_options()

        assert options.combine_with is CombineMode.OR
        assert options.expand is False
        assert options.normalize_field_length is False
        assert options.limit == 30

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("DOCS_SEARCH_LIMIT_RESULTS", "0"),
            ("DOCS_SEARCH_COMBINE_WITH", "XOR"),
            ("DOCS_SEARCH_BODY_BOOST", "-1"),
            ("DOCS_SEARCH_HIGHLIGHT", "bold"),
        ],
    )
    def test_invalid_values(self, monkeypatch, key, value):
        monkeypatch.setenv(key, value)

        with pytest.raises(ValidationError):
            Settings()

    def test_unrelated_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("DOCS_SEARCH_SOMETHING_ELSE", "1")

        assert Settings().limit_results == 30
