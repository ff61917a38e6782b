"""Unit tests for result teaser extraction."""

import pytest

from docs_search.search.analyzers import SeparatorTokenizer, TextPipeline
from docs_search.search.teaser import ELLIPSIS, build_teaser, find_match_words, window_bounds


@pytest.fixture
def pipeline():
    return TextPipeline()


@pytest.mark.unit
class TestWindowBounds:
    """Windows are shifted, never shrunk, near the edges."""

    def test_centred(self):
        assert window_bounds(100, 50, 10) == (45, 55)

    def test_shifted_at_start(self):
        assert window_bounds(100, 2, 10) == (0, 10)

    def test_shifted_at_end(self):
        assert window_bounds(100, 98, 10) == (90, 100)

    def test_short_text(self):
        assert window_bounds(4, 3, 10) == (0, 4)

    def test_degenerate(self):
        assert window_bounds(0, 0, 10) == (0, 0)
        assert window_bounds(10, 0, 0) == (0, 0)


@pytest.mark.unit
class TestFindMatchWords:
    def test_matches_analyzed_forms(self, pipeline):
        words = list(SeparatorTokenizer(r"\S+")("Building the Workspaces, quickly"))

        assert find_match_words(words, pipeline, {"build", "workspac"}) == [0, 2]

    def test_hyphenated_word_matches_any_part(self, pipeline):
        words = list(SeparatorTokenizer(r"\S+")("an api-first design"))

        assert find_match_words(words, pipeline, {"first"}) == [1]

    def test_no_terms(self, pipeline):
        assert find_match_words([], pipeline, set()) == []


@pytest.mark.unit
class TestBuildTeaser:
    """Teasers keep original casing and punctuation."""

    def test_highlights_in_html(self, pipeline):
        teaser = build_teaser("Install <cargo> & build.", pipeline, {"build"})

        assert teaser == "Install &lt;cargo&gt; &amp; <em>build.</em>"

    def test_plain_style(self, pipeline):
        assert build_teaser("Install and build", pipeline, {"build"}, style="plain") == "Install and [[build]]"

    def test_none_style(self, pipeline):
        assert build_teaser("Install <and> build", pipeline, {"build"}, style="none") == "Install <and> build"

    def test_no_match_uses_leading_words(self, pipeline):
        text = " ".join(f"w{idx}" for idx in range(10))

        assert build_teaser(text, pipeline, {"cargo"}, word_count=3) == f"w0 w1 w2 {ELLIPSIS}"

    def test_window_around_first_match(self, pipeline):
        text = " ".join(["filler"] * 20 + ["cargo"] + ["filler"] * 20)

        teaser = build_teaser(text, pipeline, {"cargo"}, word_count=3)

        assert teaser == f"{ELLIPSIS} filler <em>cargo</em> filler {ELLIPSIS}"

    def test_empty_text(self, pipeline):
        assert build_teaser("", pipeline, {"cargo"}) == ""
        assert build_teaser("cargo", pipeline, {"cargo"}, word_count=0) == ""
