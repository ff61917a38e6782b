"""Teaser extraction for search results.

A teaser is a bounded window of words taken from a document's stored text
around the first word whose analyzed form was matched by the query. The
window is measured in words, not characters, and is cut on word boundaries
of the original text so punctuation and casing survive.

This module is a read-only view over stored text; it never affects scoring.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence

from docs_search.search.analyzers import SeparatorTokenizer, TextPipeline, Token


ELLIPSIS = "…"

_HIGHLIGHT_MARKUP = {
    "html": ("<em>", "</em>"),
    "plain": ("[[", "]]"),
}
_HTML_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;"})
_SPLITTER = SeparatorTokenizer(r"\S+")


def find_match_words(
    words: Sequence[Token],
    pipeline: TextPipeline,
    matched_terms: Collection[str],
) -> list[int]:
    """Return positions of words whose analyzed forms are matched terms.

    A word like ``api-first`` analyzes to several tokens; it matches when any
    of them does.
    """

    if not matched_terms:
        return []
    hits: list[int] = []
    for idx, word in enumerate(words):
        if any(token.text in matched_terms for token in pipeline.analyze(word.text)):
            hits.append(idx)
    return hits


def window_bounds(total_words: int, anchor: int, word_count: int) -> tuple[int, int]:
    """Return ``[start, end)`` word indexes of a window centred on ``anchor``.

    The window is shifted, never shrunk, when the anchor is close to either
    end of the text.
    """

    if word_count <= 0 or total_words <= 0:
        return 0, 0
    if total_words <= word_count:
        return 0, total_words
    start = max(0, anchor - word_count // 2)
    end = start + word_count
    if end > total_words:
        end = total_words
        start = end - word_count
    return start, end


def _render_word(text: str, highlighted: bool, style: str) -> str:
    escaped = text.translate(_HTML_ESCAPES) if style == "html" else text
    if not highlighted or style not in _HIGHLIGHT_MARKUP:
        return escaped
    opening, closing = _HIGHLIGHT_MARKUP[style]
    return f"{opening}{escaped}{closing}"


def build_teaser(
    text: str,
    pipeline: TextPipeline,
    matched_terms: Collection[str],
    *,
    word_count: int = 30,
    style: str = "html",
) -> str:
    """Build a teaser of at most ``word_count`` words.

    Args:
        text: Stored original field text.
        pipeline: Pipeline the index was built with, used to recognise matches.
        matched_terms: Index tokens the query matched for this document.
        word_count: Maximum number of words in the window.
        style: "html" wraps matches in ``<em>`` and escapes markup, "plain"
            wraps them in ``[[ ]]``, "none" leaves the text as is.

    Returns:
        The teaser, with an ellipsis on each side that was cut. When no word
        matches, the window starts at the beginning of the text.
    """
    if not text or word_count <= 0:
        return ""

    words = list(_SPLITTER(text))
    if not words:
        return ""

    hits = find_match_words(words, pipeline, matched_terms)
    anchor = hits[0] if hits else 0
    start, end = window_bounds(len(words), anchor, word_count) if hits else (0, min(word_count, len(words)))
    hit_set = set(hits)

    rendered = " ".join(_render_word(words[idx].text, idx in hit_set, style) for idx in range(start, end))
    if start > 0:
        rendered = f"{ELLIPSIS} {rendered}"
    if end < len(words):
        rendered = f"{rendered} {ELLIPSIS}"
    return rendered
