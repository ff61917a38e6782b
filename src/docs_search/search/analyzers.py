"""Analyzer utilities for the documentation search stack.

The analyzers mirror the composable tokenizer/filter design used by Whoosh
and the lunr family: a tokenizer splits raw field text into offset-carrying
tokens and an ordered list of named filters normalizes them. The same
pipeline runs at index time and at query time, so the filter names are
persisted alongside the index and resolved through ``PIPELINE_FUNCTIONS``
when an artifact is loaded.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any, Protocol

from docs_search.search.errors import ConfigError
from docs_search.search.stemmer import porter_stem


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class SeparatorTokenizer:
    """Split text on runs of whitespace and hyphens, keeping char offsets."""

    def __init__(self, pattern: str = r"[^\s\-]+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class TrimmerFilter:
    """Strips leading and trailing non-word characters, dropping empties."""

    _LEADING = re.compile(r"^\W+", re.UNICODE)
    _TRAILING = re.compile(r"\W+$", re.UNICODE)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            trimmed = self._TRAILING.sub("", self._LEADING.sub("", token.text))
            if not trimmed:
                continue
            if trimmed == token.text:
                yield token
            else:
                yield token.copy_with(text=trimmed)


# The default English stop list shipped with lunr/elasticlunr.
DEFAULT_STOPWORDS = (
    "a",
    "able",
    "about",
    "across",
    "after",
    "all",
    "almost",
    "also",
    "am",
    "among",
    "an",
    "and",
    "any",
    "are",
    "as",
    "at",
    "be",
    "because",
    "been",
    "but",
    "by",
    "can",
    "cannot",
    "could",
    "dear",
    "did",
    "do",
    "does",
    "either",
    "else",
    "ever",
    "every",
    "for",
    "from",
    "get",
    "got",
    "had",
    "has",
    "have",
    "he",
    "her",
    "hers",
    "him",
    "his",
    "how",
    "however",
    "i",
    "if",
    "in",
    "into",
    "is",
    "it",
    "its",
    "just",
    "least",
    "let",
    "like",
    "likely",
    "may",
    "me",
    "might",
    "most",
    "must",
    "my",
    "neither",
    "no",
    "nor",
    "not",
    "of",
    "off",
    "often",
    "on",
    "only",
    "or",
    "other",
    "our",
    "own",
    "rather",
    "said",
    "say",
    "says",
    "she",
    "should",
    "since",
    "so",
    "some",
    "than",
    "that",
    "the",
    "their",
    "them",
    "then",
    "there",
    "these",
    "they",
    "this",
    "tis",
    "to",
    "too",
    "twas",
    "us",
    "wants",
    "was",
    "we",
    "were",
    "what",
    "when",
    "where",
    "which",
    "while",
    "who",
    "whom",
    "why",
    "will",
    "with",
    "would",
    "yet",
    "you",
    "your",
)


class StopWordFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class StemmerFilter:
    """Applies the pinned Porter stemmer."""

    def __init__(self, stem: Callable[[str], str] = porter_stem) -> None:
        self._stem = stem

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            stemmed = self._stem(token.text)
            if not stemmed:
                continue
            yield token if stemmed == token.text else token.copy_with(text=stemmed)


# Persisted transform names, in the order the artifact records them.
PIPELINE_FUNCTIONS: dict[str, Callable[[], TokenFilter]] = {
    "trimmer": TrimmerFilter,
    "stopWordFilter": StopWordFilter,
    "stemmer": StemmerFilter,
}

DEFAULT_PIPELINE: tuple[str, ...] = ("trimmer", "stopWordFilter", "stemmer")


def unknown_pipeline_functions(names: Iterable[str]) -> list[str]:
    """Return the names that have no registered transform."""

    return [name for name in names if name not in PIPELINE_FUNCTIONS]


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        if not isinstance(text, str) or not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class TextPipeline:
    """Named-transform pipeline shared by the index builder and the query engine.

    ``TextPipeline(("trimmer", "stopWordFilter", "stemmer"))`` reproduces the
    default lunr English pipeline. Text is always split and lowercased before
    the named transforms run.
    """

    def __init__(self, names: Sequence[str] = DEFAULT_PIPELINE) -> None:
        unknown = unknown_pipeline_functions(names)
        if unknown:
            msg = f"Unknown pipeline function(s) {unknown}. Available: {sorted(PIPELINE_FUNCTIONS)}"
            raise ConfigError(msg)
        self.names: tuple[str, ...] = tuple(names)
        filters: list[TokenFilter] = [LowercaseFilter()]
        filters.extend(PIPELINE_FUNCTIONS[name]() for name in self.names)
        self._analyzer = AnalyzerPipeline(SeparatorTokenizer(), filters)

    def analyze(self, text: str) -> list[Token]:
        """Return normalized tokens with their offsets in ``text``."""

        return self._analyzer(text)

    def tokenize(self, text: str) -> list[str]:
        """Return normalized token texts in document order."""

        return [token.text for token in self._analyzer(text)]

    def normalize_word(self, word: str) -> str | None:
        """Run a single word through the pipeline, ``None`` when it is filtered out."""

        tokens = self._analyzer(word)
        return tokens[0].text if tokens else None

    def __repr__(self) -> str:
        return f"TextPipeline({list(self.names)!r})"


def tokenize(text: str, pipeline: Sequence[str] = DEFAULT_PIPELINE) -> list[str]:
    """Tokenize ``text`` with a pipeline built from transform names."""

    return TextPipeline(pipeline).tokenize(text)
