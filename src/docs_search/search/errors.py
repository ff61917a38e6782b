"""Exceptions and warnings raised by the search stack."""

from __future__ import annotations


class SearchIndexError(Exception):
    """Base class for index build and load failures."""


class ConfigError(SearchIndexError, ValueError):
    """Raised when an index build configuration is malformed."""


class MalformedIndexError(SearchIndexError, ValueError):
    """Raised when a persisted index violates its structural invariants.

    ``key`` names the offending location in the artifact (for example
    ``index.index.body`` or ``documentStore.docInfo.12``).
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        if key:
            message = f"{message} (at '{key}')"
        super().__init__(message)


class DuplicateDocumentWarning(UserWarning):
    """Emitted when a document id is added to a builder more than once."""
