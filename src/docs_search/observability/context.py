"""Correlation fields shared by log records and spans.

The fields live in a single :class:`~contextvars.ContextVar` holding a dict with
``trace_id``, ``span_id`` and, once an index is bound, ``index``. Updates always
replace the dict so a copied context never sees later writes.
"""

from __future__ import annotations

from contextvars import ContextVar
import secrets


trace_context: ContextVar[dict | None] = ContextVar("docs_search_trace_context", default=None)


def _fresh_ids() -> dict[str, str]:
    return {"trace_id": secrets.token_hex(16), "span_id": secrets.token_hex(8)}


def get_trace_context() -> dict:
    """Return the correlation fields, minting a trace on first access."""
    current = trace_context.get()
    if not current or not current.get("trace_id"):
        current = _fresh_ids()
        trace_context.set(current)
    return current


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({**extra, "trace_id": trace_id, "span_id": span_id})


def update_span_id(span_id: str) -> None:
    trace_context.set({**(trace_context.get() or {}), "span_id": span_id})


def bind_index_name(name: str) -> None:
    """Tag subsequent log lines with the index being served."""
    trace_context.set({**get_trace_context(), "index": name})
