"""Logging, tracing and metrics shared by the index builder and query engine."""

from docs_search.observability.context import get_trace_context, set_trace_context, trace_context
from docs_search.observability.logging import JsonFormatter, configure_logging
from docs_search.observability.metrics import (
    DOCUMENTS_INDEXED,
    INDEX_DOC_COUNT,
    INDEX_LOAD_ERRORS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    MetricBridge,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from docs_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "DOCUMENTS_INDEXED",
    "INDEX_DOC_COUNT",
    "INDEX_LOAD_ERRORS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "JsonFormatter",
    "MetricBridge",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
