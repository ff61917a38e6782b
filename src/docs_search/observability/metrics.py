"""Prometheus metrics for indexing and query latency, mirrored to OpenTelemetry.

Each metric is declared once through :func:`_declare`, which registers the
Prometheus collector and lazily creates the matching OTel instrument on first
use. Gauges are forwarded to OTel as up/down counters fed with deltas.
"""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any, Literal

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator, Sequence


MetricKind = Literal["counter", "histogram", "gauge"]

_LATENCY_BUCKETS = (0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25)

_state: dict[str, Any] = {"provider": None, "meter": None}


def init_metrics(
    service_name: str = "docs-search",
    resource_attributes: dict[str, str] | None = None,
) -> MeterProvider:
    """Install a meter provider once; later calls return the same provider."""
    if isinstance(_state["provider"], MeterProvider):
        return _state["provider"]

    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = MeterProvider(resource=resource)
    otel_metrics.set_meter_provider(provider)
    _state["provider"] = provider
    _state["meter"] = otel_metrics.get_meter(__name__)
    return provider


def _meter():
    if _state["meter"] is None:
        init_metrics()
    return _state["meter"]


class _LabelledMetric:
    """A :class:`MetricBridge` with its label values filled in."""

    __slots__ = ("_bridge", "_labels")

    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._bridge.observe(self._labels, value)

    def set(self, value: float) -> None:
        self._bridge.set(self._labels, value)


class MetricBridge:
    """One metric recorded to a Prometheus collector and an OTel instrument."""

    def __init__(
        self, collector: Counter | Histogram | Gauge, *, name: str, kind: MetricKind, description: str
    ) -> None:
        self.name = name
        self.kind = kind
        self._collector = collector
        self._description = description
        self._instrument = None
        self._gauge_values: dict[tuple[tuple[str, str], ...], float] = {}

    def labels(self, **labels: str) -> _LabelledMetric:
        return _LabelledMetric(self, labels)

    @property
    def instrument(self):
        if self._instrument is None:
            meter = _meter()
            if self.kind == "counter":
                self._instrument = meter.create_counter(self.name, description=self._description)
            elif self.kind == "histogram":
                self._instrument = meter.create_histogram(self.name, description=self._description)
            else:
                self._instrument = meter.create_up_down_counter(self.name, description=self._description)
        return self._instrument

    def inc(self, labels: dict[str, str], amount: float) -> None:
        self._collector.labels(**labels).inc(amount)
        self.instrument.add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        self._collector.labels(**labels).observe(value)
        self.instrument.record(value, labels)

    def set(self, labels: dict[str, str], value: float) -> None:
        self._collector.labels(**labels).set(value)
        key = tuple(sorted(labels.items()))
        delta = value - self._gauge_values.get(key, 0.0)
        self._gauge_values[key] = value
        if delta:
            self.instrument.add(delta, labels)


def _declare(kind: MetricKind, name: str, description: str, labels: Sequence[str]) -> MetricBridge:
    if kind == "counter":
        collector = Counter(name, description, labels)
    elif kind == "histogram":
        collector = Histogram(name, description, labels, buckets=_LATENCY_BUCKETS)
    elif kind == "gauge":
        collector = Gauge(name, description, labels)
    else:
        raise ValueError(f"Unknown metric kind: {kind}")
    return MetricBridge(collector, name=name, kind=kind, description=description)


SEARCH_LATENCY = _declare(
    "histogram",
    "docs_search_query_latency_seconds",
    "Search query latency",
    ["index"],
)
SEARCH_REQUESTS = _declare(
    "counter",
    "docs_search_queries_total",
    "Search queries by combine mode and outcome",
    ["index", "mode", "outcome"],
)
DOCUMENTS_INDEXED = _declare(
    "counter",
    "docs_search_documents_indexed_total",
    "Documents added to index builders",
    ["index"],
)
INDEX_DOC_COUNT = _declare(
    "gauge",
    "docs_search_index_document_count",
    "Documents in the most recently built or loaded index",
    ["index"],
)
INDEX_LOAD_ERRORS = _declare(
    "counter",
    "docs_search_index_load_errors_total",
    "Index artifacts rejected at load time",
    ["reason"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the ``with`` body, including when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def get_metrics() -> bytes:
    """Render the default Prometheus registry in text exposition format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
