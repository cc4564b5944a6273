"""Prometheus metrics for query evaluation and the partition cache."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_QUERIES = Counter(
    "search_queries_total",
    "Evaluated queries by outcome",
    ["status"],
)

SEARCH_LATENCY = Histogram(
    "search_latency_seconds",
    "Query evaluation latency",
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

PARTITION_LOADS = Counter(
    "partition_loads_total",
    "Partition file loads by outcome",
    ["outcome"],
)

CACHE_LOOKUPS = Counter(
    "search_cache_lookups_total",
    "Cache lookups by cache and result",
    ["cache", "result"],
)

PARTITIONS_RESIDENT = Gauge(
    "partitions_resident",
    "Partitions currently held in memory",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
