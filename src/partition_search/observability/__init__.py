"""Observability module for logging, metrics, and tracing."""

from partition_search.observability.context import get_trace_context, set_trace_context, trace_context
from partition_search.observability.logging import JsonFormatter, configure_logging
from partition_search.observability.metrics import (
    CACHE_LOOKUPS,
    PARTITION_LOADS,
    PARTITIONS_RESIDENT,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from partition_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CACHE_LOOKUPS",
    "PARTITIONS_RESIDENT",
    "PARTITION_LOADS",
    "SEARCH_LATENCY",
    "SEARCH_QUERIES",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
