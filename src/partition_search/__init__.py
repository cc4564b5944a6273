"""Query processing over a range-partitioned inverted index."""

from partition_search.bootstrap import build_query_engine
from partition_search.config import Settings
from partition_search.domain.search import QueryStatus, SearchResponse, SearchResult
from partition_search.search.query_engine import QueryEngine


__all__ = [
    "QueryEngine",
    "QueryStatus",
    "SearchResponse",
    "SearchResult",
    "Settings",
    "build_query_engine",
]
