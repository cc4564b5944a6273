"""Wire a ready-to-query engine from configuration."""

from __future__ import annotations

import logging

from partition_search.config import Settings
from partition_search.observability import configure_logging, init_tracing
from partition_search.search.analyzers import get_analyzer
from partition_search.search.document_store import load_document_store
from partition_search.search.partition_cache import PartitionCache
from partition_search.search.partition_store import JsonPartitionStore, load_partition_directory
from partition_search.search.popularity import NullPopularity, PopularityRanker, StaticPopularity
from partition_search.search.query_engine import QueryEngine


logger = logging.getLogger(__name__)


def build_query_engine(settings: Settings | None = None) -> QueryEngine:
    """Load the index directory and document store, then build the engine.

    Startup is the only place where a missing artifact is fatal: it raises
    ``IndexLoadError`` so the process refuses to serve an index it cannot read.
    Partition files themselves are read lazily unless warm-up is enabled.
    Logging and tracing are configured from the same settings first.
    """

    settings = settings or Settings()

    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_tracing(service_name="partition-search")

    directory = load_partition_directory(settings.directory_path)
    documents = load_document_store(settings.docs_path)

    popularity: PopularityRanker = NullPopularity()
    if settings.popularity_file is not None:
        popularity = StaticPopularity.from_file(settings.resolve_artifact(settings.popularity_file))

    cache = PartitionCache(directory, JsonPartitionStore(settings.index_dir), total_docs=documents.total_documents)

    warm_terms = settings.get_warm_terms()
    if settings.warm_partitions or warm_terms:
        analyzer = get_analyzer(settings.analyzer)
        normalized = [token.text for term in warm_terms for token in analyzer(term)]
        cache.warm_up(normalized, all_partitions=settings.warm_partitions)

    logger.info(
        "Query engine ready: %d documents, %d partitions, analyzer=%s, scoring=%s",
        documents.total_documents,
        len(directory.partition_files),
        settings.analyzer,
        settings.scoring,
    )
    return QueryEngine(
        cache,
        documents,
        analyzer=get_analyzer(settings.analyzer),
        popularity=popularity,
        max_results=settings.max_results,
        scoring=settings.scoring,
    )
