"""Boolean-AND retrieval with tf-idf cosine ranking over a partitioned index."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
import heapq
import logging
import math
import time
from typing import Literal

from partition_search.domain.search import QueryStatus, SearchResponse, SearchResult
from partition_search.observability.metrics import SEARCH_LATENCY, SEARCH_QUERIES, track_latency
from partition_search.observability.tracing import create_span
from partition_search.search.analyzers import Analyzer, get_analyzer, normalize_terms
from partition_search.search.document_store import DocumentStore
from partition_search.search.partition_cache import PartitionCache
from partition_search.search.popularity import NullPopularity, PopularityRanker, safe_rank
from partition_search.search.stats import cosine_score, vector_norm


logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5

ScoringMode = Literal["cosine", "dot"]

# doc_id -> {term -> combined frequency}, terms in query order
Candidates = dict[int, dict[str, int]]


@dataclass(frozen=True)
class _RankedCandidate:
    popularity: float
    score: float
    url: str
    doc_id: int

    def sort_key(self) -> tuple[float, float, str, int]:
        # Popularity and score descending, then URL ascending; doc_id breaks ties between unknown documents
        return (-self.popularity, -self.score, self.url, self.doc_id)


class QueryEngine:
    """Evaluate free-text queries against a partition cache and a document store.

    Each engine owns its cache, so several engines (for example one per test)
    never share state. ``evaluate`` is safe to call from many threads at once.
    """

    def __init__(
        self,
        cache: PartitionCache,
        documents: DocumentStore,
        *,
        analyzer: Analyzer | None = None,
        popularity: PopularityRanker | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        scoring: ScoringMode = "cosine",
    ) -> None:
        if max_results < 1:
            raise ValueError("max_results must be at least 1")
        if scoring not in ("cosine", "dot"):
            raise ValueError(f"Unknown scoring mode '{scoring}'")
        self.cache = cache
        self.documents = documents
        self.analyzer = analyzer or get_analyzer(None)
        self.popularity = popularity or NullPopularity()
        self.max_results = max_results
        self.scoring = scoring

    def evaluate(self, query_text: str) -> list[SearchResult]:
        """Return at most ``max_results`` ranked results; empty when nothing matches."""

        return list(self.search(query_text).results)

    def search(self, query_text: str) -> SearchResponse:
        """Evaluate ``query_text`` and explain the outcome with a status."""

        start = time.perf_counter()
        with create_span("search.evaluate", attributes={"query.length": len(query_text)}) as span:
            with track_latency(SEARCH_LATENCY):
                terms = normalize_terms(self.analyzer, query_text)
                status, candidate_count, results = self._run(terms)
            span.set_attribute("query.terms", len(terms))
            span.set_attribute("query.candidates", candidate_count)
            span.set_attribute("query.status", status.value)
            span.set_attribute("query.results", len(results))

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        SEARCH_QUERIES.labels(status=status.value).inc()
        logger.debug(
            "Evaluated query with %d terms: status=%s candidates=%d results=%d elapsed=%.2fms",
            len(terms),
            status.value,
            candidate_count,
            len(results),
            elapsed_ms,
        )
        return SearchResponse(
            query=query_text,
            status=status,
            terms=tuple(terms),
            results=tuple(results),
            elapsed_ms=elapsed_ms,
        )

    def _run(self, terms: list[str]) -> tuple[QueryStatus, int, list[SearchResult]]:
        if not terms:
            return QueryStatus.EMPTY_QUERY, 0, []

        # Counter keeps first-occurrence order, which drives intersection order
        query_frequency = Counter(terms)
        status, candidates = self._intersect(query_frequency)
        if not candidates:
            return status, 0, []

        query_vector = self._query_vector(query_frequency)
        query_norm = vector_norm(query_vector)
        ranked = [
            self._rank_candidate(doc_id, matched, query_vector, query_norm) for doc_id, matched in candidates.items()
        ]
        top = heapq.nsmallest(self.max_results, ranked, key=_RankedCandidate.sort_key)
        return QueryStatus.OK, len(candidates), [self._to_result(candidate) for candidate in top]

    def _intersect(self, query_frequency: Mapping[str, int]) -> tuple[QueryStatus, Candidates]:
        """Keep only documents holding every query term.

        Any term without postings vetoes the whole query.
        """

        candidates: Candidates | None = None
        for term in query_frequency:
            lookup = self.cache.get_postings(term)
            if not lookup.found:
                status = QueryStatus.PARTITION_UNAVAILABLE if lookup.failed else QueryStatus.NO_MATCH
                return status, {}

            frequencies: dict[int, int] = {}
            for posting in lookup.postings:
                if posting.frequency > 0:
                    frequencies[posting.doc_id] = frequencies.get(posting.doc_id, 0) + posting.frequency

            if candidates is None:
                candidates = {doc_id: {term: frequency} for doc_id, frequency in frequencies.items()}
            else:
                candidates = {
                    doc_id: {**matched, term: frequencies[doc_id]}
                    for doc_id, matched in candidates.items()
                    if doc_id in frequencies
                }
            if not candidates:
                return QueryStatus.NO_MATCH, {}

        return QueryStatus.OK, candidates or {}

    def _query_vector(self, query_frequency: Mapping[str, int]) -> dict[str, float]:
        vector: dict[str, float] = {}
        for term, count in query_frequency.items():
            if self.cache.get_postings(term).document_frequency == 0:
                continue
            vector[term] = count * self.cache.idf(term)
        return vector

    def _rank_candidate(
        self,
        doc_id: int,
        matched: Mapping[str, int],
        query_vector: Mapping[str, float],
        query_norm: float,
    ) -> _RankedCandidate:
        dot = 0.0
        doc_norm_sq = 0.0
        for term, frequency in matched.items():
            query_weight = query_vector.get(term)
            if query_weight is None:
                continue
            weight = frequency * self.cache.idf(term)
            dot += weight * query_weight
            doc_norm_sq += weight * weight

        if self.scoring == "cosine":
            score = cosine_score(dot, query_norm, math.sqrt(doc_norm_sq))
        else:
            score = dot

        entry = self.documents.lookup(doc_id)
        popularity = safe_rank(self.popularity, entry.url) if entry.url else 0.0
        return _RankedCandidate(popularity=popularity, score=score, url=entry.url, doc_id=doc_id)

    def _to_result(self, candidate: _RankedCandidate) -> SearchResult:
        entry = self.documents.lookup(candidate.doc_id)
        return SearchResult(
            url=entry.url,
            title=entry.title,
            description=entry.description,
            score=candidate.score,
            doc_id=candidate.doc_id,
        )
