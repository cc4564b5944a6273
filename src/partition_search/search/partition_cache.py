"""Process-scoped caches for partitions, term postings and idf values.

All three caches derive from an index that never changes while the process is
running, so entries are never evicted or invalidated. Reads go straight to the
dicts; only the first load of a partition takes a lock, and that lock is
per-file so a cold partition never blocks lookups routed elsewhere. Token and
idf entries are filled with a plain check-then-set: two threads racing on the
same term compute equal values, and the last write wins harmlessly.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
import threading

from partition_search.observability.metrics import CACHE_LOOKUPS, PARTITION_LOADS, PARTITIONS_RESIDENT
from partition_search.search.models import Partition, PartitionDirectory, Posting
from partition_search.search.partition_store import PartitionLoadError, PartitionStore
from partition_search.search.router import resolve_partition_file
from partition_search.search.stats import calculate_idf


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingLookup:
    """Outcome of resolving one term.

    ``failed`` separates "the partition could not be read" from a genuine miss;
    both report ``found=False`` and no postings.
    """

    postings: tuple[Posting, ...]
    found: bool
    failed: bool = False

    @property
    def document_frequency(self) -> int:
        return len(self.postings)


_NOT_FOUND = PostingLookup(postings=(), found=False)
_FAILED = PostingLookup(postings=(), found=False, failed=True)


@dataclass(frozen=True)
class CacheStats:
    partitions_resident: int
    tokens_cached: int
    idf_cached: int
    token_hits: int
    token_misses: int
    partition_loads: int
    partition_load_failures: int


@dataclass(frozen=True)
class WarmUpReport:
    partitions_loaded: int
    partitions_failed: int
    terms_cached: int
    terms_missing: int


class PartitionCache:
    """Resolve terms to postings, loading partitions lazily on first access."""

    def __init__(self, directory: PartitionDirectory, store: PartitionStore, *, total_docs: int) -> None:
        self.directory = directory
        self.store = store
        self.total_docs = total_docs
        self._partitions: dict[str, Partition] = {}
        self._tokens: dict[str, tuple[Posting, ...]] = {}
        self._idf: dict[str, float] = {}
        self._load_locks: dict[str, threading.Lock] = {}
        self._load_locks_guard = threading.Lock()
        self._stats_lock = threading.Lock()
        self._token_hits = 0
        self._token_misses = 0
        self._loads = 0
        self._load_failures = 0

    def get_postings(self, term: str) -> PostingLookup:
        """Return the postings for ``term``.

        Checks the token cache first, then the resident partition for the term
        (loading it if needed). A partition that cannot be loaded reports the
        term as not found and is retried on the next lookup.
        """

        postings = self._tokens.get(term)
        if postings is not None:
            self._record_token_lookup(hit=True)
            return PostingLookup(postings=postings, found=True)
        self._record_token_lookup(hit=False)

        filename = resolve_partition_file(term, self.directory)
        partition = self._get_partition(filename)
        if partition is None:
            return _FAILED

        postings = partition.get(term)
        if postings is None:
            return _NOT_FOUND

        self._tokens[term] = postings
        return PostingLookup(postings=postings, found=True)

    def idf(self, term: str) -> float:
        """Memoized ``ln(total_docs / document_frequency(term))``; 0.0 for unknown terms."""

        cached = self._idf.get(term)
        if cached is not None:
            CACHE_LOOKUPS.labels(cache="idf", result="hit").inc()
            return cached
        CACHE_LOOKUPS.labels(cache="idf", result="miss").inc()

        lookup = self.get_postings(term)
        value = calculate_idf(lookup.document_frequency, self.total_docs)
        # A failed load says nothing about the term; recompute once the partition is readable
        if not lookup.failed:
            self._idf[term] = value
        return value

    def warm_up(self, terms: Iterable[str] = (), *, all_partitions: bool = False) -> WarmUpReport:
        """Preload partitions and frequent terms to move I/O off the query path."""

        loaded = failed = 0
        if all_partitions:
            for filename in self.directory.partition_files:
                if self._get_partition(filename) is None:
                    failed += 1
                else:
                    loaded += 1

        cached = missing = 0
        for term in terms:
            if self.get_postings(term).found:
                self.idf(term)
                cached += 1
            else:
                missing += 1

        report = WarmUpReport(
            partitions_loaded=loaded,
            partitions_failed=failed,
            terms_cached=cached,
            terms_missing=missing,
        )
        logger.info(
            "Cache warm-up finished: %d partitions loaded, %d failed, %d terms cached, %d missing",
            report.partitions_loaded,
            report.partitions_failed,
            report.terms_cached,
            report.terms_missing,
        )
        return report

    def snapshot(self) -> CacheStats:
        with self._stats_lock:
            return CacheStats(
                partitions_resident=len(self._partitions),
                tokens_cached=len(self._tokens),
                idf_cached=len(self._idf),
                token_hits=self._token_hits,
                token_misses=self._token_misses,
                partition_loads=self._loads,
                partition_load_failures=self._load_failures,
            )

    def _get_partition(self, filename: str) -> Partition | None:
        partition = self._partitions.get(filename)
        if partition is not None:
            CACHE_LOOKUPS.labels(cache="partition", result="hit").inc()
            return partition
        CACHE_LOOKUPS.labels(cache="partition", result="miss").inc()

        with self._lock_for(filename):
            # Another thread may have finished the load while we waited
            partition = self._partitions.get(filename)
            if partition is not None:
                return partition

            try:
                partition = self.store.load_partition(filename)
            except PartitionLoadError as exc:
                logger.warning("Partition %s unavailable: %s", filename, exc.reason)
                PARTITION_LOADS.labels(outcome="error").inc()
                with self._stats_lock:
                    self._load_failures += 1
                return None

            self._partitions[filename] = partition

        PARTITION_LOADS.labels(outcome="ok").inc()
        PARTITIONS_RESIDENT.inc()
        with self._stats_lock:
            self._loads += 1
        return partition

    def _lock_for(self, filename: str) -> threading.Lock:
        lock = self._load_locks.get(filename)
        if lock is None:
            with self._load_locks_guard:
                lock = self._load_locks.setdefault(filename, threading.Lock())
        return lock

    def _record_token_lookup(self, *, hit: bool) -> None:
        CACHE_LOOKUPS.labels(cache="token", result="hit" if hit else "miss").inc()
        with self._stats_lock:
            if hit:
                self._token_hits += 1
            else:
                self._token_misses += 1
