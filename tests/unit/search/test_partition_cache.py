"""Unit tests for the partition, token and idf caches."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import math
import threading
import time

from partition_search.search.models import Occurrences, Partition, PartitionDirectory, Posting
from partition_search.search.partition_cache import PartitionCache
from partition_search.search.partition_store import PartitionLoadError
from partition_search.search.stats import calculate_idf


def _posting(doc_id: int, text: int) -> Posting:
    return Posting(doc_id, Occurrences(text_count=text))


class FakeStore:
    """In-memory partition store that records how often each file is read."""

    def __init__(self, partitions: dict[str, Partition], *, failing: set[str] | None = None, delay: float = 0.0):
        self.partitions = partitions
        self.failing = set(failing or ())
        self.delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def load_partition(self, filename: str) -> Partition:
        with self._lock:
            self.calls.append(filename)
        if self.delay:
            time.sleep(self.delay)
        if filename in self.failing:
            raise PartitionLoadError(filename, "disk on fire")
        return self.partitions[filename]


DIRECTORY = PartitionDirectory(keys=("m",), index_files=("p0", "p1"))
PARTITIONS: dict[str, Partition] = {
    "p0": {"apple": (_posting(0, 2), _posting(1, 1)), "kiwi": (_posting(2, 4),)},
    "p1": {"mango": (_posting(1, 3),), "zest": (_posting(0, 1), _posting(1, 1), _posting(2, 1))},
}


def _cache(store: FakeStore, total_docs: int = 4) -> PartitionCache:
    return PartitionCache(DIRECTORY, store, total_docs=total_docs)


def test_get_postings_loads_the_routed_partition_once() -> None:
    store = FakeStore(PARTITIONS)
    cache = _cache(store)

    first = cache.get_postings("apple")
    second = cache.get_postings("kiwi")

    assert first.found
    assert [p.doc_id for p in first.postings] == [0, 1]
    assert second.found
    assert store.calls == ["p0"]


def test_token_cache_short_circuits_partition_lookup() -> None:
    store = FakeStore(PARTITIONS)
    cache = _cache(store)

    cache.get_postings("mango")
    cache.get_postings("mango")

    stats = cache.snapshot()
    assert stats.token_hits == 1
    assert stats.token_misses == 1
    assert stats.tokens_cached == 1
    assert stats.partitions_resident == 1


def test_absent_term_reports_not_found() -> None:
    cache = _cache(FakeStore(PARTITIONS))

    lookup = cache.get_postings("banana")

    assert not lookup.found
    assert not lookup.failed
    assert lookup.postings == ()


def test_failed_partition_reports_not_found_and_is_retried() -> None:
    store = FakeStore(PARTITIONS, failing={"p1"})
    cache = _cache(store)

    first = cache.get_postings("mango")
    assert not first.found
    assert first.failed

    store.failing.clear()
    second = cache.get_postings("mango")

    assert second.found
    assert store.calls == ["p1", "p1"]
    assert cache.snapshot().partition_load_failures == 1


def test_idf_memoized_matches_direct_computation() -> None:
    cache = _cache(FakeStore(PARTITIONS), total_docs=4)

    for term in ("apple", "kiwi", "mango", "zest"):
        memoized = cache.idf(term)
        again = cache.idf(term)
        direct = calculate_idf(len(PARTITIONS["p0" if term < "m" else "p1"][term]), 4)
        assert memoized == again == direct

    assert cache.idf("kiwi") == math.log(4)
    assert cache.snapshot().idf_cached == 4


def test_idf_of_unknown_term_is_zero() -> None:
    cache = _cache(FakeStore(PARTITIONS))

    assert cache.idf("banana") == 0.0


def test_idf_not_memoized_while_partition_unavailable() -> None:
    store = FakeStore(PARTITIONS, failing={"p0"})
    cache = _cache(store, total_docs=4)

    assert cache.idf("kiwi") == 0.0
    store.failing.clear()

    assert cache.idf("kiwi") == math.log(4)


def test_concurrent_lookups_load_a_cold_partition_once() -> None:
    store = FakeStore(PARTITIONS, delay=0.05)
    cache = _cache(store)

    with ThreadPoolExecutor(max_workers=8) as pool:
        lookups = list(pool.map(cache.get_postings, ["apple", "kiwi"] * 8))

    assert all(lookup.found for lookup in lookups)
    assert store.calls == ["p0"]
    assert len({id(lookup.postings) for lookup in lookups if lookup.postings[0].doc_id == 2}) == 1


def test_warm_up_preloads_partitions_and_terms() -> None:
    store = FakeStore(PARTITIONS)
    cache = _cache(store)

    report = cache.warm_up(["apple", "zest", "banana"], all_partitions=True)

    assert report.partitions_loaded == 2
    assert report.partitions_failed == 0
    assert report.terms_cached == 2
    assert report.terms_missing == 1
    assert sorted(store.calls) == ["p0", "p1"]
    stats = cache.snapshot()
    assert stats.tokens_cached == 2
    assert stats.idf_cached == 2


def test_warm_up_counts_failures_without_raising() -> None:
    cache = _cache(FakeStore(PARTITIONS, failing={"p1"}))

    report = cache.warm_up(all_partitions=True)

    assert report.partitions_loaded == 1
    assert report.partitions_failed == 1
