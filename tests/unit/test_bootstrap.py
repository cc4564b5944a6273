"""Unit tests for wiring an engine from settings."""

from __future__ import annotations

import logging

import orjson
import pytest

from partition_search import Settings, build_query_engine
from partition_search.observability import JsonFormatter
from partition_search.search.partition_store import IndexLoadError
from tests.fixtures.sample_index import doc, posting


def test_build_query_engine_serves_queries(sample_index) -> None:
    engine = build_query_engine(Settings(index_dir=sample_index))

    results = engine.evaluate("cristina lopes")

    assert [result.url for result in results] == ["http://example.com/doc0"]
    assert engine.cache.total_docs == 2
    assert engine.max_results == 5


def test_warm_up_preloads_configured_partitions_and_terms(sample_index) -> None:
    settings = Settings(index_dir=sample_index, warm_partitions=True, warm_terms="Cristina,machine")

    engine = build_query_engine(settings)

    stats = engine.cache.snapshot()
    assert stats.partitions_resident == 2
    assert stats.tokens_cached == 2
    assert stats.idf_cached == 2


def test_popularity_file_is_relative_to_index_dir(write_index) -> None:
    index_dir = write_index(
        {"only.json": {"web": [posting(0, text=1), posting(1, text=1)]}},
        [],
        {"0": doc("http://a"), "1": doc("http://b"), "2": doc("http://c")},
    )
    (index_dir / "ranks.json").write_bytes(orjson.dumps({"http://b": 10}))

    engine = build_query_engine(Settings(index_dir=index_dir, popularity_file="ranks.json"))

    assert [result.url for result in engine.evaluate("web")] == ["http://b", "http://a"]


def test_url_keyed_document_store_is_accepted(write_index) -> None:
    index_dir = write_index(
        {"only.json": {"web": [posting(2, text=1)]}},
        [],
        {"http://x": 1, "http://y": "2"},
    )

    engine = build_query_engine(Settings(index_dir=index_dir))

    assert [result.url for result in engine.evaluate("web")] == ["http://y"]


def test_missing_directory_fails_at_startup(tmp_path) -> None:
    with pytest.raises(IndexLoadError):
        build_query_engine(Settings(index_dir=tmp_path / "missing"))


@pytest.mark.parametrize("log_json", [True, False])
def test_logging_follows_settings(sample_index, log_json) -> None:
    build_query_engine(Settings(index_dir=sample_index, log_level="warning", log_json=log_json))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter) is log_json
    assert root.level == logging.WARNING
