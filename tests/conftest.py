"""Shared test fixtures: small partitioned indexes written to temporary directories."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import logging
import os
from pathlib import Path
import sys
from typing import Any

import orjson
import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from partition_search.search.document_store import load_document_store
from partition_search.search.partition_cache import PartitionCache
from partition_search.search.partition_store import JsonPartitionStore, load_partition_directory
from partition_search.search.query_engine import QueryEngine
from tests.fixtures.sample_index import SAMPLE_DOCS, SAMPLE_KEYS, SAMPLE_PARTITIONS


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep settings independent of the developer's shell and any local .env file."""
    for key in list(os.environ):
        if key.upper().startswith("PARTITION_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler and level changes made by code that configures logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def write_index(tmp_path) -> Callable[..., Path]:
    """Write partition files, the directory artifact and docs.json; return the index directory."""

    def _write(
        partitions: Mapping[str, Mapping[str, Any]],
        keys: Sequence[str],
        docs: Mapping[str, Any] | None = None,
        *,
        index_files: Sequence[str] | None = None,
    ) -> Path:
        index_dir = tmp_path / "indexdir"
        index_dir.mkdir(exist_ok=True)
        for name, payload in partitions.items():
            (index_dir / name).write_bytes(orjson.dumps(payload))
        directory = {"keys": list(keys), "indexFiles": list(index_files or partitions)}
        (index_dir / "index_dir.json").write_bytes(orjson.dumps(directory))
        (index_dir / "docs.json").write_bytes(orjson.dumps(dict(docs or {})))
        return index_dir

    return _write


@pytest.fixture
def make_engine() -> Callable[..., QueryEngine]:
    """Build an engine straight from an index directory written by ``write_index``."""

    def _make(index_dir: Path, **engine_kwargs: Any) -> QueryEngine:
        directory = load_partition_directory(index_dir / "index_dir.json")
        documents = load_document_store(index_dir / "docs.json")
        cache = PartitionCache(directory, JsonPartitionStore(index_dir), total_docs=len(documents))
        return QueryEngine(cache, documents, **engine_kwargs)

    return _make


@pytest.fixture
def sample_index(write_index) -> Path:
    return write_index(SAMPLE_PARTITIONS, SAMPLE_KEYS, SAMPLE_DOCS)


@pytest.fixture
def sample_engine(sample_index, make_engine) -> QueryEngine:
    return make_engine(sample_index)
