"""Readers for the on-disk partition artifacts.

The index builder writes a directory artifact (``index_dir.json``) holding the
threshold keys and one JSON file per partition mapping each term to its
postings. Both are immutable once written, so the readers here never write.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any, Protocol

import orjson

from partition_search.observability.tracing import create_span
from partition_search.search.models import Partition, PartitionDirectory, Posting


logger = logging.getLogger(__name__)


class IndexLoadError(RuntimeError):
    """Raised when a startup artifact (directory, document store) cannot be read."""


class PartitionLoadError(RuntimeError):
    """Raised when a partition file cannot be read or parsed."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Failed to load partition {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class PartitionStore(Protocol):
    """Anything that can hand back a parsed partition by filename."""

    def load_partition(self, filename: str) -> Partition:  # pragma: no cover - interface definition
        ...


def _read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def parse_partition(payload: Any) -> dict[str, tuple[Posting, ...]]:
    """Convert a decoded partition payload into term -> postings."""

    if not isinstance(payload, Mapping):
        raise ValueError(f"partition payload must be an object, got {type(payload).__name__}")
    partition: dict[str, tuple[Posting, ...]] = {}
    for term, raw_postings in payload.items():
        if not isinstance(raw_postings, list):
            raise ValueError(f"postings for {term!r} must be a list")
        partition[str(term)] = tuple(Posting.from_dict(entry) for entry in raw_postings)
    return partition


class JsonPartitionStore:
    """Loads partition files from a directory on the local filesystem."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, filename: str) -> Path:
        path = Path(filename)
        return path if path.is_absolute() else self.root / path

    def load_partition(self, filename: str) -> Partition:
        path = self.path_for(filename)
        with create_span("partition.load", attributes={"partition.file": filename}):
            try:
                payload = _read_json(path)
            except OSError as exc:
                raise PartitionLoadError(filename, str(exc)) from exc
            except orjson.JSONDecodeError as exc:
                raise PartitionLoadError(filename, f"invalid JSON: {exc}") from exc

            try:
                partition = parse_partition(payload)
            except (KeyError, TypeError, ValueError) as exc:
                raise PartitionLoadError(filename, f"unexpected schema: {exc}") from exc

        logger.debug("Loaded partition %s with %d terms", filename, len(partition))
        return partition


def load_partition_directory(path: Path | str) -> PartitionDirectory:
    """Read and validate the directory artifact.

    Raises:
        IndexLoadError: if the file is missing, malformed or inconsistent
    """

    path = Path(path)
    try:
        payload = _read_json(path)
    except (OSError, orjson.JSONDecodeError) as exc:
        raise IndexLoadError(f"Cannot read partition directory {path}: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise IndexLoadError(f"Partition directory {path} must be a JSON object")

    directory = PartitionDirectory.from_dict(payload)
    problems = directory.validate()
    if problems:
        raise IndexLoadError(f"Invalid partition directory {path}: {'; '.join(problems)}")

    logger.info(
        "Loaded partition directory %s: %d keys, %d partitions",
        path,
        len(directory.keys),
        len(directory.partition_files),
    )
    return directory
