"""URL popularity ranks used as the primary ordering key for results.

The ranks come from an external source (for example a link-analysis job).
Higher means more popular; URLs the source does not know rank 0.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
import math
from pathlib import Path
from typing import Protocol

import orjson

from partition_search.search.partition_store import IndexLoadError


logger = logging.getLogger(__name__)


class PopularityRanker(Protocol):
    def rank(self, url: str) -> float:  # pragma: no cover - interface definition
        ...


class NullPopularity:
    """Ranks every URL equally, leaving the order to the score."""

    def rank(self, url: str) -> float:
        return 0.0


class StaticPopularity:
    """Popularity ranks held in memory, usually loaded from a JSON file."""

    def __init__(self, ranks: Mapping[str, float]) -> None:
        self._ranks = dict(ranks)

    def __len__(self) -> int:
        return len(self._ranks)

    def rank(self, url: str) -> float:
        return self._ranks.get(url, 0.0)

    @classmethod
    def from_file(cls, path: Path | str) -> StaticPopularity:
        """Load a ``{url: rank}`` JSON object; non-numeric ranks are dropped."""

        path = Path(path)
        try:
            payload = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise IndexLoadError(f"Cannot read popularity ranks {path}: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise IndexLoadError(f"Popularity ranks {path} must be a JSON object")

        ranks: dict[str, float] = {}
        for url, value in payload.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                logger.warning("Ignoring non-numeric popularity rank for %s", url)
                continue
            ranks[url] = float(value)
        logger.info("Loaded %d popularity ranks from %s", len(ranks), path)
        return cls(ranks)


def safe_rank(ranker: PopularityRanker, url: str) -> float:
    """Ask the ranker for a rank, treating any failure as rank 0."""

    try:
        value = ranker.rank(url)
        if value is None or not math.isfinite(value):
            return 0.0
        return float(value)
    except Exception:
        logger.warning("Popularity lookup failed for %s", url, exc_info=True)
        return 0.0
