"""Statistical helpers for tf-idf cosine scoring.

The functions here stay independent of the cache and the engine so they can
be unit tested directly and reused by diagnostics.
"""

from __future__ import annotations

from collections.abc import Mapping
import math


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return ``ln(total_docs / doc_freq)``.

    A term with no postings (or an empty corpus) has no usable idf and yields
    ``0.0``; callers skip such terms when building vectors.
    """

    if doc_freq <= 0 or total_docs <= 0:
        return 0.0
    return math.log(total_docs / doc_freq)


def vector_norm(weights: Mapping[str, float]) -> float:
    return math.sqrt(sum(weight * weight for weight in weights.values()))


def cosine_score(dot: float, query_norm: float, doc_norm: float) -> float:
    """Normalize a dot product, returning 0 when either vector is degenerate."""

    denominator = query_norm * doc_norm
    if denominator == 0:
        return 0.0
    return dot / denominator
