"""Value objects returned by query evaluation.

Immutable (frozen) so a response can be shared across threads and cached by
callers without defensive copies.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QueryStatus(str, Enum):
    """Why a query produced the results it did."""

    OK = "ok"
    EMPTY_QUERY = "empty_query"
    NO_MATCH = "no_match"
    PARTITION_UNAVAILABLE = "partition_unavailable"


class SearchResult(BaseModel):
    """A single ranked document."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    description: str = ""
    score: float
    doc_id: int = Field(exclude=True)


class SearchResponse(BaseModel):
    """Results plus the status that explains them.

    ``EMPTY_QUERY`` means normalization yielded no terms, ``NO_MATCH`` that a
    term is absent or no document holds every term, and
    ``PARTITION_UNAVAILABLE`` that a term's partition could not be read.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    status: QueryStatus
    terms: tuple[str, ...] = ()
    results: tuple[SearchResult, ...] = ()
    elapsed_ms: float = 0.0
