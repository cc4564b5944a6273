"""Read-only document metadata keyed by the dense ids the index builder assigned.

Two on-disk shapes exist. Current builds write an id-keyed object::

    {"0": {"url": "...", "title": "...", "description": "..."}}

Older builds wrote a URL-keyed object whose values are the ids, either as
numbers or numeric strings::

    {"https://example.com/": 0, "https://example.org/": "1"}

Both are normalized at load time into a single ``id -> DocumentEntry`` map.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import Any

import orjson

from partition_search.search.partition_store import IndexLoadError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEntry:
    doc_id: int
    url: str
    title: str = ""
    description: str = ""

    @classmethod
    def missing(cls, doc_id: int) -> DocumentEntry:
        """Placeholder for an id the index references but the store does not know."""
        return cls(doc_id=doc_id, url="")


class DocumentStoreLayout(str, Enum):
    ID_KEYED = "id-keyed"
    URL_KEYED = "url-keyed"
    EMPTY = "empty"


class DocumentStore:
    """Immutable ``doc_id -> DocumentEntry`` lookup."""

    def __init__(self, entries: Mapping[int, DocumentEntry] | None = None) -> None:
        self._entries: dict[int, DocumentEntry] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._entries

    def __iter__(self) -> Iterator[DocumentEntry]:
        return iter(self._entries.values())

    @property
    def total_documents(self) -> int:
        return len(self._entries)

    def lookup(self, doc_id: int) -> DocumentEntry:
        """Return metadata for ``doc_id``; unknown ids yield empty fields."""

        entry = self._entries.get(doc_id)
        if entry is None:
            logger.debug("Document %s referenced by the index is missing from the store", doc_id)
            return DocumentEntry.missing(doc_id)
        return entry


def _parse_doc_id(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def detect_layout(payload: Mapping[str, Any]) -> DocumentStoreLayout:
    """Tag the payload by the type of its values."""

    for value in payload.values():
        if isinstance(value, Mapping):
            return DocumentStoreLayout.ID_KEYED
        return DocumentStoreLayout.URL_KEYED
    return DocumentStoreLayout.EMPTY


def build_document_store(payload: Mapping[str, Any]) -> DocumentStore:
    """Normalize either document-store layout into a ``DocumentStore``.

    Entries whose id cannot be read as an integer are skipped; when two
    entries claim the same id the first one wins.
    """

    layout = detect_layout(payload)
    entries: dict[int, DocumentEntry] = {}
    skipped = duplicates = 0

    for key, value in payload.items():
        if layout is DocumentStoreLayout.ID_KEYED:
            doc_id = _parse_doc_id(key)
            if doc_id is None or not isinstance(value, Mapping):
                skipped += 1
                continue
            entry = DocumentEntry(
                doc_id=doc_id,
                url=_text(value.get("url")),
                title=_text(value.get("title")),
                description=_text(value.get("description")),
            )
        else:
            doc_id = _parse_doc_id(value)
            if doc_id is None:
                skipped += 1
                continue
            entry = DocumentEntry(doc_id=doc_id, url=key)

        if doc_id in entries:
            duplicates += 1
            continue
        entries[doc_id] = entry

    if skipped:
        logger.warning("Skipped %d document entries without a usable integer id", skipped)
    if duplicates:
        logger.warning("Ignored %d document entries with duplicate ids", duplicates)
    logger.info("Document store normalized from %s layout: %d documents", layout.value, len(entries))
    return DocumentStore(entries)


def load_document_store(path: Path | str) -> DocumentStore:
    """Read ``docs.json`` from disk.

    Raises:
        IndexLoadError: if the file is missing or not a JSON object
    """

    path = Path(path)
    try:
        payload = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        raise IndexLoadError(f"Cannot read document store {path}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise IndexLoadError(f"Document store {path} must be a JSON object")
    return build_document_store(payload)
