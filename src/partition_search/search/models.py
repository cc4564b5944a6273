"""Index data models shared by the router, the partition cache and the query engine."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Occurrences:
    """Per-document frequency of a term broken out by structural location."""

    text_count: int = 0
    header_count: int = 0
    important_count: int = 0

    @property
    def combined(self) -> int:
        return self.text_count + self.header_count + self.important_count

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | int) -> Occurrences:
        # Older partitions store a bare text count instead of the breakdown
        if isinstance(data, int):
            return cls(text_count=data)
        if not isinstance(data, Mapping):
            raise TypeError(f"occurrences must be an object or an integer, got {type(data).__name__}")
        return cls(
            text_count=int(data.get("textCount", 0)),
            header_count=int(data.get("headerCount", 0)),
            important_count=int(data.get("importantCount", 0)),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "textCount": self.text_count,
            "headerCount": self.header_count,
            "importantCount": self.important_count,
        }


@dataclass(frozen=True)
class Posting:
    """A posting records how often a term occurs in one document."""

    doc_id: int
    occurrences: Occurrences = Occurrences()

    @property
    def frequency(self) -> int:
        return self.occurrences.combined

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Posting:
        """Create from the partition file representation."""
        if not isinstance(data, Mapping):
            raise TypeError(f"posting must be an object, got {type(data).__name__}")
        return cls(
            doc_id=int(data["documentId"]),
            occurrences=Occurrences.from_dict(data.get("occurrences", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"documentId": self.doc_id, "occurrences": self.occurrences.to_dict()}


Partition = Mapping[str, tuple[Posting, ...]]


@dataclass(frozen=True)
class PartitionDirectory:
    """Sorted threshold keys and the partition files they route to.

    The builder writes either one file per key or one more file than keys
    (the trailing file holds every term greater than or equal to the last key).
    """

    keys: tuple[str, ...]
    index_files: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PartitionDirectory:
        return cls(
            keys=tuple(str(key) for key in data.get("keys", [])),
            index_files=tuple(str(name) for name in data.get("indexFiles", [])),
        )

    def validate(self) -> list[str]:
        """Return a list of problems; empty when the directory is usable."""

        problems: list[str] = []
        if not self.index_files:
            problems.append("directory lists no partition files")
        if len(self.index_files) not in (len(self.keys), len(self.keys) + 1):
            problems.append(
                f"expected {len(self.keys)} or {len(self.keys) + 1} partition files for "
                f"{len(self.keys)} keys, got {len(self.index_files)}"
            )
        if any(earlier > later for earlier, later in zip(self.keys, self.keys[1:])):
            problems.append("threshold keys are not in ascending order")
        return problems

    @property
    def partition_files(self) -> Sequence[str]:
        # Preserve order while dropping accidental duplicates
        return tuple(dict.fromkeys(self.index_files))
