"""Route a term to the partition file that holds its postings."""

from __future__ import annotations

from partition_search.search.models import PartitionDirectory


def resolve_partition_file(term: str, directory: PartitionDirectory) -> str:
    """Return the partition filename whose key range contains ``term``.

    Picks the file co-indexed with the first key strictly greater than the term;
    a term greater than or equal to every key lands in the last file. Python
    ``str`` comparison orders by code point, which matches the builder's
    JavaScript string comparison for the ASCII terms the tokenizer emits.
    """

    for position, key in enumerate(directory.keys):
        if term < key:
            return directory.index_files[position]
    return directory.index_files[-1]
