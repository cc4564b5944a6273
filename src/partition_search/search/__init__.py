"""
Partitioned index query stack.

- analyzers: query tokenizer and filters (lowercase, stop, Porter stemming)
- router: term -> partition file
- partition_store: partition and directory artifact readers
- partition_cache: partition, token and idf caches
- document_store: document metadata
- popularity: external URL popularity ranks
- stats: idf and cosine helpers
- query_engine: boolean-AND filtering and tf-idf ranking
"""
