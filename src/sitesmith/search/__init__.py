"""
Search indexing and query package.

This package provides a pure-Python search stack:
- schema: Field types and the site schema (title, tags, description, content)
- analyzers: Tokenizers and filters (lowercase, stop, stemming, tags)
- storage: Postings segment writer and JSON serialization
- stats: BM25 scoring statistics
- bm25_engine: Field-weighted scoring with prefix expansion
- backend: The ``SearchBackend`` interface and its BM25 implementation
- indexer: Build-time index construction
"""

from sitesmith.search.backend import SearchBackend, SearchIndex
from sitesmith.search.indexer import build_index, documents_from_items, write_index
from sitesmith.search.models import Hit, SearchDocument
from sitesmith.search.storage import StorageError


__all__ = [
    "Hit",
    "SearchBackend",
    "SearchDocument",
    "SearchIndex",
    "StorageError",
    "build_index",
    "documents_from_items",
    "write_index",
]
