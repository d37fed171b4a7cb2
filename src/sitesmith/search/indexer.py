"""Build-time search indexing.

``build_index`` is run once per site generation: every document is added
exactly once, keyed by its ref, and the frozen result is written as the single
JSON artifact the runtime engine fetches.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path

from sitesmith.content.model import ContentItem
from sitesmith.observability.tracing import create_span
from sitesmith.search.backend import SearchIndex
from sitesmith.search.models import SearchDocument
from sitesmith.search.schema import Schema
from sitesmith.search.storage import write_segment


logger = logging.getLogger(__name__)


def document_from_item(item: ContentItem, *, include_content: bool = False) -> SearchDocument:
    return SearchDocument(
        ref=item.url,
        title=item.title,
        description=item.description,
        tags=item.tags,
        content=item.content if include_content else "",
    )


def documents_from_items(items: Iterable[ContentItem], *, include_content: bool = False) -> list[SearchDocument]:
    """Convert content items to search documents, preserving order."""
    return [document_from_item(item, include_content=include_content) for item in items]


def build_index(documents: Iterable[SearchDocument], *, schema: Schema | None = None) -> SearchIndex:
    """Index ``documents`` and return the frozen snapshot.

    Raises:
        StorageError: If two documents share a ref or a ref is empty.
    """
    with create_span("search.build_index") as span:
        index = SearchIndex(schema)
        for document in documents:
            index.add_document(document)
        index.freeze()
        span.set_attribute("search.documents", len(index))
    logger.info("Built search index with %d documents", len(index))
    return index


def write_index(index: SearchIndex, path: Path) -> Path:
    """Write the serialized index to ``path`` atomically."""
    written = write_segment(index.segment, path)
    logger.info("Wrote search index to %s", written)
    return written
