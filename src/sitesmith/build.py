"""Site generation pipeline.

One run loads the content source, computes the paginated tag pages, builds
the search index, and writes both artifacts into the output directory. Every
run recomputes everything from scratch.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import time
from typing import Any

import orjson

from sitesmith.config import Settings
from sitesmith.content.loader import load_content
from sitesmith.content.model import ContentItem
from sitesmith.grouping.filters import filter_tag_list
from sitesmith.grouping.pagination import PaginationResult
from sitesmith.grouping.tags import build_tag_pages
from sitesmith.observability.context import stage_context
from sitesmith.observability.tracing import create_span
from sitesmith.search.indexer import build_index, documents_from_items, write_index


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one site generation run."""

    items_loaded: int
    posts: int
    tag_pages: int
    tag_counts: dict[str, int]
    documents_indexed: int
    index_path: Path
    manifest_path: Path
    duration_s: float


def serialize_item(item: ContentItem) -> dict[str, Any]:
    """Manifest representation of a content item."""
    return {
        "url": item.url,
        "title": item.title,
        "description": item.description,
        "date": item.date.isoformat(),
        "tags": filter_tag_list(item.tags),
    }


def tag_pages_manifest(result: PaginationResult[ContentItem]) -> dict[str, Any]:
    return {
        "pages": [page.to_dict(serialize_item) for page in result.pages],
        "tags": dict(result.keys),
    }


def _write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
    tmp_path.replace(path)
    return path


def build_site(settings: Settings) -> BuildResult:
    """Run the full generation pipeline described by ``settings``."""
    started = time.perf_counter()

    with stage_context("build"), create_span("site.build", attributes={"site.content_dir": str(settings.content_dir)}):
        collection = load_content(settings.content_dir)
        posts = collection.get_filtered_by_tag(settings.content_tag)

        with create_span("site.tag_pages"):
            tag_pages = build_tag_pages(
                posts,
                page_size=settings.tag_page_size,
                base_path=settings.tags_base_path,
                utility_tags=settings.get_utility_tags(),
            )
        manifest_path = _write_json(settings.output_dir / settings.tag_pages_manifest, tag_pages_manifest(tag_pages))

        documents = documents_from_items(collection, include_content=settings.search_include_content)
        index = build_index(documents)
        index_path = write_index(index, settings.search_index_file())

    duration = time.perf_counter() - started
    logger.info(
        "Site build finished in %.2fs: %d items, %d tag pages, %d indexed documents",
        duration,
        len(collection),
        len(tag_pages.pages),
        len(index),
    )
    return BuildResult(
        items_loaded=len(collection),
        posts=len(posts),
        tag_pages=len(tag_pages.pages),
        tag_counts=dict(tag_pages.keys),
        documents_indexed=len(index),
        index_path=index_path,
        manifest_path=manifest_path,
        duration_s=duration,
    )
