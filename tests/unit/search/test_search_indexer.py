"""Unit tests for build-time indexing helpers."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from sitesmith.content.model import ContentItem
from sitesmith.search.backend import SearchIndex
from sitesmith.search.indexer import build_index, document_from_item, documents_from_items, write_index
from sitesmith.search.models import SearchDocument


pytestmark = pytest.mark.unit


def _item(url: str, **fields) -> ContentItem:
    return ContentItem(url=url, date=date(2024, 1, 1), **fields)


def test_document_from_item_maps_fields() -> None:
    item = _item("/posts/a/", title="A", description="First", tags=("posts", "rust"), content="Body text")

    assert document_from_item(item) == SearchDocument(
        ref="/posts/a/", title="A", description="First", tags=("posts", "rust")
    )
    assert document_from_item(item, include_content=True).content == "Body text"


def test_documents_from_items_preserves_order() -> None:
    items = [_item("/b/"), _item("/a/")]

    assert [document.ref for document in documents_from_items(items)] == ["/b/", "/a/"]


def test_build_index_freezes_and_logs(caplog) -> None:
    caplog.set_level("INFO", logger="sitesmith.search.indexer")

    index = build_index([SearchDocument(ref="/a/", title="Rust")])

    assert index.frozen
    assert len(index) == 1
    assert "Built search index with 1 documents" in caplog.text


def test_build_index_of_nothing_is_empty() -> None:
    index = build_index([])

    assert len(index) == 0
    assert index.query("anything") == []


def test_write_index_round_trips_through_disk(tmp_path: Path) -> None:
    index = build_index([SearchDocument(ref="/a/", title="Rust Guide", content="ownership")])
    path = tmp_path / "_site" / "search-index.json"

    write_index(index, path)
    loaded = SearchIndex.load(path.read_bytes())

    assert [hit.ref for hit in loaded.query("ownership")] == ["/a/"]
    assert loaded.get_document("/a/").content == "ownership"
