"""Unit tests for template collection helpers."""

from __future__ import annotations

import pytest

from sitesmith.grouping.filters import filter_tag_list, get_keys, head, min_value, posts_with_metadata


pytestmark = pytest.mark.unit


def test_head_takes_first_or_last_entries() -> None:
    items = [1, 2, 3, 4]

    assert head(items, 2) == [1, 2]
    assert head(items, -2) == [3, 4]
    assert head(items, 10) == [1, 2, 3, 4]


def test_head_on_non_sequence_or_empty_returns_empty() -> None:
    assert head([], 3) == []
    assert head(None, 3) == []
    assert head("abc", 2) == []


def test_min_value_and_get_keys() -> None:
    assert min_value(4, 2, 9) == 2
    assert get_keys({"b": 1, "a": 2}) == ["b", "a"]


def test_filter_tag_list_drops_navigation_tags_and_sorts() -> None:
    assert filter_tag_list(["web", "posts", "all", "rust", "tagPages", "sidebar"]) == ["rust", "web"]
    assert filter_tag_list(None) == []


def test_posts_with_metadata_matches_front_matter_value(item_factory) -> None:
    posts = [
        item_factory("/c/", 3, series="intro"),
        item_factory("/a/", 1, series="intro"),
        item_factory("/b/", 2, series="advanced"),
        item_factory("/d/", 4),
    ]

    matches = posts_with_metadata(posts, "series", "intro")

    assert [post.url for post in matches] == ["/a/", "/c/"]
