"""Collection helpers exposed to templates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from sitesmith.content.model import ContentItem


T = TypeVar("T")

NAVIGATION_TAGS: tuple[str, ...] = ("all", "posts", "sidebar", "tagPages")


def head(items: Sequence[T] | Any, n: int) -> list[T]:
    """First ``n`` entries, or the last ``abs(n)`` entries when ``n`` is negative."""
    if not isinstance(items, Sequence) or isinstance(items, str) or not items:
        return []
    if n < 0:
        return list(items[n:])
    return list(items[:n])


def min_value(*numbers: float) -> float:
    return min(numbers)


def get_keys(target: Mapping[str, Any]) -> list[str]:
    return list(target.keys())


def filter_tag_list(tags: Iterable[str] | None, excluded: Iterable[str] = NAVIGATION_TAGS) -> list[str]:
    """Drop navigation-only tags and return the rest sorted."""
    skip = set(excluded)
    return sorted(tag for tag in (tags or ()) if tag not in skip)


def posts_with_metadata(posts: Iterable[ContentItem], key: str, value: Any) -> list[ContentItem]:
    """Posts whose front matter ``key`` equals ``value``, oldest first."""
    matches = [post for post in posts if post.data.get(key) == value]
    return sorted(matches, key=lambda post: post.date)
