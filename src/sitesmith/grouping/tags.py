"""Tag pages: the theme's paginated "posts tagged X" collection."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
import re
import unicodedata
from urllib.parse import quote

from sitesmith.content.model import ContentItem
from sitesmith.grouping.pagination import PaginationResult, paginate


logger = logging.getLogger(__name__)

DEFAULT_UTILITY_TAGS: tuple[str, ...] = ("all", "posts")
DEFAULT_TAG_PAGE_SIZE = 10

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase ASCII slug with hyphen separators.

    ``&`` reads as "and". A tag with no ASCII letters or digits (``日本語``)
    falls back to its percent-encoded lowercase form so distinct tags keep
    distinct URLs.

    >>> slugify("Machine Learning & AI")
    'machine-learning-and-ai'
    >>> slugify("日本語")
    '%E6%97%A5%E6%9C%AC%E8%AA%9E'
    """
    spelled = value.replace("&", " and ")
    normalized = unicodedata.normalize("NFKD", spelled).encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_CHARS.sub("-", normalized.lower()).strip("-")
    if slug:
        return slug
    return quote("-".join(value.lower().split()), safe="")


def tag_permalink(base_path: str = "/tags/") -> Callable[[str, int], str]:
    """Build the tag permalink generator.

    Page 1 lives at ``<base>/<slug>/``; later pages append the page number as
    an extra path segment (``<base>/<slug>/2/``).
    """
    prefix = base_path if base_path.endswith("/") else base_path + "/"

    def permalink(tag: str, page_number: int) -> str:
        slug = slugify(tag)
        if page_number == 1:
            return f"{prefix}{slug}/"
        return f"{prefix}{slug}/{page_number}/"

    return permalink


def tag_grouper(utility_tags: Iterable[str] = DEFAULT_UTILITY_TAGS) -> Callable[[ContentItem], Sequence[str]]:
    """Group items by every tag except the utility tags."""
    excluded = frozenset(utility_tags)

    def grouper(item: ContentItem) -> Sequence[str]:
        return [tag for tag in item.tags if tag not in excluded]

    return grouper


def build_tag_pages(
    posts: Iterable[ContentItem],
    *,
    page_size: int = DEFAULT_TAG_PAGE_SIZE,
    base_path: str = "/tags/",
    utility_tags: Iterable[str] = DEFAULT_UTILITY_TAGS,
) -> PaginationResult[ContentItem]:
    """Paginate ``posts`` per tag, newest first."""
    result = paginate(
        posts,
        tag_grouper(utility_tags),
        page_size,
        key_sort="asc",
        item_sort="desc",
        permalink=tag_permalink(base_path),
    )
    logger.info("Built %d tag pages for %d tags", len(result.pages), len(result.keys))
    return result
