"""Grouping and pagination of content collections."""

from sitesmith.grouping.pagination import PagedGroup, PaginationError, PaginationResult, paginate
from sitesmith.grouping.tags import build_tag_pages, slugify, tag_permalink


__all__ = [
    "PagedGroup",
    "PaginationError",
    "PaginationResult",
    "build_tag_pages",
    "paginate",
    "slugify",
    "tag_permalink",
]
