"""Group a flat item collection by derived keys and paginate every group.

``paginate`` is the single entry point. It is a pure function: the same input
always produces the same pages, nothing outside the returned value is touched,
and the input items are never mutated.

For a fixed key every emitted ``PagedGroup`` shares one ``hrefs`` tuple and
one ``total_pages`` value, so a renderer can build "page N of M" navigation
from any single page object.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
import math
from typing import Any, Generic, Literal, Protocol, TypeVar


SortOrder = Literal["asc", "desc"]
_SORT_ORDERS: tuple[str, ...] = ("asc", "desc")


class Dated(Protocol):
    """Anything with a publish date can be paginated."""

    @property
    def date(self) -> datetime: ...


ItemT = TypeVar("ItemT", bound=Dated)

Grouper = Callable[[Any], "str | Iterable[str | None] | None"]
Permalink = Callable[[str, int], str]


class PaginationError(ValueError):
    """Raised for invalid pagination arguments."""


@dataclass(frozen=True)
class PagedGroup(Generic[ItemT]):
    """One page of one group.

    ``page_number`` is 0-based; ``hrefs`` holds one URL per page of the group,
    built from 1-based page numbers.
    """

    key: str
    page_number: int
    items: tuple[ItemT, ...]
    hrefs: tuple[str, ...]
    total_pages: int

    @property
    def href(self) -> str | None:
        """URL of this page, when permalinks were generated."""
        if self.page_number < len(self.hrefs):
            return self.hrefs[self.page_number]
        return None

    @property
    def first_href(self) -> str | None:
        return self.hrefs[0] if self.hrefs else None

    @property
    def last_href(self) -> str | None:
        return self.hrefs[-1] if self.hrefs else None

    @property
    def previous_href(self) -> str | None:
        if self.page_number == 0 or not self.hrefs:
            return None
        return self.hrefs[self.page_number - 1]

    @property
    def next_href(self) -> str | None:
        if self.page_number + 1 >= len(self.hrefs):
            return None
        return self.hrefs[self.page_number + 1]

    def to_dict(self, item_serializer: Callable[[ItemT], Any] | None = None) -> dict[str, Any]:
        """Serialize for the page manifest consumed by the template renderer."""
        serialize = item_serializer or (lambda item: item)
        return {
            "key": self.key,
            "page_number": self.page_number,
            "total_pages": self.total_pages,
            "items": [serialize(item) for item in self.items],
            "pagination": {
                "hrefs": list(self.hrefs),
                "href": {
                    "first": self.first_href,
                    "last": self.last_href,
                    "previous": self.previous_href,
                    "next": self.next_href,
                },
                "page_number": self.page_number,
                "total_pages": self.total_pages,
            },
        }


@dataclass(frozen=True)
class PaginationResult(Generic[ItemT]):
    """Pages for every key, plus total item counts per key."""

    pages: tuple[PagedGroup[ItemT], ...]
    keys: Mapping[str, int] = field(default_factory=dict)

    def pages_for(self, key: str) -> list[PagedGroup[ItemT]]:
        return [page for page in self.pages if page.key == key]


def _validate_page_size(page_size: Any) -> int:
    # bool is an int subclass; True must not mean "one item per page"
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
        msg = f"page_size must be a positive integer, got {page_size!r}"
        raise PaginationError(msg)
    return page_size


def _validate_order(name: str, value: str) -> SortOrder:
    if value not in _SORT_ORDERS:
        msg = f"{name} must be one of {_SORT_ORDERS}, got {value!r}"
        raise PaginationError(msg)
    return value  # type: ignore[return-value]


def _as_keys(keys: str | Iterable[str | None] | None) -> Iterable[str | None]:
    if keys is None:
        return ()
    if isinstance(keys, str):
        return (keys,)
    return keys


def group_items(items: Iterable[ItemT], grouper: Grouper) -> dict[str, list[ItemT]]:
    """Accumulate items per key in source order.

    The grouper may return a single key, an iterable of keys, or ``None`` for
    "no keys". ``None`` keys are dropped silently, and a key returned twice for
    the same item only records the item once.
    """
    groups: dict[str, list[ItemT]] = {}
    for item in items:
        seen: set[str] = set()
        for key in _as_keys(grouper(item)):
            if key is None:
                continue
            key = str(key)
            if key in seen:
                continue
            seen.add(key)
            groups.setdefault(key, []).append(item)
    return groups


def paginate(
    items: Iterable[ItemT],
    grouper: Grouper,
    page_size: int,
    *,
    key_sort: SortOrder = "asc",
    item_sort: SortOrder = "desc",
    permalink: Permalink | None = None,
) -> PaginationResult[ItemT]:
    """Group ``items`` by ``grouper`` and split every group into pages.

    Args:
        items: Items in content-source order.
        grouper: Returns one key, several keys, or ``None`` for an item;
            ``None`` keys are skipped.
        page_size: Maximum items per page; must be a positive integer.
        key_sort: Order of the groups in the output, comparing keys as strings.
        item_sort: Date order of items inside a group. Sorting is stable, so
            items sharing a date keep their source order.
        permalink: Maps ``(key, page_number)`` with 1-based page numbers to a URL.
            When omitted every page gets an empty ``hrefs`` tuple.

    Raises:
        PaginationError: For a non-positive page size or an unknown sort order.
    """
    size = _validate_page_size(page_size)
    key_order = _validate_order("key_sort", key_sort)
    date_order = _validate_order("item_sort", item_sort)

    groups = group_items(items, grouper)
    sorted_keys = sorted(groups, reverse=key_order == "desc")

    pages: list[PagedGroup[ItemT]] = []
    counts: dict[str, int] = {}
    for key in sorted_keys:
        members = sorted(groups[key], key=lambda item: item.date, reverse=date_order == "desc")
        total_pages = math.ceil(len(members) / size)
        hrefs: tuple[str, ...] = ()
        if permalink is not None:
            hrefs = tuple(permalink(key, number) for number in range(1, total_pages + 1))

        for page_number, page_items in enumerate(chunk(members, size)):
            pages.append(
                PagedGroup(
                    key=key,
                    page_number=page_number,
                    items=page_items,
                    hrefs=hrefs,
                    total_pages=total_pages,
                )
            )
        counts[key] = len(members)

    return PaginationResult(pages=tuple(pages), keys=counts)


def chunk(items: Sequence[ItemT], size: int) -> list[tuple[ItemT, ...]]:
    """Split ``items`` into consecutive slices of at most ``size`` entries."""
    size = _validate_page_size(size)
    return [tuple(items[start : start + size]) for start in range(0, len(items), size)]
