"""Filesystem content source.

Walks a directory of Markdown files, parses their front matter, and exposes
the result as an ordered ``ContentCollection``. Items are ordered by date
ascending, then by input path, which is the order templates expect when they
iterate a collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sitesmith.content.front_matter import parse_front_matter
from sitesmith.content.model import ContentItem


logger = logging.getLogger(__name__)

_MARKDOWN_SUFFIXES = {".md", ".markdown"}
_SKIP_DIRS = {"_includes", "_data", "_site", "node_modules", ".git"}
_RESERVED_KEYS = {"title", "description", "tags", "date", "permalink"}


class ContentLoadError(ValueError):
    """Raised when a content file cannot be turned into a content item."""


class ContentCollection(Sequence[ContentItem]):
    """Ordered, read-only view over the site's content items."""

    def __init__(self, items: Iterable[ContentItem]) -> None:
        self._items: tuple[ContentItem, ...] = tuple(items)

    def __getitem__(self, index):  # type: ignore[override]
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._items)

    def get_all(self) -> list[ContentItem]:
        return list(self._items)

    def get_filtered_by_tag(self, tag: str) -> list[ContentItem]:
        """Return every item carrying ``tag``, preserving collection order."""
        return [item for item in self._items if item.has_tag(tag)]

    def all_tags(self) -> set[str]:
        return {tag for item in self._items for tag in item.tags}


def url_for_path(relative_path: Path) -> str:
    """Derive the canonical URL of a content file from its relative path.

    ``posts/hello-world.md`` maps to ``/posts/hello-world/`` and an ``index.md``
    maps to its directory.
    """
    parts = list(relative_path.with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts = parts[:-1]
    if not parts:
        return "/"
    return "/" + "/".join(parts) + "/"


def load_content_item(path: Path, root: Path) -> ContentItem:
    """Parse one Markdown file into a ``ContentItem``."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Unable to read {path}: {exc}"
        raise ContentLoadError(msg) from exc

    metadata, body = parse_front_matter(raw)
    relative = path.relative_to(root)

    permalink = metadata.get("permalink")
    url = str(permalink) if isinstance(permalink, str) and permalink else url_for_path(relative)

    published = metadata.get("date")
    if published is None:
        published = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    extra: dict[str, Any] = {key: value for key, value in metadata.items() if key not in _RESERVED_KEYS}

    try:
        return ContentItem(
            url=url,
            title=metadata.get("title") or "",
            description=metadata.get("description") or "",
            tags=metadata.get("tags"),
            date=published,
            content=body.strip(),
            input_path=relative.as_posix(),
            data=extra,
        )
    except ValidationError as exc:
        msg = f"Invalid front matter in {relative}: {exc.error_count()} error(s)"
        raise ContentLoadError(msg) from exc


def _discover_markdown_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in _MARKDOWN_SUFFIXES:
            continue
        relative_parts = path.relative_to(root).parts
        if any(part in _SKIP_DIRS or part.startswith(".") for part in relative_parts[:-1]):
            continue
        yield path


def load_content(root: Path) -> ContentCollection:
    """Load every Markdown file under ``root`` into a ``ContentCollection``.

    Files that fail to parse are logged and skipped; a missing root directory
    is an error.
    """
    if not root.is_dir():
        msg = f"Content directory does not exist: {root}"
        raise ContentLoadError(msg)

    items: list[ContentItem] = []
    skipped = 0
    for path in _discover_markdown_files(root):
        try:
            items.append(load_content_item(path, root))
        except ContentLoadError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            skipped += 1

    items.sort(key=lambda item: (item.date, item.input_path or ""))
    logger.info("Loaded %d content items from %s (%d skipped)", len(items), root, skipped)
    return ContentCollection(items)
