"""Content source: items, front matter, and the filesystem loader."""

from sitesmith.content.loader import ContentCollection, ContentLoadError, load_content
from sitesmith.content.model import ContentItem


__all__ = ["ContentCollection", "ContentItem", "ContentLoadError", "load_content"]
