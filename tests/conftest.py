"""Shared test fixtures and configuration."""

from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


from sitesmith.content.model import ContentItem
from sitesmith.search.models import SearchDocument


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop any SITESMITH_* variables from the developer shell."""
    for key in list(os.environ):
        if key.upper().startswith("SITESMITH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """``configure_logging`` replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_item(
    url: str,
    day: int,
    *,
    tags: tuple[str, ...] = ("posts",),
    title: str = "",
    description: str = "",
    **data,
) -> ContentItem:
    return ContentItem(
        url=url,
        title=title or url.strip("/").replace("-", " ").title(),
        description=description,
        tags=tags,
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        data=data,
    )


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def sample_documents() -> list[SearchDocument]:
    return [
        SearchDocument(ref="/a/", title="Rust Guide", description="Learning the language", tags=("rust", "guides")),
        SearchDocument(ref="/b/", title="Notes", description="about Rust", tags=("misc",)),
        SearchDocument(ref="/c/", title="Python Tips", description="Everyday scripting", tags=("python",)),
    ]


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """A small content tree with posts, a page and one broken file."""
    root = tmp_path / "content"
    posts = root / "posts"
    posts.mkdir(parents=True)
    (posts / "rust-guide.md").write_text(
        "---\ntitle: Rust Guide\ndescription: Ownership explained\ndate: 2024-01-10\n"
        "tags: [posts, rust, guides]\n---\n# Rust Guide\n\nBorrowing and lifetimes.\n",
        encoding="utf-8",
    )
    (posts / "python-tips.md").write_text(
        "---\ntitle: Python Tips\ndescription: Everyday scripting\ndate: 2024-01-12\n"
        "tags: [posts, python]\n---\nSmall helpers.\n",
        encoding="utf-8",
    )
    (posts / "rust-async.md").write_text(
        "---\ntitle: Async Rust\ndate: 2024-01-15\ntags: [posts, rust]\nseries: deep-dive\n---\nFutures.\n",
        encoding="utf-8",
    )
    (root / "about.md").write_text(
        "---\ntitle: About\ndescription: Who writes this site\ndate: 2023-12-01\n---\nHello.\n",
        encoding="utf-8",
    )
    (root / "broken.md").write_text("---\ntitle: Broken\ndate: not-a-date\n---\nOops\n", encoding="utf-8")
    return root
