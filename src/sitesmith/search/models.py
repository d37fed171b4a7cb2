"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, Sequence):
        return tuple(str(tag) for tag in value if tag is not None and str(tag))
    return (str(value),)


@dataclass(frozen=True)
class SearchDocument:
    """A document as handed to the index and as returned from it.

    Missing text fields become empty strings and missing tags an empty tuple,
    so partially filled front matter never breaks an index build.
    """

    ref: str
    title: str = ""
    description: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    content: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", _as_text(self.title))
        object.__setattr__(self, "description", _as_text(self.description))
        object.__setattr__(self, "tags", _as_tags(self.tags))
        object.__setattr__(self, "content", _as_text(self.content))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "ref": self.ref,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
        }
        if self.content:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchDocument:
        """Create from dictionary."""
        return cls(
            ref=str(data["ref"]),
            title=data.get("title"),
            description=data.get("description"),
            tags=data.get("tags"),
            content=data.get("content"),
        )


@dataclass(frozen=True)
class Hit:
    """A scored reference to a matching document."""

    ref: str
    score: float
