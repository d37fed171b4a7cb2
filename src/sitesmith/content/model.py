"""Domain model for content items supplied by the content source.

Content items are value objects: the grouping engine and the search index
builder only ever read them.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentItem(BaseModel):
    """Immutable reference to one piece of site content.

    ``url`` is the canonical identifier; it doubles as the search document ref.
    Dates are normalized to timezone-aware UTC datetimes so items coming from
    different sources always compare.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()
    date: datetime
    content: str = ""
    input_path: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(str(tag) for tag in value if tag is not None)

    @field_validator("title", "description", "content", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        return value

    @field_validator("date")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags
