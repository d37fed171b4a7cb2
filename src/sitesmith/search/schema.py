"""Field layout of the site search index.

The schema travels inside the serialized index, so the runtime analyzes a
query with exactly the analyzers the build used for each field. Two kinds of
field exist:

- ``TextField``: analyzed and searchable, weighted by ``boost`` at query time.
- ``KeywordField``: stored verbatim for lookup (the page ref), never searched.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar

from sitesmith.search.analyzers import get_analyzer


class FieldType(str, Enum):
    TEXT = "text"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class SchemaField:
    """Options shared by every field kind."""

    name: str
    stored: bool = True
    indexed: bool = True
    boost: float = 1.0

    field_type: ClassVar[FieldType]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.field_type.value,
            "stored": self.stored,
            "indexed": self.indexed,
            "boost": self.boost,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> SchemaField:
        """Rebuild a field; raises ``ValueError`` for an unknown type or analyzer."""
        options = {
            "name": str(data["name"]),
            "stored": bool(data.get("stored", True)),
            "indexed": bool(data.get("indexed", True)),
            "boost": float(data.get("boost", 1.0)),
        }
        if FieldType(data["type"]) is FieldType.KEYWORD:
            return KeywordField(**options)

        analyzer_name = data.get("analyzer_name")
        # an unknown analyzer fails the load instead of every later query
        get_analyzer(analyzer_name)
        return TextField(**options, analyzer_name=analyzer_name)


@dataclass(frozen=True)
class TextField(SchemaField):
    """Searchable field; ``analyzer_name`` of ``None`` selects the prose analyzer."""

    analyzer_name: str | None = None

    field_type: ClassVar[FieldType] = FieldType.TEXT

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.analyzer_name:
            data["analyzer_name"] = self.analyzer_name
        return data


@dataclass(frozen=True)
class KeywordField(SchemaField):
    """Exact keyword field such as the document ref: stored as-is, never analyzed."""

    field_type: ClassVar[FieldType] = FieldType.KEYWORD


@dataclass
class Schema:
    """Ordered fields of an indexed document plus the name of its unique key."""

    fields: list[SchemaField]
    unique_field: str = "ref"
    name: str = "site"

    def __post_init__(self) -> None:
        if all(f.name != self.unique_field for f in self.fields):
            msg = f"Unique field '{self.unique_field}' not found in schema"
            raise ValueError(msg)

    @property
    def text_fields(self) -> list[TextField]:
        """Searchable fields in schema order."""
        return [f for f in self.fields if isinstance(f, TextField) and f.indexed]

    def field_boosts(self) -> dict[str, float]:
        return {f.name: f.boost for f in self.text_fields}

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "unique_field": self.unique_field,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Schema:
        return cls(
            fields=[SchemaField.from_dict(f) for f in data["fields"]],
            unique_field=str(data.get("unique_field", "ref")),
            name=str(data.get("name", "site")),
        )


# Title matches outrank tag matches, which outrank description and body matches.
SITE_FIELD_BOOSTS: Mapping[str, float] = MappingProxyType(
    {"title": 10.0, "tags": 5.0, "description": 3.0, "content": 1.0}
)


def create_site_schema() -> Schema:
    """Fields of an indexed site page.

    ``ref`` is the page URL and unique key. ``title``, ``description`` and
    the optional ``content`` body use the prose analyzer; ``tags`` uses the
    tag analyzer.
    """
    return Schema(
        name="site",
        unique_field="ref",
        fields=[
            KeywordField("ref", indexed=False, boost=0.0),
            TextField("title", boost=SITE_FIELD_BOOSTS["title"]),
            TextField("tags", boost=SITE_FIELD_BOOSTS["tags"], analyzer_name="tag"),
            TextField("description", boost=SITE_FIELD_BOOSTS["description"]),
            TextField("content", boost=SITE_FIELD_BOOSTS["content"]),
        ],
    )
