"""Postings storage for the site search index.

The module provides:

* ``SegmentWriter`` - accepts schema-aware documents and produces an immutable
  ``IndexSegment`` with postings and field length metadata.
* ``IndexSegment`` - exposes postings, the document store, and a compact JSON
  serialization that the runtime engine loads as-is.

Documents keep their insertion order through serialization; the query engine
relies on it to break score ties.
"""

from __future__ import annotations

from array import array
from collections import defaultdict
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Any
from uuid import uuid4

import orjson

from sitesmith.search.analyzers import Analyzer, Token, get_analyzer
from sitesmith.search.schema import Schema, SchemaField, TextField


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class StorageError(ValueError):
    """Raised when invalid documents, operations, or payloads are encountered."""


@dataclass(frozen=True, slots=True)
class Posting:
    """Represents a postings entry for a term within a field.

    Frequency is derived from ``len(positions)``.
    """

    doc_id: str
    positions: array

    @property
    def frequency(self) -> int:
        return len(self.positions)

    def to_dict(self) -> dict[str, Any]:
        return {"d": self.doc_id, "p": list(self.positions)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Posting:
        return cls(
            doc_id=str(data["d"]),
            positions=array("I", (int(pos) for pos in data.get("p", []))),
        )


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """Immutable representation of a built index.

    ``field_lengths`` is derived from postings on load, so the serialized form
    only carries schema, postings, and stored documents.
    """

    schema: Schema
    postings: dict[str, dict[str, list[Posting]]]
    stored_fields: dict[str, dict[str, Any]]
    field_lengths: dict[str, dict[str, int]]
    segment_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def doc_count(self) -> int:
        return len(self.stored_fields)

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        return self.stored_fields.get(doc_id)

    def get_field_postings(self, field_name: str) -> dict[str, list[Posting]]:
        return self.postings.get(field_name, {})

    def get_postings(self, field_name: str, term: str) -> list[Posting]:
        """Return postings for a specific term in a field."""
        return self.get_field_postings(field_name).get(term, [])

    def insertion_order(self) -> dict[str, int]:
        """Map each document key to the order it was added in."""
        return {doc_id: idx for idx, doc_id in enumerate(self.stored_fields)}

    def to_dict(self) -> dict[str, Any]:
        """Serialize with short keys: v=version, s=schema, p=postings, d=docs, i=id, c=created."""
        return {
            "v": FORMAT_VERSION,
            "s": self.schema.to_dict(),
            "p": {
                field_name: {term: [posting.to_dict() for posting in postings] for term, postings in terms.items()}
                for field_name, terms in self.postings.items()
            },
            "d": self.stored_fields,
            "i": self.segment_id,
            "c": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexSegment:
        if not isinstance(data, Mapping):
            msg = f"Index payload must be an object, got {type(data).__name__}"
            raise StorageError(msg)
        version = data.get("v")
        if version != FORMAT_VERSION:
            msg = f"Unsupported index format version: {version!r}"
            raise StorageError(msg)

        # array("I") raises OverflowError for negative or oversized positions
        try:
            schema = Schema.from_dict(data["s"])
            postings: dict[str, dict[str, list[Posting]]] = {}
            for field_name, terms in data.get("p", {}).items():
                postings[field_name] = {
                    term: [Posting.from_dict(entry) for entry in entries] for term, entries in terms.items()
                }
            stored_fields = {
                str(key): {**dict(value), schema.unique_field: str(key)} for key, value in data.get("d", {}).items()
            }
            created_raw = data.get("c")
            created = (
                datetime.fromisoformat(created_raw) if isinstance(created_raw, str) else datetime.now(timezone.utc)
            )
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as exc:
            msg = f"Malformed index payload: {exc}"
            raise StorageError(msg) from exc

        return cls(
            schema=schema,
            postings=postings,
            stored_fields=stored_fields,
            field_lengths=_derive_field_lengths(postings),
            segment_id=str(data.get("i") or uuid4().hex),
            created_at=created,
        )

    def dumps(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def loads(cls, payload: bytes | str) -> IndexSegment:
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as exc:
            msg = f"Index payload is not valid JSON: {exc}"
            raise StorageError(msg) from exc
        return cls.from_dict(data)


def _derive_field_lengths(postings: dict[str, dict[str, list[Posting]]]) -> dict[str, dict[str, int]]:
    """Reconstruct field_lengths from postings by summing position counts per doc."""
    field_lengths: dict[str, dict[str, int]] = {}
    for field_name, terms in postings.items():
        doc_lengths: dict[str, int] = {}
        for posting_list in terms.values():
            for posting in posting_list:
                doc_lengths[posting.doc_id] = doc_lengths.get(posting.doc_id, 0) + posting.frequency
        if doc_lengths:
            field_lengths[field_name] = doc_lengths
    return field_lengths


class SegmentWriter:
    """Builds index segments from schema-aware documents."""

    def __init__(self, schema: Schema, *, segment_id: str | None = None) -> None:
        self.schema = schema
        self.segment_id = segment_id or uuid4().hex
        self.created_at = datetime.now(timezone.utc)
        self._postings: MutableMapping[str, MutableMapping[str, MutableMapping[str, list[int]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(list))
        )
        self._field_lengths: MutableMapping[str, MutableMapping[str, int]] = defaultdict(dict)
        self._stored_fields: dict[str, dict[str, Any]] = {}

    @property
    def doc_count(self) -> int:
        return len(self._stored_fields)

    def add_document(self, document: Mapping[str, Any]) -> str:
        doc_key = self._normalize_unique(document)
        if doc_key in self._stored_fields:
            msg = f"Duplicate document for unique field '{self.schema.unique_field}': {doc_key}"
            raise StorageError(msg)

        stored: dict[str, Any] = {}
        for schema_field in self.schema.fields:
            value = document.get(schema_field.name)
            if schema_field.stored and value not in (None, "", [], ()):
                stored[schema_field.name] = list(value) if isinstance(value, tuple) else value
            if not schema_field.indexed:
                continue
            tokens = self._analyze_field(schema_field, value)
            if not tokens:
                continue
            self._field_lengths[schema_field.name][doc_key] = len(tokens)
            for token in tokens:
                self._postings[schema_field.name][token.text][doc_key].append(token.position)

        stored[self.schema.unique_field] = doc_key
        self._stored_fields[doc_key] = stored
        return doc_key

    def build(self) -> IndexSegment:
        postings: dict[str, dict[str, list[Posting]]] = {}
        for field_name, terms in self._postings.items():
            postings[field_name] = {
                term: [Posting(doc_id=doc_id, positions=array("I", positions)) for doc_id, positions in doc_map.items()]
                for term, doc_map in terms.items()
            }

        return IndexSegment(
            schema=self.schema,
            postings=postings,
            stored_fields=dict(self._stored_fields),
            field_lengths={name: dict(lengths) for name, lengths in self._field_lengths.items()},
            segment_id=self.segment_id,
            created_at=self.created_at,
        )

    def _normalize_unique(self, document: Mapping[str, Any]) -> str:
        value = document.get(self.schema.unique_field)
        if value is None or value == "":
            msg = f"Document missing unique field '{self.schema.unique_field}'"
            raise StorageError(msg)
        return str(value)

    def _analyze_field(self, schema_field: SchemaField, value: Any) -> list[Token]:
        # keyword fields (the ref) are stored for lookup, never searched
        if value is None or not isinstance(schema_field, TextField):
            return []
        return _analyze_values(get_analyzer(schema_field.analyzer_name), _as_values(value))


def _as_values(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def _analyze_values(analyzer: Analyzer, values: Sequence[str]) -> list[Token]:
    """Analyze each value separately and renumber positions across all of them."""
    tokens: list[Token] = []
    for entry in values:
        for token in analyzer(entry):
            token.position = len(tokens)
            tokens.append(token)
    return tokens


def write_segment(segment: IndexSegment, path: Path) -> Path:
    """Atomically write ``segment`` as JSON to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(segment.dumps())
    tmp_path.replace(path)
    logger.debug("Wrote index segment %s to %s", segment.segment_id, path)
    return path
