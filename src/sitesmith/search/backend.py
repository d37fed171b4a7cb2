"""Search backend interface and the BM25 implementation.

The index builder and the runtime engine only talk to ``SearchBackend``:
documents go in through ``add_document``, the snapshot leaves through
``serialize``, comes back through ``load``, and is consulted through
``query``. Any matching/scoring strategy that honors those four calls can
replace ``SearchIndex``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sitesmith.search.bm25_engine import BM25SearchEngine
from sitesmith.search.models import Hit, SearchDocument
from sitesmith.search.schema import Schema, create_site_schema
from sitesmith.search.storage import IndexSegment, SegmentWriter, StorageError


@runtime_checkable
class SearchBackend(Protocol):
    """Narrow interface between the search contracts and the index structure."""

    def add_document(self, document: SearchDocument) -> str: ...

    def serialize(self) -> bytes: ...

    @classmethod
    def load(cls, payload: bytes | str | Mapping[str, Any]) -> SearchBackend: ...

    def query(
        self,
        text: str,
        *,
        field_boosts: Mapping[str, float] | None = None,
        expand: bool = True,
    ) -> list[Hit]: ...

    def get_document(self, ref: str) -> SearchDocument | None: ...


class SearchIndex:
    """BM25F-backed ``SearchBackend``.

    A fresh instance accepts documents. Once ``freeze`` is called, or when the
    instance comes from ``load``, the index is a read-only snapshot.
    """

    def __init__(self, schema: Schema | None = None) -> None:
        self.schema = schema or create_site_schema()
        self._writer: SegmentWriter | None = SegmentWriter(self.schema)
        self._segment: IndexSegment | None = None
        self._engines: dict[tuple[tuple[str, float], ...], BM25SearchEngine] = {}

    @classmethod
    def from_segment(cls, segment: IndexSegment) -> SearchIndex:
        index = cls(segment.schema)
        index._writer = None
        index._segment = segment
        return index

    @property
    def frozen(self) -> bool:
        return self._writer is None

    @property
    def segment(self) -> IndexSegment:
        if self._segment is None:
            if self._writer is None:
                msg = "Index has neither a writer nor a built segment"
                raise StorageError(msg)
            self._segment = self._writer.build()
        return self._segment

    def __len__(self) -> int:
        if self._writer is not None:
            return self._writer.doc_count
        return self.segment.doc_count

    def add_document(self, document: SearchDocument) -> str:
        if self._writer is None:
            msg = "Index is frozen; documents can no longer be added"
            raise StorageError(msg)
        doc_key = self._writer.add_document(document.to_dict())
        self._segment = None
        self._engines.clear()
        return doc_key

    def freeze(self) -> SearchIndex:
        """Build the snapshot and stop accepting documents."""
        segment = self.segment
        self._writer = None
        self._segment = segment
        return self

    def serialize(self) -> bytes:
        return self.segment.dumps()

    def to_dict(self) -> dict[str, Any]:
        return self.segment.to_dict()

    @classmethod
    def load(cls, payload: bytes | str | Mapping[str, Any]) -> SearchIndex:
        """Rebuild a frozen index from ``serialize`` output (raw or parsed)."""
        if isinstance(payload, Mapping):
            segment = IndexSegment.from_dict(payload)
        else:
            segment = IndexSegment.loads(payload)
        return cls.from_segment(segment)

    def get_document(self, ref: str) -> SearchDocument | None:
        stored = self.segment.get_document(ref)
        if stored is None:
            return None
        return SearchDocument.from_dict(stored)

    def documents(self) -> list[SearchDocument]:
        """All documents in insertion order."""
        return [SearchDocument.from_dict(stored) for stored in self.segment.stored_fields.values()]

    def _engine(self, field_boosts: Mapping[str, float], expand: bool) -> BM25SearchEngine:
        cache_key = (*sorted(field_boosts.items()), ("__expand__", float(expand)))
        engine = self._engines.get(cache_key)
        if engine is None:
            engine = BM25SearchEngine(self.schema, field_boosts=field_boosts, expand=expand)
            self._engines[cache_key] = engine
        return engine

    def query(
        self,
        text: str,
        *,
        field_boosts: Mapping[str, float] | None = None,
        expand: bool = True,
    ) -> list[Hit]:
        """Return hits ordered by descending score, ties in insertion order."""
        engine = self._engine(field_boosts or self.schema.field_boosts(), expand)
        tokens = engine.tokenize_query(text)
        ranked = engine.score(self.segment, tokens)
        return [Hit(ref=entry.doc_id, score=entry.score) for entry in ranked]
