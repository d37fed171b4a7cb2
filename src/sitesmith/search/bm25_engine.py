"""BM25F scoring over a loaded index segment."""

from __future__ import annotations

from bisect import bisect_left
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
import math
from types import MappingProxyType

from sitesmith.search.analyzers import get_analyzer
from sitesmith.search.schema import Schema
from sitesmith.search.stats import B, K1, average_field_lengths, inverse_document_frequency, term_weight
from sitesmith.search.storage import IndexSegment


@dataclass(frozen=True)
class RankedDocument:
    """Represents a scored document produced by the BM25 engine."""

    doc_id: str
    score: float


@dataclass(frozen=True)
class QueryTokens:
    """Query terms per boosted field, each field analyzed with its own analyzer."""

    per_field: Mapping[str, tuple[str, ...]]

    @classmethod
    def empty(cls) -> QueryTokens:
        return cls(MappingProxyType({}))

    def is_empty(self) -> bool:
        return not self.per_field


def expansion_weight(query_term: str, indexed_term: str) -> float:
    """Weight of an indexed term reached by prefix expansion.

    Exact matches keep full weight; longer completions are discounted by how
    many characters they add (never below a three-character gap).
    """
    if indexed_term == query_term:
        return 1.0
    gap = max(3, len(indexed_term) - len(query_term))
    return 1.0 / math.log(gap)


class BM25SearchEngine:
    """Compute BM25F scores for documents stored in an index segment."""

    def __init__(
        self,
        schema: Schema,
        *,
        field_boosts: Mapping[str, float] | None = None,
        k1: float = K1,
        b: float = B,
        expand: bool = True,
    ) -> None:
        self.schema = schema
        self.field_boosts = dict(field_boosts) if field_boosts is not None else schema.field_boosts()
        self.k1 = k1
        self.b = b
        self.expand = expand
        self._vocabulary_cache: dict[tuple[str, str], list[str]] = {}

    def tokenize_query(self, text: str) -> QueryTokens:
        """Analyze the query once per boosted field, dropping repeated terms."""
        if not text.strip():
            return QueryTokens.empty()

        per_field: dict[str, tuple[str, ...]] = {}
        for field in self.schema.text_fields:
            if self.field_boosts.get(field.name, 0.0) <= 0:
                continue
            analyzer = get_analyzer(field.analyzer_name)
            terms = tuple(dict.fromkeys(token.text for token in analyzer(text) if token.text))
            if terms:
                per_field[field.name] = terms

        if not per_field:
            return QueryTokens.empty()
        return QueryTokens(MappingProxyType(per_field))

    def _vocabulary(self, segment: IndexSegment, field_name: str) -> list[str]:
        cache_key = (segment.segment_id, field_name)
        vocabulary = self._vocabulary_cache.get(cache_key)
        if vocabulary is None:
            vocabulary = sorted(segment.get_field_postings(field_name))
            self._vocabulary_cache[cache_key] = vocabulary
        return vocabulary

    def _matching_terms(self, segment: IndexSegment, field_name: str, term: str) -> list[tuple[str, float]]:
        """Indexed terms a query term reaches, with their expansion weight."""
        postings_by_term = segment.get_field_postings(field_name)
        if not self.expand:
            return [(term, 1.0)] if term in postings_by_term else []

        vocabulary = self._vocabulary(segment, field_name)
        matches: list[tuple[str, float]] = []
        for idx in range(bisect_left(vocabulary, term), len(vocabulary)):
            candidate = vocabulary[idx]
            if not candidate.startswith(term):
                break
            matches.append((candidate, expansion_weight(term, candidate)))
        return matches

    def score(self, segment: IndexSegment, query_tokens: QueryTokens) -> list[RankedDocument]:
        """Return ranked results, best first; equal scores keep insertion order."""
        if query_tokens.is_empty():
            return []

        averages = average_field_lengths(segment.field_lengths)
        doc_scores: dict[str, float] = defaultdict(float)
        total_docs = max(segment.doc_count, 1)

        for field_name, tokens in query_tokens.per_field.items():
            average_length = averages.get(field_name)
            if average_length is None:
                continue

            field_boost = self.field_boosts.get(field_name, 1.0)
            doc_lengths = segment.field_lengths.get(field_name, {})

            for term in tokens:
                for indexed_term, similarity in self._matching_terms(segment, field_name, term):
                    postings = segment.get_postings(field_name, indexed_term)
                    idf = inverse_document_frequency(len(postings), total_docs)
                    for posting in postings:
                        doc_length = doc_lengths.get(posting.doc_id, posting.frequency)
                        weight = term_weight(posting.frequency, doc_length, average_length, k1=self.k1, b=self.b)
                        if weight <= 0:
                            continue
                        doc_scores[posting.doc_id] += idf * weight * field_boost * similarity

        order = segment.insertion_order()
        ranked = [RankedDocument(doc_id=doc_id, score=score) for doc_id, score in doc_scores.items() if score > 0]
        return sorted(ranked, key=lambda entry: (-entry.score, order.get(entry.doc_id, len(order))))
