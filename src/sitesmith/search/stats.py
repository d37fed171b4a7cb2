"""BM25 arithmetic over plain numbers, independent of the segment layout."""

from __future__ import annotations

from collections.abc import Mapping
import math


K1 = 1.2
B = 0.75
# A page body many times longer than its field's average stops losing weight here.
MAX_LENGTH_RATIO = 4.0
_IDF_FLOOR = 1e-6


def average_field_lengths(field_lengths: Mapping[str, Mapping[str, int]]) -> dict[str, float]:
    """Mean analyzed length of each field over the documents that have it.

    A post without a description does not pull the description average down.
    """
    averages: dict[str, float] = {}
    for field_name, lengths in field_lengths.items():
        if lengths:
            averages[field_name] = sum(max(length, 0) for length in lengths.values()) / len(lengths)
    return averages


def inverse_document_frequency(doc_freq: int, total_docs: int) -> float:
    """Smoothed IDF that stays positive for a term found on every page of a small site."""
    if total_docs <= 0:
        return 0.0
    doc_freq = max(0, min(doc_freq, total_docs))
    ratio = max((total_docs - doc_freq + 0.5) / (doc_freq + 0.5), _IDF_FLOOR)
    return max(math.log(ratio + _IDF_FLOOR) + 1.0, _IDF_FLOOR)


def term_weight(tf: int, field_length: int, average_length: float, *, k1: float = K1, b: float = B) -> float:
    """BM25 saturation and length normalization for one term in one field, without IDF."""
    if tf <= 0:
        return 0.0
    length_ratio = min(field_length / max(average_length, 1e-9), MAX_LENGTH_RATIO)
    return tf * (k1 + 1) / (tf + k1 * (1 - b + b * length_ratio))
