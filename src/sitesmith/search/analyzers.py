"""Text analysis shared by the index builder and the query engine.

Site documents carry two kinds of searchable text. Prose (titles,
descriptions, body text) is split into words, lowercased, stripped of
stopwords and stemmed. Tags are short labels: they are lowercased and kept
whole alongside their individual words, but never stemmed.

Schema fields name their analyzer (``None`` means prose). The query engine
runs every query through the analyzer of each field it searches, so "Guides"
typed into the search box lands on the term "guides" in a post title was
indexed as.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import re


@dataclass
class Token:
    """A term and its position within the analyzed value."""

    text: str
    position: int


Analyzer = Callable[[str], list[Token]]

_WORDS = re.compile(r"[\w']+")

STOPWORDS = frozenset(
    """
    a an and are as at be but by for if in into is it no not of on or such
    that the their then there these they this to was will with
    """.split()
)

# Tried in order; the first suffix that leaves at least two letters wins.
_DERIVATIONAL_SUFFIXES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"), ("ational", "ate"), ("fulness", "ful"), ("ousness", "ous"),
    ("iveness", "ive"), ("tional", "tion"), ("biliti", "ble"), ("lessli", "less"),
    ("entli", "ent"), ("enci", "ence"), ("anci", "ance"), ("izer", "ize"),
    ("abli", "able"), ("alli", "al"), ("ator", "ate"), ("alism", "al"),
    ("aliti", "al"), ("ousli", "ous"), ("ration", "rate"), ("ation", "ate"),
    ("ness", ""), ("ment", ""), ("ance", "an"), ("ence", "en"),
    ("able", ""), ("ible", ""),
)

_INFLECTIONAL_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")


def stem(word: str) -> str:
    """Strip one derivational or inflectional suffix from a lowercase word.

    >>> [stem(w) for w in ("posts", "classes", "class", "tagging", "organization")]
    ['post', 'class', 'class', 'tagg', 'organize']
    """
    for suffix, replacement in _DERIVATIONAL_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 2:
            return word[: -len(suffix)] + replacement
    for suffix in _INFLECTIONAL_SUFFIXES:
        # "ss" endings (class, access) are not plurals
        if suffix == "s" and word.endswith("ss"):
            break
        if word.endswith(suffix) and len(word) - len(suffix) >= 2:
            return word[: -len(suffix)]
    return word


def _numbered(terms: Iterable[str]) -> list[Token]:
    return [Token(text=term, position=position) for position, term in enumerate(terms)]


def analyze_prose(text: str) -> list[Token]:
    """Lowercased, stemmed words of ``text`` with stopwords removed."""
    words = (word.lower() for word in _WORDS.findall(text))
    return _numbered(stem(word) for word in words if word not in STOPWORDS)


def analyze_tag(text: str) -> list[Token]:
    """The whole tag, followed by its words when it has more than one.

    >>> [token.text for token in analyze_tag("Machine  Learning")]
    ['machine learning', 'machine', 'learning']
    """
    tag = " ".join(text.lower().split())
    if not tag:
        return []
    words = _WORDS.findall(tag)
    return _numbered(words if words == [tag] else [tag, *words])


DEFAULT_ANALYZER = "prose"

_ANALYZERS: dict[str, Analyzer] = {
    "prose": analyze_prose,
    "tag": analyze_tag,
}


def get_analyzer(name: str | None) -> Analyzer:
    """Look up an analyzer by schema name; ``None`` selects prose."""
    key = DEFAULT_ANALYZER if name is None else name.lower()
    if key not in _ANALYZERS:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZERS)}"
        raise ValueError(msg)
    return _ANALYZERS[key]
