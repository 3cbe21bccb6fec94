"""
Similarity sub-metrics - pure functions over normalized strings.

Every metric here is bounded to [0, 1], symmetric and reflexive:
- jaccard_similarity: overlap of whitespace-split word sets
- levenshtein_similarity: 1 - edit_distance / longer length
- ngram_similarity: overlap of word n-gram sets

Edit distance is delegated to rapidfuzz (C implementation, same
insert/delete/substitute unit costs as the textbook DP).
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]")


def normalize_text(text: str) -> str:
    """Lower-case, trim and collapse whitespace. Used only for comparison."""
    return _WHITESPACE.sub(" ", text).strip().lower()


def jaccard_similarity(a: str, b: str) -> float:
    """Ratio of shared to total distinct whitespace-split tokens.

    Two empty token sets are identical, so they score 1.0.
    """
    tokens_a = set(a.split())
    tokens_b = set(b.split())

    if not tokens_a and not tokens_b:
        return 1.0

    union = tokens_a | tokens_b
    return len(tokens_a & tokens_b) / len(union)


def levenshtein_distance(a: str, b: str) -> int:
    """Single-character insert/delete/substitute distance, unit costs."""
    return Levenshtein.distance(a, b)


def levenshtein_similarity(a: str, b: str) -> float:
    """1 - edit_distance / max(len(a), len(b)); 1.0 for two empty strings."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len


def calculate_fuzzy_match(a: str, b: str) -> float:
    """Fuzzy match score (0-1) from raw edit distance, no normalization."""
    return levenshtein_similarity(a, b)


def _word_tokens(text: str) -> list[str]:
    # Punctuation stripped, words of 2 chars or fewer dropped
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [word for word in cleaned.split() if len(word) > 2]


def ngram_similarity(a: str, b: str, n: int = 2) -> float:
    """Jaccard overlap of word n-grams."""
    def ngrams(text: str) -> set[str]:
        tokens = _word_tokens(text)
        return {" ".join(tokens[i:i + n]) for i in range(len(tokens) - n + 1)}

    grams_a = ngrams(a)
    grams_b = ngrams(b)
    if not grams_a and not grams_b:
        return 1.0 if a == b else 0.0

    union = grams_a | grams_b
    return len(grams_a & grams_b) / len(union)
