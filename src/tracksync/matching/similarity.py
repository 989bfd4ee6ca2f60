"""
String similarity used by match selection and duplicate detection.

The score blends an edit-distance ratio with token overlap:
``0.6 * levenshtein_similarity + 0.4 * jaccard_similarity``.
"""
from typing import Set

from rapidfuzz.distance import Levenshtein

EDIT_DISTANCE_WEIGHT = 0.6
TOKEN_WEIGHT = 0.4


def levenshtein_distance(a: str, b: str) -> int:
    """Single-character insert/delete/substitute distance between two strings."""
    return Levenshtein.distance(a, b)


def _tokens(text: str) -> Set[str]:
    return {token for token in text.split() if token}


def jaccard_similarity(a: str, b: str) -> float:
    """Share of whitespace tokens the two strings have in common."""
    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def edit_similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def string_similarity(a: str, b: str) -> float:
    """
    Similarity of two strings in [0, 1].

    Equal strings (including two empty ones) score 1; one empty string
    against a non-empty one scores 0.
    """
    a = a or ""
    b = b or ""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    return (
        EDIT_DISTANCE_WEIGHT * edit_similarity(a, b)
        + TOKEN_WEIGHT * jaccard_similarity(a, b)
    )
