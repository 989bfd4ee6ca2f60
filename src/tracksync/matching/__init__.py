"""
Matching package: similarity scoring, catalog match selection and duplicate detection.
"""
from .duplicates import DuplicateDetector, is_duplicate, track_similarity
from .selector import STRATEGIES, MatchSelector, SearchClient, SearchStrategy
from .similarity import levenshtein_distance, string_similarity

__all__ = [
    "string_similarity",
    "levenshtein_distance",
    "track_similarity",
    "DuplicateDetector",
    "is_duplicate",
    "MatchSelector",
    "SearchClient",
    "SearchStrategy",
    "STRATEGIES",
]
