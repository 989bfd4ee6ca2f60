"""
Normalization package: text cleanup and quality scoring of raw track records.
"""
from .normalizer import normalize, normalize_playlist
from .quality import (
    FilterResult,
    ValidationReport,
    ValidationResult,
    filter_songs,
    generate_report,
    score_track,
    validate_song,
)

__all__ = [
    "normalize",
    "normalize_playlist",
    "score_track",
    "validate_song",
    "filter_songs",
    "generate_report",
    "FilterResult",
    "ValidationResult",
    "ValidationReport",
]
