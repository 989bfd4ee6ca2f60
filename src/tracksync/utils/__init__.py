"""
Utilities package.
"""
from .music_utils import extract_track_info
from .retry import exponential_backoff, retry_async
from .string_utils import clean_text, comparison_text, normalize_string

__all__ = [
    "clean_text",
    "comparison_text",
    "normalize_string",
    "extract_track_info",
    "exponential_backoff",
    "retry_async",
]
