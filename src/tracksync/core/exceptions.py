"""
Custom exceptions for the tracksync package.
"""
from typing import Optional


class TrackSyncError(Exception):
    """Base exception for all tracksync errors."""
    pass


class ConfigurationError(TrackSyncError):
    """Raised when configuration is invalid."""
    pass


class NormalizationError(TrackSyncError):
    """Raised when a raw record cannot be normalized."""
    pass


class SearchError(TrackSyncError):
    """Raised when a catalog search fails."""
    pass


class SearchTransientError(SearchError):
    """Raised when the search collaborator signals a rate limit."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


# Kept for readability at call sites that talk about rate limits
RateLimitError = SearchTransientError


class SearchFatalError(SearchError):
    """Raised for non-retryable search collaborator errors."""
    pass


class CachePersistenceError(TrackSyncError):
    """Raised when the result cache cannot be written."""
    pass
