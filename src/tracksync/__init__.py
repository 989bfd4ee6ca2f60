"""
tracksync - Reconcile music track exports against a streaming catalog.

This package provides functionality to:
- Normalize noisy track metadata into search-ready records
- Score and filter records by metadata quality
- Find the best catalog match for each track
- Skip tracks already present in a target playlist

Example:
    Analyzing an export from the command line:

    $ tracksync analyze playlist.json

    Programmatic usage:

    >>> import asyncio
    >>> from tracksync import Config, ReconcileService, TidalSearchClient
    >>> service = ReconcileService(TidalSearchClient(session), Config.from_env())
    >>> result = asyncio.run(service.run(records, existing_tracks))
    >>> result.track_uris
"""

__version__ = "0.1.0"
__license__ = "MIT"

# CLI interface
from .cli import cli
from .core.config import Config
from .core.exceptions import (
    CachePersistenceError,
    ConfigurationError,
    NormalizationError,
    RateLimitError,
    SearchError,
    SearchFatalError,
    SearchTransientError,
    TrackSyncError,
)
from .core.models import (
    DuplicateMethod,
    DuplicateVerdict,
    MatchCandidate,
    MatchResult,
    NormalizedTrack,
    ReconcileResult,
)
from .core.pipeline import ReconcileService

# Integration services
from .integrations.tidal import TidalSearchClient
from .matching import DuplicateDetector, MatchSelector, string_similarity
from .normalization import filter_songs, normalize, normalize_playlist, score_track
from .storage import ResultCache

__all__ = [
    "__version__",
    "Config",
    "NormalizedTrack",
    "MatchCandidate",
    "MatchResult",
    "DuplicateMethod",
    "DuplicateVerdict",
    "ReconcileResult",
    "TrackSyncError",
    "ConfigurationError",
    "NormalizationError",
    "SearchError",
    "SearchTransientError",
    "SearchFatalError",
    "RateLimitError",
    "CachePersistenceError",
    "ReconcileService",
    "MatchSelector",
    "DuplicateDetector",
    "ResultCache",
    "TidalSearchClient",
    "normalize",
    "normalize_playlist",
    "score_track",
    "filter_songs",
    "string_similarity",
    "cli",
]
