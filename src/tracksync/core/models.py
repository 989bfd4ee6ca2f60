"""
Data models for the tracksync package.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class QualityReport:
    """Quality score, issue list and confidence tier for a normalized track."""

    score: int
    issues: Tuple[str, ...] = ()
    confidence: str = "low"

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


@dataclass(frozen=True)
class NormalizedTrack:
    """A cleaned, search-ready track record derived from a raw record."""

    title: str
    artist: str
    album: str = ""
    genre: str = ""
    year: Optional[int] = None
    duration: Optional[int] = None  # Duration in seconds
    play_count: Optional[int] = None
    features: Tuple[str, ...] = ()
    version: Optional[str] = None
    is_live: bool = False
    is_remix: bool = False
    is_instrumental: bool = False
    is_explicit: bool = False
    search_title: str = ""
    search_artist: str = ""
    search_album: str = ""
    quality: QualityReport = field(default_factory=lambda: QualityReport(score=0))
    original: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    processed_at: str = field(default="", compare=False)
    processor: str = field(default="normalizer", compare=False)

    @property
    def full_title(self) -> str:
        """Title including the version qualifier, e.g. 'Song (Live)'."""
        if self.version:
            return f"{self.title} ({self.version})"
        return self.title

    @property
    def artists(self) -> List[str]:
        """Primary artist followed by featured artists."""
        names = [self.artist] if self.artist else []
        return names + list(self.features)

    @property
    def duration_formatted(self) -> str:
        """Get duration in MM:SS format."""
        if self.duration is None:
            return "Unknown"
        minutes = self.duration // 60
        seconds = self.duration % 60
        return f"{minutes}:{seconds:02d}"

    def __str__(self) -> str:
        return f"{self.full_title} by {self.artist or 'Unknown Artist'}"


@dataclass(frozen=True)
class MatchCandidate:
    """A track returned by the target catalog's search interface."""

    title: str
    artists: Tuple[str, ...] = ()
    album: str = ""
    uri: str = ""
    id: Optional[str] = None
    duration: Optional[int] = None

    @property
    def primary_artist(self) -> Optional[str]:
        """Get the primary artist (first in list)."""
        return self.artists[0] if self.artists else None

    @property
    def artist_names(self) -> str:
        return " ".join(self.artists)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "artists": list(self.artists),
            "album": self.album,
            "uri": self.uri,
            "id": self.id,
            "duration": self.duration,
        }

    def __str__(self) -> str:
        return f"{self.title} by {' & '.join(self.artists) or 'Unknown Artist'}"


@dataclass
class MatchResult:
    """Outcome of matching one normalized track against the target catalog."""

    track: NormalizedTrack
    candidate: Optional[MatchCandidate] = None
    confidence: float = 0.0
    strategy: Optional[str] = None
    error: Optional[str] = None
    from_cache: bool = False

    @property
    def is_matched(self) -> bool:
        return self.candidate is not None

    @property
    def uri(self) -> Optional[str]:
        return self.candidate.uri if self.candidate else None

    @classmethod
    def unmatched(
        cls, track: NormalizedTrack, error: Optional[str] = None
    ) -> "MatchResult":
        return cls(track=track, candidate=None, confidence=0.0, error=error)

    def __str__(self) -> str:
        if self.candidate is None:
            return f"No match for {self.track}"
        return (
            f"{self.track} -> {self.candidate} "
            f"({self.strategy}, confidence={self.confidence:.2f})"
        )


class DuplicateMethod(str, Enum):
    """Rule that classified a track as a duplicate."""

    EXACT_SIGNATURE = "exact_signature"
    CORE_SIGNATURE = "core_signature"
    HIGH_SIMILARITY = "high_similarity"
    MEDIUM_SIMILARITY_EXACT_ARTIST = "medium_similarity_exact_artist"
    NONE = "none"


@dataclass(frozen=True)
class DuplicateVerdict:
    """Result of checking a track against an existing collection."""

    is_duplicate: bool
    method: DuplicateMethod = DuplicateMethod.NONE
    confidence: float = 0.0
    matched_existing: Optional[Any] = None

    @classmethod
    def not_duplicate(cls) -> "DuplicateVerdict":
        return cls(is_duplicate=False)


@dataclass
class CacheEntry:
    """Cached outcome of a previous search, keyed by track fingerprint."""

    matched: bool
    uri: Optional[str] = None
    track_id: Optional[str] = None
    title: Optional[str] = None
    artists: List[str] = field(default_factory=list)
    album: Optional[str] = None
    confidence: float = 0.0
    strategy: Optional[str] = None
    error: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @classmethod
    def from_match_result(cls, result: MatchResult) -> "CacheEntry":
        candidate = result.candidate
        if candidate is None:
            return cls(matched=False, error=result.error)
        return cls(
            matched=True,
            uri=candidate.uri,
            track_id=candidate.id,
            title=candidate.title,
            artists=list(candidate.artists),
            album=candidate.album,
            confidence=result.confidence,
            strategy=result.strategy,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CacheEntry":
        """Build an entry from stored JSON, ignoring fields it does not know."""
        return cls(
            matched=bool(data.get("matched", False)),
            uri=data.get("uri"),
            track_id=data.get("track_id"),
            title=data.get("title"),
            artists=list(data.get("artists") or []),
            album=data.get("album"),
            confidence=float(data.get("confidence") or 0.0),
            strategy=data.get("strategy"),
            error=data.get("error"),
            timestamp=data.get("timestamp") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "uri": self.uri,
            "track_id": self.track_id,
            "title": self.title,
            "artists": list(self.artists),
            "album": self.album,
            "confidence": self.confidence,
            "strategy": self.strategy,
            "error": self.error,
            "timestamp": self.timestamp,
        }

    def to_candidate(self) -> Optional[MatchCandidate]:
        if not self.matched:
            return None
        return MatchCandidate(
            title=self.title or "",
            artists=tuple(self.artists),
            album=self.album or "",
            uri=self.uri or "",
            id=self.track_id,
        )

    def to_match_result(self, track: NormalizedTrack) -> MatchResult:
        candidate = self.to_candidate()
        return MatchResult(
            track=track,
            candidate=candidate,
            confidence=self.confidence if candidate else 0.0,
            strategy=self.strategy,
            error=self.error,
            from_cache=True,
        )


@dataclass
class ReconcileResult:
    """Represents the result of one reconciliation run."""

    source_name: str
    total_tracks: int
    valid_tracks: int
    matched_tracks: int
    duplicate_tracks: int
    track_uris: List[str] = field(default_factory=list)
    matches: List[MatchResult] = field(default_factory=list)
    verdicts: List[Tuple[MatchResult, DuplicateVerdict]] = field(default_factory=list)
    filter_stats: Dict[str, int] = field(default_factory=dict)
    cache_hits: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def rejected_tracks(self) -> int:
        return self.total_tracks - self.valid_tracks

    @property
    def unmatched_tracks(self) -> int:
        return self.valid_tracks - self.matched_tracks

    @property
    def added_tracks(self) -> int:
        """Tracks handed to the playlist for addition."""
        return len(self.track_uris)

    @property
    def match_rate(self) -> float:
        """Get the match rate over valid tracks as a percentage."""
        if self.valid_tracks == 0:
            return 0.0
        return (self.matched_tracks / self.valid_tracks) * 100

    def __str__(self) -> str:
        return (
            f"Reconcile Result: {self.matched_tracks}/{self.valid_tracks} tracks "
            f"matched ({self.match_rate:.1f}%), {self.duplicate_tracks} duplicates, "
            f"{self.added_tracks} to add from '{self.source_name}'"
        )
