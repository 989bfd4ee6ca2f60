"""
Duplicate detection against an existing track collection.

Each existing track is checked against a tiered rule set and the first
existing track that satisfies any tier decides the verdict:

1. exact signature (search title + artist)
2. core signature (same, with remaster/edition qualifiers removed)
3. high overall similarity
4. medium overall similarity with a near-identical artist
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from ..core.models import DuplicateMethod, DuplicateVerdict
from ..utils.music_utils import extract_track_info
from ..utils.string_utils import comparison_text
from .similarity import string_similarity

logger = logging.getLogger(__name__)

SIGNATURE_SEPARATOR = "|||"
MIN_SIGNATURE_LENGTH = 6

CORE_SIGNATURE_CONFIDENCE = 0.95
HIGH_SIMILARITY_THRESHOLD = 0.90
MEDIUM_SIMILARITY_THRESHOLD = 0.75
EXACT_ARTIST_THRESHOLD = 0.95

TITLE_WEIGHT = 0.60
ARTIST_WEIGHT = 0.35
ALBUM_WEIGHT = 0.05

CORE_QUALIFIER_PATTERN = re.compile(
    r"\b(?:(?:19|20)\d{2}\s+)?"
    r"(?:remastered|remaster|deluxe|extended|radio edit|album version"
    r"|single version|ultimate mix)"
    r"(?:\s+(?:(?:19|20)\d{2}|version|edition|mix))?\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ComparableTrack:
    """Comparison-ready title/artist/album strings plus the source object."""

    title: str
    artist: str
    album: str
    source: Any = None

    @classmethod
    def from_track(cls, track: Any) -> "ComparableTrack":
        title, artist, album = extract_track_info(track)
        return cls(
            title=comparison_text(title),
            artist=comparison_text(artist),
            album=comparison_text(album),
            source=track,
        )

    @property
    def signature(self) -> str:
        return f"{self.title}{SIGNATURE_SEPARATOR}{self.artist}"

    @property
    def core_signature(self) -> str:
        core_title = re.sub(r"\s+", " ", CORE_QUALIFIER_PATTERN.sub("", self.title)).strip()
        return f"{core_title}{SIGNATURE_SEPARATOR}{self.artist}"


@dataclass(frozen=True)
class SimilarityBreakdown:
    overall: float
    title: float
    artist: float
    album: float


def track_similarity(first: ComparableTrack, second: ComparableTrack) -> SimilarityBreakdown:
    """Weighted similarity: title 60%, artist 35%, album 5%."""
    title = string_similarity(first.title, second.title)
    artist = string_similarity(first.artist, second.artist)
    # An album missing on either side contributes nothing
    album = (
        string_similarity(first.album, second.album)
        if first.album and second.album
        else 0.0
    )
    overall = title * TITLE_WEIGHT + artist * ARTIST_WEIGHT + album * ALBUM_WEIGHT
    return SimilarityBreakdown(overall=overall, title=title, artist=artist, album=album)


def compare(candidate: ComparableTrack, existing: ComparableTrack) -> Optional[Tuple[DuplicateMethod, float]]:
    """Return the first tier the pair satisfies, with its confidence."""
    signature = candidate.signature
    if signature == existing.signature and len(signature) > MIN_SIGNATURE_LENGTH:
        return DuplicateMethod.EXACT_SIGNATURE, 1.0

    core = candidate.core_signature
    if core == existing.core_signature and len(core) > MIN_SIGNATURE_LENGTH:
        return DuplicateMethod.CORE_SIGNATURE, CORE_SIGNATURE_CONFIDENCE

    similarity = track_similarity(candidate, existing)
    if similarity.overall > HIGH_SIMILARITY_THRESHOLD:
        return DuplicateMethod.HIGH_SIMILARITY, similarity.overall

    if (
        similarity.overall > MEDIUM_SIMILARITY_THRESHOLD
        and similarity.artist > EXACT_ARTIST_THRESHOLD
    ):
        return DuplicateMethod.MEDIUM_SIMILARITY_EXACT_ARTIST, similarity.overall

    return None


class DuplicateDetector:
    """Checks tracks against a collection that can grow as tracks are accepted."""

    def __init__(self, existing: Iterable[Any] = ()):
        self._existing: List[ComparableTrack] = [
            ComparableTrack.from_track(track) for track in existing if track is not None
        ]

    def __len__(self) -> int:
        return len(self._existing)

    def add(self, track: Any) -> None:
        """Include a track in the collection for later checks."""
        if track is not None:
            self._existing.append(ComparableTrack.from_track(track))

    def check(self, track: Any) -> DuplicateVerdict:
        """
        Classify a track against the collection.

        The first existing track (in collection order) satisfying any tier
        wins; later, stronger matches are not considered.
        """
        if track is None:
            return DuplicateVerdict.not_duplicate()

        candidate = ComparableTrack.from_track(track)
        for existing in self._existing:
            outcome = compare(candidate, existing)
            if outcome is None:
                continue
            method, confidence = outcome
            logger.debug(
                f"Duplicate ({method.value}, confidence={confidence:.2f}): "
                f"'{candidate.signature}' ~ '{existing.signature}'"
            )
            return DuplicateVerdict(
                is_duplicate=True,
                method=method,
                confidence=confidence,
                matched_existing=existing.source,
            )

        return DuplicateVerdict.not_duplicate()


def is_duplicate(track: Any, existing: Iterable[Any]) -> DuplicateVerdict:
    """Check one track against an existing collection."""
    return DuplicateDetector(existing).check(track)
