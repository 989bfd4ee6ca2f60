"""
Track metadata normalizer.

Turns raw exported track records into cleaned, search-ready
``NormalizedTrack`` objects. Everything here is a pure function over
module-level pattern tables; the tables are ordered and the first
matching pattern wins where noted.
"""
import logging
import math
import re
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from ..core.exceptions import NormalizationError
from ..core.models import NormalizedTrack, QualityReport
from ..utils.string_utils import clean_text, comparison_text
from .quality import MAX_DURATION, MAX_PLAY_COUNT, MIN_DURATION, MIN_YEAR, score_track

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    ["the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"]
)

_VERSION_KEYWORDS = (
    r"(?:remix|mix|edit|version|remaster|live|acoustic|instrumental"
    r"|radio|clean|explicit|deluxe)"
)
# A bracketed clause that opens with a featuring marker is never a version
_NOT_FEATURE = r"(?!\s*(?:feat\.?|featuring|ft\.?|with)\s)"

VERSION_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(rf"\s*\({_NOT_FEATURE}([^)]*?\b{_VERSION_KEYWORDS}[^)]*)\)", re.IGNORECASE),
    re.compile(rf"\s*\[{_NOT_FEATURE}([^\]]*?\b{_VERSION_KEYWORDS}[^\]]*)\]", re.IGNORECASE),
    re.compile(rf"\s+-\s+(.*?\b{_VERSION_KEYWORDS}.*)$", re.IGNORECASE),
)

_BRACKETED_FEATURE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\s*[(\[]\s*feat\.?\s+([^)\]]+)[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]\s*featuring\s+([^)\]]+)[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]\s*ft\.?\s+([^)\]]+)[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]\s*with\s+([^)\]]+)[)\]]", re.IGNORECASE),
)

_FEATURING_PATTERN = re.compile(r"\s+\bfeaturing\s+([^(\[]+)", re.IGNORECASE)

# Titles need the abbreviation dot ("A Feat of Clay" is a title)
_TITLE_BARE_FEATURE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\s+\bfeat\.\s+([^(\[]+)", re.IGNORECASE),
    _FEATURING_PATTERN,
    re.compile(r"\s+\bft\.\s+([^(\[]+)", re.IGNORECASE),
)

_ARTIST_BARE_FEATURE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\s+\bfeat\.?\s+([^(\[]+)", re.IGNORECASE),
    _FEATURING_PATTERN,
    re.compile(r"\s+\bft\.?\s+([^(\[]+)", re.IGNORECASE),
)

TITLE_FEATURE_PATTERNS = _BRACKETED_FEATURE_PATTERNS + _TITLE_BARE_FEATURE_PATTERNS
# Bare "with" only reads as a credit in an artist field ("Dance With Me" is a title)
ARTIST_FEATURE_PATTERNS = _BRACKETED_FEATURE_PATTERNS + _ARTIST_BARE_FEATURE_PATTERNS + (
    re.compile(r"\s+\bwith\s+([^(\[]+)", re.IGNORECASE),
)

ARTICLE_PATTERN = re.compile(r"^(.+),\s+(the|a|an)$", re.IGNORECASE)
ARTIST_SEPARATOR_PATTERN = re.compile(r"\s*,\s+|\s+(?:&|and|\+)\s+", re.IGNORECASE)
FEATURE_SPLIT_PATTERN = re.compile(r"[,&]")

ALBUM_SUFFIX_PATTERN = re.compile(
    r"\s*[(\[](?:Bonus Track Version|Deluxe Edition|Expanded Edition"
    r"|Remastered|Special Edition)[)\]]$",
    re.IGNORECASE,
)

TITLE_FIELDS = ("title", "name")
ARTIST_FIELDS = ("artist",)
ALBUM_FIELDS = ("album",)
GENRE_FIELDS = ("genre",)
YEAR_FIELDS = ("year",)
DURATION_FIELDS = ("duration", "time")
PLAY_COUNT_FIELDS = ("playcount", "play_count", "plays")


def _raw_field(record: Mapping[str, Any], names: Sequence[str]) -> Any:
    """Look a field up by any of its names, ignoring key case."""
    lowered = {str(key).lower(): value for key, value in record.items()}
    for name in names:
        value = lowered.get(name)
        if value not in (None, ""):
            return value
    return None


def _text_field(record: Mapping[str, Any], names: Sequence[str]) -> str:
    value = _raw_field(record, names)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return clean_text(value)


def extract_version(title: str) -> Tuple[Optional[str], str]:
    """
    Pull the first version/remix qualifier out of a title.

    Returns:
        Tuple of (qualifier or None, title without the qualifier)
    """
    for pattern in VERSION_PATTERNS:
        match = pattern.search(title)
        if match:
            version = match.group(1).strip()
            remaining = clean_text(title[: match.start()] + title[match.end():])
            return version, remaining
    return None, title


def version_flags(version: Optional[str]) -> Dict[str, bool]:
    """Derive the live/remix/instrumental/explicit flags from a qualifier."""
    if not version:
        return {
            "is_live": False,
            "is_remix": False,
            "is_instrumental": False,
            "is_explicit": False,
        }
    return {
        "is_live": bool(re.search(r"\blive\b", version, re.IGNORECASE)),
        "is_remix": bool(re.search(r"(?:remix|mix)$", version, re.IGNORECASE)),
        "is_instrumental": "instrumental" in version.lower(),
        "is_explicit": "explicit" in version.lower(),
    }


def extract_features(
    text: str, patterns: Iterable[Pattern[str]] = TITLE_FEATURE_PATTERNS
) -> Tuple[List[str], str]:
    """
    Extract featured artists from text.

    Each pattern is applied to the text left over by the previous ones, so a
    credit is only ever captured once.

    Returns:
        Tuple of (featured artist names, text with the credits removed)
    """
    features: List[str] = []
    working = text

    for pattern in patterns:
        for match in list(pattern.finditer(working)):
            names = [
                name.strip()
                for name in FEATURE_SPLIT_PATTERN.split(match.group(1))
                if name.strip()
            ]
            features.extend(names)
        working = pattern.sub("", working)

    return features, clean_text(working)


def normalize_articles(artist: str) -> str:
    """Handle "Artist, The" -> "The Artist" format."""
    match = ARTICLE_PATTERN.match(artist)
    if match:
        return f"{match.group(2)} {match.group(1)}".strip()
    return artist


def split_multiple_artists(artist: str) -> Tuple[str, List[str]]:
    """
    Split "A & B", "A and B", "A + B" or "A, B" into main and additional artists.
    """
    parts = [part.strip() for part in ARTIST_SEPARATOR_PATTERN.split(artist)]
    parts = [part for part in parts if part]
    if not parts:
        return artist, []
    return parts[0], parts[1:]


def to_title_case(text: str) -> str:
    """Capitalize each word except inner stop-words."""
    if not text:
        return ""

    words = text.lower().split(" ")
    last = len(words) - 1
    cased = []
    for index, word in enumerate(words):
        if 0 < index < last and word in STOP_WORDS:
            cased.append(word)
        else:
            cased.append(word[:1].upper() + word[1:])
    return " ".join(cased)


def dedupe_features(features: Iterable[str]) -> Tuple[str, ...]:
    """Title-case features and drop case-insensitive repeats, keeping order."""
    seen = set()
    unique = []
    for feature in features:
        cased = to_title_case(feature)
        key = cased.lower()
        if cased and key not in seen:
            seen.add(key)
            unique.append(cased)
    return tuple(unique)


def clean_album(album: str) -> str:
    if not album:
        return ""
    return to_title_case(clean_text(ALBUM_SUFFIX_PATTERN.sub("", album)))


def search_string(text: str) -> str:
    """Lowercase, punctuation-free, stop-word-free form of a display string."""
    words = comparison_text(text).split(" ")
    return " ".join(word for word in words if word and word not in STOP_WORDS)


def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else None


def validate_year(value: Any) -> Optional[int]:
    year = _parse_int(value)
    if year is not None and MIN_YEAR <= year <= datetime.now().year:
        return year
    return None


def validate_duration(value: Any) -> Optional[int]:
    """Validate duration in seconds; "m:ss" strings are accepted too."""
    if isinstance(value, str):
        clock = re.fullmatch(r"\s*(\d+):([0-5]\d)\s*", value)
        if clock:
            value = int(clock.group(1)) * 60 + int(clock.group(2))

    duration = _parse_int(value)
    if duration is not None and MIN_DURATION <= duration <= MAX_DURATION:
        return duration
    return None


def validate_play_count(value: Any) -> Optional[int]:
    play_count = _parse_int(value)
    if play_count is not None and 0 <= play_count <= MAX_PLAY_COUNT:
        return play_count
    return None


def _normalize(record: Mapping[str, Any]) -> NormalizedTrack:
    if not isinstance(record, Mapping):
        raise NormalizationError(f"Expected a mapping, got {type(record).__name__}")

    title = _text_field(record, TITLE_FIELDS)
    artist = _text_field(record, ARTIST_FIELDS)
    features: List[str] = []
    version = None

    if title:
        version, title = extract_version(title)
        title_features, title = extract_features(title, TITLE_FEATURE_PATTERNS)
        features.extend(title_features)
        title = to_title_case(title)

    if artist:
        artist = normalize_articles(artist)
        artist_features, artist = extract_features(artist, ARTIST_FEATURE_PATTERNS)
        features.extend(artist_features)
        main_artist, additional = split_multiple_artists(artist)
        artist = to_title_case(main_artist)
        features.extend(additional)

    album = clean_album(_text_field(record, ALBUM_FIELDS))

    draft = NormalizedTrack(
        title=title,
        artist=artist,
        album=album,
        genre=_text_field(record, GENRE_FIELDS),
        year=validate_year(_raw_field(record, YEAR_FIELDS)),
        duration=validate_duration(_raw_field(record, DURATION_FIELDS)),
        play_count=validate_play_count(_raw_field(record, PLAY_COUNT_FIELDS)),
        features=dedupe_features(features),
        version=version,
        search_title=search_string(title),
        search_artist=search_string(artist),
        search_album=search_string(album),
        original=dict(record),
        processed_at=datetime.now(timezone.utc).isoformat(),
        **version_flags(version),
    )
    return replace(draft, quality=score_track(draft))


def fallback_track(record: Any) -> NormalizedTrack:
    """Minimal low-confidence record for input that could not be normalized."""
    data = record if isinstance(record, Mapping) else {}
    title = _text_field(data, TITLE_FIELDS) or "Unknown Title"
    artist = _text_field(data, ARTIST_FIELDS) or "Unknown Artist"
    album = _text_field(data, ALBUM_FIELDS)

    return NormalizedTrack(
        title=title,
        artist=artist,
        album=album,
        genre=_text_field(data, GENRE_FIELDS),
        search_title=comparison_text(title),
        search_artist=comparison_text(artist),
        search_album=comparison_text(album),
        quality=QualityReport(score=0, issues=("normalization_failed",), confidence="low"),
        original=dict(data),
        processed_at=datetime.now(timezone.utc).isoformat(),
        processor="normalizer (fallback)",
    )


def normalize(record: Mapping[str, Any]) -> NormalizedTrack:
    """
    Normalize a single raw track record.

    Never raises: records that cannot be processed come back as a fallback
    track with an ``normalization_failed`` issue and low confidence.
    """
    try:
        return _normalize(record)
    except Exception as e:
        data = record if isinstance(record, Mapping) else {}
        logger.warning(
            f"Error normalizing song '{data.get('title') or data.get('name')}' "
            f"by '{data.get('artist')}': {e}"
        )
        return fallback_track(record)


def normalize_playlist(
    records: Sequence[Mapping[str, Any]],
) -> Tuple[List[NormalizedTrack], Dict[str, Any]]:
    """
    Normalize a batch of raw records.

    Args:
        records: Raw track records from the upstream parser

    Returns:
        Tuple of (normalized tracks in input order, statistics)
    """
    logger.info(f"Starting normalization of {len(records)} songs...")

    start = time.monotonic()
    tracks: List[NormalizedTrack] = []
    stats: Dict[str, Any] = {
        "total": len(records),
        "processed": 0,
        "high_quality": 0,
        "medium_quality": 0,
        "low_quality": 0,
        "issues": {},
        "features": 0,
        "versions": 0,
        "processing_time": 0.0,
    }

    for index, record in enumerate(records, 1):
        track = normalize(record)
        tracks.append(track)
        stats["processed"] += 1
        stats[f"{track.quality.confidence}_quality"] += 1

        for issue in track.quality.issues:
            stats["issues"][issue] = stats["issues"].get(issue, 0) + 1

        if track.features:
            stats["features"] += 1
        if track.version:
            stats["versions"] += 1

        if index % 100 == 0:
            logger.debug(f"Normalized {index}/{len(records)} songs...")

    stats["processing_time"] = time.monotonic() - start

    logger.info(
        f"Normalization complete: {stats['processed']} songs processed in "
        f"{stats['processing_time'] * 1000:.0f}ms"
    )
    logger.info(
        f"Quality distribution: {stats['high_quality']} high, "
        f"{stats['medium_quality']} medium, {stats['low_quality']} low"
    )

    return tracks, stats
