"""
Quality scoring, validation and filtering of normalized tracks.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple

from ..core.models import NormalizedTrack, QualityReport

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_SCORE = 85
MEDIUM_CONFIDENCE_SCORE = 70
VALID_SCORE = 50

MIN_YEAR = 1900
MIN_DURATION = 5
MAX_DURATION = 1200
MAX_PLAY_COUNT = 100000

REQUIRED_FIELDS = ("title", "artist")
BONUS_FIELDS = ("album", "year", "duration", "genre")

SUSPICIOUS_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^\d+$"),
    re.compile(r"^[\W_]*$"),
    re.compile(r"^track\s*\d+$", re.IGNORECASE),
    re.compile(r"^unknown", re.IGNORECASE),
    re.compile(r"^untitled", re.IGNORECASE),
    re.compile(r"test|debug|sample", re.IGNORECASE),
)


def is_suspicious(text: str) -> bool:
    """Check for placeholder or junk values such as 'Track 01' or '???'."""
    return any(pattern.search(text) for pattern in SUSPICIOUS_PATTERNS)


def confidence_for(score: int) -> str:
    """Map a score to its confidence tier (high/medium/low)."""
    score = max(0, min(100, score))
    if score >= HIGH_CONFIDENCE_SCORE:
        return "high"
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return "medium"
    return "low"


def score_track(track: NormalizedTrack) -> QualityReport:
    """
    Score a normalized track from 0 to 100.

    Starts at 100, subtracts for missing, suspicious or badly sized fields
    and adds 5 for each of album, year, duration and genre. Bonuses are
    applied before the result is clamped.
    """
    score = 100
    issues: List[str] = []

    if not track.title:
        issues.append("missing_title")
        score -= 50

    if not track.artist:
        issues.append("missing_artist")
        score -= 50

    if track.title and is_suspicious(track.title):
        issues.append("suspicious_title")
        score -= 20

    if track.artist and is_suspicious(track.artist):
        issues.append("suspicious_artist")
        score -= 20

    if track.title and len(track.title) < 2:
        issues.append("title_too_short")
        score -= 15

    if track.title and len(track.title) > 100:
        issues.append("title_too_long")
        score -= 10

    for name in BONUS_FIELDS:
        if getattr(track, name):
            score += 5

    score = max(0, min(100, score))
    return QualityReport(score=score, issues=tuple(issues), confidence=confidence_for(score))


@dataclass
class ValidationResult:
    """Validation outcome for a single track."""

    is_valid: bool
    score: int
    confidence: str
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class Rejection:
    """A track removed by filtering, with the reason it was removed."""

    track: NormalizedTrack
    validation: ValidationResult
    reason: str


@dataclass
class FilterResult:
    """Tracks partitioned by ``filter_songs``."""

    valid: List[NormalizedTrack] = field(default_factory=list)
    invalid: List[Rejection] = field(default_factory=list)
    warnings: List[Tuple[NormalizedTrack, ValidationResult]] = field(
        default_factory=list
    )
    stats: Dict[str, int] = field(
        default_factory=lambda: {"total": 0, "valid": 0, "invalid": 0, "filtered": 0}
    )


def validate_song(track: NormalizedTrack) -> ValidationResult:
    """
    Validate a single normalized track.

    Missing required fields and a score below 50 make a track invalid.
    Suspicious content and out-of-range year or duration only add warnings.
    """
    validation = ValidationResult(
        is_valid=True,
        score=track.quality.score,
        confidence=track.quality.confidence,
    )

    for name in REQUIRED_FIELDS:
        value: Optional[str] = getattr(track, name)
        if not value or not value.strip():
            validation.issues.append(f"missing_{name}")
            validation.is_valid = False

    if track.title and is_suspicious(track.title):
        validation.warnings.append("suspicious_title_content")

    if track.artist and is_suspicious(track.artist):
        validation.warnings.append("suspicious_artist_content")

    # normalize() already clears these; only hand-built tracks reach them
    if track.year is not None and not MIN_YEAR <= track.year <= datetime.now().year:
        validation.warnings.append("invalid_year")

    if track.duration is not None and not MIN_DURATION <= track.duration <= MAX_DURATION:
        validation.warnings.append("unusual_duration")

    if validation.score < VALID_SCORE:
        validation.is_valid = False
        validation.issues.append("low_quality_score")

    return validation


def filter_songs(
    tracks: Sequence[NormalizedTrack],
    min_quality_score: int = 50,
    allow_low_confidence: bool = False,
    remove_invalid: bool = True,
) -> FilterResult:
    """
    Partition tracks into valid, rejected and warned sets.

    Args:
        tracks: Normalized tracks
        min_quality_score: Tracks scoring below this are filtered out
        allow_low_confidence: Keep tracks whose confidence tier is low
        remove_invalid: Reject tracks that fail ``validate_song``

    Returns:
        FilterResult with per-track rejection reasons and counts
    """
    logger.info(
        f"Filtering {len(tracks)} songs with criteria: minScore={min_quality_score}, "
        f"allowLowConf={allow_low_confidence}"
    )

    result = FilterResult()
    result.stats["total"] = len(tracks)

    for track in tracks:
        validation = validate_song(track)

        if not validation.is_valid and remove_invalid:
            result.invalid.append(Rejection(track, validation, "invalid"))
            result.stats["invalid"] += 1
            continue

        if validation.score < min_quality_score:
            result.invalid.append(Rejection(track, validation, "below_min_score"))
            result.stats["filtered"] += 1
            continue

        if not allow_low_confidence and validation.confidence == "low":
            result.invalid.append(Rejection(track, validation, "low_confidence"))
            result.stats["filtered"] += 1
            continue

        if validation.warnings:
            result.warnings.append((track, validation))

        result.valid.append(track)
        result.stats["valid"] += 1

    logger.info(
        f"Filtering complete: {result.stats['valid']} valid, "
        f"{result.stats['invalid']} invalid, {result.stats['filtered']} filtered"
    )

    return result


@dataclass
class ValidationReport:
    """Aggregate validation statistics for a batch of tracks."""

    summary: Dict[str, int]
    issues: Dict[str, int] = field(default_factory=dict)
    warnings: Dict[str, int] = field(default_factory=dict)
    quality_distribution: Dict[int, int] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": dict(self.summary),
            "issues": dict(self.issues),
            "warnings": dict(self.warnings),
            "quality_distribution": dict(self.quality_distribution),
            "recommendations": list(self.recommendations),
        }


def generate_report(tracks: Sequence[NormalizedTrack]) -> ValidationReport:
    """Build a validation report; each track lands in exactly one bucket per axis."""
    report = ValidationReport(
        summary={
            "total": len(tracks),
            "valid": 0,
            "invalid": 0,
            "high_quality": 0,
            "medium_quality": 0,
            "low_quality": 0,
        }
    )

    for track in tracks:
        validation = validate_song(track)

        if validation.is_valid:
            report.summary["valid"] += 1
        else:
            report.summary["invalid"] += 1

        tier = validation.confidence if validation.confidence in ("high", "medium") else "low"
        report.summary[f"{tier}_quality"] += 1

        for issue in validation.issues:
            report.issues[issue] = report.issues.get(issue, 0) + 1

        for warning in validation.warnings:
            report.warnings[warning] = report.warnings.get(warning, 0) + 1

        bucket = (validation.score // 10) * 10
        report.quality_distribution[bucket] = report.quality_distribution.get(bucket, 0) + 1

    report.recommendations = _recommendations(report)
    return report


def _recommendations(report: ValidationReport) -> List[str]:
    summary = report.summary
    total = summary["total"]
    recommendations = []

    if summary["invalid"] > total * 0.1:
        recommendations.append(
            "High number of invalid songs detected. Consider reviewing source data quality."
        )

    if report.issues.get("missing_title"):
        recommendations.append(
            f"{report.issues['missing_title']} songs missing titles. "
            "These will be excluded from catalog matching."
        )

    if report.issues.get("missing_artist"):
        recommendations.append(
            f"{report.issues['missing_artist']} songs missing artists. "
            "These will be excluded from catalog matching."
        )

    if report.warnings.get("suspicious_title_content"):
        recommendations.append(
            f"{report.warnings['suspicious_title_content']} songs have suspicious "
            "title content. Manual review recommended."
        )

    if summary["low_quality"] > total * 0.2:
        recommendations.append(
            "High number of low-quality songs. Consider adjusting quality "
            "thresholds or source data."
        )

    if summary["valid"] < total * 0.8:
        recommendations.append(
            "Low percentage of valid songs. Review normalization and validation criteria."
        )

    return recommendations
