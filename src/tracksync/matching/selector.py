"""
Candidate match selection against the target catalog's search interface.
"""
import asyncio
import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Set, Tuple

from ..core.exceptions import SearchError, SearchTransientError
from ..core.models import CacheEntry, MatchCandidate, MatchResult, NormalizedTrack
from ..storage.cache import ResultCache
from ..utils.retry import exponential_backoff, retry_async
from ..utils.string_utils import normalize_string
from .similarity import string_similarity

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 0.7
ARTIST_WEIGHT = 0.3


class SearchClient(Protocol):
    """Search side of the target catalog."""

    # Whether queries may use "track:" / "artist:" operators
    supports_field_filters: bool

    async def search_tracks(self, query: str, limit: int = 5) -> List[MatchCandidate]:
        ...


@dataclass(frozen=True)
class SearchStrategy:
    """One way of turning a track into a search query."""

    name: str
    title: Optional[Callable[[NormalizedTrack], str]] = None
    artist: Optional[Callable[[NormalizedTrack], str]] = None

    def build_query(
        self, track: NormalizedTrack, field_filters: bool = True
    ) -> Optional[str]:
        """Return the query, or None when the track lacks a needed field."""
        parts = []
        for operator, getter in (("track", self.title), ("artist", self.artist)):
            if getter is None:
                continue
            value = getter(track)
            if not value:
                return None
            parts.append(f"{operator}:{value}" if field_filters else value)
        return " ".join(parts) if parts else None


def _loose_title(track: NormalizedTrack) -> str:
    return normalize_string(track.title)


def _loose_artist(track: NormalizedTrack) -> str:
    return normalize_string(track.artist)


STRATEGIES: Tuple[SearchStrategy, ...] = (
    SearchStrategy(
        "track+artist (exact)",
        title=attrgetter("search_title"),
        artist=attrgetter("search_artist"),
    ),
    SearchStrategy("track+artist (loose)", title=_loose_title, artist=_loose_artist),
    SearchStrategy("track-only", title=attrgetter("search_title")),
    SearchStrategy("artist-only", artist=attrgetter("search_artist")),
)


def score_candidate(track: NormalizedTrack, candidate: MatchCandidate) -> float:
    """Weighted fuzzy match: title 70%, artist 30%."""
    title_score = string_similarity(
        normalize_string(track.title), normalize_string(candidate.title)
    )
    candidate_artists = " ".join(normalize_string(name) for name in candidate.artists)
    artist_score = string_similarity(normalize_string(track.artist), candidate_artists)
    return TITLE_WEIGHT * title_score + ARTIST_WEIGHT * artist_score


def select_best_candidate(
    track: NormalizedTrack, candidates: Sequence[MatchCandidate]
) -> Tuple[Optional[MatchCandidate], float]:
    """Score all candidates and keep the highest; earlier candidates win ties."""
    best: Optional[MatchCandidate] = None
    best_score = 0.0
    for candidate in candidates:
        score = score_candidate(track, candidate)
        logger.debug(f"      Candidate: '{candidate}' (score={score:.2f})")
        if score > best_score:
            best, best_score = candidate, score
    return best, best_score


class MatchSelector:
    """Finds the best catalog match for a track by trying strategies in order."""

    def __init__(
        self,
        search_client: SearchClient,
        cache: Optional[ResultCache] = None,
        strategies: Sequence[SearchStrategy] = STRATEGIES,
        threshold: float = 0.5,
        search_limit: int = 5,
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.search_client = search_client
        self.cache = cache
        self.strategies = tuple(strategies)
        self.threshold = threshold
        self.search_limit = search_limit
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, search_client: SearchClient, config, cache: Optional[ResultCache] = None
    ) -> "MatchSelector":
        return cls(
            search_client,
            cache=cache,
            threshold=config.match_threshold,
            search_limit=config.search_limit,
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
        )

    async def find_match(self, track: NormalizedTrack) -> MatchResult:
        """
        Cache-aware match lookup.

        A cached outcome (including a cached failure) short-circuits the
        search. A cached match at or below the current threshold is
        searched again. Otherwise the outcome of ``select_match`` is stored
        under the track's fingerprint. Unexpected errors are converted into
        an unmatched result so one track never aborts a batch.
        """
        key = None
        if self.cache is not None:
            key = self.cache.fingerprint(track)
            entry = self.cache.get(key)
            if entry is not None and entry.matched and entry.confidence <= self.threshold:
                logger.debug(
                    f"Cached match for '{track}' is below threshold "
                    f"({entry.confidence:.2f} <= {self.threshold}), searching again"
                )
            elif entry is not None:
                logger.debug(f"Cache hit for '{track}' (matched={entry.matched})")
                return entry.to_match_result(track)

        try:
            result = await self.select_match(track)
        except Exception as e:
            logger.error(f"Error searching for {track.artist} - {track.title}: {e}")
            result = MatchResult.unmatched(track, error=str(e))

        if self.cache is not None and key is not None:
            self.cache.put(key, CacheEntry.from_match_result(result))

        return result

    async def select_match(self, track: NormalizedTrack) -> MatchResult:
        """
        Try each strategy in order and return the first confident match.

        Returns:
            The first result whose confidence exceeds the threshold, or an
            unmatched result carrying the last search error, if any
        """
        field_filters = getattr(self.search_client, "supports_field_filters", True)
        tried: Set[str] = set()
        last_error: Optional[str] = None

        for strategy in self.strategies:
            query = strategy.build_query(track, field_filters)
            if not query or query in tried:
                continue
            tried.add(query)

            result = await self._search_with_strategy(track, strategy, query)
            if result is None:
                continue
            if result.error:
                last_error = result.error
                continue
            if result.candidate is not None and result.confidence > self.threshold:
                logger.info(
                    f"Matched: '{track.title}' -> {result.candidate.title} "
                    f"({strategy.name}, confidence={result.confidence:.2f})"
                )
                return result

        logger.info(f"No good match for '{track.title}' by '{track.artist}'")
        return MatchResult.unmatched(track, error=last_error)

    async def _search_with_strategy(
        self, track: NormalizedTrack, strategy: SearchStrategy, query: str
    ) -> Optional[MatchResult]:
        """Run one query with rate-limit retries and score what comes back."""
        logger.debug(f"Searching ({strategy.name}): {query}")

        try:
            candidates = await retry_async(
                lambda: self.search_client.search_tracks(query, limit=self.search_limit),
                is_retryable=lambda e: isinstance(e, SearchTransientError),
                backoff=exponential_backoff(self.base_delay),
                max_retries=self.max_retries,
                sleep=self._sleep,
            )
        except SearchTransientError as e:
            logger.warning(
                f"Rate limit retries exhausted for '{track.title}' ({strategy.name}): {e}"
            )
            return MatchResult.unmatched(track, error=str(e))
        except SearchError as e:
            logger.error(f"Search error for '{track.title}' ({strategy.name}): {e}")
            return MatchResult.unmatched(track, error=str(e))

        if not candidates:
            logger.debug("    No tracks found")
            return None

        best, confidence = select_best_candidate(track, candidates[: self.search_limit])
        return MatchResult(
            track=track, candidate=best, confidence=confidence, strategy=strategy.name
        )

    async def search_playlist(self, tracks: Sequence[NormalizedTrack]) -> List[MatchResult]:
        """Match tracks one after another."""
        return [await self.find_match(track) for track in tracks]
