"""
End-to-end reconciliation: normalize, filter, match and de-duplicate a batch.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Set

from ..matching.duplicates import DuplicateDetector
from ..matching.selector import MatchSelector, SearchClient
from ..normalization.normalizer import normalize_playlist
from ..normalization.quality import filter_songs
from ..storage.cache import ResultCache
from .config import Config
from .exceptions import CachePersistenceError
from .models import (
    DuplicateMethod,
    DuplicateVerdict,
    MatchResult,
    NormalizedTrack,
    ReconcileResult,
)

logger = logging.getLogger(__name__)


class ReconcileService:
    """Reconciles raw track records from one catalog against another."""

    def __init__(
        self,
        search_client: SearchClient,
        config: Optional[Config] = None,
        cache: Optional[ResultCache] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or Config()
        if cache is None and self.config.cache_enabled:
            cache = ResultCache.from_config(self.config)
        self.cache = cache
        self._sleep = sleep
        self.selector = MatchSelector(
            search_client,
            cache=cache,
            threshold=self.config.match_threshold,
            search_limit=self.config.search_limit,
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            sleep=sleep,
        )

    async def run(
        self,
        raw_records: Sequence[Mapping[str, Any]],
        existing_tracks: Sequence[Any] = (),
        source_name: Optional[str] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> ReconcileResult:
        """
        Run the pipeline over one batch of raw records.

        Args:
            raw_records: Records as produced by the upstream parser
            existing_tracks: Tracks already present in the target collection
            source_name: Label of the input (e.g. the export file name)
            progress_callback: Optional callback for progress updates

        Returns:
            ReconcileResult whose ``track_uris`` lists matched, non-duplicate
            URIs in input order
        """
        source_name = source_name or "input"

        if progress_callback:
            progress_callback(f"Normalizing {len(raw_records)} tracks...")
        tracks, _ = normalize_playlist(raw_records)

        filtered = filter_songs(
            tracks,
            min_quality_score=self.config.min_quality_score,
            allow_low_confidence=self.config.allow_low_confidence,
            remove_invalid=self.config.remove_invalid,
        )
        for rejection in filtered.invalid:
            logger.debug(
                f"Rejected '{rejection.track}' ({rejection.reason}, "
                f"score={rejection.validation.score})"
            )

        if self.cache is not None:
            self.cache.load()

        matches = await self.match_tracks(filtered.valid, progress_callback)

        self._save_cache()

        if progress_callback:
            progress_callback("Checking for duplicates...")
        verdicts, track_uris = self.select_new_tracks(matches, existing_tracks)

        result = ReconcileResult(
            source_name=source_name,
            total_tracks=len(raw_records),
            valid_tracks=len(filtered.valid),
            matched_tracks=sum(1 for match in matches if match.is_matched),
            duplicate_tracks=sum(1 for _, verdict in verdicts if verdict.is_duplicate),
            track_uris=track_uris,
            matches=matches,
            verdicts=verdicts,
            filter_stats=dict(filtered.stats),
            cache_hits=sum(1 for match in matches if match.from_cache),
            errors=[
                f"{match.track}: {match.error}"
                for match in matches
                if match.error and not match.is_matched
            ],
        )

        logger.info(str(result))
        if progress_callback:
            progress_callback(
                f"Done: {result.added_tracks} new tracks, "
                f"{result.duplicate_tracks} duplicates skipped"
            )

        return result

    async def match_tracks(
        self,
        tracks: Sequence[NormalizedTrack],
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[MatchResult]:
        """
        Match tracks in fixed-size batches.

        Searches within a batch run concurrently; batches run one after
        another with ``batch_delay`` seconds between them. Results keep
        the input order.
        """
        batch_size = max(1, self.config.batch_size)
        results: List[MatchResult] = []

        for start in range(0, len(tracks), batch_size):
            batch = tracks[start : start + batch_size]
            if progress_callback:
                progress_callback(
                    f"Searching tracks {start + 1}-{start + len(batch)} of {len(tracks)}..."
                )

            results.extend(
                await asyncio.gather(*(self.selector.find_match(track) for track in batch))
            )

            if start + batch_size < len(tracks):
                await self._sleep(self.config.batch_delay)

        return results

    def select_new_tracks(
        self, matches: Sequence[MatchResult], existing_tracks: Sequence[Any]
    ):
        """
        Drop duplicates from matched results.

        Each accepted match joins the comparison collection, so a later
        input resolving to the same track is skipped as well.

        Returns:
            (verdicts for matched results, URIs to add in input order)
        """
        detector = DuplicateDetector(existing_tracks)
        verdicts = []
        track_uris: List[str] = []
        seen_uris: Set[str] = set()

        for match in matches:
            if not match.is_matched:
                continue

            verdict = detector.check(match.candidate)
            if not verdict.is_duplicate and match.uri in seen_uris:
                # Same catalog track reached from a differently written input
                verdict = DuplicateVerdict(
                    is_duplicate=True,
                    method=DuplicateMethod.EXACT_SIGNATURE,
                    confidence=1.0,
                )
            verdicts.append((match, verdict))

            if verdict.is_duplicate:
                logger.info(f"Skipping duplicate: {match.candidate} ({verdict.method.value})")
                continue

            detector.add(match.candidate)
            if match.uri:
                seen_uris.add(match.uri)
                track_uris.append(match.uri)

        return verdicts, track_uris

    def _save_cache(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.save()
        except CachePersistenceError as e:
            logger.error(f"{e}; continuing without caching this run")
