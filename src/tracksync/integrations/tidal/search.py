"""
Tidal adapter for the match selector's search interface.
"""
import asyncio
import logging
from typing import Any, List, Optional

import requests
import tidalapi

from ...core.exceptions import RateLimitError, SearchFatalError
from ...core.models import MatchCandidate

logger = logging.getLogger(__name__)

URI_PREFIX = "tidal:track:"


def _name(obj: Any) -> str:
    return getattr(obj, "name", None) or ""


def to_candidate(track: Any) -> MatchCandidate:
    """Convert a ``tidalapi.Track`` into a MatchCandidate."""
    artists = getattr(track, "artists", None) or []
    if not artists and getattr(track, "artist", None) is not None:
        artists = [track.artist]

    album = getattr(track, "album", None)
    track_id = getattr(track, "id", None)
    return MatchCandidate(
        title=_name(track),
        artists=tuple(_name(artist) for artist in artists if _name(artist)),
        album=_name(album) if album is not None else "",
        uri=f"{URI_PREFIX}{track_id}" if track_id is not None else "",
        id=str(track_id) if track_id is not None else None,
        duration=getattr(track, "duration", None),
    )


def _retry_after(response: Any) -> Optional[float]:
    value = response.headers.get("Retry-After") if response is not None else None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class TidalSearchClient:
    """Searches Tidal through an authenticated ``tidalapi.Session``."""

    # Tidal's search endpoint takes free text only
    supports_field_filters = False

    def __init__(self, session: tidalapi.Session):
        self.session = session

    async def search_tracks(self, query: str, limit: int = 5) -> List[MatchCandidate]:
        """
        Search tracks without blocking the event loop.

        Raises:
            RateLimitError: On HTTP 429, carrying the Retry-After hint
            SearchFatalError: On any other search failure
        """
        tracks = await asyncio.to_thread(self._search, query, limit)
        return [to_candidate(track) for track in tracks[:limit]]

    def _search(self, query: str, limit: int) -> List[Any]:
        logger.debug(f"  Searching Tidal for: {query}")
        try:
            result = self.session.search(query, models=[tidalapi.Track], limit=limit)
        except requests.HTTPError as e:
            response = e.response
            if response is not None and response.status_code == 429:
                raise RateLimitError(retry_after=_retry_after(response)) from e
            raise SearchFatalError(f"Tidal search failed for '{query}': {e}") from e
        except Exception as e:
            raise SearchFatalError(f"Tidal search failed for '{query}': {e}") from e

        return list(result.get("tracks", []) or [])
