"""
Reading an existing Tidal playlist as the collection to de-duplicate against.
"""
import logging
from typing import List

import tidalapi

from ...core.exceptions import SearchFatalError
from ...core.models import MatchCandidate
from .search import to_candidate

logger = logging.getLogger(__name__)


def fetch_playlist_tracks(session: tidalapi.Session, playlist_id: str) -> List[MatchCandidate]:
    """
    Fetch the tracks of a Tidal playlist.

    Args:
        session: Authenticated Tidal session
        playlist_id: Tidal playlist ID

    Returns:
        Playlist tracks as MatchCandidates, in playlist order
    """
    logger.info(f"Fetching tracks of Tidal playlist {playlist_id}...")
    try:
        playlist = session.playlist(playlist_id)
        tracks = playlist.tracks()
    except Exception as e:
        raise SearchFatalError(f"Failed to fetch playlist {playlist_id}: {e}") from e

    candidates = [to_candidate(track) for track in tracks]
    logger.info(f"Found {len(candidates)} existing tracks in playlist")
    return candidates
