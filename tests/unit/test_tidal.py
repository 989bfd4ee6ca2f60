"""
Unit tests for integrations.tidal module.
"""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import requests
import tidalapi

from tracksync.core.exceptions import RateLimitError, SearchFatalError
from tracksync.integrations.tidal import TidalSearchClient, fetch_playlist_tracks, to_candidate


def make_tidal_track(track_id=1234, name="Bohemian Rhapsody", artist="Queen", album="A Night at the Opera"):
    return SimpleNamespace(
        id=track_id,
        name=name,
        artists=[SimpleNamespace(name=artist)],
        album=SimpleNamespace(name=album) if album else None,
        duration=354,
    )


def http_error(status_code, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    return requests.HTTPError(f"{status_code} error", response=response)


class TestToCandidate(unittest.TestCase):
    """Test cases for to_candidate()."""

    def test_conversion(self):
        """Test a Tidal track becomes a MatchCandidate."""
        candidate = to_candidate(make_tidal_track())

        self.assertEqual(candidate.title, "Bohemian Rhapsody")
        self.assertEqual(candidate.artists, ("Queen",))
        self.assertEqual(candidate.album, "A Night at the Opera")
        self.assertEqual(candidate.uri, "tidal:track:1234")
        self.assertEqual(candidate.id, "1234")
        self.assertEqual(candidate.duration, 354)

    def test_missing_album(self):
        """Test tracks without an album."""
        candidate = to_candidate(make_tidal_track(album=None))

        self.assertEqual(candidate.album, "")

    def test_single_artist_attribute(self):
        """Test tracks exposing only a single artist."""
        track = SimpleNamespace(id=1, name="Song", artists=[], artist=SimpleNamespace(name="Solo"))

        self.assertEqual(to_candidate(track).artists, ("Solo",))


class TestTidalSearchClient(unittest.IsolatedAsyncioTestCase):
    """Test cases for TidalSearchClient."""

    def setUp(self):
        """Set up test fixtures."""
        self.session = MagicMock()
        self.client = TidalSearchClient(self.session)

    def test_no_field_filters(self):
        """Test Tidal queries are plain text."""
        self.assertFalse(self.client.supports_field_filters)

    async def test_search_tracks(self):
        """Test search results are converted and limited."""
        self.session.search.return_value = {
            "tracks": [make_tidal_track(track_id=n) for n in range(8)]
        }

        candidates = await self.client.search_tracks("bohemian rhapsody queen", limit=5)

        self.assertEqual(len(candidates), 5)
        self.assertEqual(candidates[0].uri, "tidal:track:0")
        self.session.search.assert_called_once_with(
            "bohemian rhapsody queen", models=[tidalapi.Track], limit=5
        )

    async def test_no_tracks(self):
        """Test an empty result."""
        self.session.search.return_value = {"tracks": []}

        self.assertEqual(await self.client.search_tracks("nothing"), [])

    async def test_rate_limit(self):
        """Test HTTP 429 becomes a rate limit error with its hint."""
        self.session.search.side_effect = http_error(429, {"Retry-After": "7"})

        with self.assertRaises(RateLimitError) as cm:
            await self.client.search_tracks("query")

        self.assertEqual(cm.exception.retry_after, 7.0)

    async def test_rate_limit_without_hint(self):
        """Test HTTP 429 without Retry-After."""
        self.session.search.side_effect = http_error(429)

        with self.assertRaises(RateLimitError) as cm:
            await self.client.search_tracks("query")

        self.assertIsNone(cm.exception.retry_after)

    async def test_http_error(self):
        """Test other HTTP errors are fatal."""
        self.session.search.side_effect = http_error(500)

        with self.assertRaises(SearchFatalError):
            await self.client.search_tracks("query")

    async def test_other_error(self):
        """Test unexpected failures are fatal."""
        self.session.search.side_effect = ConnectionError("offline")

        with self.assertRaises(SearchFatalError) as cm:
            await self.client.search_tracks("query")

        self.assertIn("offline", str(cm.exception))


class TestFetchPlaylistTracks(unittest.TestCase):
    """Test cases for fetch_playlist_tracks()."""

    def test_fetch(self):
        """Test playlist tracks are returned as candidates in order."""
        session = MagicMock()
        session.playlist.return_value.tracks.return_value = [
            make_tidal_track(track_id=1, name="Thriller", artist="Michael Jackson"),
            make_tidal_track(track_id=2),
        ]

        candidates = fetch_playlist_tracks(session, "playlist-uuid")

        session.playlist.assert_called_once_with("playlist-uuid")
        self.assertEqual([c.title for c in candidates], ["Thriller", "Bohemian Rhapsody"])

    def test_fetch_failure(self):
        """Test lookup failures are reported as search errors."""
        session = MagicMock()
        session.playlist.side_effect = Exception("not found")

        with self.assertRaises(SearchFatalError):
            fetch_playlist_tracks(session, "missing")


def test_search_with_fixture_session(mock_tidal_session, tidal_track):
    """Test the adapter end to end against the shared session fixture."""
    import asyncio

    mock_tidal_session.search.return_value = {"tracks": [tidal_track]}

    candidates = asyncio.run(TidalSearchClient(mock_tidal_session).search_tracks("queen"))

    assert [c.uri for c in candidates] == ["tidal:track:1234"]
    assert candidates[0].artists == ("Queen",)


if __name__ == "__main__":
    unittest.main()
