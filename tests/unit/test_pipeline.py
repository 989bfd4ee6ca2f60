"""
Unit tests for core.pipeline module.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from tracksync.core.config import Config
from tracksync.core.exceptions import CachePersistenceError
from tracksync.core.models import DuplicateMethod, MatchCandidate
from tracksync.core.pipeline import ReconcileService
from tracksync.storage.cache import ResultCache
from tracksync.utils.string_utils import normalize_string


class FakeCatalog:
    """Search client returning catalog tracks whose title appears in the query."""

    supports_field_filters = False

    def __init__(self, tracks, failing_queries=()):
        self.tracks = tracks
        self.failing_queries = set(failing_queries)
        self.queries = []

    async def search_tracks(self, query, limit=5):
        self.queries.append(query)
        if query in self.failing_queries:
            raise RuntimeError(f"catalog unavailable for {query}")
        return [
            track for track in self.tracks if normalize_string(track.title) in query
        ][:limit]


CATALOG = [
    MatchCandidate(
        title="Thriller", artists=("Michael Jackson",), album="Thriller", uri="tidal:track:1", id="1"
    ),
    MatchCandidate(
        title="Bohemian Rhapsody",
        artists=("Queen",),
        album="A Night at the Opera",
        uri="tidal:track:2",
        id="2",
    ),
    MatchCandidate(title="Billie Jean", artists=("Michael Jackson",), uri="tidal:track:3", id="3"),
]


class TestReconcileService(unittest.IsolatedAsyncioTestCase):
    """Test cases for ReconcileService."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = Config(cache_enabled=False, batch_delay=0.25)
        self.sleep = AsyncMock()

    def make_service(self, client, cache=None, config=None):
        return ReconcileService(client, config or self.config, cache=cache, sleep=self.sleep)

    async def test_end_to_end(self):
        """Test a rejected, a duplicate and a new track yield one URI."""
        records = [
            {"title": "Some Song", "artist": ""},
            {"title": "Thriller", "artist": "Michael Jackson"},
            {"title": "Bohemian Rhapsody", "artist": "Queen", "album": "A Night at the Opera"},
        ]
        existing = [{"name": "Thriller", "artists": ["Michael Jackson"]}]
        service = self.make_service(FakeCatalog(CATALOG))

        result = await service.run(records, existing, source_name="export.json")

        self.assertEqual(result.track_uris, ["tidal:track:2"])
        self.assertEqual(len(result.track_uris), 1)
        self.assertEqual(result.total_tracks, 3)
        self.assertEqual(result.valid_tracks, 2)
        self.assertEqual(result.rejected_tracks, 1)
        self.assertEqual(result.matched_tracks, 2)
        self.assertEqual(result.duplicate_tracks, 1)
        self.assertEqual(result.source_name, "export.json")

        duplicate = [verdict for _, verdict in result.verdicts if verdict.is_duplicate][0]
        self.assertEqual(duplicate.method, DuplicateMethod.EXACT_SIGNATURE)

    async def test_output_keeps_input_order(self):
        """Test URIs come out in input order."""
        records = [
            {"title": "Billie Jean", "artist": "Michael Jackson"},
            {"title": "Bohemian Rhapsody", "artist": "Queen"},
            {"title": "Thriller", "artist": "Michael Jackson"},
        ]
        service = self.make_service(FakeCatalog(CATALOG))

        result = await service.run(records)

        self.assertEqual(result.track_uris, ["tidal:track:3", "tidal:track:2", "tidal:track:1"])

    async def test_duplicates_within_batch(self):
        """Test the same track twice in one input is added once."""
        records = [
            {"title": "Bohemian Rhapsody", "artist": "Queen"},
            {"title": "bohemian rhapsody", "artist": "QUEEN"},
        ]
        service = self.make_service(FakeCatalog(CATALOG))

        result = await service.run(records)

        self.assertEqual(result.track_uris, ["tidal:track:2"])
        self.assertEqual(result.duplicate_tracks, 1)

    async def test_batches(self):
        """Test matching runs in batches with a delay between them."""
        records = [{"title": f"Song {n}", "artist": "Artist"} for n in range(25)]
        service = self.make_service(FakeCatalog([]))

        result = await service.run(records)

        self.assertEqual(len(result.matches), 25)
        self.assertEqual(
            [match.track.title for match in result.matches], [f"Song {n}" for n in range(25)]
        )
        self.assertEqual([c.args[0] for c in self.sleep.await_args_list], [0.25, 0.25])
        self.assertEqual(result.track_uris, [])

    async def test_track_error_does_not_abort(self):
        """Test one failing track leaves the others untouched."""
        records = [
            {"title": "Thriller", "artist": "Michael Jackson"},
            {"title": "Bohemian Rhapsody", "artist": "Queen"},
        ]
        client = FakeCatalog(CATALOG, failing_queries={"thriller michael jackson"})
        service = self.make_service(client)

        result = await service.run(records)

        self.assertEqual(result.track_uris, ["tidal:track:2"])
        self.assertFalse(result.matches[0].is_matched)
        self.assertIn("catalog unavailable", result.matches[0].error)
        self.assertEqual(len(result.errors), 1)

    async def test_progress_callback(self):
        """Test progress messages are reported."""
        messages = []
        service = self.make_service(FakeCatalog(CATALOG))

        await service.run(
            [{"title": "Thriller", "artist": "Michael Jackson"}],
            progress_callback=messages.append,
        )

        self.assertTrue(messages[0].startswith("Normalizing 1 tracks"))
        self.assertTrue(any("Searching tracks 1-1 of 1" in m for m in messages))
        self.assertTrue(messages[-1].startswith("Done: 1 new tracks"))

    async def test_empty_input(self):
        """Test an empty batch."""
        result = await self.make_service(FakeCatalog(CATALOG)).run([])

        self.assertEqual(result.track_uris, [])
        self.assertEqual(result.match_rate, 0.0)


class TestReconcileServiceCache(unittest.IsolatedAsyncioTestCase):
    """Test cases for cache handling in the pipeline."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.cache_file = Path(self.temp_dir) / "search_cache.json"
        self.config = Config(cache_file=self.cache_file, batch_delay=0)
        self.records = [{"title": "Bohemian Rhapsody", "artist": "Queen"}]

    def tearDown(self):
        """Clean up after each test."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    async def test_cache_created_from_config(self):
        """Test an enabled cache is built from the configured path."""
        service = ReconcileService(FakeCatalog(CATALOG), self.config)

        self.assertEqual(service.cache.path, self.cache_file)
        self.assertIs(service.selector.cache, service.cache)

    async def test_second_run_uses_cache(self):
        """Test results persist across runs."""
        client = FakeCatalog(CATALOG)

        first = await ReconcileService(client, self.config).run(self.records)
        searches = len(client.queries)
        second = await ReconcileService(client, self.config).run(self.records)

        self.assertTrue(self.cache_file.exists())
        self.assertEqual(first.cache_hits, 0)
        self.assertEqual(second.cache_hits, 1)
        self.assertEqual(second.track_uris, ["tidal:track:2"])
        self.assertEqual(len(client.queries), searches)

    async def test_cache_save_failure_logged(self):
        """Test a failing cache write does not fail the run."""
        cache = ResultCache(self.cache_file)
        service = ReconcileService(FakeCatalog(CATALOG), self.config, cache=cache)

        with patch.object(cache, "save", side_effect=CachePersistenceError("disk full")):
            with self.assertLogs("tracksync.core.pipeline", level="ERROR") as logs:
                result = await service.run(self.records)

        self.assertEqual(result.track_uris, ["tidal:track:2"])
        self.assertIn("disk full", logs.output[0])

    async def test_cache_disabled(self):
        """Test no cache is used when disabled."""
        config = Config(cache_enabled=False, cache_file=self.cache_file, batch_delay=0)

        service = ReconcileService(FakeCatalog(CATALOG), config)
        await service.run(self.records)

        self.assertIsNone(service.cache)
        self.assertFalse(self.cache_file.exists())


if __name__ == "__main__":
    unittest.main()
