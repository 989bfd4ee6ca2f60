"""
Unit tests for the command-line interface.
"""

import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from tracksync.cli.main import cli
from tracksync.core.models import CacheEntry
from tracksync.storage.cache import ResultCache


@patch.dict(os.environ, {}, clear=True)
class TestCli(unittest.TestCase):
    """Test cases for the tracksync command group."""

    def setUp(self):
        """Set up test fixtures."""
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.cache_file = Path(self.temp_dir) / "search_cache.json"
        self.env = {"CACHE_FILE": str(self.cache_file)}
        self._root_handlers = logging.getLogger().handlers[:]
        self._root_level = logging.getLogger().level

    def tearDown(self):
        """Clean up after each test."""
        logging.getLogger().handlers = self._root_handlers
        logging.getLogger().setLevel(self._root_level)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_json(self, name, data):
        path = Path(self.temp_dir) / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    def test_analyze(self):
        """Test the quality report for an export file."""
        path = self.write_json(
            "export.json",
            [
                {"title": "Bohemian Rhapsody", "artist": "Queen"},
                {"title": "Song (feat. Guest)", "artist": "Artist"},
                {"title": "Lonely Title", "artist": ""},
            ],
        )

        result = self.runner.invoke(cli, ["analyze", path], env=self.env)

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Analyzed 3 tracks from export.json", result.output)
        self.assertIn("Valid: 2", result.output)
        self.assertIn("Invalid: 1", result.output)
        self.assertIn("missing_artist: 1", result.output)
        self.assertIn("With featured artists: 1", result.output)
        self.assertIn("Kept: 2", result.output)

    def test_analyze_min_score(self):
        """Test --min-score filters more tracks."""
        path = self.write_json(
            "export.json",
            [
                {"title": "Bohemian Rhapsody", "artist": "Queen"},
                {"title": "Track 01", "artist": "Queen"},
            ],
        )

        result = self.runner.invoke(
            cli, ["analyze", path, "--min-score", "90"], env=self.env
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Kept: 1", result.output)
        self.assertIn("Filtered: 1", result.output)

    def test_analyze_keep_invalid(self):
        """Test --keep-invalid with --allow-low-confidence keeps weak tracks."""
        path = self.write_json("export.json", [{"title": "Lonely Title", "artist": ""}])

        result = self.runner.invoke(
            cli,
            ["analyze", path, "--keep-invalid", "--allow-low-confidence", "--min-score", "0"],
            env=self.env,
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Kept: 1", result.output)

    def test_analyze_missing_file(self):
        """Test a missing file exits with an error."""
        result = self.runner.invoke(
            cli, ["analyze", str(Path(self.temp_dir) / "missing.json")], env=self.env
        )

        self.assertEqual(result.exit_code, 1)

    def test_analyze_invalid_json(self):
        """Test unparsable input exits with an error."""
        path = Path(self.temp_dir) / "broken.json"
        path.write_text("[{", encoding="utf-8")

        result = self.runner.invoke(cli, ["analyze", str(path)], env=self.env)

        self.assertEqual(result.exit_code, 1)

    def test_analyze_not_a_list(self):
        """Test a JSON object instead of an array is rejected."""
        path = self.write_json("object.json", {"title": "Song"})

        result = self.runner.invoke(cli, ["analyze", path], env=self.env)

        self.assertEqual(result.exit_code, 1)

    def test_cache_info(self):
        """Test cache statistics."""
        ResultCache(self.cache_file).save(
            {
                "a": CacheEntry(matched=True, uri="tidal:track:1"),
                "b": CacheEntry(matched=False, error="no results"),
            }
        )

        result = self.runner.invoke(cli, ["cache", "info"], env=self.env)

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(str(self.cache_file), result.output)
        self.assertIn("Entries: 2", result.output)
        self.assertIn("Matched: 1", result.output)
        self.assertIn("Failed: 1", result.output)

    def test_cache_clear(self):
        """Test the cache file is removed."""
        ResultCache(self.cache_file).save({"a": CacheEntry(matched=False)})

        result = self.runner.invoke(cli, ["cache", "clear"], env=self.env)

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(self.cache_file.exists())
        self.assertIn("cleared", result.output)

    def test_config_info(self):
        """Test the effective configuration is shown."""
        env = dict(self.env, BATCH_SIZE="20")

        result = self.runner.invoke(cli, ["config-info"], env=env)

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Batch size: 20", result.output)
        self.assertIn(str(self.cache_file), result.output)

    def test_invalid_configuration(self):
        """Test invalid settings stop the command."""
        env = dict(self.env, BATCH_SIZE="0")

        result = self.runner.invoke(cli, ["config-info"], env=env)

        self.assertEqual(result.exit_code, 1)
        self.assertIn("BATCH_SIZE must be >= 1", result.output)

    def test_unparsable_configuration(self):
        """Test non-numeric settings stop the command."""
        env = dict(self.env, SEARCH_LIMIT="many")

        result = self.runner.invoke(cli, ["config-info"], env=env)

        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
