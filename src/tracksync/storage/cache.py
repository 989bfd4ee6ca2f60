"""
File-backed cache of search outcomes keyed by track fingerprint.
"""
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core.exceptions import CachePersistenceError
from ..core.models import CacheEntry, NormalizedTrack
from ..utils.music_utils import extract_track_info

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Maps track fingerprints to previously obtained match outcomes.

    The backing store is a single JSON object of ``fingerprint -> entry``.
    It is read once with ``load()`` and written with ``save()``, which
    replaces the file atomically so an interrupted write leaves the
    previous contents intact. Entries never expire.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._entries: Dict[str, CacheEntry] = {}

    @classmethod
    def from_config(cls, config) -> "ResultCache":
        return cls(config.cache_file)

    @staticmethod
    def fingerprint(track: Any) -> str:
        """
        Stable key for a track: MD5 of lowercased "title|artist|album".

        Normalized tracks use their full title, so a live cut and the studio
        version get different keys.
        """
        if isinstance(track, NormalizedTrack):
            title, artist, album = track.full_title, track.artist, track.album
        else:
            title, artist, album = extract_track_info(track)

        combined = "|".join((value or "").lower().strip() for value in (title, artist, album))
        return hashlib.md5(combined.encode("utf-8")).hexdigest()

    @property
    def entries(self) -> Dict[str, CacheEntry]:
        return self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> Dict[str, CacheEntry]:
        """
        Read the cache file into memory.

        A missing or unreadable file yields an empty cache.
        """
        self._entries = {}
        if not self.path.exists():
            logger.debug("No existing search cache found, starting fresh")
            return self._entries

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load search cache from {self.path}: {e}")
            return self._entries

        if not isinstance(data, dict):
            logger.warning(f"Ignoring search cache with unexpected format: {self.path}")
            return self._entries

        for key, value in data.items():
            if not isinstance(value, dict):
                logger.warning(f"Skipping malformed cache entry {key}")
                continue
            try:
                self._entries[key] = CacheEntry.from_dict(value)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed cache entry {key}: {e}")

        logger.debug(f"Loaded {len(self._entries)} cached search results")
        return self._entries

    def save(self, entries: Optional[Mapping[str, CacheEntry]] = None) -> None:
        """
        Write entries (default: the in-memory ones) to the cache file.

        Raises:
            CachePersistenceError: If the file could not be written
        """
        if entries is not None:
            self._entries = dict(entries)

        payload = {key: entry.to_dict() for key, entry in self._entries.items()}
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CachePersistenceError(
                f"Failed to save search cache to {self.path}: {e}"
            ) from e

        logger.debug(f"Saved {len(payload)} search results to cache")

    def clear(self) -> None:
        """Delete the cache file and forget in-memory entries."""
        self._entries = {}
        try:
            self.path.unlink()
            logger.info("Search cache cleared")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CachePersistenceError(f"Failed to clear search cache: {e}") from e
