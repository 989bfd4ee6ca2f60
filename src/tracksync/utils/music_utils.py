"""
Music data utilities.
"""
from typing import Any, Mapping, Optional, Tuple

TITLE_KEYS = ("title", "name")
ARTIST_KEYS = ("artist", "artists")
ALBUM_KEYS = ("album",)


def _lookup(data: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    """Find the first present key, tolerating case variants like 'Name'."""
    lowered = {str(key).lower(): value for key, value in data.items()}
    for key in keys:
        value = lowered.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None

    # Artist lists, either plain names or objects with a name
    if isinstance(value, (list, tuple)):
        names = [_as_text(item) for item in value]
        return " ".join(name for name in names if name)

    if isinstance(value, Mapping):
        return _as_text(value.get("name") or value.get("title"))

    if hasattr(value, "name") and not isinstance(value, str):
        return str(value.name)
    if hasattr(value, "title") and not isinstance(value, str):
        return str(value.title)

    return str(value)


def extract_track_info(
    track_data: Any,
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Extract track information from various track data formats.

    Args:
        track_data: Track data object or dictionary

    Returns:
        Tuple of (title, artist, album); multiple artists are space-joined
    """
    if isinstance(track_data, Mapping):
        title = _lookup(track_data, TITLE_KEYS)
        artist = _lookup(track_data, ARTIST_KEYS)
        album = _lookup(track_data, ALBUM_KEYS)

    elif hasattr(track_data, "title") or hasattr(track_data, "name"):
        title = getattr(track_data, "full_title", None) or getattr(
            track_data, "title", None
        )
        if title is None:
            title = getattr(track_data, "name", None)
        artist = getattr(track_data, "artists", None) or getattr(
            track_data, "artist", None
        )
        album = getattr(track_data, "album", None)

    else:
        # Unknown format
        return None, None, None

    return _as_text(title), _as_text(artist), _as_text(album)
