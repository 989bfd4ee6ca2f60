"""
Tidal integration package.
"""
from .playlist import fetch_playlist_tracks
from .search import TidalSearchClient, to_candidate

__all__ = ["TidalSearchClient", "fetch_playlist_tracks", "to_candidate"]
