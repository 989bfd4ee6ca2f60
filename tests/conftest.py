"""
Test configuration and shared fixtures for pytest
"""
import pytest
import tempfile
import shutil
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_tidal_session():
    """Mock Tidal session for testing"""
    session = MagicMock()
    session.check_login.return_value = True
    session.search.return_value = {"tracks": []}
    return session


@pytest.fixture
def tidal_track():
    """A tidalapi.Track-shaped object"""
    return SimpleNamespace(
        id=1234,
        name="Bohemian Rhapsody",
        artists=[SimpleNamespace(name="Queen")],
        album=SimpleNamespace(name="A Night at the Opera"),
        duration=354,
    )


@pytest.fixture
def sample_track_data():
    """Sample raw track record for testing"""
    return {
        'title': 'Bohemian Rhapsody',
        'artist': 'Queen',
        'album': 'A Night at the Opera',
        'year': 1975,
        'duration': '5:54',
        'genre': 'Rock',
    }


@pytest.fixture
def sample_tracks_list():
    """Sample list of raw track records for testing"""
    return [
        {
            'title': 'Bohemian Rhapsody',
            'artist': 'Queen',
            'album': 'A Night at the Opera',
            'year': 1975,
        },
        {
            'name': 'Stairway to Heaven',
            'Artist': 'Led Zeppelin',
            'album': 'Led Zeppelin IV',
            'year': '1971',
        },
        {
            'title': 'Untitled',
            'artist': '',
        },
    ]
