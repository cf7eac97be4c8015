"""Shared test fixtures and configuration for pytest."""
import io
import json
import zipfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Dict, List
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import Session, sessionmaker

from seriee_service.models.base import Base
from seriee_service.models.database import create_db_engine
from seriee_service.models.legacy_review import LegacyReview
from seriee_service.models.user_activity import UserActivity
from seriee_service.models.user_profile import UserProfile


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=test_db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    """Session factory handed to services in place of SessionLocal."""
    return sessionmaker(bind=test_db_engine)


# ===== Sample Data Fixtures =====

@pytest.fixture
def sample_profiles(test_db_session) -> List[UserProfile]:
    """Create three users: alice follows bob and carol."""
    profiles = [
        UserProfile(
            user_id='alice',
            username='alice',
            profile_pic_url='https://example.com/alice.png',
            following=['bob', 'carol'],
            star_series=[{'id': 1396, 'name': 'Breaking Bad'}],
            selected_posters={'1396_2': '/custom-s2.jpg'},
            completed_seasons={'1396': [1]},
            season_progress={'1396': {'1': {'completed': True, 'rated': False}}},
            watched=[],
        ),
        UserProfile(
            user_id='bob',
            username='bob',
            following=[],
            star_series=[],
            selected_posters={},
            completed_seasons={},
            season_progress={},
            watched=[],
        ),
        UserProfile(
            user_id='carol',
            username='carol',
            following=['alice'],
            star_series=[],
            selected_posters={},
            completed_seasons={},
            season_progress={},
            watched=[],
        ),
    ]

    for profile in profiles:
        test_db_session.add(profile)
    test_db_session.commit()

    return profiles


@pytest.fixture
def sample_activity_records(test_db_session, sample_profiles) -> List[UserActivity]:
    """Activity from bob and carol at known ages."""
    now = datetime.now(UTC)
    records = [
        UserActivity(
            user_id='bob', username='bob', type='completed_season',
            series_id=1396, series_name='Breaking Bad', season_number=1,
            created_at=now - timedelta(hours=2)
        ),
        UserActivity(
            user_id='carol', username='carol', type='rated_season',
            series_id=1399, series_name='Game of Thrones', season_number=3, rating=4.5,
            created_at=now - timedelta(days=1, hours=1)
        ),
        UserActivity(
            user_id='bob', username='bob', type='watchlist_add',
            series_id=60059, series_name='Better Call Saul',
            created_at=now - timedelta(days=10)
        ),
    ]

    for record in records:
        test_db_session.add(record)
    test_db_session.commit()

    return records


@pytest.fixture
def sample_legacy_reviews(test_db_session) -> List[LegacyReview]:
    """Legacy reviews in the shapes the old store used."""
    records = [
        LegacyReview(
            id='r1', user_id='dave', tmdb_id='1396-S2', name='Breaking Bad',
            poster_path='/bb-s2.jpg', type='season', season_number=2, rating=4.0,
            is_season=True, is_episode=False, date='2023-05-01T10:00:00Z',
            updated_at=datetime(2023, 5, 1, 10, 0)
        ),
        LegacyReview(
            id='r2', user_id='dave', tmdb_id='1399', name='Game of Thrones',
            poster_path='/got.jpg', type='series', rating=3.5,
            is_season=False, is_episode=False, date='2023-06-01T10:00:00Z',
            updated_at=datetime(2023, 6, 1, 10, 0)
        ),
        LegacyReview(
            id='r3', user_id='dave', tmdb_id='1396', name='Breaking Bad',
            type='episode', season_number=1, rating=5.0,
            is_season=False, is_episode=True, date='2023-07-01T10:00:00Z',
            updated_at=datetime(2023, 7, 1, 10, 0)
        ),
        LegacyReview(
            id='r4', user_id='dave', tmdb_id='abc', name='Broken record',
            type='series', is_season=False, is_episode=False, date='2023-08-01',
            updated_at=datetime(2023, 8, 1, 10, 0)
        ),
    ]

    for record in records:
        test_db_session.add(record)
    test_db_session.commit()

    return records


@pytest.fixture
def sample_watchlist_items() -> List[Dict]:
    """Raw watchlist records mixing series, seasons and episodes."""
    return [
        {'id': '1396', 'tmdb_id': 1396, 'name': 'Breaking Bad', 'poster_path': '/bb.jpg'},
        {
            'id': '1399_s1_e2', 'tmdb_id': 1399, 'series_id': 1399, 'season_number': 1,
            'episode_number': 2, 'name': 'Game of Thrones - The Kingsroad',
            'poster_path': '/got.jpg', 'season_poster': None,
        },
        {
            'id': '1399_s1_e1', 'tmdb_id': 1399, 'series_id': 1399, 'season_number': 1,
            'episode_number': 1, 'name': 'Game of Thrones - Winter Is Coming',
            'poster_path': '/got.jpg', 'season_poster': '/got-s1.jpg',
        },
        {'id': '1399_s1', 'tmdb_id': 1399, 'series_id': 1399, 'season_number': 1, 'name': 'Game of Thrones'},
        {'id': '1399_s2', 'tmdb_id': 1399, 'series_id': 1399, 'season_number': 2, 'name': 'Game of Thrones'},
    ]


@pytest.fixture
def sample_series_details() -> Dict:
    """Series details as returned by the metadata API."""
    return {
        'id': 1396,
        'name': 'Breaking Bad',
        'poster_path': '/bb.jpg',
        'seasons': [
            {'season_number': 0, 'name': 'Specials', 'poster_path': '/bb-s0.jpg', 'air_date': '2009-02-17'},
            {'season_number': 1, 'name': 'Season 1', 'poster_path': '/bb-s1.jpg', 'air_date': '2008-01-20'},
            {'season_number': 2, 'name': 'Season 2', 'poster_path': '/bb-s2.jpg', 'air_date': '2009-03-08'},
        ],
    }


# ===== Bundle Fixtures =====

def make_bundle_zip(files: Dict[str, str]) -> bytes:
    """Build a zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def bundle_zip_bytes() -> bytes:
    """A minimal web bundle."""
    return make_bundle_zip({
        'index.html': '<html><body>seriee</body></html>',
        'assets/app.js': 'console.log("ok");',
    })


@pytest.fixture
def bundle_dir(tmp_path) -> Path:
    return tmp_path / 'bundles'


# ===== Configuration Fixtures =====

@pytest.fixture
def mock_config(monkeypatch):
    """Mock configuration values."""
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
    monkeypatch.setenv('TMDB_API_KEY', 'test-key')
    monkeypatch.setenv('TMDB_BASE_URL', 'https://api.example.com/3')
    monkeypatch.setenv('TMDB_IMAGE_BASE_URL', 'https://images.example.com/t/p')
    monkeypatch.setenv('BACKEND_CACHE_URL', 'http://backend.local/api')
    monkeypatch.setenv('USE_BACKEND_CACHE', 'false')
    monkeypatch.setenv('REMOTE_CONFIG_URL', 'https://config.example.com/remote-config')
    monkeypatch.setenv('APP_VERSION', '2.0.0')


@pytest.fixture
def mock_local_settings(tmp_path):
    """Write a local.settings.json file."""
    settings = {
        "Values": {
            "DATABASE_URL": "sqlite:///:memory:",
            "TMDB_API_KEY": "from-settings",
        }
    }

    settings_file = tmp_path / "local.settings.json"
    with open(settings_file, 'w') as f:
        json.dump(settings, f)

    yield settings_file


# ===== Azure Functions Fixtures =====

@pytest.fixture
def mock_http_request():
    """Mock Azure Functions HttpRequest."""
    mock_req = Mock()
    mock_req.route_params = {}
    mock_req.params = {}
    mock_req.method = 'GET'
    mock_req.get_json.return_value = {}
    return mock_req


@pytest.fixture
def mock_database_session():
    """Mock database session."""
    mock_session = Mock(spec=Session)
    mock_session.query.return_value = mock_session
    mock_session.filter.return_value = mock_session
    mock_session.first.return_value = None
    mock_session.all.return_value = []
    mock_session.count.return_value = 0
    mock_session.commit.return_value = None
    mock_session.close.return_value = None
    mock_session.refresh.return_value = None
    return mock_session


# ===== Script Fixtures =====

@pytest.fixture
def mock_sys_argv(monkeypatch):
    """Mock sys.argv for script testing."""
    def _mock_argv(args):
        monkeypatch.setattr('sys.argv', args)
    return _mock_argv


# ===== Repository Fixtures =====

@pytest.fixture
def watchlist_repository(test_db_session):
    """Create WatchlistRepository with test database session."""
    from seriee_service.repos import WatchlistRepository
    return WatchlistRepository(test_db_session)


@pytest.fixture
def diary_repository(test_db_session):
    """Create DiaryRepository with test database session."""
    from seriee_service.repos import DiaryRepository
    return DiaryRepository(test_db_session)


@pytest.fixture
def user_repository(test_db_session):
    """Create UserRepository with test database session."""
    from seriee_service.repos import UserRepository
    return UserRepository(test_db_session)


@pytest.fixture
def activity_repository(test_db_session):
    """Create ActivityRepository with test database session."""
    from seriee_service.repos import ActivityRepository
    return ActivityRepository(test_db_session)


@pytest.fixture
def settings_repository(test_db_session):
    """Create SettingsRepository with test database session."""
    from seriee_service.repos import SettingsRepository
    return SettingsRepository(test_db_session)
