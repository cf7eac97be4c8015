"""Unit tests for seriee_service.services.poster_service."""
import math

import pytest

from seriee_service.models import UserActivity, UserProfile
from seriee_service.services.poster_service import (
    DEFAULT_UNLOCK_COUNT,
    PosterService,
    PosterUnlockStatus,
    get_full_poster_url,
    get_poster_unlock_status,
    get_resolved_poster,
    is_season_completed,
    poster_key,
    resolve_season_poster,
)


@pytest.fixture
def user_data():
    return {
        'user_id': 'alice',
        'selected_posters': {'1396_2': '/custom-s2.jpg'},
        'completed_seasons': {'1396': [1, 2]},
    }


@pytest.fixture(autouse=True)
def default_image_base(monkeypatch):
    monkeypatch.delenv('TMDB_IMAGE_BASE_URL', raising=False)


class TestGetResolvedPoster:
    """Tests for get_resolved_poster."""

    def test_selected_poster_wins(self, user_data):
        assert get_resolved_poster(user_data, 1396, 2, '/default.jpg') == '/custom-s2.jpg'

    def test_falls_back_to_default(self, user_data):
        assert get_resolved_poster(user_data, 1396, 3, '/default.jpg') == '/default.jpg'

    def test_series_level_uses_default(self, user_data):
        """Test that no season (or season 0) always resolves to the default."""
        assert get_resolved_poster(user_data, 1396, None, '/default.jpg') == '/default.jpg'
        assert get_resolved_poster(user_data, 1396, 0, '/default.jpg') == '/default.jpg'

    def test_no_user_data(self):
        assert get_resolved_poster(None, 1396, 2, '/default.jpg') == '/default.jpg'

    def test_string_series_id_matches(self, user_data):
        assert get_resolved_poster(user_data, '1396', 2, None) == '/custom-s2.jpg'

    def test_poster_key(self):
        assert poster_key(1396, 2) == '1396_2'


class TestIsSeasonCompleted:
    """Tests for is_season_completed."""

    def test_completed(self, user_data):
        assert is_season_completed(user_data, 1396, 1) is True

    def test_not_completed(self, user_data):
        assert is_season_completed(user_data, 1396, 3) is False
        assert is_season_completed(user_data, 1399, 1) is False

    def test_missing_inputs(self, user_data):
        assert is_season_completed(None, 1396, 1) is False
        assert is_season_completed(user_data, None, 1) is False
        assert is_season_completed(user_data, 1396, None) is False


class TestGetFullPosterUrl:
    """Tests for get_full_poster_url."""

    def test_relative_path(self):
        assert get_full_poster_url('/abc.jpg') == 'https://image.tmdb.org/t/p/w500/abc.jpg'

    def test_custom_size(self):
        assert get_full_poster_url('/abc.jpg', size='original') == 'https://image.tmdb.org/t/p/original/abc.jpg'

    def test_absolute_url_unchanged(self):
        assert get_full_poster_url('https://cdn.example.com/p.jpg') == 'https://cdn.example.com/p.jpg'

    def test_empty_path(self):
        assert get_full_poster_url(None) is None
        assert get_full_poster_url('') is None


class TestGetPosterUnlockStatus:
    """Tests for get_poster_unlock_status."""

    def test_no_seasons(self):
        result = get_poster_unlock_status(None, {}, 1396)

        assert result == PosterUnlockStatus(DEFAULT_UNLOCK_COUNT, False)

    def test_single_season_unlocks_everything(self):
        result = get_poster_unlock_status([{'season_number': 1}], {}, 1396)

        assert math.isinf(result.unlock_count)
        assert result.is_full_series_unlocked is True

    def test_all_seasons_completed(self, user_data):
        seasons = [{'season_number': 1}, {'season_number': 2}]

        result = get_poster_unlock_status(seasons, user_data['completed_seasons'], 1396)

        assert result.is_full_series_unlocked is True

    def test_partially_completed(self, user_data):
        seasons = [{'season_number': n} for n in (1, 2, 3)]

        result = get_poster_unlock_status(seasons, user_data['completed_seasons'], 1396)

        assert result.unlock_count == DEFAULT_UNLOCK_COUNT
        assert result.is_full_series_unlocked is False

    def test_to_dict_maps_infinity_to_none(self):
        assert PosterUnlockStatus(math.inf, True).to_dict() == {
            'unlock_count': None,
            'is_full_series_unlocked': True,
        }
        assert PosterUnlockStatus(10, False).to_dict()['unlock_count'] == 10


class TestResolveSeasonPoster:
    """Tests for resolve_season_poster."""

    def test_selected_poster_becomes_full_url(self):
        progress = {'2': {'selected_poster_path': '/picked.jpg'}}

        assert resolve_season_poster(progress, 2, '/fallback.jpg') == 'https://image.tmdb.org/t/p/w500/picked.jpg'

    def test_fallback(self):
        assert resolve_season_poster({'2': {'completed': True}}, 2, '/fallback.jpg') == '/fallback.jpg'
        assert resolve_season_poster(None, 2, None) is None


class TestPosterService:
    """Tests for PosterService."""

    def test_get_user_data(self, session_factory, sample_profiles):
        # Arrange
        service = PosterService(session_factory=session_factory)

        # Act
        result = service.get_user_data('alice')

        # Assert
        assert result['selected_posters'] == {'1396_2': '/custom-s2.jpg'}

    def test_get_user_data_anonymous(self, session_factory):
        service = PosterService(session_factory=session_factory)

        assert service.get_user_data(None) is None
        assert service.get_user_data('nobody') is None

    def test_select_poster_updates_profile_and_feed(self, session_factory, sample_profiles):
        # Arrange
        service = PosterService(session_factory=session_factory)

        # Act
        result = service.select_poster(
            'alice', 1396, 1, '/alt-s1.jpg', series_name='Breaking Bad', custom_text='new look'
        )

        # Assert
        assert result['selected_posters']['1396_1'] == '/alt-s1.jpg'
        assert result['selected_posters']['1396_2'] == '/custom-s2.jpg'
        assert result['season_progress']['1396']['1'] == {
            'completed': True,
            'rated': False,
            'selected_poster_path': '/alt-s1.jpg',
        }

        db = session_factory()
        try:
            stored = db.get(UserProfile, 'alice')
            assert stored.selected_posters['1396_1'] == '/alt-s1.jpg'
            activity = db.query(UserActivity).one()
            assert activity.type == 'poster_updated'
            assert activity.custom_text == 'new look'
            assert activity.poster_path == '/alt-s1.jpg'
        finally:
            db.close()

    def test_select_poster_unknown_user(self, session_factory):
        service = PosterService(session_factory=session_factory)

        with pytest.raises(LookupError):
            service.select_poster('nobody', 1396, 1, '/p.jpg')
