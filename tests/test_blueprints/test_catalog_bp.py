"""Integration tests for catalog blueprint Azure Functions."""
import json
from unittest.mock import Mock, patch

import azure.functions as func
import requests

from seriee_service.blueprints.catalog_bp import (
    get_catalog_list,
    get_episode,
    get_home,
    get_season,
    get_series,
    get_series_recommendations,
    search_series,
)


def _request(route_params=None, params=None):
    mock_req = Mock(spec=func.HttpRequest)
    mock_req.route_params = route_params or {}
    mock_req.params = params or {}
    return mock_req


def _http_error(status_code: int) -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status_code
    return requests.HTTPError(f"{status_code} error", response=response)


class TestGetHome:
    """Tests for get_home function."""

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_home(self, mock_service):
        # Arrange
        mock_service.get_home_sections.return_value = {
            'trending': [{'id': 1}], 'top_rated': [], 'new_releases': [], 'hero': [], 'star_series_ids': [1],
        }

        # Act
        response = get_home(_request(params={'user_id': 'alice'}))

        # Assert
        assert response.status_code == 200
        assert response.mimetype == "application/json"
        body = json.loads(response.get_body())
        assert body['star_series_ids'] == [1]
        mock_service.get_home_sections.assert_called_once_with('alice')

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_home_error(self, mock_service):
        mock_service.get_home_sections.side_effect = Exception("boom")

        response = get_home(_request())

        assert response.status_code == 500
        assert json.loads(response.get_body())['error'] == "Internal server error"

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_home_upstream_error(self, mock_service):
        """Test that a metadata API failure on the home page is a 502, not a 500."""
        mock_service.get_home_sections.side_effect = _http_error(503)

        response = get_home(_request())

        assert response.status_code == 502
        assert json.loads(response.get_body())['error'] == "Metadata service unavailable"


class TestGetCatalogList:
    """Tests for get_catalog_list function."""

    @patch('seriee_service.blueprints.catalog_bp.tmdb_service')
    def test_trending_daily(self, mock_tmdb):
        # Arrange
        mock_tmdb.get_trending.return_value = [{'id': 1}, {'id': 2}]

        # Act
        response = get_catalog_list(_request({'kind': 'trending'}, {'type': 'daily'}))

        # Assert
        assert response.status_code == 200
        body = json.loads(response.get_body())
        assert body == {'kind': 'trending', 'count': 2, 'results': [{'id': 1}, {'id': 2}]}
        mock_tmdb.get_trending.assert_called_once_with('daily')

    @patch('seriee_service.blueprints.catalog_bp.tmdb_service')
    def test_other_kinds(self, mock_tmdb):
        # Arrange
        mock_tmdb.get_top_rated.return_value = []
        mock_tmdb.get_new_releases.return_value = []
        mock_tmdb.get_hero_episodes.return_value = [{'id': 5}]

        # Act
        responses = {
            kind: get_catalog_list(_request({'kind': kind}))
            for kind in ('top-rated', 'new', 'hero')
        }

        # Assert
        assert all(r.status_code == 200 for r in responses.values())
        assert json.loads(responses['hero'].get_body())['count'] == 1

    def test_unknown_kind(self):
        response = get_catalog_list(_request({'kind': 'popular'}))

        assert response.status_code == 400

    @patch('seriee_service.blueprints.catalog_bp.tmdb_service')
    def test_upstream_error(self, mock_tmdb):
        mock_tmdb.get_top_rated.side_effect = _http_error(503)

        response = get_catalog_list(_request({'kind': 'top-rated'}))

        assert response.status_code == 502


class TestSearchSeries:
    """Tests for search_series function."""

    @patch('seriee_service.blueprints.catalog_bp.tmdb_service')
    def test_search(self, mock_tmdb):
        mock_tmdb.search_series.return_value = {'results': [{'id': 1396}]}

        response = search_series(_request(params={'query': ' breaking '}))

        assert response.status_code == 200
        mock_tmdb.search_series.assert_called_once_with('breaking')

    def test_search_requires_query(self):
        assert search_series(_request(params={'query': '  '})).status_code == 400


class TestDetailPages:
    """Tests for series, season and episode pages."""

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_series(self, mock_service):
        # Arrange
        mock_service.get_series_page.return_value = {'id': 1396, 'seasons': []}

        # Act
        response = get_series(_request({'series_id': '1396'}, {'user_id': 'alice'}))

        # Assert
        assert response.status_code == 200
        assert json.loads(response.get_body())['id'] == 1396
        mock_service.get_series_page.assert_called_once_with(1396, 'alice')

    def test_get_series_invalid_id(self):
        response = get_series(_request({'series_id': 'abc'}))

        assert response.status_code == 400
        assert 'series_id' in json.loads(response.get_body())['error']

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_series_not_found(self, mock_service):
        mock_service.get_series_page.side_effect = _http_error(404)

        response = get_series(_request({'series_id': '999'}))

        assert response.status_code == 404

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_season(self, mock_service):
        mock_service.get_season_page.return_value = {'season_number': 2}

        response = get_season(_request({'series_id': '1396', 'season_number': '2'}))

        assert response.status_code == 200
        mock_service.get_season_page.assert_called_once_with(1396, 2, None)

    @patch('seriee_service.blueprints.catalog_bp.catalog_service')
    def test_get_episode(self, mock_service):
        mock_service.get_episode_page.return_value = {'name': 'Pilot'}

        response = get_episode(_request({'series_id': '1396', 'season_number': '1', 'episode_number': '1'}))

        assert response.status_code == 200
        mock_service.get_episode_page.assert_called_once_with(1396, 1, 1)

    def test_get_episode_missing_param(self):
        response = get_episode(_request({'series_id': '1396', 'season_number': '1'}))

        assert response.status_code == 400

    @patch('seriee_service.blueprints.catalog_bp.tmdb_service')
    def test_get_series_recommendations(self, mock_tmdb):
        mock_tmdb.get_recommendations.return_value = [{'id': 60059}]

        response = get_series_recommendations(_request({'series_id': '1396'}))

        body = json.loads(response.get_body())
        assert body == {'series_id': 1396, 'count': 1, 'results': [{'id': 60059}]}
