"""Catalog pages: home sections and series/season/episode details."""
import logging
from typing import Dict, List, Optional

from seriee_service.services.poster_service import (
    PosterService,
    get_full_poster_url,
    get_poster_unlock_status,
    get_resolved_poster,
    is_season_completed,
)
from seriee_service.services.tmdb_service import TmdbService

logger = logging.getLogger(__name__)

HOME_SECTION_SIZE = 12


class CatalogService:
    """
    Assembles page payloads from the metadata client and the user's
    poster choices.
    """

    def __init__(
            self,
            tmdb_service: Optional[TmdbService] = None,
            poster_service: Optional[PosterService] = None
    ):
        self.tmdb_service = tmdb_service or TmdbService()
        self.poster_service = poster_service or PosterService()

    def get_home_sections(self, user_id: Optional[str] = None) -> Dict:
        """
        Home page sections, each trimmed to HOME_SECTION_SIZE.

        Returns:
            Dict with trending, top_rated, new_releases, hero and
            star_series_ids (series the user starred)
        """
        trending = self.tmdb_service.get_trending('weekly')
        top_rated = self.tmdb_service.get_top_rated()
        new_releases = self.tmdb_service.get_new_releases()
        hero = self.tmdb_service.get_hero_episodes()

        user_data = self.poster_service.get_user_data(user_id)
        star_ids = sorted({
            s.get('id') for s in (user_data or {}).get('star_series') or []
            if s.get('id') is not None
        })

        return {
            'trending': trending[:HOME_SECTION_SIZE],
            'top_rated': top_rated[:HOME_SECTION_SIZE],
            'new_releases': new_releases[:HOME_SECTION_SIZE],
            'hero': hero,
            'star_series_ids': star_ids,
        }

    def get_series_page(self, series_id: int, user_id: Optional[str] = None) -> Dict:
        """
        Series details with per-season display state.

        Each season gains resolved_poster_url, completed and progress; the
        page gains poster_unlock.
        """
        series = dict(self.tmdb_service.get_series_details(series_id))
        user_data = self.poster_service.get_user_data(user_id)
        series_progress = ((user_data or {}).get('season_progress') or {}).get(str(series_id)) or {}

        seasons: List[Dict] = []
        for season in series.get('seasons') or []:
            number = season.get('season_number')
            poster = get_resolved_poster(user_data, series_id, number, season.get('poster_path'))
            seasons.append({
                **season,
                'resolved_poster_url': get_full_poster_url(poster),
                'completed': is_season_completed(user_data, series_id, number),
                'progress': series_progress.get(str(number)) or {},
            })

        series['seasons'] = seasons
        series['poster_url'] = get_full_poster_url(series.get('poster_path'))
        series['poster_unlock'] = get_poster_unlock_status(
            series.get('seasons'),
            (user_data or {}).get('completed_seasons'),
            series_id
        ).to_dict()
        return series

    def get_season_page(self, series_id: int, season_number: int, user_id: Optional[str] = None) -> Dict:
        season = dict(self.tmdb_service.get_season_details(series_id, season_number))
        user_data = self.poster_service.get_user_data(user_id)

        poster = get_resolved_poster(user_data, series_id, season_number, season.get('poster_path'))
        season['resolved_poster_url'] = get_full_poster_url(poster)
        season['completed'] = is_season_completed(user_data, series_id, season_number)
        return season

    def get_episode_page(self, series_id: int, season_number: int, episode_number: int) -> Dict:
        episode = dict(self.tmdb_service.get_episode_details(series_id, season_number, episode_number))
        episode['still_url'] = get_full_poster_url(episode.get('still_path'), size='original')
        return episode
