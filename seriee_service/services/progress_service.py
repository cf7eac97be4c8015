"""Season completion and rating, with diary and activity side effects."""
import logging
import math
from datetime import date
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from seriee_service.models.database import SessionLocal
from seriee_service.repos import ActivityRepository, UserRepository
from seriee_service.services.diary_service import DiaryService
from seriee_service.services.tmdb_service import TmdbService

logger = logging.getLogger(__name__)


def get_released_season_numbers(series: Dict, today: Optional[date] = None) -> List[int]:
    """
    Season numbers that have aired. Specials (season 0) and seasons without
    an air date are excluded.
    """
    today = today or date.today()
    released = []
    for season in series.get('seasons') or []:
        number = season.get('season_number')
        air_date = season.get('air_date')
        if not number or not air_date:
            continue
        try:
            if date.fromisoformat(air_date) <= today:
                released.append(number)
        except ValueError:
            continue
    return released


class ProgressService:
    """
    Tracks per-season progress on the user profile.

    Progress entries live at season_progress[str(series_id)][str(season)]
    with keys completed, rated, rating_value and selected_poster_path.
    """

    def __init__(
            self,
            tmdb_service: Optional[TmdbService] = None,
            diary_service: Optional[DiaryService] = None,
            session_factory: Optional[Callable[[], Session]] = None
    ):
        self.session_factory = session_factory or SessionLocal
        self.tmdb_service = tmdb_service or TmdbService()
        self.diary_service = diary_service or DiaryService(session_factory=self.session_factory)

    def _update_season(self, user_id: str, series_id: int, season_number: int, **changes):
        """Merge changes into one season's progress entry; returns (profile_dict, entry)."""
        db = self.session_factory()
        try:
            repo = UserRepository(db)
            profile = repo.get_profile(user_id)
            if profile is None:
                raise LookupError(f"User {user_id} not found")

            progress = dict(profile.season_progress or {})
            series_progress = dict(progress.get(str(series_id)) or {})
            entry = {
                'completed': False,
                'rated': False,
                'rating_value': None,
                'selected_poster_path': None,
                **(series_progress.get(str(season_number)) or {}),
                **changes,
            }
            series_progress[str(season_number)] = entry
            progress[str(series_id)] = series_progress

            fields = {'season_progress': progress}
            if changes.get('completed'):
                completed = dict(profile.completed_seasons or {})
                seasons = list(completed.get(str(series_id)) or [])
                if season_number not in seasons:
                    seasons.append(season_number)
                completed[str(series_id)] = sorted(seasons)
                fields['completed_seasons'] = completed

            profile = repo.update_profile(profile, **fields)
            return profile.to_dict(), entry
        finally:
            db.close()

    def _log(self, user: Dict, activity: Dict):
        db = self.session_factory()
        try:
            ActivityRepository(db).add_activity({
                'user_id': user['user_id'],
                'username': user['username'],
                'user_profile_pic_url': user['profile_pic_url'],
                **activity,
            })
        finally:
            db.close()

    def complete_season(self, user_id: str, series_id: int, season_number: int) -> Dict:
        """
        Mark a season completed.

        Writes a SEASON_COMPLETED diary entry and, when every released season
        is now complete, a SERIES_COMPLETED entry.

        Returns:
            {"progress": <season entry>, "series_completed": bool}
        """
        series = self.tmdb_service.get_series_details(series_id)
        name = series.get('name')
        season_poster = next(
            (s.get('poster_path') for s in series.get('seasons') or []
             if s.get('season_number') == season_number),
            None
        ) or series.get('poster_path')

        user, entry = self._update_season(user_id, series_id, season_number, completed=True)

        self._log(user, {
            'type': 'completed_season',
            'series_id': series_id,
            'series_name': name,
            'season_number': season_number,
            'poster_path': entry.get('selected_poster_path') or season_poster,
        })
        self.diary_service.add_season_completed_entry(
            user_id, series_id, season_number, name, season_poster
        )

        released = get_released_season_numbers(series)
        completed = set(user['completed_seasons'].get(str(series_id)) or [])
        series_completed = bool(released) and set(released) <= completed
        if series_completed:
            self.diary_service.add_series_completed_entry(
                user_id, series_id, name, series.get('poster_path')
            )
            logger.info(f"✓ User {user_id} completed series {series_id}")

        return {'progress': entry, 'series_completed': series_completed}

    def rate_season(self, user_id: str, series_id: int, season_number: int, rating: float) -> Dict:
        """
        Rate a season (0-5, half steps allowed).

        Raises:
            ValueError: Rating out of range
        """
        if not math.isfinite(rating) or rating < 0 or rating > 5:
            raise ValueError("rating must be between 0 and 5")

        series = self.tmdb_service.get_series_details(series_id)
        name = series.get('name')
        season_poster = next(
            (s.get('poster_path') for s in series.get('seasons') or []
             if s.get('season_number') == season_number),
            None
        ) or series.get('poster_path')

        user, entry = self._update_season(
            user_id, series_id, season_number, rated=True, rating_value=rating
        )

        self._log(user, {
            'type': 'rated_season',
            'series_id': series_id,
            'series_name': name,
            'season_number': season_number,
            'poster_path': entry.get('selected_poster_path') or season_poster,
            'rating': rating,
        })
        self.diary_service.add_season_rated_entry(
            user_id, series_id, season_number, rating, name, season_poster
        )

        return {'progress': entry}
