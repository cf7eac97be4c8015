"""Poster resolution: user-selected season posters over catalog defaults."""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from seriee_service.config import get_tmdb_image_base_url
from seriee_service.models.database import SessionLocal
from seriee_service.repos import ActivityRepository, UserRepository

logger = logging.getLogger(__name__)

DEFAULT_UNLOCK_COUNT = 10


@dataclass
class PosterUnlockStatus:
    unlock_count: float
    is_full_series_unlocked: bool

    def to_dict(self) -> Dict:
        return {
            'unlock_count': None if math.isinf(self.unlock_count) else int(self.unlock_count),
            'is_full_series_unlocked': self.is_full_series_unlocked,
        }


def poster_key(series_id, season_number) -> str:
    return f"{series_id}_{season_number}"


def get_resolved_poster(
        user_data: Optional[Dict],
        series_id,
        season_number: Optional[int],
        default_poster: Optional[str]
) -> Optional[str]:
    """
    Get the poster to display for a series/season.

    Args:
        user_data: Profile dict (see UserProfile.to_dict)
        series_id: Series id
        season_number: Season number (None for series-level)
        default_poster: Catalog poster path

    Returns:
        The user's selected poster path, else the default
    """
    if not season_number or not user_data:
        return default_poster

    selected = (user_data.get('selected_posters') or {}).get(poster_key(series_id, season_number))
    return selected or default_poster


def is_season_completed(user_data: Optional[Dict], series_id, season_number: Optional[int]) -> bool:
    if not user_data or not series_id or not season_number:
        return False

    completed = (user_data.get('completed_seasons') or {}).get(str(series_id)) or []
    return season_number in completed


def get_full_poster_url(poster_path: Optional[str], size: str = 'w500') -> Optional[str]:
    """
    Format full image URL from a catalog path.

    Absolute URLs are returned unchanged.
    """
    if not poster_path:
        return None
    if poster_path.startswith('http'):
        return poster_path
    return f"{get_tmdb_image_base_url()}/{size}{poster_path}"


def get_poster_unlock_status(
        series_seasons: Optional[List],
        completed_seasons: Optional[Dict],
        series_id
) -> PosterUnlockStatus:
    """
    Number of alternative posters a user may pick from.

    Single-season series and fully completed series unlock everything;
    otherwise only the first DEFAULT_UNLOCK_COUNT posters are available.
    """
    if not series_seasons:
        return PosterUnlockStatus(DEFAULT_UNLOCK_COUNT, False)

    total_seasons = len(series_seasons)
    completed_count = len((completed_seasons or {}).get(str(series_id)) or [])

    if total_seasons == 1 or completed_count == total_seasons:
        return PosterUnlockStatus(math.inf, True)

    return PosterUnlockStatus(DEFAULT_UNLOCK_COUNT, False)


def resolve_season_poster(
        season_progress: Optional[Dict],
        season_number: int,
        fallback_poster: Optional[str]
) -> Optional[str]:
    """
    Resolve a season poster from a series' progress map.

    Args:
        season_progress: {str(season_number): {"selected_poster_path": ...}}
        season_number: Season to resolve
        fallback_poster: Returned when nothing was selected
    """
    progress = (season_progress or {}).get(str(season_number)) or {}
    selected = progress.get('selected_poster_path')
    if selected:
        return get_full_poster_url(selected)
    return fallback_poster


class PosterService:
    """Reads and writes the user's poster choices."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_user_data(self, user_id: Optional[str]) -> Optional[Dict]:
        if not user_id:
            return None
        db = self.session_factory()
        try:
            profile = UserRepository(db).get_profile(user_id)
            return profile.to_dict() if profile else None
        finally:
            db.close()

    def select_poster(
            self,
            user_id: str,
            series_id: int,
            season_number: int,
            poster_path: str,
            series_name: Optional[str] = None,
            custom_text: Optional[str] = None
    ) -> Dict:
        """
        Store the user's poster choice for a season and log it to the feed.

        Raises:
            LookupError: Unknown user
        """
        db = self.session_factory()
        try:
            user_repo = UserRepository(db)
            profile = user_repo.get_profile(user_id)
            if profile is None:
                raise LookupError(f"User {user_id} not found")

            selected = dict(profile.selected_posters or {})
            selected[poster_key(series_id, season_number)] = poster_path

            progress = dict(profile.season_progress or {})
            series_progress = dict(progress.get(str(series_id)) or {})
            season_entry = dict(series_progress.get(str(season_number)) or {})
            season_entry['selected_poster_path'] = poster_path
            series_progress[str(season_number)] = season_entry
            progress[str(series_id)] = series_progress

            profile = user_repo.update_profile(
                profile,
                selected_posters=selected,
                season_progress=progress
            )

            ActivityRepository(db).add_activity({
                'user_id': user_id,
                'username': profile.username,
                'user_profile_pic_url': profile.profile_pic_url,
                'type': 'poster_updated',
                'series_id': series_id,
                'series_name': series_name,
                'season_number': season_number,
                'poster_path': poster_path,
                'custom_text': custom_text,
            })

            logger.info(f"User {user_id} selected poster for {poster_key(series_id, season_number)}")
            return profile.to_dict()
        finally:
            db.close()
