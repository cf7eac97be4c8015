"""Watchlist management and season-basket grouping."""
import logging
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from seriee_service.models.database import SessionLocal
from seriee_service.repos import ActivityRepository, UserRepository, WatchlistRepository

logger = logging.getLogger(__name__)


def _pick(item: Dict, *keys):
    """First non-empty value among alternative key spellings."""
    for key in keys:
        value = item.get(key)
        if value not in (None, ''):
            return value
    return None


def _item_id(item: Dict):
    return _pick(item, 'id', 'tmdb_id', 'tmdbId')


def _series_id(item: Dict):
    return _pick(item, 'series_id', 'seriesId') or _item_id(item)


def _season_number(item: Dict):
    return _pick(item, 'season_number', 'seasonNumber')


def _episode_number(item: Dict):
    return _pick(item, 'episode_number', 'episodeNumber')


def normalize_item(item: Dict) -> Dict:
    """Map a watchlist record in either key style onto the stored fields."""
    return {
        'id': _item_id(item),
        'tmdb_id': _pick(item, 'tmdb_id', 'tmdbId'),
        'series_id': _pick(item, 'series_id', 'seriesId'),
        'season_number': _season_number(item),
        'episode_number': _episode_number(item),
        'name': item.get('name'),
        'poster_path': _pick(item, 'poster_path', 'posterPath'),
        'season_poster': _pick(item, 'season_poster', 'seasonPoster'),
        'media_type': _pick(item, 'media_type', 'mediaType'),
    }


def group_watchlist(items: List[Dict]) -> List[Dict]:
    """
    Group saved episodes into per-season baskets.

    Records may come from either store and use snake_case or camelCase keys.
    Items with both a season and an episode number go into the basket
    "{series_id}_S{season}". Other items are passed through as series
    entries, except season-level items whose season already has a basket.
    Series entries come first, then baskets in first-seen order.

    Args:
        items: Raw watchlist records

    Returns:
        Display entries; baskets have type "basket" and an "episodes" list
    """
    processed: List[Dict] = []
    baskets: Dict[str, Dict] = {}

    # 1. Episode baskets
    for item in items:
        season = _season_number(item)
        if not (season and _episode_number(item)):
            continue

        series_id = _series_id(item)
        key = f"{series_id}_S{season}"
        season_poster = _pick(item, 'season_poster', 'seasonPoster')

        if key not in baskets:
            baskets[key] = {
                'type': 'basket',
                'series_id': series_id,
                'season_number': season,
                'name': item.get('name'),
                'poster_path': item.get('poster_path'),
                'season_poster': season_poster,
                'episodes': [],
            }
        basket = baskets[key]
        basket['episodes'].append(item)
        if not basket['season_poster'] and season_poster:
            basket['season_poster'] = season_poster

    # 2. Whole series / seasons
    for item in items:
        season = _season_number(item)
        if season and _episode_number(item):
            continue

        tmdb_id = _pick(item, 'tmdb_id', 'id')
        series_id = _pick(item, 'series_id', 'seriesId') or tmdb_id
        if season and f"{series_id}_S{season}" in baskets:
            continue

        processed.append({
            **item,
            'tmdb_id': tmdb_id,
            'series_id': series_id,
            'type': 'series',
            'is_season': bool(season),
        })

    # 3. Finalise baskets
    for basket in baskets.values():
        basket['tmdb_id'] = basket['series_id']
        basket['episodes'].sort(key=lambda e: _episode_number(e) or 0)
        basket['episode_count'] = len(basket['episodes'])
        if basket['season_poster']:
            basket['poster_path'] = basket['season_poster']

        first_name = basket['episodes'][0].get('name') or ''
        base_name = first_name.split(' - ')[0]
        basket['name'] = f"{base_name} (Season {basket['season_number']})"

        processed.append(basket)

    return processed


class WatchlistService:
    """Reads and updates a user's watchlist."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_watchlist(self, user_id: str) -> List[Dict]:
        db = self.session_factory()
        try:
            return [item.to_dict() for item in WatchlistRepository(db).get_items(user_id)]
        finally:
            db.close()

    def get_grouped_watchlist(self, user_id: str) -> Dict:
        """
        Watchlist ready for display.

        Returns:
            {"count": <raw item count>, "items": <grouped entries>}
        """
        items = self.get_watchlist(user_id)
        return {
            'count': len(items),
            'items': group_watchlist(items),
        }

    def add_to_watchlist(self, user_id: str, item_data: Dict) -> Dict:
        """
        Save an item and log a watchlist_add activity.

        Raises:
            ValueError: Missing id or name
        """
        if not _item_id(item_data):
            raise ValueError("id or tmdb_id is required")
        if not item_data.get('name'):
            raise ValueError("name is required")

        db = self.session_factory()
        try:
            item = WatchlistRepository(db).add_item(user_id, normalize_item(item_data))

            profile = UserRepository(db).get_profile(user_id)
            ActivityRepository(db).add_activity({
                'user_id': user_id,
                'username': profile.username if profile else None,
                'user_profile_pic_url': profile.profile_pic_url if profile else None,
                'type': 'watchlist_add',
                'series_id': item.series_id or item.tmdb_id,
                'series_name': item.name,
                'season_number': item.season_number,
                'episode_number': item.episode_number,
                'poster_path': item.season_poster or item.poster_path,
            })

            logger.info(f"✓ Added {item.item_id} to watchlist of user {user_id}")
            return item.to_dict()
        finally:
            db.close()

    def remove_from_watchlist(self, user_id: str, item_id: str) -> bool:
        db = self.session_factory()
        try:
            removed = WatchlistRepository(db).remove_item(user_id, item_id)
            if removed:
                logger.info(f"✓ Removed {item_id} from watchlist of user {user_id}")
            else:
                logger.warning(f"Watchlist item {item_id} not found for user {user_id}")
            return removed
        finally:
            db.close()
