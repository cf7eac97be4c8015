"""
Diary of viewing milestones.

Entries represent major milestones:
- SEASON_COMPLETED: user finished all episodes in a season
- SEASON_RATED: user submitted a rating for a season
- SERIES_COMPLETED: user finished all released seasons of a series

Writes go to the primary store only. Reads use the primary store when it has
any entry for the user and otherwise fall back to the legacy review store.
"""
import logging
import re
from datetime import UTC, date, datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from seriee_service.models.database import SessionLocal
from seriee_service.models.diary_entry import SEASON_COMPLETED, SEASON_RATED, SERIES_COMPLETED
from seriee_service.repos import DiaryRepository, UserRepository

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def parse_tmdb_id(value) -> Optional[int]:
    """
    Parse a series id out of the shapes legacy records use.

    Examples:
        1396 -> 1396, "1396" -> 1396, "1396-S2" -> 1396, "abc" -> None
    """
    if not value:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value

    text = str(value)
    if '-S' in text:
        head = text.split('-S')[0]
        return int(head) if head.isdigit() else None

    if re.search(r'[a-z]', text, re.IGNORECASE):
        return None

    match = re.match(r'^\s*(-?\d+)', text)
    return int(match.group(1)) if match else None


def _to_datetime(value) -> datetime:
    """Best-effort conversion of stored dates for sorting (naive values are UTC)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return _EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return _EPOCH


def _date_string(value) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def normalize_entry(entry: Dict, source: str) -> Optional[Dict]:
    """
    Normalize a primary or legacy record to one shape.

    Args:
        entry: Raw record dict
        source: 'primary' or 'legacy'

    Returns:
        Normalized dict, or None for legacy records without a usable id
    """
    if source == 'primary':
        entry_type = entry.get('entry_type')
        return {
            'id': entry.get('id'),
            'user_id': entry.get('user_id'),
            'tmdb_id': entry.get('tmdb_id'),
            'name': entry.get('series_name'),
            'poster_path': entry.get('poster_path'),
            'type': entry_type,
            'season_number': entry.get('season_number'),
            'rating': entry.get('rating'),
            'date': _date_string(entry.get('watched_at')),
            'created_at': _date_string(entry.get('created_at')),
            'source': 'primary',
            'is_season': entry_type in (SEASON_COMPLETED, SEASON_RATED),
            'is_series': entry_type == SERIES_COMPLETED,
        }

    tmdb_id = parse_tmdb_id(entry.get('tmdb_id') or entry.get('id'))
    if not tmdb_id:
        return None

    raw_type = entry.get('type')
    if raw_type == 'season':
        entry_type = SEASON_COMPLETED
    elif raw_type == 'series':
        entry_type = SERIES_COMPLETED
    else:
        entry_type = raw_type

    return {
        'id': entry.get('id'),
        'user_id': entry.get('user_id'),
        'tmdb_id': tmdb_id,
        'name': entry.get('name'),
        'poster_path': entry.get('poster_path'),
        'type': entry_type,
        'season_number': entry.get('season_number'),
        'rating': entry.get('rating'),
        'date': _date_string(entry.get('date') or entry.get('updated_at') or entry.get('created_at')),
        'source': 'legacy',
        'is_season': bool(entry.get('is_season')) or raw_type == 'season',
        'is_series': raw_type == 'series' or raw_type == SERIES_COMPLETED,
    }


class DiaryService:
    """Writes milestones to the primary store; reads with legacy fallback."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    # ===== WRITES =====

    def _upsert(self, entry_data: Dict) -> Dict:
        db = self.session_factory()
        try:
            entry = DiaryRepository(db).upsert_entry(entry_data)
            logger.info(
                f"✓ Diary {entry.entry_type} for user {entry.user_id}, "
                f"series {entry.tmdb_id}, season {entry.season_number}"
            )
            return normalize_entry(_entry_to_dict(entry), 'primary')
        finally:
            db.close()

    def add_season_completed_entry(
            self,
            user_id: str,
            tmdb_id: int,
            season_number: int,
            name: Optional[str],
            poster_path: Optional[str],
            watched_at: Optional[date] = None
    ) -> Dict:
        return self._upsert({
            'user_id': user_id,
            'tmdb_id': tmdb_id,
            'series_name': name,
            'poster_path': poster_path,
            'entry_type': SEASON_COMPLETED,
            'season_number': season_number,
            'watched_at': watched_at or date.today(),
        })

    def add_season_rated_entry(
            self,
            user_id: str,
            tmdb_id: int,
            season_number: int,
            rating: float,
            name: Optional[str],
            poster_path: Optional[str],
            watched_at: Optional[date] = None
    ) -> Dict:
        return self._upsert({
            'user_id': user_id,
            'tmdb_id': tmdb_id,
            'series_name': name,
            'poster_path': poster_path,
            'entry_type': SEASON_RATED,
            'season_number': season_number,
            'rating': rating,
            'watched_at': watched_at or date.today(),
        })

    def add_series_completed_entry(
            self,
            user_id: str,
            tmdb_id: int,
            name: Optional[str],
            poster_path: Optional[str],
            watched_at: Optional[date] = None
    ) -> Dict:
        return self._upsert({
            'user_id': user_id,
            'tmdb_id': tmdb_id,
            'series_name': name,
            'poster_path': poster_path,
            'entry_type': SERIES_COMPLETED,
            'season_number': None,
            'watched_at': watched_at or date.today(),
        })

    # ===== READS =====

    def get_user_diary(self, user_id: str) -> List[Dict]:
        """
        Get a user's diary, most recent first.

        Returns:
            Normalized entries; [] on storage errors
        """
        db = self.session_factory()
        try:
            entries = DiaryRepository(db).get_entries(user_id)
            if entries:
                logger.info(f"Using primary diary data for user {user_id}")
                return [normalize_entry(_entry_to_dict(e), 'primary') for e in entries]

            logger.info(f"Falling back to legacy diary data for user {user_id}")
            return self._get_legacy_diary(db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting diary for user {user_id}: {e}")
            return []
        finally:
            db.close()

    def _get_legacy_diary(self, db: Session, user_id: str) -> List[Dict]:
        legacy_entries: List[Dict] = []

        # Milestone reviews: season reviews, or reviews of the whole series
        for review in DiaryRepository(db).get_legacy_reviews(user_id):
            if review.is_season or (not review.is_episode and not review.is_season):
                entry = normalize_entry(review.to_dict(), 'legacy')
                if entry:
                    legacy_entries.append(entry)

        # Legacy "watched" list on the profile; treated as series completions
        profile = UserRepository(db).get_profile(user_id)
        if profile is not None:
            for item in profile.watched or []:
                tmdb_id = parse_tmdb_id(item.get('id'))
                if not tmdb_id:
                    continue
                if item.get('type') not in ('tv', 'series'):
                    continue
                entry = normalize_entry({
                    'id': f"legacy-watched-{item.get('id')}",
                    'user_id': user_id,
                    'tmdb_id': tmdb_id,
                    'name': item.get('name'),
                    'poster_path': item.get('poster_path'),
                    'type': SERIES_COMPLETED,
                    'season_number': None,
                    'rating': item.get('vote_average'),
                    'date': item.get('date'),
                }, 'legacy')
                if entry:
                    legacy_entries.append(entry)

        # Deduplicate, keeping the most recent record per milestone
        legacy_entries.sort(key=lambda e: _to_datetime(e['date']), reverse=True)
        unique = []
        seen = set()
        for entry in legacy_entries:
            key = f"{entry['tmdb_id']}-{entry['type']}-{entry['season_number']}"
            if key not in seen:
                seen.add(key)
                unique.append(entry)

        return unique

    def migrate_legacy_diary(self, user_id: str) -> int:
        """
        Copy a user's legacy diary into the primary store.

        Returns:
            Number of entries written (0 when the primary store already has data)
        """
        db = self.session_factory()
        try:
            if DiaryRepository(db).count_entries(user_id) > 0:
                logger.info(f"User {user_id} already has primary diary data; skipping")
                return 0
            legacy = self._get_legacy_diary(db, user_id)
        finally:
            db.close()

        count = 0
        for entry in legacy:
            if entry['type'] not in (SEASON_COMPLETED, SEASON_RATED, SERIES_COMPLETED):
                continue
            watched_at = _to_datetime(entry['date'])
            self._upsert({
                'user_id': user_id,
                'tmdb_id': entry['tmdb_id'],
                'series_name': entry['name'],
                'poster_path': entry['poster_path'],
                'entry_type': entry['type'],
                'season_number': None if entry['type'] == SERIES_COMPLETED else entry['season_number'],
                'rating': entry['rating'],
                'watched_at': watched_at.date() if watched_at != _EPOCH else date.today(),
            })
            count += 1

        logger.info(f"✓ Migrated {count} legacy diary entries for user {user_id}")
        return count


def _entry_to_dict(entry) -> Dict:
    return {
        'id': entry.id,
        'user_id': entry.user_id,
        'tmdb_id': entry.tmdb_id,
        'series_name': entry.series_name,
        'poster_path': entry.poster_path,
        'entry_type': entry.entry_type,
        'season_number': entry.season_number,
        'rating': entry.rating,
        'watched_at': entry.watched_at,
        'created_at': entry.created_at,
    }
