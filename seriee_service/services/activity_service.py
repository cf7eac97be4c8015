"""Service for the social activity log and the friends feed."""
import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from seriee_service.models.database import SessionLocal
from seriee_service.models.user_activity import ACTIVITY_TYPES
from seriee_service.repos import ActivityRepository, SettingsRepository, UserRepository

logger = logging.getLogger(__name__)

FRIENDS_FEED_MAX_FOLLOWING = 10
FRIENDS_FEED_LIMIT = 50
FRIENDS_FEED_WINDOW = timedelta(days=7)
USER_FEED_LIMIT = 30
NEW_ACTIVITY_WINDOW = timedelta(hours=24)
ACTIVITY_VIEWED_KEY = "activity_last_viewed"
ACTIVITY_DETAIL_FIELDS = (
    "series_id",
    "series_name",
    "season_number",
    "episode_number",
    "poster_path",
    "rating",
    "custom_text",
)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def format_time_ago(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative time label ("Just now", "5m ago", "3h ago", "Yesterday", "4d ago")."""
    if not timestamp:
        return ''
    now = _as_utc(now or datetime.now(UTC))
    seconds = math.floor((now - _as_utc(timestamp)).total_seconds())

    if seconds < 60:
        return "Just now"

    hours = seconds // 3600
    if hours >= 24:
        days = hours // 24
        return "Yesterday" if days == 1 else f"{days}d ago"
    if hours >= 1:
        return f"{hours}h ago"

    minutes = seconds // 60
    if minutes >= 1:
        return f"{minutes}m ago"
    return "Just now"


def describe_activity(item: Dict, viewer_id: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    """
    Build the display fields for one activity record.

    Returns:
        Dict with actor, header, title, subtitle, stars, time_label,
        time_ago and is_new
    """
    now = _as_utc(now or datetime.now(UTC))
    created_at = item.get('created_at')
    created_at = _as_utc(created_at) if created_at else None

    activity_type = item.get('type')
    header = ""
    subtitle = ""
    stars = None

    if activity_type == 'watched_episode':
        header = "watched"
        subtitle = f"S{item.get('season_number')} · E{item.get('episode_number')}"
    elif activity_type == 'completed_season':
        header = "finished"
        subtitle = f"Season {item.get('season_number')}"
    elif activity_type == 'poster_updated':
        header = item.get('custom_text') or "chose this poster for"
    elif activity_type == 'rated_season':
        header = "rated"
        subtitle = f"S{item.get('season_number')}"
        rating = item.get('rating') or 0
        stars = {'full': math.floor(rating), 'half': rating % 1 != 0}
    elif activity_type == 'watchlist_add':
        header = "watchlisted"
    elif activity_type == 'liked_series':
        header = "liked"

    if viewer_id is not None and item.get('user_id') == viewer_id:
        actor = "You"
    else:
        actor = item.get('username') or "User"

    time_label = ""
    if created_at:
        time_label = f"{created_at.strftime('%b')} {created_at.day} · {created_at.strftime('%I:%M %p')}"

    return {
        'actor': actor,
        'header': header,
        'title': item.get('series_name'),
        'subtitle': subtitle,
        'stars': stars,
        'time_label': time_label,
        'time_ago': format_time_ago(created_at, now),
        'is_new': bool(created_at) and (now - created_at) < NEW_ACTIVITY_WINDOW,
    }


def mark_unread(items: List[Dict], last_viewed: Optional[datetime]) -> List[Dict]:
    """Flag items created after the viewer last opened the friends feed."""
    for item in items:
        created_at = item.get('created_at')
        item['unread'] = bool(created_at) and (
            last_viewed is None or _as_utc(created_at) > _as_utc(last_viewed)
        )
    return items


class ActivityService:
    """Activity log, friends feed and user search."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def log_activity(self, user_id: str, activity_type: str, **details) -> Dict:
        """
        Append an activity for a user; username and picture come from the profile.

        Raises:
            ValueError: Unknown activity type or detail field
        """
        if activity_type not in ACTIVITY_TYPES:
            raise ValueError(f"type must be one of: {', '.join(ACTIVITY_TYPES)}")
        unknown = sorted(set(details) - set(ACTIVITY_DETAIL_FIELDS))
        if unknown:
            raise ValueError(f"Unknown activity fields: {', '.join(unknown)}")

        db = self.session_factory()
        try:
            profile = UserRepository(db).get_profile(user_id)
            activity = ActivityRepository(db).add_activity({
                'user_id': user_id,
                'username': profile.username if profile else None,
                'user_profile_pic_url': profile.profile_pic_url if profile else None,
                'type': activity_type,
                **details,
            })
            return activity.to_dict()
        finally:
            db.close()

    def get_user_activity(self, user_id: str, limit: int = USER_FEED_LIMIT) -> List[Dict]:
        db = self.session_factory()
        try:
            return [a.to_dict() for a in ActivityRepository(db).get_for_user(user_id, limit=limit)]
        finally:
            db.close()

    def get_friends_feed(self, user_id: str, now: Optional[datetime] = None) -> List[Dict]:
        """
        Recent activity from followed users.

        Only the first FRIENDS_FEED_MAX_FOLLOWING followed users are queried,
        the newest FRIENDS_FEED_LIMIT records are read, and records older
        than FRIENDS_FEED_WINDOW are dropped.
        """
        now = _as_utc(now or datetime.now(UTC))

        db = self.session_factory()
        try:
            profile = UserRepository(db).get_profile(user_id)
            following = list(profile.following or []) if profile else []
            if not following:
                return []

            cutoff = now - FRIENDS_FEED_WINDOW
            activities = ActivityRepository(db).get_for_users(
                following[:FRIENDS_FEED_MAX_FOLLOWING],
                limit=FRIENDS_FEED_LIMIT
            )
            feed = [
                a.to_dict() for a in activities
                if _as_utc(a.created_at) > cutoff
            ]

            SettingsRepository(db).set(f"{ACTIVITY_VIEWED_KEY}:{user_id}", now.isoformat())
            logger.info(f"✓ Loaded {len(feed)} friend activities for user {user_id}")
            return feed
        finally:
            db.close()

    def get_last_viewed(self, user_id: str) -> Optional[datetime]:
        db = self.session_factory()
        try:
            value = SettingsRepository(db).get(f"{ACTIVITY_VIEWED_KEY}:{user_id}")
            return datetime.fromisoformat(value) if value else None
        finally:
            db.close()

    def search_users(self, username: str) -> List[Dict]:
        """Exact username match (max 3 results)."""
        username = (username or '').strip()
        if not username:
            return []

        db = self.session_factory()
        try:
            return [
                {
                    'user_id': p.user_id,
                    'username': p.username,
                    'profile_pic_url': p.profile_pic_url,
                }
                for p in UserRepository(db).find_by_username(username, limit=3)
            ]
        finally:
            db.close()

    def follow_user(self, user_id: str, target_id: str) -> List[str]:
        """
        Follow another user.

        Raises:
            ValueError: Following yourself
            LookupError: Unknown user
        """
        if user_id == target_id:
            raise ValueError("Users cannot follow themselves")

        db = self.session_factory()
        try:
            repo = UserRepository(db)
            if repo.get_profile(target_id) is None:
                raise LookupError(f"User {target_id} not found")
            profile = repo.get_profile(user_id)
            if profile is None:
                raise LookupError(f"User {user_id} not found")

            following = list(profile.following or [])
            if target_id not in following:
                following.append(target_id)
                repo.update_profile(profile, following=following)
            return following
        finally:
            db.close()

    def unfollow_user(self, user_id: str, target_id: str) -> List[str]:
        db = self.session_factory()
        try:
            repo = UserRepository(db)
            profile = repo.get_profile(user_id)
            if profile is None:
                raise LookupError(f"User {user_id} not found")

            following = [f for f in (profile.following or []) if f != target_id]
            repo.update_profile(profile, following=following)
            return following
        finally:
            db.close()
