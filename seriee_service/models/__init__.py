"""SQLAlchemy models"""

from seriee_service.models.base import Base
from seriee_service.models.device_setting import DeviceSetting
from seriee_service.models.diary_entry import DiaryEntry
from seriee_service.models.legacy_review import LegacyReview
from seriee_service.models.user_activity import UserActivity
from seriee_service.models.user_profile import UserProfile
from seriee_service.models.watchlist_item import WatchlistItem

__all__ = [
    "Base",
    "DeviceSetting",
    "DiaryEntry",
    "LegacyReview",
    "UserActivity",
    "UserProfile",
    "WatchlistItem",
]
