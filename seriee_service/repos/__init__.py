"""Repository classes"""

from seriee_service.repos.activity_repository import ActivityRepository
from seriee_service.repos.diary_repository import DiaryRepository
from seriee_service.repos.settings_repository import SettingsRepository
from seriee_service.repos.user_repository import UserRepository
from seriee_service.repos.watchlist_repository import WatchlistRepository

__all__ = [
    "ActivityRepository",
    "DiaryRepository",
    "SettingsRepository",
    "UserRepository",
    "WatchlistRepository",
]
