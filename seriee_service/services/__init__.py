"""Service classes"""

from .activity_service import ActivityService
from .catalog_service import CatalogService
from .diary_service import DiaryService
from .poster_service import PosterService
from .progress_service import ProgressService
from .remote_config_service import RemoteConfigService
from .tmdb_service import TmdbService
from .update_service import UpdateService
from .watchlist_service import WatchlistService

__all__ = [
    "ActivityService",
    "CatalogService",
    "DiaryService",
    "PosterService",
    "ProgressService",
    "RemoteConfigService",
    "TmdbService",
    "UpdateService",
    "WatchlistService",
]
