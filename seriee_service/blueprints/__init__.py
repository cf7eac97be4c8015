"""Azure Functions blueprints"""

from seriee_service.blueprints.activity_bp import bp as activity_blueprint
from seriee_service.blueprints.catalog_bp import bp as catalog_blueprint
from seriee_service.blueprints.diary_bp import bp as diary_blueprint
from seriee_service.blueprints.progress_bp import bp as progress_blueprint
from seriee_service.blueprints.updates_bp import bp as updates_blueprint
from seriee_service.blueprints.watchlist_bp import bp as watchlist_blueprint

__all__ = [
    "activity_blueprint",
    "catalog_blueprint",
    "diary_blueprint",
    "progress_blueprint",
    "updates_blueprint",
    "watchlist_blueprint",
]
