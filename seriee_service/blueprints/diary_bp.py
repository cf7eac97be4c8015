"""Diary endpoints."""
import azure.functions as func
import logging
import math
from datetime import date

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_body,
    json_response,
    route_str,
)
from seriee_service.models.diary_entry import SEASON_COMPLETED, SEASON_RATED, SERIES_COMPLETED
from seriee_service.services import DiaryService

bp = func.Blueprint()

diary_service = DiaryService()

logger = logging.getLogger(__name__)


@bp.route(route="users/{user_id}/diary", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_diary(req: func.HttpRequest) -> func.HttpResponse:
    try:
        user_id = route_str(req, 'user_id')
        entries = diary_service.get_user_diary(user_id)
        return json_response({"user_id": user_id, "count": len(entries), "entries": entries})
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error getting diary: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


def _parse_entry(body: dict) -> dict:
    entry_type = body.get('type')
    if entry_type not in (SEASON_COMPLETED, SEASON_RATED, SERIES_COMPLETED):
        raise RequestError("type must be SEASON_COMPLETED, SEASON_RATED or SERIES_COMPLETED")

    try:
        tmdb_id = int(body['tmdb_id'])
    except (KeyError, TypeError, ValueError):
        raise RequestError("tmdb_id must be an integer")

    season_number = body.get('season_number')
    if entry_type != SERIES_COMPLETED:
        try:
            season_number = int(season_number)
        except (TypeError, ValueError):
            raise RequestError("season_number must be an integer")

    rating = body.get('rating')
    if entry_type == SEASON_RATED:
        try:
            rating = float(rating)
        except (TypeError, ValueError):
            raise RequestError("rating must be a number")
        if not math.isfinite(rating) or rating < 0 or rating > 5:
            raise RequestError("rating must be between 0 and 5")

    watched_at = None
    if body.get('watched_at'):
        try:
            watched_at = date.fromisoformat(body['watched_at'])
        except ValueError:
            raise RequestError("watched_at must be an ISO date (YYYY-MM-DD)")

    return {
        'type': entry_type,
        'tmdb_id': tmdb_id,
        'season_number': season_number,
        'rating': rating,
        'name': body.get('name'),
        'poster_path': body.get('poster_path'),
        'watched_at': watched_at,
    }


@bp.route(route="users/{user_id}/diary", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def add_diary_entry(req: func.HttpRequest) -> func.HttpResponse:
    """
    Record a milestone.

    Body:
        type, tmdb_id, season_number (season types), rating (SEASON_RATED),
        name, poster_path, watched_at (optional ISO date)
    """
    try:
        user_id = route_str(req, 'user_id')
        entry = _parse_entry(json_body(req))

        if entry['type'] == SEASON_COMPLETED:
            result = diary_service.add_season_completed_entry(
                user_id, entry['tmdb_id'], entry['season_number'],
                entry['name'], entry['poster_path'], entry['watched_at']
            )
        elif entry['type'] == SEASON_RATED:
            result = diary_service.add_season_rated_entry(
                user_id, entry['tmdb_id'], entry['season_number'], entry['rating'],
                entry['name'], entry['poster_path'], entry['watched_at']
            )
        else:
            result = diary_service.add_series_completed_entry(
                user_id, entry['tmdb_id'], entry['name'], entry['poster_path'], entry['watched_at']
            )

        return json_response(result, status_code=201)
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error adding diary entry: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
