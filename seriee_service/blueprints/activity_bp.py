"""Activity feed, friends feed and user search endpoints."""
import azure.functions as func
import logging

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_body,
    json_response,
    route_str,
)
from seriee_service.services import ActivityService
from seriee_service.services.activity_service import describe_activity, mark_unread

bp = func.Blueprint()

activity_service = ActivityService()

logger = logging.getLogger(__name__)


def _with_display(items: list, viewer_id: str) -> list:
    return [{**item, "display": describe_activity(item, viewer_id)} for item in items]


def _parse_activity(body: dict) -> tuple:
    activity_type = body.get('type')
    if not isinstance(activity_type, str) or not activity_type:
        raise RequestError("type is required")

    details = {}
    for key in ('series_id', 'season_number', 'episode_number'):
        if body.get(key) is not None:
            try:
                details[key] = int(body[key])
            except (TypeError, ValueError):
                raise RequestError(f"{key} must be an integer")
    if body.get('rating') is not None:
        try:
            details['rating'] = float(body['rating'])
        except (TypeError, ValueError):
            raise RequestError("rating must be a number")
    for key in ('series_name', 'poster_path', 'custom_text'):
        if body.get(key) is not None:
            details[key] = str(body[key])
    return activity_type, details


@bp.route(route="users/search", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def search_users(req: func.HttpRequest) -> func.HttpResponse:
    """
    Query Parameters:
        - username: Exact username
    """
    username = (req.params.get('username') or '').strip()
    if not username:
        return error_response("username is required", 400)

    try:
        results = activity_service.search_users(username)
        return json_response({"count": len(results), "results": results})
    except Exception as e:
        logger.error(f"Error searching users: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/activity", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_user_activity(req: func.HttpRequest) -> func.HttpResponse:
    """
    Query Parameters:
        - limit: Number of records (default: 30, max: 100)
    """
    try:
        user_id = route_str(req, 'user_id')
        try:
            limit = int(req.params.get('limit', 30))
        except ValueError:
            raise RequestError("limit must be an integer")
        if limit < 1 or limit > 100:
            raise RequestError("limit must be between 1 and 100")

        items = activity_service.get_user_activity(user_id, limit=limit)
        return json_response({
            "user_id": user_id,
            "count": len(items),
            "activity": _with_display(items, user_id),
        })
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error getting activity: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/activity", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def log_activity(req: func.HttpRequest) -> func.HttpResponse:
    """
    Body: {"type": "watched_episode", "series_id": 1396, "season_number": 1, ...}

    Detail fields: series_id, series_name, season_number, episode_number,
    poster_path, rating, custom_text.
    """
    try:
        user_id = route_str(req, 'user_id')
        activity_type, details = _parse_activity(json_body(req))
        activity = activity_service.log_activity(user_id, activity_type, **details)
        return json_response({**activity, "display": describe_activity(activity, user_id)}, status_code=201)
    except (RequestError, ValueError) as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error logging activity: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/friends-feed", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_friends_feed(req: func.HttpRequest) -> func.HttpResponse:
    try:
        user_id = route_str(req, 'user_id')
        # read before the feed call moves the marker
        last_viewed = activity_service.get_last_viewed(user_id)
        items = mark_unread(activity_service.get_friends_feed(user_id), last_viewed)
        return json_response({
            "user_id": user_id,
            "count": len(items),
            "unread_count": sum(1 for item in items if item["unread"]),
            "last_viewed": last_viewed,
            "activity": _with_display(items, user_id),
        })
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error getting friends feed: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(
    route="users/{user_id}/follow/{target_id}",
    methods=["POST", "DELETE"],
    auth_level=func.AuthLevel.ANONYMOUS
)
def follow_user(req: func.HttpRequest) -> func.HttpResponse:
    """POST follows, DELETE unfollows."""
    try:
        user_id = route_str(req, 'user_id')
        target_id = route_str(req, 'target_id')
        if req.method == "DELETE":
            following = activity_service.unfollow_user(user_id, target_id)
        else:
            following = activity_service.follow_user(user_id, target_id)
        return json_response({"user_id": user_id, "following": following})
    except (RequestError, ValueError) as e:
        return error_response(str(e), 400)
    except LookupError as e:
        return error_response(str(e), 404)
    except Exception as e:
        logger.error(f"Error updating follow: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
