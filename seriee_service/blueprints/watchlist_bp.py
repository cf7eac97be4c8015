"""Watchlist endpoints."""
import azure.functions as func
import logging

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_body,
    json_response,
    route_str,
)
from seriee_service.services import WatchlistService

bp = func.Blueprint()

watchlist_service = WatchlistService()

logger = logging.getLogger(__name__)


@bp.route(route="users/{user_id}/watchlist", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_watchlist(req: func.HttpRequest) -> func.HttpResponse:
    """
    A user's watchlist, with saved episodes grouped into season baskets.

    Query Parameters:
        - grouped: "false" returns the raw records
    """
    try:
        user_id = route_str(req, 'user_id')
        if req.params.get('grouped', 'true').lower() == 'false':
            items = watchlist_service.get_watchlist(user_id)
            return json_response({"user_id": user_id, "count": len(items), "items": items})

        grouped = watchlist_service.get_grouped_watchlist(user_id)
        return json_response({"user_id": user_id, **grouped})
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error getting watchlist: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/watchlist", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def add_watchlist_item(req: func.HttpRequest) -> func.HttpResponse:
    try:
        user_id = route_str(req, 'user_id')
        item = watchlist_service.add_to_watchlist(user_id, json_body(req))
        return json_response(item, status_code=201)
    except (RequestError, ValueError) as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error adding watchlist item: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(
    route="users/{user_id}/watchlist/{item_id}",
    methods=["DELETE"],
    auth_level=func.AuthLevel.ANONYMOUS
)
def remove_watchlist_item(req: func.HttpRequest) -> func.HttpResponse:
    try:
        user_id = route_str(req, 'user_id')
        item_id = route_str(req, 'item_id')
        if not watchlist_service.remove_from_watchlist(user_id, item_id):
            return error_response("Watchlist item not found", 404)
        return json_response({"user_id": user_id, "removed": item_id})
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error removing watchlist item: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
