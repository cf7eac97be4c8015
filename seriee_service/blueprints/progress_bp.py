"""Season progress endpoints: complete, rate, choose poster."""
import azure.functions as func
import logging

import requests

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_body,
    json_response,
    route_int,
    route_str,
)
from seriee_service.services import PosterService, ProgressService

bp = func.Blueprint()

progress_service = ProgressService()
poster_service = PosterService()

logger = logging.getLogger(__name__)

SEASON_ROUTE = "users/{user_id}/series/{series_id}/season/{season_number}"


def _season_params(req: func.HttpRequest):
    return route_str(req, 'user_id'), route_int(req, 'series_id'), route_int(req, 'season_number')


@bp.route(route=f"{SEASON_ROUTE}/complete", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def complete_season(req: func.HttpRequest) -> func.HttpResponse:
    try:
        user_id, series_id, season_number = _season_params(req)
        return json_response(progress_service.complete_season(user_id, series_id, season_number))
    except RequestError as e:
        return error_response(str(e), 400)
    except LookupError as e:
        return error_response(str(e), 404)
    except requests.HTTPError as e:
        logger.error(f"Metadata API error completing season: {e}")
        return error_response("Metadata service unavailable", 502)
    except Exception as e:
        logger.error(f"Error completing season: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route=f"{SEASON_ROUTE}/rate", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def rate_season(req: func.HttpRequest) -> func.HttpResponse:
    """
    Body:
        rating: 0-5, half steps allowed
    """
    try:
        user_id, series_id, season_number = _season_params(req)
        body = json_body(req)
        try:
            rating = float(body.get('rating'))
        except (TypeError, ValueError):
            raise RequestError("rating must be a number")
        return json_response(progress_service.rate_season(user_id, series_id, season_number, rating))
    except (RequestError, ValueError) as e:
        return error_response(str(e), 400)
    except LookupError as e:
        return error_response(str(e), 404)
    except requests.HTTPError as e:
        logger.error(f"Metadata API error rating season: {e}")
        return error_response("Metadata service unavailable", 502)
    except Exception as e:
        logger.error(f"Error rating season: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route=f"{SEASON_ROUTE}/poster", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def select_poster(req: func.HttpRequest) -> func.HttpResponse:
    """
    Body:
        poster_path: Catalog image path of the chosen poster
        series_name, custom_text: Optional feed text
    """
    try:
        user_id, series_id, season_number = _season_params(req)
        body = json_body(req)
        poster_path = body.get('poster_path')
        if not poster_path:
            raise RequestError("poster_path is required")

        profile = poster_service.select_poster(
            user_id, series_id, season_number, poster_path,
            series_name=body.get('series_name'),
            custom_text=body.get('custom_text')
        )
        return json_response({
            "user_id": user_id,
            "series_id": series_id,
            "season_number": season_number,
            "selected_posters": profile['selected_posters'],
        })
    except RequestError as e:
        return error_response(str(e), 400)
    except LookupError as e:
        return error_response(str(e), 404)
    except Exception as e:
        logger.error(f"Error selecting poster: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
