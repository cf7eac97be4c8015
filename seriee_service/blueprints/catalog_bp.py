"""Catalog browsing and series/season/episode detail pages."""
import azure.functions as func
import logging

import requests

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_response,
    route_int,
)
from seriee_service.services import CatalogService, TmdbService

# Initialize blueprint
bp = func.Blueprint()

# Initialize services (singleton pattern)
tmdb_service = TmdbService()
catalog_service = CatalogService(tmdb_service=tmdb_service)

logger = logging.getLogger(__name__)

CATALOG_KINDS = ("trending", "top-rated", "new", "hero")


def _upstream_error(e: requests.HTTPError, what: str) -> func.HttpResponse:
    status = e.response.status_code if e.response is not None else None
    if status == 404:
        return error_response(f"{what} not found", 404)
    logger.error(f"Metadata API error for {what}: {e}")
    return error_response("Metadata service unavailable", 502)


@bp.route(route="catalog/home", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_home(req: func.HttpRequest) -> func.HttpResponse:
    """
    Home page sections.

    Query Parameters:
        - user_id: Optional; adds the user's starred series ids
    """
    try:
        return json_response(catalog_service.get_home_sections(req.params.get('user_id')))
    except requests.HTTPError as e:
        return _upstream_error(e, "Home page")
    except Exception as e:
        logger.error(f"Error building home page: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="catalog/{kind}", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_catalog_list(req: func.HttpRequest) -> func.HttpResponse:
    """
    One catalog list: trending, top-rated, new or hero.

    Query Parameters:
        - type: For trending, "weekly" (default) or "daily"
    """
    kind = req.route_params.get('kind')
    if kind not in CATALOG_KINDS:
        return error_response(f"kind must be one of: {', '.join(CATALOG_KINDS)}", 400)

    try:
        if kind == "trending":
            results = tmdb_service.get_trending(req.params.get('type', 'weekly'))
        elif kind == "top-rated":
            results = tmdb_service.get_top_rated()
        elif kind == "new":
            results = tmdb_service.get_new_releases()
        else:
            results = tmdb_service.get_hero_episodes()

        return json_response({"kind": kind, "count": len(results), "results": results})
    except requests.HTTPError as e:
        return _upstream_error(e, kind)
    except Exception as e:
        logger.error(f"Error getting {kind} list: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="search", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def search_series(req: func.HttpRequest) -> func.HttpResponse:
    query = (req.params.get('query') or '').strip()
    if not query:
        return error_response("query is required", 400)

    try:
        return json_response(tmdb_service.search_series(query))
    except requests.HTTPError as e:
        return _upstream_error(e, "search")
    except Exception as e:
        logger.error(f"Error searching series: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="series/{series_id}", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_series(req: func.HttpRequest) -> func.HttpResponse:
    """
    Series details with per-season posters and completion state.

    Query Parameters:
        - user_id: Optional; resolves the user's poster choices
    """
    try:
        series_id = route_int(req, 'series_id')
        return json_response(catalog_service.get_series_page(series_id, req.params.get('user_id')))
    except RequestError as e:
        return error_response(str(e), 400)
    except requests.HTTPError as e:
        return _upstream_error(e, "Series")
    except Exception as e:
        logger.error(f"Error getting series: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(
    route="series/{series_id}/season/{season_number}",
    methods=["GET"],
    auth_level=func.AuthLevel.ANONYMOUS
)
def get_season(req: func.HttpRequest) -> func.HttpResponse:
    try:
        series_id = route_int(req, 'series_id')
        season_number = route_int(req, 'season_number')
        return json_response(
            catalog_service.get_season_page(series_id, season_number, req.params.get('user_id'))
        )
    except RequestError as e:
        return error_response(str(e), 400)
    except requests.HTTPError as e:
        return _upstream_error(e, "Season")
    except Exception as e:
        logger.error(f"Error getting season: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(
    route="series/{series_id}/season/{season_number}/episode/{episode_number}",
    methods=["GET"],
    auth_level=func.AuthLevel.ANONYMOUS
)
def get_episode(req: func.HttpRequest) -> func.HttpResponse:
    try:
        series_id = route_int(req, 'series_id')
        season_number = route_int(req, 'season_number')
        episode_number = route_int(req, 'episode_number')
        return json_response(catalog_service.get_episode_page(series_id, season_number, episode_number))
    except RequestError as e:
        return error_response(str(e), 400)
    except requests.HTTPError as e:
        return _upstream_error(e, "Episode")
    except Exception as e:
        logger.error(f"Error getting episode: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(
    route="series/{series_id}/recommendations",
    methods=["GET"],
    auth_level=func.AuthLevel.ANONYMOUS
)
def get_series_recommendations(req: func.HttpRequest) -> func.HttpResponse:
    try:
        series_id = route_int(req, 'series_id')
        results = tmdb_service.get_recommendations(series_id)
        return json_response({"series_id": series_id, "count": len(results), "results": results})
    except RequestError as e:
        return error_response(str(e), 400)
    except requests.HTTPError as e:
        return _upstream_error(e, "Series")
    except Exception as e:
        logger.error(f"Error getting recommendations: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
