"""OTA update endpoints."""
import azure.functions as func
import logging

from seriee_service.blueprints.responses import (
    RequestError,
    error_response,
    json_body,
    json_response,
)
from seriee_service.services import UpdateService
from seriee_service.services.update_service import UpdateCheck

bp = func.Blueprint()

update_service = UpdateService()

logger = logging.getLogger(__name__)


def _check_from_body(req: func.HttpRequest) -> UpdateCheck:
    body = json_body(req)
    try:
        return UpdateCheck.from_dict(body)
    except ValueError:
        raise RequestError("status must be one of: idle, prompt, completed")


@bp.route(route="updates/check", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def check_for_update(req: func.HttpRequest) -> func.HttpResponse:
    """
    Query Parameters:
        - has_used_app: "true" when the device has data from an earlier install
    """
    try:
        has_used_app = req.params.get('has_used_app', 'false').lower() == 'true'
        return json_response(update_service.check_for_update(has_used_app=has_used_app).to_dict())
    except Exception as e:
        logger.error(f"Error checking for update: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="updates/apply", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def apply_update(req: func.HttpRequest) -> func.HttpResponse:
    """Body: the check returned by updates/check. Only its status is trusted."""
    try:
        return json_response(update_service.apply_update(_check_from_body(req)).to_dict())
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error applying update: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="updates/dismiss", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def dismiss_update(req: func.HttpRequest) -> func.HttpResponse:
    try:
        check = _check_from_body(req)
        update_service.dismiss(check)
        return json_response({"stored_version": update_service.get_stored_version()})
    except RequestError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error dismissing update: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


# noinspection PyUnusedLocal
@bp.route(route="updates/health", methods=["GET"])
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint."""
    return json_response({
        "status": "healthy",
        "service": "seriee-service",
        "version": "1.0.0",
        "app_version": update_service.app_version,
    })
