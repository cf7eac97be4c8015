"""JSON response and request parsing helpers shared by blueprints."""
import json

import azure.functions as func


class RequestError(Exception):
    """Invalid client input; rendered as a 400 response."""


def json_response(body, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, default=str),  # default=str handles datetime
        status_code=status_code,
        mimetype="application/json"
    )


def error_response(message: str, status_code: int) -> func.HttpResponse:
    return json_response({"error": message}, status_code=status_code)


def route_int(req: func.HttpRequest, name: str) -> int:
    """Integer route parameter."""
    value = req.route_params.get(name)
    if not value:
        raise RequestError(f"{name} is required")
    try:
        return int(value)
    except ValueError:
        raise RequestError(f"{name} must be an integer")


def route_str(req: func.HttpRequest, name: str) -> str:
    value = req.route_params.get(name)
    if not value:
        raise RequestError(f"{name} is required")
    return value


def json_body(req: func.HttpRequest) -> dict:
    try:
        body = req.get_json()
    except ValueError:
        raise RequestError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise RequestError("Request body must be a JSON object")
    return body
