"""
Common API utilities for consistent response formatting across all controllers.
"""

import logging
from functools import wraps
from typing import Any, Optional

from flask import abort, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from salon.core import config
from salon.core.exceptions import SalonError, ValidationError

logger = logging.getLogger(__name__)


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code

    Returns:
        Tuple of (json_response, status_code)
    """
    response = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def get_json_payload() -> dict:
    """Return the JSON body as a dict, rejecting anything else."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_int_arg(name: str, value: Any) -> Optional[int]:
    """Parse an optional integer query/body parameter."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", name)


def register_error_handlers(app) -> None:
    """Render SalonError subclasses and unexpected failures as JSON envelopes."""

    @app.errorhandler(SalonError)
    def handle_salon_error(error: SalonError):
        if error.status_code >= 500:
            logger.error(
                "Server error raised by service layer",
                extra={"context": {"path": request.path, "error": error.message}},
                exc_info=True,
            )
        else:
            logger.info(
                "Request rejected",
                extra={
                    "context": {
                        "path": request.path,
                        "kind": error.kind,
                        "message": error.message,
                    }
                },
            )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return (
            jsonify(
                {
                    "success": False,
                    "error": (error.name or "http_error").lower().replace(" ", "_"),
                    "message": error.description,
                }
            ),
            error.code or 500,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(
            "Unhandled exception",
            extra={
                "context": {
                    "path": request.path,
                    "method": request.method,
                    "error": str(error),
                    "error_type": type(error).__name__,
                }
            },
            exc_info=True,
        )
        payload = {
            "success": False,
            "error": "server_error",
            "message": "Internal server error",
        }
        if config.EXPOSE_ERROR_DETAILS:
            payload["details"] = {"debug": str(error)}
        return jsonify(payload), 500


def verify_health_token() -> bool:
    """
    Verify the health check token from request headers.

    Returns:
        bool: True if token is valid, False otherwise
    """
    token = request.headers.get("X-Health-Token")
    expected = current_app.config.get("HEALTH_CHECK_TOKEN")
    if not expected:
        return False
    return bool(token and token == expected)


def health_endpoint_decorator(f):
    """
    Decorator for detailed health endpoints that verifies the health token.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        if verify_health_token():
            return f(*args, **kwargs)
        abort(401)

    return wrapper
