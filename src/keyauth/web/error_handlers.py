import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from keyauth.errors import AuthenticationError, ConfigurationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create envelope-shaped error response with optional type for machine parsing."""
    content: dict[str, object] = {"success": False, "error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def configuration_error_handler(_: Request, exc: Exception) -> Response:
    """Missing application keys: the request to the API was never sent."""
    logger.error("Configuration error: %s", exc)
    return create_json_error_response(
        status_code=500, message="Authentication service is not configured.", error_type="configuration_error"
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
