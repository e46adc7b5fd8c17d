import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from nextcdn.errors import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    PayloadTooLargeError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError):
        status_code = 401
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
    elif isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, PayloadTooLargeError):
        status_code = 413
    elif isinstance(exc, UpstreamError):
        status_code = 502
    elif isinstance(exc, ValidationError):
        status_code = 400
    else:
        # Default for any other UserError subclass
        status_code = 400

    return create_json_error_response(status_code=status_code, message=str(exc))


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Report malformed query, path or form parameters in the common error shape."""
    fields = []
    if isinstance(exc, RequestValidationError):
        fields = [".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")) for error in exc.errors()]
    message = f"Invalid parameters: {', '.join(fields)}" if fields else "Invalid request parameters"
    return create_json_error_response(status_code=400, message=message)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(status_code=500, message="An unexpected error occurred.")
