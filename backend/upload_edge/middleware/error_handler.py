"""
Centralized error handling middleware for the upload edge.

Errors are returned in the same envelope the image store uses so the
browser sees one response shape whichever hop failed.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class EdgeError(Exception):
    """Base exception for upload edge errors."""

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class CaptureError(EdgeError):
    """Raised when the incoming multipart body cannot be parsed or captured."""

    def __init__(self, reason: str):
        super().__init__(
            message="Failed to process form data",
            status_code=500,
            details=reason,
        )


class FormSchemaError(EdgeError):
    """Raised when the submitted form does not match the expected fields."""

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message=message, status_code=400, details=field_name)


class RelayError(EdgeError):
    """Raised when the relayed upload to the image store fails."""

    def __init__(self, reason: str):
        super().__init__(
            message="Internal server error",
            status_code=500,
            details=reason,
        )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches unhandled exceptions and returns consistent error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response

        except EdgeError as e:
            logger.error(
                f"EdgeError: {e.message}",
                extra={"status_code": e.status_code, "details": e.details},
            )
            return JSONResponse(
                status_code=e.status_code,
                content=format_error_response(e.message, e.details),
            )

        except Exception as e:
            # Log full stack trace for unexpected errors
            logger.exception(f"Unhandled exception: {str(e)}")
            return JSONResponse(
                status_code=500,
                content=format_error_response("Internal server error", str(e)),
            )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the upload envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def format_error_response(message: str, error: Any = None) -> dict:
    """Format a consistent ``{success, message, error?}`` error body."""
    response = {
        "success": False,
        "message": message,
    }
    if error:
        response["error"] = error if isinstance(error, str) else str(error)
    return response
