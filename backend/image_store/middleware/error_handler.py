"""
Centralized error handling middleware for the image store.

Every error leaves the service as the same JSON envelope the upload
endpoint uses: ``{"success": false, "message": ..., "error": ...}``.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Base exception for request-level upload failures."""

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class MalformedUploadError(UploadError):
    """Raised when the multipart body cannot be parsed."""

    def __init__(self, reason: str):
        super().__init__(
            message="Failed to parse upload",
            status_code=500,
            details=reason,
        )


class NoFilesUploadedError(UploadError):
    """Raised when the request carries no file parts."""

    def __init__(self):
        super().__init__(message="No files uploaded", status_code=400)


class TooManyFilesError(UploadError):
    """Raised when the request carries more files than allowed."""

    def __init__(self, max_files: int):
        super().__init__(
            message=f"Too many files. Maximum is {max_files} files per upload.",
            status_code=400,
        )


class FileTooLargeError(UploadError):
    """Raised when a single file exceeds the size cap."""

    def __init__(self, max_file_size: int):
        super().__init__(
            message=f"File too large. Maximum size is {max_file_size // (1024 * 1024)}MB.",
            status_code=400,
        )


class UnsupportedMediaTypeError(UploadError):
    """Raised when a file does not declare an image media type."""

    def __init__(self, filename: str, mimetype: str):
        super().__init__(
            message="Only image files are allowed!",
            status_code=400,
            details=f"{filename} ({mimetype or 'no media type'})",
        )


class UnexpectedFileFieldError(UploadError):
    """Raised when a file arrives under a field other than the upload field."""

    def __init__(self, field_name: str):
        super().__init__(
            message=f"Unexpected file field '{field_name}'",
            status_code=400,
        )


class RateLimitExceededError(UploadError):
    """Raised when a client exceeds the upload rate limit."""

    def __init__(self, max_requests: int, window_seconds: int):
        super().__init__(
            message=(
                f"Rate limit exceeded. Max {max_requests} uploads "
                f"per {window_seconds} seconds."
            ),
            status_code=429,
        )


class StorageWriteError(UploadError):
    """Raised when an accepted file cannot be persisted."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            message="Internal server error",
            status_code=500,
            details=f"Failed to store {filename}: {reason}",
        )


class InvalidFilenameError(UploadError):
    """Raised when a filename is not a plain stored-file name."""

    def __init__(self, filename: str):
        super().__init__(message=f"Invalid filename: {filename}", status_code=400)


class ImageNotFoundError(UploadError):
    """Raised when a stored image does not exist."""

    def __init__(self, filename: str):
        super().__init__(message="File not found", status_code=404, details=filename)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches unhandled exceptions and returns consistent error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response

        except UploadError as e:
            logger.error(
                f"UploadError: {e.message}",
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
    """
    Format a consistent error response.

    Args:
        message: Human-readable error message
        error: Additional error detail (optional)

    Returns:
        dict: Formatted error response
    """
    response = {
        "success": False,
        "message": message,
    }
    if error:
        response["error"] = error if isinstance(error, str) else str(error)
    return response
