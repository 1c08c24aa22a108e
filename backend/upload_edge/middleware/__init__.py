"""FastAPI middleware for request/response processing."""

from .error_handler import (
    CaptureError,
    EdgeError,
    ErrorHandlerMiddleware,
    FormSchemaError,
    RelayError,
    format_error_response,
    http_exception_handler,
)

__all__ = [
    "CaptureError",
    "EdgeError",
    "ErrorHandlerMiddleware",
    "FormSchemaError",
    "RelayError",
    "format_error_response",
    "http_exception_handler",
]
