"""FastAPI middleware for request/response processing."""

from .error_handler import (
    ErrorHandlerMiddleware,
    UploadError,
    MalformedUploadError,
    NoFilesUploadedError,
    TooManyFilesError,
    FileTooLargeError,
    UnsupportedMediaTypeError,
    UnexpectedFileFieldError,
    RateLimitExceededError,
    StorageWriteError,
    InvalidFilenameError,
    ImageNotFoundError,
    format_error_response,
    http_exception_handler,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "UploadError",
    "MalformedUploadError",
    "NoFilesUploadedError",
    "TooManyFilesError",
    "FileTooLargeError",
    "UnsupportedMediaTypeError",
    "UnexpectedFileFieldError",
    "RateLimitExceededError",
    "StorageWriteError",
    "InvalidFilenameError",
    "ImageNotFoundError",
    "format_error_response",
    "http_exception_handler",
]
