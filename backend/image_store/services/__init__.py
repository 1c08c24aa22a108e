"""Service layer for validation, storage and admission control."""

from .file_storage import FileStorageManager
from .rate_limiter import UploadRateLimiter, check_upload_rate_limit, get_rate_limiter
from .signature_validator import PNG_SIGNATURE, SignatureValidator, is_png_by_bytes, sniff

__all__ = [
    "FileStorageManager",
    "UploadRateLimiter",
    "check_upload_rate_limit",
    "get_rate_limiter",
    "PNG_SIGNATURE",
    "SignatureValidator",
    "is_png_by_bytes",
    "sniff",
]
