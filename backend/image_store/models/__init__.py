"""Pydantic models for API request/response schemas."""

from .image_listing import DeleteResponse, ImageEntry, ImageListResponse
from .received_file import ReceivedFile, ValidationVerdict
from .upload_response import StoredFile, UploadResponse

__all__ = [
    "DeleteResponse",
    "ImageEntry",
    "ImageListResponse",
    "ReceivedFile",
    "StoredFile",
    "UploadResponse",
    "ValidationVerdict",
]
