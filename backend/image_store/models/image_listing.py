"""Gallery endpoint response models."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class ImageEntry(BaseModel):
    """One stored image as listed by GET /api/images."""

    id: str = Field(..., description="Stored filename, doubles as identifier")
    filename: str = Field(..., description="Stored filename")
    url: str = Field(..., description="Public URL the image is served from")
    size: int = Field(..., description="File size in bytes")
    uploadDate: datetime = Field(..., description="Time the file was stored")


class ImageListResponse(BaseModel):
    """Response body for GET /api/images."""

    success: bool = True
    images: List[ImageEntry] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    """Response body for DELETE /api/images/{filename}."""

    success: bool = True
    message: str = Field(..., description="Human-readable outcome")
