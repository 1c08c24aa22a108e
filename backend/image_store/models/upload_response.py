"""
Upload Response Pydantic Models

Defines the response structure returned by POST /api/upload.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class StoredFile(BaseModel):
    """Descriptor of one accepted and persisted image."""

    id: str = Field(
        ...,
        description="UUID v4 identifier generated for this upload"
    )
    originalName: str = Field(
        ...,
        description="Client-declared filename (e.g., 'cat.png')"
    )
    filename: str = Field(
        ...,
        description="Generated storage filename: <uuid>-<epoch ms><extension>"
    )
    path: str = Field(
        ...,
        description="Location of the stored file on the server"
    )
    size: int = Field(
        ...,
        description="File size in bytes"
    )
    mimetype: str = Field(
        ...,
        description="Declared media type (e.g., 'image/png')"
    )
    url: str = Field(
        ...,
        description="Public URL the image is served from"
    )


class UploadResponse(BaseModel):
    """
    Response model for POST /api/upload.

    ``files`` is only present when at least one file was accepted and
    ``error`` only when the request failed.
    """

    success: bool = Field(
        ...,
        description="True when at least one file was stored"
    )
    message: str = Field(
        ...,
        description="Summary of accepted and rejected files"
    )
    files: Optional[List[StoredFile]] = Field(
        None,
        description="Accepted files in the order they were received"
    )
    error: Optional[str] = Field(
        None,
        description="Rejected filenames and reasons, joined by ', '"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Successfully uploaded 1 valid file(s)",
                "files": [
                    {
                        "id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
                        "originalName": "cat.png",
                        "filename": "0f8fad5b-d9cb-469f-a165-70867728950e-1767522600000.png",
                        "path": "/tmp/image_store/uploads/0f8fad5b-d9cb-469f-a165-70867728950e-1767522600000.png",
                        "size": 48213,
                        "mimetype": "image/png",
                        "url": "http://localhost:8080/uploads/0f8fad5b-d9cb-469f-a165-70867728950e-1767522600000.png",
                    }
                ],
            }
        }
    }
