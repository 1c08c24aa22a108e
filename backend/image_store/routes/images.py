"""
Gallery endpoints for stored images.

Provides GET /api/images for listing and DELETE /api/images/{filename}.
"""

import logging

from fastapi import APIRouter, Depends, Request

from image_store.models import DeleteResponse, ImageListResponse
from image_store.routes.upload import get_file_storage, observed_base_url
from image_store.services.file_storage import FileStorageManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/images",
    response_model=ImageListResponse,
    summary="List Stored Images",
)
async def list_images(
    request: Request,
    storage: FileStorageManager = Depends(get_file_storage),
) -> ImageListResponse:
    """List every stored image with its public URL."""
    images = storage.list_images(observed_base_url(request))
    logger.info(f"Listed {len(images)} stored image(s)")
    return ImageListResponse(images=images)


@router.delete(
    "/images/{filename}",
    response_model=DeleteResponse,
    summary="Delete Stored Image",
    responses={
        400: {"description": "Filename is not a plain stored-file name"},
        404: {"description": "File not found"},
    },
)
async def delete_image(
    filename: str,
    storage: FileStorageManager = Depends(get_file_storage),
) -> DeleteResponse:
    """Delete one stored image by its generated filename."""
    storage.delete_image(filename)
    return DeleteResponse(message="File deleted successfully")
