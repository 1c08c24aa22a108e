"""
Upload API Route

Handles the multi-image upload endpoint: admission, signature validation,
persistence and the aggregate response.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from image_store.middleware.error_handler import NoFilesUploadedError, UploadError
from image_store.middleware.upload_limits import receive_images
from image_store.models import ReceivedFile, UploadResponse
from image_store.services.file_storage import FileStorageManager
from image_store.services.rate_limiter import check_upload_rate_limit
from image_store.services.signature_validator import SignatureValidator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_file_storage(request: Request) -> FileStorageManager:
    """Build the storage manager from the app's settings."""
    settings = request.app.state.settings
    return FileStorageManager(settings.STORAGE_PATH, settings.PUBLIC_URL_PREFIX)


def get_signature_validator() -> SignatureValidator:
    return SignatureValidator()


def observed_base_url(request: Request) -> str:
    """Scheme and host the client used to reach this service."""
    return f"{request.url.scheme}://{request.url.netloc}"


@router.post(
    "/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    summary="Upload Images",
    description="""
Upload up to 10 images in the `images` multipart field.

**Constraints:**
- **Max Files:** 10 per request
- **Max File Size:** 5MB per file
- **Accepted Types:** any `image/*`; `image/png` must carry a real PNG signature

Files that fail signature validation are dropped and summarized in `message`;
the request only fails when no file survives.
""",
    responses={
        200: {"description": "At least one image was stored"},
        400: {"description": "No files, all files invalid, or an admission cap was exceeded"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Server error"},
    },
)
async def upload_images(
    request: Request,
    rate_limit: None = Depends(check_upload_rate_limit),
    files: List[ReceivedFile] = Depends(receive_images),
    storage: FileStorageManager = Depends(get_file_storage),
    validator: SignatureValidator = Depends(get_signature_validator),
):
    """
    Validate and store uploaded images.

    Returns:
        UploadResponse: Accepted files and a summary of rejections

    Raises:
        UploadError: For missing files or storage failures
    """
    if not files:
        raise NoFilesUploadedError()

    logger.info(f"Upload started: {len(files)} file(s)")

    try:
        verdicts = await run_in_threadpool(validator.validate_all, files)
        status_code, response = await run_in_threadpool(
            storage.partition, verdicts, observed_base_url(request)
        )

    except UploadError:
        raise
    except Exception as e:
        logger.error(f"Unexpected upload error: {str(e)}")
        raise UploadError("Internal server error", status_code=500, details=str(e))

    if status_code != 200:
        return JSONResponse(
            status_code=status_code,
            content=response.model_dump(exclude_none=True),
        )
    return response
