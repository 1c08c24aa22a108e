"""
Upload Relay Route

Accepts the browser's multipart upload, captures it to temp files, relays
it to the image store, and passes the store's JSON response back.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from upload_edge.services.relay_assembler import RelayAssembler
from upload_edge.services.temp_capture import TempCaptureStage
from upload_edge.services.temp_cleanup import TempFileGuard

logger = logging.getLogger(__name__)

router = APIRouter()


def get_capture_stage(request: Request) -> TempCaptureStage:
    """Build the capture stage from the app's settings."""
    settings = request.app.state.settings
    return TempCaptureStage(settings.TEMP_PATH, max_parts=settings.MAX_FORM_PARTS)


def get_relay_assembler(request: Request) -> RelayAssembler:
    """Build the relay assembler from the app's settings."""
    settings = request.app.state.settings
    return RelayAssembler(
        backend_url=settings.BACKEND_URL,
        upload_path=settings.BACKEND_UPLOAD_PATH,
        timeout=settings.RELAY_TIMEOUT_SECONDS,
    )


@router.post(
    "/upload",
    summary="Upload Images",
    description="""
Upload images through the edge. The form is captured, relayed to the image
store, and the store's JSON response is returned unchanged with status 200.

**Form fields:**
- `images`: one or more image files
- `title`: optional text

**Errors:** any relay failure, including a non-2xx response from the image
store, is reported as 500.
""",
    responses={
        200: {"description": "Image store response, passed through"},
        400: {"description": "Form does not match the expected fields"},
        500: {"description": "Form could not be parsed or relay failed"},
    },
)
@router.post("/upload-multipart", include_in_schema=False)
async def relay_upload(
    request: Request,
    capture: TempCaptureStage = Depends(get_capture_stage),
    assembler: RelayAssembler = Depends(get_relay_assembler),
) -> JSONResponse:
    """
    Capture, relay and clean up.

    Temp files are released whether the relay returns or raises.

    Raises:
        CaptureError: If the form cannot be parsed
        FormSchemaError: If the form has unexpected fields
        RelayError: If the relayed request fails
    """
    captured = await capture.capture(request)

    async with TempFileGuard(captured.all_parts()):
        result = await assembler.relay(captured)

    logger.info(f"Relay completed for {len(captured.all_parts())} file(s)")
    return JSONResponse(status_code=200, content=result)
