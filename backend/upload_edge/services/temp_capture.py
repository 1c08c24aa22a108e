"""
Temp Capture Service

Parses the browser's multipart upload and writes every file part to the
capture directory. Ownership of the written files passes to the caller,
which must release them with TempFileGuard.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict

from fastapi import Request
from starlette.datastructures import UploadFile

from upload_edge.middleware.error_handler import CaptureError
from upload_edge.models import (
    UPLOAD_FORM_SCHEMA,
    CapturedForm,
    FormSchema,
    SlotKind,
    UploadedFilePart,
)
from upload_edge.services.temp_cleanup import cleanup_temp_files

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB chunks


class TempCaptureStage:
    """
    Captures an incoming upload form to temp files.

    No size cap is applied here; the image store enforces its own
    admission limits. Only the number of parts is bounded (max_parts).

    Args:
        temp_dir: Directory captured file parts are written to
        schema: Expected form fields
        max_parts: Maximum number of text and file parts parsed per request
    """

    def __init__(
        self,
        temp_dir: str | Path,
        schema: FormSchema = UPLOAD_FORM_SCHEMA,
        max_parts: int = 1000,
    ):
        self.temp_dir = Path(temp_dir)
        self.schema = schema
        self.max_parts = max_parts

    async def capture(self, request: Request) -> CapturedForm:
        """
        Parse the request and capture its parts.

        Returns:
            CapturedForm: Text values and captured file parts

        Raises:
            CaptureError: If the body is not a parseable multipart form or a
                temp file cannot be written
            FormSchemaError: If the form does not match the schema
        """
        content_type = request.headers.get("content-type", "")
        if not content_type.lower().startswith("multipart/form-data"):
            logger.warning(f"Rejected non-multipart upload: '{content_type}'")
            raise CaptureError(
                f"Expected multipart/form-data, got '{content_type or 'no content type'}'"
            )

        try:
            form = await request.form(max_files=self.max_parts, max_fields=self.max_parts)
        except Exception as e:
            logger.error(f"Failed to parse multipart body: {e}")
            raise CaptureError(str(getattr(e, "detail", e)))

        captured = CapturedForm()
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            counts: Dict[str, int] = {}

            for name, value in form.multi_items():
                if isinstance(value, UploadFile):
                    self.schema.check_part(name, SlotKind.FILE)
                    captured.add_file(await self._write_temp(name, value))
                else:
                    self.schema.check_part(name, SlotKind.TEXT)
                    captured.add_field(name, value)
                counts[name] = counts.get(name, 0) + 1

            self.schema.check_counts(counts)

        except OSError as e:
            logger.error(f"Failed to capture upload: {e}")
            cleanup_temp_files(captured.all_parts(), reason="error")
            raise CaptureError(f"Failed to write temp file: {e}")
        except BaseException:
            cleanup_temp_files(captured.all_parts(), reason="error")
            raise
        finally:
            await form.close()

        logger.info(
            f"Captured fields {list(captured.fields)} and "
            f"{len(captured.all_parts())} file(s) from {list(captured.files)}"
        )
        return captured

    async def _write_temp(self, field_name: str, upload: UploadFile) -> UploadedFilePart:
        """Stream one file part to a fresh temp file."""
        fd, temp = tempfile.mkstemp(dir=self.temp_dir, prefix="capture-")
        temp_path = Path(temp)
        size = 0

        try:
            with os.fdopen(fd, "wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    out.write(chunk)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        return UploadedFilePart(
            field_name=field_name,
            filename=upload.filename or "",
            content_type=upload.content_type or "",
            size=size,
            temp_path=temp_path,
        )
