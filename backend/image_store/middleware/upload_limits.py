"""
Upload Admission Middleware

Receives the multipart upload, enforces the count, media type and size caps,
and stages every admitted file on disk without loading it into memory.
Any cap violation aborts the whole request.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, List

from fastapi import Request
from starlette.datastructures import UploadFile

from image_store.middleware.error_handler import (
    FileTooLargeError,
    MalformedUploadError,
    TooManyFilesError,
    UnexpectedFileFieldError,
    UnsupportedMediaTypeError,
)
from image_store.models import ReceivedFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB chunks


def normalize_mimetype(content_type: str | None) -> str:
    """Lowercase a media type and strip its parameters ('image/PNG; x=y' -> 'image/png')."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_image_mimetype(mimetype: str) -> bool:
    """Check that the top-level media type category is 'image'."""
    return mimetype.split("/", 1)[0] == "image" and "/" in mimetype


def discard_staged_files(files: List[ReceivedFile]) -> None:
    """Remove staged copies that are still on disk. Never raises."""
    for received in files:
        try:
            received.staged_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove staged file {received.staged_path}: {e}")


class UploadReceiver:
    """
    Admission layer in front of signature validation.

    Args:
        staging_dir: Directory received files are staged in
        field_name: The only multipart field allowed to carry files
        max_files: Maximum number of files per request
        max_file_size: Maximum size of one file in bytes
    """

    def __init__(
        self,
        staging_dir: str | Path,
        field_name: str = "images",
        max_files: int = 10,
        max_file_size: int = 5 * 1024 * 1024,
    ):
        self.staging_dir = Path(staging_dir)
        self.field_name = field_name
        self.max_files = max_files
        self.max_file_size = max_file_size

    async def receive(self, request: Request) -> List[ReceivedFile]:
        """
        Parse the request and stage every admitted file.

        Count and media type caps are checked before anything is written,
        the size cap while streaming each file to the staging directory.

        Returns:
            List[ReceivedFile]: Staged files in the order they were received

        Raises:
            MalformedUploadError: If the multipart body cannot be parsed
            UnexpectedFileFieldError: If a file arrives under another field
            TooManyFilesError: If more than max_files files were sent
            UnsupportedMediaTypeError: If a file is not declared as image/*
            FileTooLargeError: If a file exceeds max_file_size
        """
        try:
            form = await request.form()
        except Exception as e:
            logger.error(f"Failed to parse multipart body: {e}")
            raise MalformedUploadError(str(getattr(e, "detail", e)))

        try:
            uploads: List[UploadFile] = []
            for name, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    continue
                if name != self.field_name:
                    logger.warning(f"File sent under unexpected field '{name}'")
                    raise UnexpectedFileFieldError(name)
                uploads.append(value)

            if len(uploads) > self.max_files:
                logger.warning(
                    f"Upload rejected: {len(uploads)} files (max: {self.max_files})"
                )
                raise TooManyFilesError(self.max_files)

            for upload in uploads:
                mimetype = normalize_mimetype(upload.content_type)
                if not is_image_mimetype(mimetype):
                    logger.warning(
                        f"Upload rejected: {upload.filename} declared as '{mimetype}'"
                    )
                    raise UnsupportedMediaTypeError(upload.filename or "", mimetype)

            self.staging_dir.mkdir(parents=True, exist_ok=True)
            received: List[ReceivedFile] = []
            try:
                for upload in uploads:
                    received.append(await self._stage(upload))
            except BaseException:
                discard_staged_files(received)
                raise

            logger.info(f"Admitted {len(received)} file(s) for validation")
            return received

        finally:
            await form.close()

    async def _stage(self, upload: UploadFile) -> ReceivedFile:
        """Stream one upload to the staging directory, enforcing the size cap."""
        fd, staged = tempfile.mkstemp(dir=self.staging_dir, prefix="staged-")
        staged_path = Path(staged)
        size = 0

        try:
            with os.fdopen(fd, "wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_file_size:
                        logger.warning(
                            f"File size exceeded for {upload.filename}: "
                            f"{size} bytes (max: {self.max_file_size})"
                        )
                        raise FileTooLargeError(self.max_file_size)
                    out.write(chunk)
        except BaseException:
            staged_path.unlink(missing_ok=True)
            raise

        return ReceivedFile(
            field_name=self.field_name,
            original_name=upload.filename or "unnamed",
            mimetype=normalize_mimetype(upload.content_type),
            size=size,
            staged_path=staged_path,
        )


async def receive_images(request: Request) -> AsyncIterator[List[ReceivedFile]]:
    """
    FastAPI dependency yielding the admitted files of one upload request.

    Staged copies still on disk when the request finishes (rejected,
    failed or never persisted) are removed.
    """
    settings = request.app.state.settings
    receiver = UploadReceiver(
        staging_dir=settings.STAGING_PATH,
        field_name=settings.UPLOAD_FIELD_NAME,
        max_files=settings.MAX_FILES,
        max_file_size=settings.MAX_FILE_SIZE,
    )
    received = await receiver.receive(request)
    try:
        yield received
    finally:
        discard_staged_files(received)
