"""
File Storage Manager Service

Persists validated images under collision-resistant names, builds the
aggregate upload response, and backs the gallery listing and delete
endpoints.
"""

import logging
import re
import shutil
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from image_store.middleware.error_handler import (
    ImageNotFoundError,
    InvalidFilenameError,
    StorageWriteError,
)
from image_store.models import (
    ImageEntry,
    ReceivedFile,
    StoredFile,
    UploadResponse,
    ValidationVerdict,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"}

_EXTENSION_PATTERN = re.compile(r"\.[A-Za-z0-9]{1,10}")


class FileStorageManager:
    """
    Manages durable storage of accepted images.

    Handles:
    - Moving staged files into storage under generated names
    - Partitioning verdicts into the upload response
    - Listing and deleting stored images
    """

    def __init__(self, storage_path: str, url_prefix: str = "/uploads"):
        """
        Initialize FileStorageManager.

        Args:
            storage_path: Directory accepted images are stored in
            url_prefix: URL path prefix the storage directory is served under
        """
        self.storage_path = Path(storage_path)
        self.url_prefix = "/" + url_prefix.strip("/")

    @staticmethod
    def generate_filename(original_name: str) -> str:
        """
        Build a storage filename: ``<uuid4>-<epoch ms><extension>``.

        The extension is kept only when it is a plain alphanumeric suffix.
        """
        extension = Path(original_name).suffix
        if not _EXTENSION_PATTERN.fullmatch(extension):
            extension = ""
        return f"{uuid.uuid4()}-{int(time.time() * 1000)}{extension}"

    def public_url(self, base_url: str, filename: str) -> str:
        """Join the observed scheme and host with the static prefix and filename."""
        return f"{base_url.rstrip('/')}{self.url_prefix}/{filename}"

    def persist(self, file: ReceivedFile, base_url: str) -> StoredFile:
        """
        Move one accepted file from staging into storage.

        Sets file permissions to 644 (read for all, write for owner).

        Args:
            file: Accepted file, still staged
            base_url: Observed ``<scheme>://<host>`` of the upload request

        Returns:
            StoredFile: Descriptor of the stored image

        Raises:
            StorageWriteError: If the move or chmod fails
        """
        filename = self.generate_filename(file.original_name)
        destination = self.storage_path / filename

        try:
            self.storage_path.mkdir(parents=True, exist_ok=True)
            shutil.move(str(file.staged_path), destination)
            destination.chmod(0o644)
        except OSError as e:
            logger.error(f"Failed to store {file.original_name}: {str(e)}")
            raise StorageWriteError(file.original_name, str(e))

        logger.info(f"Stored {file.original_name} as {destination}")
        return StoredFile(
            id=str(uuid.uuid4()),
            originalName=file.original_name,
            filename=filename,
            path=str(destination),
            size=file.size,
            mimetype=file.mimetype,
            url=self.public_url(base_url, filename),
        )

    def partition(
        self, verdicts: List[ValidationVerdict], base_url: str
    ) -> Tuple[int, UploadResponse]:
        """
        Persist accepted files and summarize the request.

        Args:
            verdicts: One verdict per received file, in receipt order
            base_url: Observed ``<scheme>://<host>`` of the upload request

        Returns:
            Tuple[int, UploadResponse]: HTTP status code and response body
        """
        accepted = [v.file for v in verdicts if v.accepted]
        rejections = [v.rejection for v in verdicts if not v.accepted]

        if not accepted:
            logger.warning(f"All {len(verdicts)} file(s) failed validation")
            return 400, UploadResponse(
                success=False,
                message="No valid files uploaded. All files failed validation.",
                error=", ".join(rejections),
            )

        stored = [self.persist(file, base_url) for file in accepted]

        message = f"Successfully uploaded {len(stored)} valid file(s)"
        if rejections:
            message += f". {len(rejections)} file(s) were rejected: {', '.join(rejections)}"

        logger.info(f"Upload complete: {len(stored)} stored, {len(rejections)} rejected")
        return 200, UploadResponse(success=True, message=message, files=stored)

    def list_images(self, base_url: str) -> List[ImageEntry]:
        """List stored images, oldest first."""
        if not self.storage_path.exists():
            return []

        entries = []
        for path in sorted(self.storage_path.iterdir(), key=lambda p: p.stat().st_mtime):
            if not path.is_file() or path.suffix.lower() not in IMAGE_EXTENSIONS:
                continue
            stats = path.stat()
            entries.append(
                ImageEntry(
                    id=path.name,
                    filename=path.name,
                    url=self.public_url(base_url, path.name),
                    size=stats.st_size,
                    uploadDate=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                )
            )
        return entries

    def delete_image(self, filename: str) -> None:
        """
        Delete one stored image.

        Raises:
            InvalidFilenameError: If filename is not a plain basename
            ImageNotFoundError: If no such file is stored
        """
        if not filename or Path(filename).name != filename or filename.startswith("."):
            logger.warning(f"Refusing to delete invalid filename: {filename}")
            raise InvalidFilenameError(filename)

        path = self.storage_path / filename
        if not path.is_file():
            raise ImageNotFoundError(filename)

        path.unlink()
        logger.info(f"Deleted stored image {path}")
