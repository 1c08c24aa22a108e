"""
Temp File Cleanup

Guarantees that every temp file captured for a request is removed exactly
once, whether the relay succeeds or fails. Removal problems are logged and
never raised.
"""

import logging
from typing import Iterable, List

import anyio
from starlette.concurrency import run_in_threadpool

from upload_edge.models import UploadedFilePart

logger = logging.getLogger(__name__)


def remove_temp_file(part: UploadedFilePart) -> bool:
    """
    Remove one captured temp file.

    Returns:
        bool: True if the file was removed, False if removal failed
    """
    try:
        part.temp_path.unlink()
        return True
    except FileNotFoundError:
        logger.warning(f"Temp file already gone: {part.temp_path}")
    except OSError as e:
        logger.warning(f"Failed to cleanup temp file {part.temp_path}: {e}")
    return False


def cleanup_temp_files(parts: Iterable[UploadedFilePart], reason: str = "success") -> int:
    """
    Remove every given temp file.

    Args:
        parts: Captured file parts to remove
        reason: Why cleanup runs ("success" or "error"), for the log

    Returns:
        int: Number of files actually removed
    """
    parts = list(parts)
    logger.info(f"Starting cleanup ({reason}) of {len(parts)} temp file(s)")
    removed = sum(1 for part in parts if remove_temp_file(part))
    logger.info(f"Cleanup completed. Removed {removed} of {len(parts)} file(s)")
    return removed


class TempFileGuard:
    """
    Async context manager owning the temp files of one request.

    Usage:
        async with TempFileGuard(captured.all_parts()):
            result = await assembler.relay(captured)

    The files are released when the block exits, on success, on error and
    on cancellation.
    Exceptions raised inside the block are never suppressed.
    """

    def __init__(self, parts: Iterable[UploadedFilePart]):
        self.parts: List[UploadedFilePart] = list(parts)
        self.released = False

    def release(self, reason: str = "success") -> int:
        """Remove the guarded files. Only the first call does any work."""
        if self.released:
            return 0
        self.released = True
        return cleanup_temp_files(self.parts, reason)

    async def __aenter__(self) -> "TempFileGuard":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        reason = "error" if exc_type is not None else "success"
        # Shielded so a cancelled request (client disconnect) still releases.
        with anyio.CancelScope(shield=True):
            await run_in_threadpool(self.release, reason)
        return False
