"""
Signature Validation Service

Checks the real content of each received file against its declared media
type by inspecting the leading bytes. Only PNG carries a signature check;
any other image/* type is accepted as declared.
"""

import logging
from typing import List, Optional, Tuple

from image_store.models import ReceivedFile, ValidationVerdict

logger = logging.getLogger(__name__)

PNG_SIGNATURE = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])

INVALID_PNG_SIGNATURE = "Invalid PNG signature"
VALIDATION_ERROR = "Validation error"
NOT_AN_IMAGE = "Only image files are allowed!"


def is_png_by_bytes(data: bytes) -> bool:
    """Check that data starts with the 8-byte PNG signature."""
    if len(data) < len(PNG_SIGNATURE):
        return False
    return data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def sniff(mimetype: str, header: bytes) -> Tuple[bool, Optional[str]]:
    """
    Decide acceptance from the declared media type and the leading bytes.

    Args:
        mimetype: Normalized declared media type
        header: Leading bytes of the file (at least 8 when available)

    Returns:
        Tuple[bool, Optional[str]]: (accepted, rejection reason)
    """
    if mimetype == "image/png":
        if is_png_by_bytes(header):
            return True, None
        return False, INVALID_PNG_SIGNATURE

    if mimetype.startswith("image/"):
        return True, None

    return False, NOT_AN_IMAGE


class SignatureValidator:
    """
    Produces one ValidationVerdict per received file.

    Rejected files have their staged copy removed right away; accepted
    files are left in place for the storage manager.
    """

    def __init__(self, header_size: int = len(PNG_SIGNATURE)):
        self.header_size = header_size

    def validate(self, file: ReceivedFile) -> ValidationVerdict:
        """Inspect one staged file. Never raises."""
        try:
            with open(file.staged_path, "rb") as f:
                header = f.read(self.header_size)
        except OSError as e:
            logger.error(f"Error validating file {file.original_name}: {e}")
            self._discard(file)
            return ValidationVerdict(file=file, accepted=False, reason=VALIDATION_ERROR)

        accepted, reason = sniff(file.mimetype, header)
        if accepted:
            logger.info(f"Valid image file: {file.original_name} ({file.mimetype})")
            return ValidationVerdict(file=file, accepted=True)

        logger.warning(f"{reason}: {file.original_name}")
        self._discard(file)
        return ValidationVerdict(file=file, accepted=False, reason=reason)

    def validate_all(self, files: List[ReceivedFile]) -> List[ValidationVerdict]:
        """Validate files in receipt order, one verdict each."""
        return [self.validate(file) for file in files]

    @staticmethod
    def _discard(file: ReceivedFile) -> None:
        try:
            file.staged_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning(f"Failed to cleanup invalid file: {file.staged_path}")
