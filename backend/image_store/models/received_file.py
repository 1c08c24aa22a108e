"""In-process records for files moving through the validation pipeline."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ReceivedFile:
    """
    One admitted file, staged on disk and waiting for validation.

    Attributes:
        field_name: Multipart field the file arrived under
        original_name: Client-declared filename
        mimetype: Client-declared media type, lowercased without parameters
        size: Byte size of the staged copy
        staged_path: Location of the staged copy
    """

    field_name: str
    original_name: str
    mimetype: str
    size: int
    staged_path: Path


@dataclass
class ValidationVerdict:
    """Accept/reject outcome for one received file."""

    file: ReceivedFile
    accepted: bool
    reason: Optional[str] = None

    @property
    def rejection(self) -> str:
        """Rejection summary in the form ``"<name> - <reason>"``."""
        return f"{self.file.original_name} - {self.reason}"
