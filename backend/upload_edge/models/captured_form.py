"""Parsed upload form held by the edge for the lifetime of one request."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List


@dataclass
class UploadedFilePart:
    """
    One file part written to the capture directory.

    Attributes:
        field_name: Form field the part arrived under
        filename: Client-declared filename (may be empty)
        content_type: Client-declared media type (may be empty)
        size: Byte size of the captured copy
        temp_path: Location of the captured copy
    """

    field_name: str
    filename: str
    content_type: str
    size: int
    temp_path: Path


@dataclass
class CapturedForm:
    """Text values and captured file parts, keyed by field name in receipt order."""

    fields: Dict[str, List[str]] = field(default_factory=dict)
    files: Dict[str, List[UploadedFilePart]] = field(default_factory=dict)

    def add_field(self, name: str, value: str) -> None:
        self.fields.setdefault(name, []).append(value)

    def add_file(self, part: UploadedFilePart) -> None:
        self.files.setdefault(part.field_name, []).append(part)

    def all_parts(self) -> List[UploadedFilePart]:
        """Every captured file part, flattened."""
        return [part for parts in self.files.values() for part in parts]
