"""Data models for captured upload forms."""

from .captured_form import CapturedForm, UploadedFilePart
from .form_schema import (
    UPLOAD_FORM_SCHEMA,
    Cardinality,
    FormSchema,
    FormSlot,
    SlotKind,
)

__all__ = [
    "CapturedForm",
    "UploadedFilePart",
    "UPLOAD_FORM_SCHEMA",
    "Cardinality",
    "FormSchema",
    "FormSlot",
    "SlotKind",
]
