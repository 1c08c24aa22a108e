"""
Expected shape of the upload form.

The edge only relays fields it knows about. Each slot declares whether it
carries text or files and whether it may repeat.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from upload_edge.middleware.error_handler import FormSchemaError


class SlotKind(str, Enum):
    TEXT = "text"
    FILE = "file"


class Cardinality(str, Enum):
    SINGLE = "single"
    MANY = "many"


@dataclass(frozen=True)
class FormSlot:
    """One expected form field."""

    name: str
    kind: SlotKind
    cardinality: Cardinality = Cardinality.SINGLE
    required: bool = False


@dataclass(frozen=True)
class FormSchema:
    """Set of form slots a request is validated against."""

    slots: Tuple[FormSlot, ...]

    def slot(self, name: str) -> Optional[FormSlot]:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None

    def check_part(self, name: str, kind: SlotKind) -> FormSlot:
        """
        Check that a part may appear under this name.

        Raises:
            FormSchemaError: If the name is unknown or carries the wrong kind
        """
        slot = self.slot(name)
        if slot is None:
            raise FormSchemaError(f"Unexpected form field '{name}'", name)
        if slot.kind != kind:
            raise FormSchemaError(
                f"Form field '{name}' expects {slot.kind.value}, got {kind.value}", name
            )
        return slot

    def check_counts(self, counts: Dict[str, int]) -> None:
        """
        Check cardinality and presence once every part has been seen.

        Args:
            counts: Number of parts received per field name

        Raises:
            FormSchemaError: If a single slot repeats or a required slot is missing
        """
        for slot in self.slots:
            count = counts.get(slot.name, 0)
            if slot.required and count == 0:
                raise FormSchemaError(f"Missing required form field '{slot.name}'", slot.name)
            if slot.cardinality == Cardinality.SINGLE and count > 1:
                raise FormSchemaError(
                    f"Form field '{slot.name}' accepts a single value, got {count}", slot.name
                )


# Form submitted by the image upload page
UPLOAD_FORM_SCHEMA = FormSchema(
    slots=(
        FormSlot("title", SlotKind.TEXT),
        FormSlot("images", SlotKind.FILE, Cardinality.MANY),
    )
)
