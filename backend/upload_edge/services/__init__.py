"""Service layer for capture, relay and cleanup."""

from .relay_assembler import RelayAssembler, RelayPayload
from .temp_capture import TempCaptureStage
from .temp_cleanup import TempFileGuard, cleanup_temp_files

__all__ = [
    "RelayAssembler",
    "RelayPayload",
    "TempCaptureStage",
    "TempFileGuard",
    "cleanup_temp_files",
]
