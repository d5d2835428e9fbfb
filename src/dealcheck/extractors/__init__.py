"""
OCR extraction helpers.

Provides:
- OcrProjector: maps raw OCR key-value pairs of a tax form onto canonical
  field paths, with confidence-based duplicate resolution
- ProjectionResult: mapped / unmapped / superseded partition
"""

from .ocr_projection import (
    MappedField,
    OcrProjector,
    ProjectionResult,
    SupersededPair,
    project,
)

__all__ = [
    "MappedField",
    "OcrProjector",
    "ProjectionResult",
    "SupersededPair",
    "project",
]
