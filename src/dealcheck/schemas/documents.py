"""
Canonical input objects (SSOT).

Everything the core reads from the outside world is expressed with these
types: the tax-form shape of a document, the raw OCR key-value pairs, and the
per-document structured extraction. All of them are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

# A heterogeneous, JSON-shaped document value as produced by the structured
# extraction step: dicts, lists, strings, numbers, booleans and None.
DocumentValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]


def normalize_document_type(document_type: str) -> str:
    """Normalize a document type label: upper-case, spaces/hyphens → '_'."""
    return document_type.strip().upper().replace(" ", "_").replace("-", "_")


class FormType(str, Enum):
    """Supported tax-form shapes."""

    FORM_1040 = "1040"
    FORM_1120 = "1120"
    FORM_1120S = "1120S"
    FORM_1065 = "1065"
    K1 = "K1"
    SCHEDULE_C = "SCHEDULE_C"
    SCHEDULE_E = "SCHEDULE_E"

    @classmethod
    def coerce(cls, value: "FormType | str | None") -> Optional["FormType"]:
        """
        Resolve an enum member from a loose label.

        Accepts "1040", "Form 1040", "form-1120s", "k-1", "Schedule C", ...
        Returns None for anything unknown; an unknown form is not an error.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None

        label = normalize_document_type(value)
        if label.startswith("FORM_"):
            label = label[len("FORM_"):]
        label = _FORM_ALIASES.get(label, label)

        try:
            return cls(label)
        except ValueError:
            return None


_FORM_ALIASES = {
    "1120_S": "1120S",
    "K_1": "K1",
    "SCHEDULE_K1": "K1",
    "SCHEDULE_K_1": "K1",
    "SCHEDULEC": "SCHEDULE_C",
    "SCHEDULEE": "SCHEDULE_E",
}


@dataclass(frozen=True)
class KeyValuePair:
    """One form field detected by the OCR service."""

    label: str
    value: str
    confidence: float  # 0.0 - 1.0
    page: int = 1

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": self.value,
            "confidence": self.confidence,
            "page": self.page,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KeyValuePair":
        """Deserialize; accepts "key" as an alias of "label"."""
        label = data.get("label", data.get("key", ""))
        return cls(
            label=str(label),
            value=str(data.get("value", "")),
            confidence=float(data.get("confidence", 0.0)),
            page=int(data.get("page", 1)),
        )


@dataclass(frozen=True)
class ExtractionInput:
    """
    Structured extraction of one ingested source document.

    Owned by the orchestration layer; read-only to this package.
    """

    document_type: str
    data: DocumentValue
    year: Optional[int] = None

    @property
    def normalized_type(self) -> str:
        return normalize_document_type(self.document_type)

    @classmethod
    def from_dict(cls, data: dict) -> "ExtractionInput":
        """Deserialize; accepts camelCase ("documentType"/"docType") keys."""
        document_type = data.get("document_type") or data.get("documentType") or data.get("docType")
        year = data.get("year")
        return cls(
            document_type=str(document_type or ""),
            data=data.get("data"),
            year=int(year) if year is not None else None,
        )
