"""
OCR key-value projection onto canonical fields.

Takes every key-value pair the OCR service found on one tax form and splits
them into:
- mapped: canonical path → best reading (highest confidence)
- unmapped: pairs whose label did not resolve, left for a fallback path
- superseded: pairs that resolved but lost a confidence contest

Every input pair lands in exactly one of the three. Nothing is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from ..mapping.currency import parse_amount
from ..mapping.field_mapper import DEFAULT_MAPPER, FieldMapper
from ..schemas.documents import FormType, KeyValuePair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedField:
    """The reading chosen for one canonical field."""

    value: str
    confidence: float
    page: int
    line_id: str
    label: str = ""

    @property
    def amount(self) -> Optional[Decimal]:
        """The value as money, None when it is not a number."""
        return parse_amount(self.value)

    def to_dict(self) -> dict:
        amount = self.amount
        return {
            "value": self.value,
            "amount": str(amount) if amount is not None else None,
            "confidence": self.confidence,
            "page": self.page,
            "line_id": self.line_id,
            "label": self.label,
        }


@dataclass(frozen=True)
class SupersededPair:
    """A resolved pair that lost to another reading of the same field."""

    pair: KeyValuePair
    field_path: str
    line_id: str

    def to_dict(self) -> dict:
        return {
            "pair": self.pair.to_dict(),
            "field_path": self.field_path,
            "line_id": self.line_id,
        }


@dataclass
class ProjectionResult:
    """Outcome of projecting one document's OCR pairs."""

    form_type: Optional[FormType]
    mapped: dict[str, MappedField] = field(default_factory=dict)
    unmapped: list[KeyValuePair] = field(default_factory=list)
    superseded: list[SupersededPair] = field(default_factory=list)

    @property
    def total_pairs(self) -> int:
        return len(self.mapped) + len(self.unmapped) + len(self.superseded)

    def to_structured(self) -> dict[str, Any]:
        """
        Expand mapped paths into a nested dict.

        Numeric readings become Decimals, anything else keeps its raw text.
        {"income.wages_line1": "85,000"} → {"income": {"wages_line1": Decimal("85000")}}
        """
        structured: dict[str, Any] = {}
        for path, mapped_field in self.mapped.items():
            *parents, leaf = path.split(".")
            node = structured
            for part in parents:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            amount = mapped_field.amount
            node[leaf] = amount if amount is not None else mapped_field.value
        return structured

    def to_dict(self) -> dict:
        return {
            "form_type": self.form_type.value if self.form_type else None,
            "mapped": {path: mf.to_dict() for path, mf in self.mapped.items()},
            "unmapped": [pair.to_dict() for pair in self.unmapped],
            "superseded": [entry.to_dict() for entry in self.superseded],
        }


class OcrProjector:
    """
    Applies a FieldMapper across all OCR pairs of a document.

    Duplicate resolution: the higher confidence wins; on equal confidence
    the pair seen first (input order) is kept.
    """

    def __init__(self, mapper: Optional[FieldMapper] = None) -> None:
        self.mapper = mapper or DEFAULT_MAPPER

    def project(
        self,
        form_type: FormType | str | None,
        pairs: Iterable[KeyValuePair],
    ) -> ProjectionResult:
        resolved_form = FormType.coerce(form_type)
        result = ProjectionResult(form_type=resolved_form)
        table = self.mapper.table_for(resolved_form) if resolved_form else None
        winners: dict[str, KeyValuePair] = {}

        for pair in pairs:
            if table is None:
                result.unmapped.append(pair)
                continue

            line_id = self.mapper.normalize(pair.label)
            path = self.mapper.field_path(resolved_form, line_id) if line_id else None
            if path is None:
                logger.debug("Unmapped OCR label %r (line %r)", pair.label, line_id)
                result.unmapped.append(pair)
                continue

            candidate = MappedField(
                value=pair.value,
                confidence=pair.confidence,
                page=pair.page,
                line_id=line_id,
                label=pair.label,
            )

            current = result.mapped.get(path)
            if current is None:
                result.mapped[path] = candidate
                winners[path] = pair
                continue

            if pair.confidence > current.confidence:
                result.superseded.append(SupersededPair(winners[path], path, current.line_id))
                result.mapped[path] = candidate
                winners[path] = pair
            else:
                result.superseded.append(SupersededPair(pair, path, line_id))

            logger.debug(
                "Duplicate reading for %s; kept confidence %.3f",
                path,
                result.mapped[path].confidence,
            )

        if table is None and result.unmapped:
            logger.debug(
                "Form type %r has no line table; %d pairs left unmapped",
                form_type,
                len(result.unmapped),
            )

        return result


def project(
    form_type: FormType | str | None,
    pairs: Iterable[KeyValuePair],
    mapper: Optional[FieldMapper] = None,
) -> ProjectionResult:
    """Project OCR pairs onto canonical fields (see OcrProjector)."""
    return OcrProjector(mapper).project(form_type, pairs)
