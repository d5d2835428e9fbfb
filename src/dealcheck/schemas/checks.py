"""
Canonical check and gate objects (SSOT).

Every verification family reports in these shapes, and the review gate
consumes nothing else. All objects are computed fresh per call and never
persisted by this package; `to_dict()` exists for the orchestration layer
that does persist them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


def _money(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


class CheckStatus(str, Enum):
    """Verdict of a single cross-document reconciliation check."""

    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class CheckKind(str, Enum):
    """Family a review item originates from."""

    ARITHMETIC = "arithmetic"
    CROSS_DOCUMENT = "cross_document"
    OCR_MISMATCH = "ocr_mismatch"


class ReviewStatus(str, Enum):
    """
    Review item lifecycle.

    PENDING: created by the gate
    CONFIRMED / CORRECTED / NOTED: set by a human in the review UI only
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CORRECTED = "CORRECTED"
    NOTED = "NOTED"


@dataclass(frozen=True)
class ReconciliationCheck:
    """One pairwise comparison of the same fact on two documents."""

    description: str
    doc1_type: str
    doc1_field: str
    doc1_value: Decimal
    doc2_type: str
    doc2_field: str
    doc2_value: Decimal
    difference: Decimal
    percent_diff: Decimal  # 0..1
    status: CheckStatus
    rule: str = ""

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "description": self.description,
            "doc1_type": self.doc1_type,
            "doc1_field": self.doc1_field,
            "doc1_value": str(self.doc1_value),
            "doc2_type": self.doc2_type,
            "doc2_field": self.doc2_field,
            "doc2_value": str(self.doc2_value),
            "difference": str(self.difference),
            "percent_diff": str(self.percent_diff),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ArithmeticCheck:
    """Self-consistency of one document: actual should equal expected."""

    field_path: str
    description: str
    expected: Decimal
    actual: Decimal
    difference: Decimal
    passed: bool
    page: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "field_path": self.field_path,
            "description": self.description,
            "expected": str(self.expected),
            "actual": str(self.actual),
            "difference": str(self.difference),
            "passed": self.passed,
            "page": self.page,
        }


@dataclass(frozen=True)
class OcrComparison:
    """
    A structured value compared with the raw OCR reading of the same field.

    ocr_value is None when the OCR service produced nothing matching the
    field: the value is unverifiable, not wrong.
    """

    field_path: str
    structured_value: Decimal
    ocr_value: Optional[Decimal]
    ocr_label: Optional[str]
    matched: bool
    difference: Decimal
    page: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "field_path": self.field_path,
            "structured_value": str(self.structured_value),
            "ocr_value": _money(self.ocr_value),
            "ocr_label": self.ocr_label,
            "matched": self.matched,
            "difference": str(self.difference),
            "page": self.page,
        }


@dataclass(frozen=True)
class ReviewItem:
    """An unresolved material discrepancy that needs a human decision."""

    field_path: str
    observed_value: str
    expected_value: str
    check_kind: CheckKind
    description: str
    page: Optional[int] = None
    document_ref: Optional[str] = None
    status: ReviewStatus = ReviewStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "field_path": self.field_path,
            "observed_value": self.observed_value,
            "expected_value": self.expected_value,
            "check_kind": self.check_kind.value,
            "description": self.description,
            "page": self.page,
            "document_ref": self.document_ref,
            "status": self.status.value,
        }


@dataclass
class GateSummary:
    """Per-category tallies of a gate evaluation."""

    arithmetic_passed: int = 0
    arithmetic_failed: int = 0
    cross_document_passed: int = 0
    cross_document_failed: int = 0
    cross_document_warnings: int = 0
    ocr_agreed: int = 0
    ocr_disagreed: int = 0
    ocr_unverified: int = 0

    def to_dict(self) -> dict:
        return {
            "arithmetic_passed": self.arithmetic_passed,
            "arithmetic_failed": self.arithmetic_failed,
            "cross_document_passed": self.cross_document_passed,
            "cross_document_failed": self.cross_document_failed,
            "cross_document_warnings": self.cross_document_warnings,
            "ocr_agreed": self.ocr_agreed,
            "ocr_disagreed": self.ocr_disagreed,
            "ocr_unverified": self.ocr_unverified,
        }


@dataclass
class GateResult:
    """
    Outcome of the review gate.

    can_proceed is derived from review_items, never stored separately, so
    the two can not disagree.
    """

    review_items: list[ReviewItem] = field(default_factory=list)
    auto_passed_count: int = 0
    summary: GateSummary = field(default_factory=GateSummary)

    @property
    def can_proceed(self) -> bool:
        return len(self.review_items) == 0

    def to_dict(self) -> dict:
        return {
            "can_proceed": self.can_proceed,
            "review_items": [item.to_dict() for item in self.review_items],
            "auto_passed_count": self.auto_passed_count,
            "summary": self.summary.to_dict(),
        }
