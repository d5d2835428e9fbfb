"""
Review gate.

Collects the verdicts of all three check families and decides whether a
deal's extracted data can flow on to analysis or must wait for a human.

Tolerances are applied in two stages:
1. every check carries its own verdict, computed where it was generated
2. the gate re-examines failures with a looser per-category tolerance;
   a failure inside it is auto-passed (counted, not surfaced)

Only failures outside both become ReviewItems, and a single ReviewItem
blocks the gate. Warnings are informational and never block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from ..mapping.currency import format_dollars, percent_difference
from ..schemas.checks import (
    ArithmeticCheck,
    CheckKind,
    CheckStatus,
    GateResult,
    OcrComparison,
    ReconciliationCheck,
    ReviewItem,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tolerance:
    """Secondary tolerance: a failure within BOTH bounds is auto-passed."""

    absolute: Decimal
    percent: Decimal

    def covers(self, difference: Decimal, percent: Decimal) -> bool:
        return abs(difference) <= self.absolute and percent <= self.percent


@dataclass(frozen=True)
class GateTolerances:
    """Per-category secondary tolerances."""

    arithmetic: Tolerance = field(default_factory=lambda: Tolerance(Decimal("50"), Decimal("0.02")))
    cross_document: Tolerance = field(
        default_factory=lambda: Tolerance(Decimal("100"), Decimal("0.05"))
    )
    ocr: Tolerance = field(default_factory=lambda: Tolerance(Decimal("25"), Decimal("0.03")))


# ---------------------------------------------------------------------------
# Review item builders
# ---------------------------------------------------------------------------


def arithmetic_review_item(check: ArithmeticCheck, document_ref: Optional[str] = None) -> ReviewItem:
    return ReviewItem(
        field_path=check.field_path,
        observed_value=format_dollars(check.actual),
        expected_value=format_dollars(check.expected),
        check_kind=CheckKind.ARITHMETIC,
        description=(
            f"{check.description}. Expected {format_dollars(check.expected)}, "
            f"got {format_dollars(check.actual)}. "
            f"Difference: {format_dollars(check.difference)}"
        ),
        page=check.page,
        document_ref=document_ref,
    )


def cross_document_review_item(
    check: ReconciliationCheck, document_ref: Optional[str] = None
) -> ReviewItem:
    percent_label = f"{check.percent_diff * 100:.1f}%"
    return ReviewItem(
        field_path=f"{check.doc1_field} vs {check.doc2_field}",
        observed_value=format_dollars(check.doc1_value),
        expected_value=format_dollars(check.doc2_value),
        check_kind=CheckKind.CROSS_DOCUMENT,
        description=(
            f"{check.description}. {check.doc1_type} shows {format_dollars(check.doc1_value)} "
            f"but {check.doc2_type} shows {format_dollars(check.doc2_value)}. "
            f"Difference: {format_dollars(check.difference)} ({percent_label})"
        ),
        document_ref=document_ref,
    )


def ocr_review_item(comparison: OcrComparison, document_ref: Optional[str] = None) -> ReviewItem:
    return ReviewItem(
        field_path=comparison.field_path,
        observed_value=format_dollars(comparison.structured_value),
        expected_value=format_dollars(comparison.ocr_value),
        check_kind=CheckKind.OCR_MISMATCH,
        description=(
            f'OCR reads "{comparison.ocr_label}" as {format_dollars(comparison.ocr_value)} '
            f"but extraction shows {format_dollars(comparison.structured_value)}. "
            f"Difference: {format_dollars(comparison.difference)}"
        ),
        page=comparison.page,
        document_ref=document_ref,
    )


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class ReviewGate:
    """
    Deterministic gate over one deal's verification results.

    Never raises on well-typed input; the same input always yields the same
    GateResult (review items in input order: arithmetic, cross-document, OCR).
    """

    def __init__(self, tolerances: Optional[GateTolerances] = None) -> None:
        self.tolerances = tolerances or GateTolerances()

    def evaluate(
        self,
        arithmetic_checks: Iterable[ArithmeticCheck] = (),
        cross_document_checks: Iterable[ReconciliationCheck] = (),
        ocr_comparisons: Iterable[OcrComparison] = (),
        document_ref: Optional[str] = None,
    ) -> GateResult:
        result = GateResult()
        summary = result.summary

        for check in arithmetic_checks:
            if check.passed:
                summary.arithmetic_passed += 1
                continue
            percent = percent_difference(check.expected, check.actual)
            if self.tolerances.arithmetic.covers(check.difference, percent):
                summary.arithmetic_passed += 1
                result.auto_passed_count += 1
                logger.debug("Auto-passed arithmetic check %s", check.field_path)
            else:
                summary.arithmetic_failed += 1
                result.review_items.append(arithmetic_review_item(check, document_ref))

        for check in cross_document_checks:
            if check.status == CheckStatus.PASS:
                summary.cross_document_passed += 1
            elif check.status == CheckStatus.WARNING:
                summary.cross_document_warnings += 1
            elif self.tolerances.cross_document.covers(check.difference, check.percent_diff):
                summary.cross_document_passed += 1
                result.auto_passed_count += 1
                logger.debug("Auto-passed cross-document check %r", check.description)
            else:
                summary.cross_document_failed += 1
                result.review_items.append(cross_document_review_item(check, document_ref))

        for comparison in ocr_comparisons:
            if comparison.matched:
                summary.ocr_agreed += 1
                continue
            if comparison.ocr_value is None:
                # Nothing to compare against: unverifiable, not a disagreement
                summary.ocr_unverified += 1
                continue
            percent = percent_difference(comparison.structured_value, comparison.ocr_value)
            if self.tolerances.ocr.covers(comparison.difference, percent):
                summary.ocr_agreed += 1
                result.auto_passed_count += 1
                logger.debug("Auto-passed OCR comparison %s", comparison.field_path)
            else:
                summary.ocr_disagreed += 1
                result.review_items.append(ocr_review_item(comparison, document_ref))

        if result.can_proceed:
            logger.info(
                "Review gate passed%s: %d auto-passed",
                f" for {document_ref}" if document_ref else "",
                result.auto_passed_count,
            )
        else:
            logger.info(
                "Review gate blocked%s: %d review items, %d auto-passed",
                f" for {document_ref}" if document_ref else "",
                len(result.review_items),
                result.auto_passed_count,
            )

        return result


def evaluate_gate(
    arithmetic_checks: Iterable[ArithmeticCheck] = (),
    cross_document_checks: Iterable[ReconciliationCheck] = (),
    ocr_comparisons: Iterable[OcrComparison] = (),
    document_ref: Optional[str] = None,
    tolerances: Optional[GateTolerances] = None,
) -> GateResult:
    """Evaluate the review gate with the given (or default) tolerances."""
    return ReviewGate(tolerances).evaluate(
        arithmetic_checks,
        cross_document_checks,
        ocr_comparisons,
        document_ref,
    )
