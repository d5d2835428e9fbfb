"""Tests for the review gate."""

import logging
from dataclasses import replace
from decimal import Decimal

from dealcheck.schemas.checks import CheckKind, CheckStatus, ReviewStatus
from dealcheck.verification.review_gate import (
    GateTolerances,
    ReviewGate,
    Tolerance,
    evaluate_gate,
)


def failed_arithmetic(check, expected, actual):
    return replace(
        check,
        expected=Decimal(expected),
        actual=Decimal(actual),
        difference=abs(Decimal(actual) - Decimal(expected)),
        passed=False,
    )


def failed_cross_document(check, doc1, doc2, percent, status=CheckStatus.FAIL):
    return replace(
        check,
        doc1_value=Decimal(doc1),
        doc2_value=Decimal(doc2),
        difference=abs(Decimal(doc1) - Decimal(doc2)),
        percent_diff=Decimal(percent),
        status=status,
    )


class TestGateOutcome:
    """Tests for can_proceed and the review items."""

    def test_all_passing(self, passing_arithmetic_check, passing_cross_document_check, agreeing_ocr_comparison):
        result = evaluate_gate(
            [passing_arithmetic_check],
            [passing_cross_document_check],
            [agreeing_ocr_comparison],
        )

        assert result.can_proceed
        assert result.review_items == []
        assert result.auto_passed_count == 0
        assert result.summary.arithmetic_passed == 1
        assert result.summary.cross_document_passed == 1
        assert result.summary.ocr_agreed == 1

    def test_empty_input_proceeds(self):
        assert evaluate_gate().can_proceed

    def test_material_arithmetic_failure_blocks(self, passing_arithmetic_check):
        check = failed_arithmetic(passing_arithmetic_check, "2500", "3000")

        result = evaluate_gate([check], document_ref="deal-42/1040.pdf")

        assert not result.can_proceed
        [item] = result.review_items
        assert item.check_kind == CheckKind.ARITHMETIC
        assert item.field_path == "income.totalIncome_line9"
        assert item.observed_value == "$3,000"
        assert item.expected_value == "$2,500"
        assert item.description.endswith("Expected $2,500, got $3,000. Difference: $500")
        assert item.document_ref == "deal-42/1040.pdf"
        assert item.status == ReviewStatus.PENDING
        assert result.summary.arithmetic_failed == 1

    def test_small_failure_is_auto_passed(self, passing_arithmetic_check):
        check = failed_arithmetic(passing_arithmetic_check, "2000", "2010")

        result = evaluate_gate([check])

        assert result.can_proceed
        assert result.auto_passed_count == 1
        assert result.summary.arithmetic_passed == 1
        assert result.summary.arithmetic_failed == 0

    def test_auto_pass_needs_both_bounds(self, passing_arithmetic_check):
        """$40 is within $50 but 4% is outside 2%."""
        check = failed_arithmetic(passing_arithmetic_check, "1000", "1040")

        result = evaluate_gate([check])

        assert not result.can_proceed
        assert result.auto_passed_count == 0

    def test_warning_never_blocks(self, passing_cross_document_check):
        check = failed_cross_document(
            passing_cross_document_check, "82000", "85000", "0.0353", CheckStatus.WARNING
        )

        result = evaluate_gate(cross_document_checks=[check])

        assert result.can_proceed
        assert result.summary.cross_document_warnings == 1
        assert result.summary.cross_document_passed == 0
        assert result.auto_passed_count == 0

    def test_cross_document_failure_item(self, passing_cross_document_check):
        check = failed_cross_document(passing_cross_document_check, "50000", "85000", "0.4118")

        [item] = evaluate_gate(cross_document_checks=[check]).review_items

        assert item.check_kind == CheckKind.CROSS_DOCUMENT
        assert item.field_path == "wagesTips (sum) vs income.wages_line1"
        assert item.description == (
            "Sum of W-2 wages should match 1040 line 1. W-2 shows $50,000 but FORM_1040 "
            "shows $85,000. Difference: $35,000 (41.2%)"
        )
        assert item.page is None

    def test_cross_document_failure_auto_passed(self, passing_cross_document_check):
        check = failed_cross_document(passing_cross_document_check, "1920", "2000", "0.04")

        result = evaluate_gate(cross_document_checks=[check])

        assert result.can_proceed
        assert result.auto_passed_count == 1
        assert result.summary.cross_document_passed == 1


class TestOcrComparisons:
    """Tests for OCR comparisons at the gate."""

    def test_unverifiable_value_is_counted_not_surfaced(self, agreeing_ocr_comparison):
        comparison = replace(
            agreeing_ocr_comparison,
            ocr_value=None,
            ocr_label=None,
            matched=False,
            difference=Decimal("85000"),
        )

        result = evaluate_gate(ocr_comparisons=[comparison])

        assert result.can_proceed
        assert result.summary.ocr_unverified == 1
        assert result.summary.ocr_disagreed == 0

    def test_small_disagreement_auto_passed(self, agreeing_ocr_comparison):
        comparison = replace(
            agreeing_ocr_comparison, ocr_value=Decimal("85020"), matched=False, difference=Decimal("20")
        )
        result = evaluate_gate(ocr_comparisons=[comparison])
        assert result.can_proceed
        assert result.auto_passed_count == 1

    def test_disagreement_item(self, agreeing_ocr_comparison):
        comparison = replace(
            agreeing_ocr_comparison, ocr_value=Decimal("84000"), matched=False, difference=Decimal("1000")
        )

        [item] = evaluate_gate(ocr_comparisons=[comparison]).review_items

        assert item.check_kind == CheckKind.OCR_MISMATCH
        assert item.description == (
            'OCR reads "Line 1" as $84,000 but extraction shows $85,000. Difference: $1,000'
        )
        assert item.observed_value == "$85,000"
        assert item.expected_value == "$84,000"
        assert item.page == 1


class TestGateProperties:
    """Ordering, determinism and configuration."""

    def test_items_in_family_order(
        self, passing_arithmetic_check, passing_cross_document_check, agreeing_ocr_comparison
    ):
        result = evaluate_gate(
            [failed_arithmetic(passing_arithmetic_check, "2500", "3000")],
            [failed_cross_document(passing_cross_document_check, "50000", "85000", "0.4118")],
            [replace(agreeing_ocr_comparison, ocr_value=Decimal("1"), matched=False, difference=Decimal("84999"))],
        )

        assert [item.check_kind for item in result.review_items] == [
            CheckKind.ARITHMETIC,
            CheckKind.CROSS_DOCUMENT,
            CheckKind.OCR_MISMATCH,
        ]

    def test_deterministic(self, passing_arithmetic_check, passing_cross_document_check):
        arithmetic = [failed_arithmetic(passing_arithmetic_check, "2500", "3000")]
        cross = [failed_cross_document(passing_cross_document_check, "1920", "2000", "0.04")]

        first = evaluate_gate(arithmetic, cross).to_dict()
        second = evaluate_gate(arithmetic, cross).to_dict()

        assert first == second
        assert first["can_proceed"] is False
        assert first["review_items"][0]["check_kind"] == "arithmetic"

    def test_custom_tolerances(self, passing_arithmetic_check):
        tolerances = GateTolerances(arithmetic=Tolerance(Decimal("1000"), Decimal("1")))
        gate = ReviewGate(tolerances)

        result = gate.evaluate([failed_arithmetic(passing_arithmetic_check, "2500", "3000")])

        assert result.can_proceed
        assert result.auto_passed_count == 1

    def test_logs_outcome(self, caplog, passing_arithmetic_check):
        with caplog.at_level(logging.INFO, logger="dealcheck.verification.review_gate"):
            evaluate_gate([failed_arithmetic(passing_arithmetic_check, "2500", "3000")], document_ref="deal-1")

        assert "Review gate blocked for deal-1: 1 review items" in caplog.text

    def test_can_proceed_follows_items(self):
        result = evaluate_gate()
        assert result.can_proceed
        result.review_items.append(object())
        assert not result.can_proceed
