"""Tests for the typed document path accessor."""

from decimal import Decimal

import pytest

from dealcheck.schemas.document_path import (
    MISSING,
    DocumentPath,
    DocumentPathError,
    IndexSegment,
    KeySegment,
    as_records,
    first_nonzero,
    flatten_numeric,
    has_value,
    numeric_value,
    resolve,
    to_decimal,
)

DOCUMENT = {
    "income": {"wages_line1": 85000, "note": "see attached"},
    "scheduleC": [
        {"grossReceipts": 120000.5, "netProfit": "60000"},
        {"grossReceipts": 10000},
    ],
    "summary": {"endingBalance": None, "flag": True},
    "P&L": {"net-income": 12},
}


class TestParse:
    """Tests for path parsing."""

    def test_segments(self):
        path = DocumentPath.parse("scheduleC[0].grossReceipts")
        assert path.segments == (
            KeySegment("scheduleC"),
            IndexSegment(0),
            KeySegment("grossReceipts"),
        )

    def test_nested_indices(self):
        path = DocumentPath.parse("matrix[1][2]")
        assert path.segments == (KeySegment("matrix"), IndexSegment(1), IndexSegment(2))

    def test_line_style_keys(self):
        assert DocumentPath.parse("2_fairrentaldays").segments == (KeySegment("2_fairrentaldays"),)
        assert DocumentPath.parse("P&L.net-income").segments == (
            KeySegment("P&L"),
            KeySegment("net-income"),
        )

    @pytest.mark.parametrize("expression", ["", "   ", "a..b", "a[x]", "a[0", ".a", "a.[0]"])
    def test_invalid(self, expression):
        with pytest.raises(DocumentPathError):
            DocumentPath.parse(expression)

    def test_parse_is_cached(self):
        assert DocumentPath.parse("income.wages_line1") is DocumentPath.parse("income.wages_line1")


class TestResolve:
    """Tests for evaluation: never raises on data."""

    def test_found(self):
        assert resolve(DOCUMENT, "income.wages_line1") == 85000
        assert resolve(DOCUMENT, "scheduleC[1].grossReceipts") == 10000

    @pytest.mark.parametrize(
        "path",
        [
            "income.missing",
            "scheduleC[5].grossReceipts",
            "income[0]",
            "scheduleC.grossReceipts",
            "summary.endingBalance",
            "income.wages_line1.deeper",
        ],
    )
    def test_missing(self, path):
        assert resolve(DOCUMENT, path) is MISSING

    def test_non_container_document(self):
        assert resolve(None, "a.b") is MISSING
        assert resolve("text", "a") is MISSING

    def test_missing_is_falsy(self):
        assert not MISSING

    def test_has_value(self):
        assert has_value(DOCUMENT, "income.note")
        assert not has_value(DOCUMENT, "summary.endingBalance")


class TestNumericCoercion:
    """Coercion to Decimal is explicit and total."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (85000, Decimal("85000")),
            (120000.5, Decimal("120000.5")),
            (0.1, Decimal("0.1")),
            ("60000", Decimal("60000")),
            (" 12.50 ", Decimal("12.50")),
            (Decimal("7"), Decimal("7")),
        ],
    )
    def test_numbers(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, MISSING, True, False, "see attached", "$1,000", "", [1], {"a": 1}, float("nan"), float("inf")],
    )
    def test_non_numbers_are_zero(self, value):
        assert to_decimal(value) == Decimal("0")

    def test_numeric_value(self):
        assert numeric_value(DOCUMENT, "scheduleC[0].netProfit") == Decimal("60000")
        assert numeric_value(DOCUMENT, "income.note") == Decimal("0")
        assert numeric_value(DOCUMENT, "nowhere") == Decimal("0")

    def test_first_nonzero(self):
        assert first_nonzero(DOCUMENT, "income.missing", "income.wages_line1") == Decimal("85000")
        assert first_nonzero(DOCUMENT, "a", "b") == Decimal("0")


class TestRecordsAndFlatten:
    """Tests for list/object helpers."""

    def test_as_records(self):
        assert as_records([1, 2]) == [1, 2]
        assert as_records({"a": 1}) == [{"a": 1}]
        assert as_records(MISSING) == []
        assert as_records("x") == []

    def test_flatten_numeric(self):
        flat = list(flatten_numeric(DOCUMENT))
        assert flat == [
            ("income.wages_line1", Decimal("85000")),
            ("scheduleC[0].grossReceipts", Decimal("120000.5")),
            ("scheduleC[1].grossReceipts", Decimal("10000")),
            ("P&L.net-income", Decimal("12")),
        ]

    def test_flatten_list_of_numbers(self):
        assert list(flatten_numeric({"items": [1, {"x": 2}]})) == [
            ("items[0]", Decimal("1")),
            ("items[1].x", Decimal("2")),
        ]
