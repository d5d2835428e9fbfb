"""Test fixtures and utilities."""

from decimal import Decimal

import pytest

from dealcheck.schemas.checks import (
    ArithmeticCheck,
    CheckStatus,
    OcrComparison,
    ReconciliationCheck,
)
from dealcheck.schemas.documents import ExtractionInput, KeyValuePair

# Structured 1040 extraction as produced by the structured extraction step
SAMPLE_1040_DATA = {
    "taxYear": 2023,
    "filingStatus": "single",
    "income": {
        "wages_line1": 85000,
        "taxableInterest_line2b": 1200,
        "ordinaryDividends_line3b": 800,
        "capitalGain_line7": 3000,
        "otherIncome_line8": 0,
        "totalIncome_line9": 90000,
        "adjustments_line10": 5000,
        "agi_line11": 85000,
        "standardOrItemized_line12": 13850,
        "qbi_line13a": 0,
        "taxableIncome_line15": 71150,
    },
    "scheduleC": [
        {
            "businessName": "Acme Consulting",
            "grossReceipts_line1": 120000,
            "cogs_line4": 20000,
            "grossProfit_line5": 100000,
            "otherIncome_line6": 0,
            "grossIncome_line7": 100000,
            "totalExpenses_line28": 40000,
            "netProfit_line31": 60000,
        }
    ],
}

# OCR key-value pairs read from the same 1040
SAMPLE_1040_PAIRS = [
    {"label": "Line 1", "value": "$85,000", "confidence": 0.98, "page": 1},
    {"label": "9 Total income", "value": "90,000.00", "confidence": 0.97, "page": 1},
    {"label": "11. Adjusted gross income", "value": "85,000", "confidence": 0.95, "page": 1},
    {"label": "Your first name", "value": "Jane", "confidence": 0.99, "page": 1},
]


def make_pairs(raw: list[dict]) -> list[KeyValuePair]:
    return [KeyValuePair.from_dict(item) for item in raw]


def bank_statement(
    beginning,
    ending,
    deposits=0,
    withdrawals=0,
    year=2024,
    month=1,
    end_date=None,
) -> ExtractionInput:
    """A bank statement extraction with a summary block."""
    data = {
        "month": month,
        "summary": {
            "beginningBalance": beginning,
            "endingBalance": ending,
            "totalDeposits": deposits,
            "totalWithdrawals": withdrawals,
        },
    }
    if end_date:
        data["statementPeriod"] = {"startDate": f"{end_date[:8]}01", "endDate": end_date}
    return ExtractionInput("BANK_STATEMENT", data, year=year)


@pytest.fixture
def sample_1040_data() -> dict:
    """A self-consistent individual return."""
    return SAMPLE_1040_DATA


@pytest.fixture
def sample_1040_pairs() -> list[KeyValuePair]:
    """OCR pairs of the sample individual return."""
    return make_pairs(SAMPLE_1040_PAIRS)


@pytest.fixture
def sample_deal() -> list[ExtractionInput]:
    """A consistent deal: return, W-2s, P&L and three chained statements."""
    return [
        ExtractionInput("FORM_1040", SAMPLE_1040_DATA, year=2023),
        ExtractionInput("W2", {"wagesTips": 50000}, year=2023),
        ExtractionInput("W-2", {"box1": 35000}, year=2023),
        ExtractionInput(
            "PROFIT_AND_LOSS",
            {
                "netRevenue": 120000,
                "costOfGoodsSold": 20000,
                "grossProfit": 100000,
                "operatingExpenses": 40000,
                "operatingIncome": 60000,
                "netIncome": 60000,
            },
            year=2023,
        ),
        bank_statement(10000, 12000, deposits=7500, withdrawals=5500, month=1),
        bank_statement(12000, 11000, deposits=7000, withdrawals=8000, month=2),
        bank_statement(11000, 13000, deposits=8000, withdrawals=6000, month=3),
    ]


@pytest.fixture
def passing_arithmetic_check() -> ArithmeticCheck:
    return ArithmeticCheck(
        field_path="income.totalIncome_line9",
        description="Total income should equal the sum of lines 1 through 8",
        expected=Decimal("90000"),
        actual=Decimal("90000"),
        difference=Decimal("0"),
        passed=True,
    )


@pytest.fixture
def passing_cross_document_check() -> ReconciliationCheck:
    return ReconciliationCheck(
        description="Sum of W-2 wages should match 1040 line 1",
        doc1_type="W-2",
        doc1_field="wagesTips (sum)",
        doc1_value=Decimal("85000"),
        doc2_type="FORM_1040",
        doc2_field="income.wages_line1",
        doc2_value=Decimal("85000"),
        difference=Decimal("0"),
        percent_diff=Decimal("0"),
        status=CheckStatus.PASS,
    )


@pytest.fixture
def agreeing_ocr_comparison() -> OcrComparison:
    return OcrComparison(
        field_path="income.wages_line1",
        structured_value=Decimal("85000"),
        ocr_value=Decimal("85000"),
        ocr_label="Line 1",
        matched=True,
        difference=Decimal("0"),
        page=1,
    )
