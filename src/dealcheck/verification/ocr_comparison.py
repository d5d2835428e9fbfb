"""
OCR-vs-structured comparison.

Every numeric field of a structured extraction is checked against the raw
key-value pairs the OCR service read from the same document. Two readers
agreeing on a number is strong evidence that the number is right; a field
with no OCR counterpart is reported as unverifiable, not as wrong.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from ..mapping.currency import parse_amount, quantize_cents
from ..mapping.field_mapper import DEFAULT_MAPPER, FieldMapper
from ..schemas.checks import OcrComparison
from ..schemas.document_path import flatten_numeric
from ..schemas.documents import DocumentValue, FormType, KeyValuePair

logger = logging.getLogger(__name__)

MATCH_TOLERANCE = Decimal("1")  # $1 rounding
MIN_TAIL_LENGTH = 4

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_INDEX_SUFFIX = re.compile(r"\[\d+\]")

# (OCR label phrases, field-name fragments) for statements without line numbers
PHRASE_TABLE: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    # Bank statements
    (("total deposits", "deposits total"), ("totaldeposits",)),
    (("total withdrawals", "withdrawals total", "total debits"), ("totalwithdrawals",)),
    (("beginning balance", "opening balance", "previous balance"), ("beginningbalance",)),
    (("ending balance", "closing balance", "new balance"), ("endingbalance",)),
    # Profit and loss
    (("gross profit", "gross margin"), ("grossprofit",)),
    (("net income", "net profit", "net earnings"), ("netincome",)),
    (("operating income", "income from operations"), ("operatingincome",)),
    (
        ("total revenue", "net revenue", "gross revenue", "total sales"),
        ("netrevenue", "totalrevenue", "grossrevenue", "revenue"),
    ),
    (("cost of goods sold", "cogs", "cost of sales"), ("costofgoodssold", "cogs", "cogstotal")),
    (
        ("operating expenses", "total operating expenses"),
        ("operatingexpenses", "totaloperatingexpenses"),
    ),
    # Balance sheet
    (("total assets",), ("totalassets",)),
    (("total liabilities",), ("totalliabilities",)),
    (
        ("total equity", "shareholders equity", "stockholders equity"),
        ("totalequity", "totalshareholdersequity"),
    ),
    (("total current assets",), ("totalcurrentassets",)),
    (("total current liabilities",), ("totalcurrentliabilities",)),
    (
        ("total liabilities and equity", "total liabilities & equity"),
        ("totalliabilitiesandequity",),
    ),
    (("retained earnings",), ("retainedearnings",)),
    (("accumulated depreciation",), ("accumulateddepreciation",)),
    # Rent roll
    (("total monthly rent", "monthly rent total"), ("totalmonthlyrent",)),
    (("total annual rent", "annual rent total"), ("totalannualrent",)),
    (("occupancy rate", "occupancy"), ("occupancyrate",)),
    (("total units",), ("totalunits",)),
)

# Printed descriptions of tax-form lines, per canonical path
LINE_DESCRIPTIONS: dict[str, tuple[str, ...]] = {
    # 1040
    "income.wages_line1": ("Wages, salaries, tips", "Total amount from Form(s) W-2"),
    "income.taxableInterest_line2b": ("Taxable interest",),
    "income.ordinaryDividends_line3b": ("Ordinary dividends",),
    "income.capitalGain_line7": ("Capital gain or (loss)",),
    "income.otherIncome_line8": ("Other income",),
    "income.totalIncome_line9": ("Total income",),
    "income.adjustments_line10": ("Adjustments to income",),
    "income.agi_line11": ("Adjusted gross income",),
    "income.standardOrItemized_line12": ("Standard deduction or itemized",),
    "income.qbi_line13a": ("Qualified business income",),
    "income.totalDeductions_line14": ("Total deductions",),
    "income.taxableIncome_line15": ("Taxable income",),
    "tax.totalTax_line24": ("Total tax",),
    "tax.federalWithholding_line25a": ("Federal income tax withheld",),
    "tax.totalPayments_line33": ("Total payments",),
    # Schedule C
    "scheduleC.grossReceipts_line1": ("Gross receipts",),
    "scheduleC.grossProfit_line5": ("Gross profit",),
    "scheduleC.grossIncome_line7": ("Gross income",),
    "scheduleC.totalExpenses_line28": ("Total expenses",),
    "scheduleC.netProfit_line31": ("Net profit or (loss)",),
    # 1120
    "income.grossReceipts_line1a": ("Gross receipts",),
    "income.balanceAfterReturns_line1c": ("Balance",),
    "income.costOfGoodsSold_line2": ("Cost of goods sold",),
    "income.grossProfit_line3": ("Gross profit",),
    "income.totalIncome_line11": ("Total income",),
    "deductions.totalDeductions_line27": ("Total deductions",),
    "taxableIncome.taxableIncomeBeforeNOL_line28": ("Taxable income before NOL",),
    "taxableIncome.taxableIncome_line30": ("Taxable income",),
    # 1120-S
    "income.totalIncome_line6": ("Total income (loss)",),
    "deductions.totalDeductions_line21": ("Total deductions",),
    "ordinaryBusinessIncome_line22": ("Ordinary business income",),
    # 1065
    "income.totalIncome_line8": ("Total income (loss)",),
    "deductions.totalDeductions_line22": ("Total deductions",),
    "ordinaryBusinessIncome_line23": ("Ordinary business income",),
}

# Leaf names that identify, date or count things rather than hold money
METADATA_SEGMENTS = (
    "page",
    "confidence",
    "status",
    "type",
    "name",
    "address",
    "ein",
    "ssn",
    "tin",
    "filingstatus",
    "taxyear",
    "year",
    "month",
    "businesscode",
    "accountnumber",
    "routingnumber",
    "description",
    "label",
    "category",
    "date",
    "id",
    "index",
    "count",
    "unit",
)


def normalize_key(text: str) -> str:
    """Lower-case and strip everything except letters and digits."""
    return _NON_ALNUM.sub("", text.lower())


def _leaf(field_path: str) -> str:
    return _INDEX_SUFFIX.sub("", field_path.rsplit(".", 1)[-1])


def is_metadata_field(field_path: str) -> bool:
    """True for identifier/date/count leaves that are not financial values."""
    leaf = _leaf(field_path).lower()
    return any(
        leaf == segment or leaf.startswith(segment + "_") or leaf.endswith("_" + segment)
        for segment in METADATA_SEGMENTS
    )


@dataclass(frozen=True)
class _OcrReading:
    pair: KeyValuePair
    amount: Decimal
    line_id: Optional[str]
    normalized_label: str


class OcrComparator:
    """
    Matches structured fields to OCR readings.

    Label matching per pair:
    1. a label whose line identifier is on the form's line table matches
       exactly the field that line maps to (every alias, "1" and "1a" alike)
    2. printed line descriptions ("Wages, salaries, tips", "Total income")
    3. phrase table (bank, P&L, balance sheet, rent roll wording)
    4. field-name tail (at least 4 characters) contained in the label
    Among all matching pairs the numerically closest reading is chosen; ties
    keep the pair that came first.
    """

    def __init__(
        self,
        mapper: Optional[FieldMapper] = None,
        match_tolerance: Decimal = MATCH_TOLERANCE,
    ) -> None:
        self.mapper = mapper or DEFAULT_MAPPER
        self.match_tolerance = match_tolerance

    def _readings(self, pairs: Iterable[KeyValuePair]) -> list[_OcrReading]:
        readings = []
        for pair in pairs:
            amount = parse_amount(pair.value)
            if amount is None:
                continue
            readings.append(
                _OcrReading(
                    pair=pair,
                    amount=amount,
                    line_id=self.mapper.normalize(pair.label),
                    normalized_label=normalize_key(pair.label),
                )
            )
        return readings

    def label_matches(
        self,
        reading: _OcrReading,
        field_path: str,
        form_type: Optional[FormType],
    ) -> bool:
        canonical_path = _INDEX_SUFFIX.sub("", field_path)
        if form_type is not None and reading.line_id:
            line_path = self.mapper.field_path(form_type, reading.line_id)
            if line_path is not None:
                # A numbered line on a known form is authoritative
                return line_path == canonical_path

        label = reading.normalized_label
        if not label:
            return False

        for description in LINE_DESCRIPTIONS.get(canonical_path, ()):
            if normalize_key(description) in label:
                return True

        tail = normalize_key(_leaf(field_path))

        for phrases, fragments in PHRASE_TABLE:
            if any(normalize_key(phrase) in label for phrase in phrases) and any(
                fragment in tail or (tail and tail in fragment) for fragment in fragments
            ):
                return True

        # One direction only: "line1" would otherwise match every *_line1x field
        return len(tail) >= MIN_TAIL_LENGTH and tail in label

    def compare(
        self,
        structured_data: DocumentValue,
        pairs: Iterable[KeyValuePair],
        form_type: FormType | str | None = None,
    ) -> list[OcrComparison]:
        readings = self._readings(pairs or [])
        if structured_data is None or not readings:
            return []

        resolved_form = FormType.coerce(form_type)
        comparisons: list[OcrComparison] = []

        for field_path, value in flatten_numeric(structured_data):
            if value == 0 or is_metadata_field(field_path):
                continue

            best: Optional[_OcrReading] = None
            best_difference: Optional[Decimal] = None
            for reading in readings:
                if not self.label_matches(reading, field_path, resolved_form):
                    continue
                difference = abs(value - reading.amount)
                if best_difference is None or difference < best_difference:
                    best, best_difference = reading, difference

            if best is None:
                comparisons.append(
                    OcrComparison(
                        field_path=field_path,
                        structured_value=value,
                        ocr_value=None,
                        ocr_label=None,
                        matched=False,
                        difference=quantize_cents(abs(value)),
                    )
                )
                continue

            comparisons.append(
                OcrComparison(
                    field_path=field_path,
                    structured_value=value,
                    ocr_value=best.amount,
                    ocr_label=best.pair.label,
                    matched=best_difference <= self.match_tolerance,
                    difference=quantize_cents(best_difference),
                    page=best.pair.page,
                )
            )

        logger.debug(
            "OCR comparison: %d fields, %d matched, %d without OCR reading",
            len(comparisons),
            sum(1 for c in comparisons if c.matched),
            sum(1 for c in comparisons if c.ocr_value is None),
        )
        return comparisons


def compare_ocr_to_structured(
    structured_data: DocumentValue,
    pairs: Iterable[KeyValuePair],
    form_type: FormType | str | None = None,
    mapper: Optional[FieldMapper] = None,
    match_tolerance: Decimal = MATCH_TOLERANCE,
) -> list[OcrComparison]:
    """Compare every numeric structured field with the OCR pairs of the same document."""
    return OcrComparator(mapper, match_tolerance).compare(structured_data, pairs, form_type)
