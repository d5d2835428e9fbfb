"""
Cross-document reconciliation.

Compares the same fact as reported on different documents of one deal
(W-2s against the individual return, Schedule C against the P&L, one bank
statement against the next, ...). ZERO AI: a fixed catalog of rules, each a
pure function of the deal's extractions.

Each rule is optional: when one of the documents it needs is absent, or
either side of the comparison is zero, it contributes no check at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from ..mapping.currency import PERCENT_PRECISION, percent_difference, quantize_cents
from ..schemas.checks import CheckStatus, ReconciliationCheck
from ..schemas.document_path import (
    ZERO,
    as_records,
    first_nonzero,
    numeric_value,
    resolve,
)
from ..schemas.documents import ExtractionInput, normalize_document_type

logger = logging.getLogger(__name__)

ABSOLUTE_TOLERANCE = Decimal("1")  # $1
PERCENT_TOLERANCE = Decimal("0.02")  # 2%
WARNING_THRESHOLD = Decimal("0.05")  # 5%, warn but don't fail
LOOSE_WARNING_THRESHOLD = Decimal("0.10")
EQUITY_WARNING_THRESHOLD = Decimal("0.15")
DEPOSITS_FAIL_THRESHOLD = Decimal("0.20")  # deposits include non-income transfers
DEPOSITS_WARNING_THRESHOLD = Decimal("0.50")
CHAIN_FAIL_THRESHOLD = Decimal("0")  # only the absolute tolerance applies
CHAIN_WARNING_THRESHOLD = Decimal("0.001")

# Document type aliases (normalized form)
FORM_1040_TYPES = ("FORM_1040", "1040", "TAX_RETURN_1040")
FORM_1120S_TYPES = ("FORM_1120S", "1120S", "1120_S", "TAX_RETURN_1120S")
W2_TYPES = ("W2", "W_2", "FORM_W2")
K1_TYPES = ("K1", "K_1", "SCHEDULE_K1", "SCHEDULE_K_1", "FORM_K1")
PNL_TYPES = ("PROFIT_AND_LOSS", "P&L", "PNL", "INCOME_STATEMENT")
BANK_STATEMENT_TYPES = (
    "BANK_STATEMENT",
    "BANK_STATEMENTS",
    "BANK_STATEMENT_CHECKING",
    "BANK_STATEMENT_SAVINGS",
)
RENT_ROLL_TYPES = ("RENT_ROLL",)
BALANCE_SHEET_TYPES = ("BALANCE_SHEET",)

# Schema variants for the same fact, first non-zero wins
W2_WAGE_PATHS = ("wagesTips", "box1", "wages", "wages_box1")
FORM_1040_WAGE_PATHS = ("income.wages_line1", "wages_line1")
FORM_1040_TOTAL_INCOME_PATHS = ("income.totalIncome_line9", "totalIncome_line9")
PNL_REVENUE_PATHS = ("netRevenue", "totalRevenue", "revenue")
SCHEDULE_C_RECEIPTS_PATHS = ("grossReceipts", "grossReceipts_line1")
SCHEDULE_C_NET_PROFIT_PATHS = ("netProfit", "netProfit_line31", "netProfitOrLoss_line31")
OFFICER_COMP_PATHS = (
    "officerCompensation_line7",
    "deductions.officerCompensation_line7",
    "deductions.compensationOfOfficers_line7",
    "officerCompensation.compensationAmount",
    "officerCompensation",
)
K1_ORDINARY_INCOME_PATHS = (
    "ordinaryIncome",
    "ordinaryBusinessIncome",
    "box1",
    "incomeAndLoss.ordinaryBusinessIncome_line1",
)
SCHEDULE_E_PARTNERSHIP_PATHS = (
    "totalPartnershipIncome",
    "totalSCorpIncome",
    "partnershipIncome",
    "partnershipIncome_line28",
)
RENTS_RECEIVED_PATHS = ("rentsReceived", "rentsReceived_line3")
RENT_ROLL_ANNUAL_PATHS = ("summary.totalAnnualRent", "totalAnnualRent")
DEPOSIT_PATHS = ("summary.totalDeposits", "totalDeposits")
ENDING_BALANCE_PATHS = ("summary.endingBalance", "endingBalance")
BEGINNING_BALANCE_PATHS = ("summary.beginningBalance", "beginningBalance")


def classify(
    difference: Decimal,
    percent: Decimal,
    absolute_tolerance: Decimal,
    fail_threshold: Decimal,
    warn_threshold: Decimal,
) -> CheckStatus:
    """
    Status for a discrepancy.

    pass    if difference <= absolute_tolerance or percent <= fail_threshold
    warning if percent <= warn_threshold
    fail    otherwise
    """
    if difference <= absolute_tolerance or percent <= fail_threshold:
        return CheckStatus.PASS
    if percent <= warn_threshold:
        return CheckStatus.WARNING
    return CheckStatus.FAIL


class CheckBuilder:
    """Builds ReconciliationChecks with a shared absolute tolerance."""

    def __init__(self, absolute_tolerance: Decimal = ABSOLUTE_TOLERANCE) -> None:
        self.absolute_tolerance = absolute_tolerance

    def build(
        self,
        description: str,
        doc1_type: str,
        doc1_field: str,
        doc1_value: Decimal,
        doc2_type: str,
        doc2_field: str,
        doc2_value: Decimal,
        fail_threshold: Decimal = PERCENT_TOLERANCE,
        warn_threshold: Decimal = WARNING_THRESHOLD,
    ) -> ReconciliationCheck:
        difference = quantize_cents(abs(doc1_value - doc2_value))
        percent = percent_difference(doc1_value, doc2_value)

        status = classify(
            difference,
            percent,
            self.absolute_tolerance,
            fail_threshold,
            warn_threshold,
        )

        return ReconciliationCheck(
            description=description,
            doc1_type=doc1_type,
            doc1_field=doc1_field,
            doc1_value=quantize_cents(doc1_value),
            doc2_type=doc2_type,
            doc2_field=doc2_field,
            doc2_value=quantize_cents(doc2_value),
            difference=difference,
            percent_diff=percent.quantize(PERCENT_PRECISION),
            status=status,
        )


class DocumentSet:
    """The extractions of one deal, indexed by normalized document type."""

    def __init__(self, extractions: Iterable[ExtractionInput]) -> None:
        # Extractions without structured data cannot take part in any rule
        self.extractions = [e for e in extractions if e.data is not None]

    def all_of(self, *types: str) -> list[ExtractionInput]:
        wanted = {normalize_document_type(t) for t in types}
        return [e for e in self.extractions if e.normalized_type in wanted]

    def first_of(self, *types: str) -> Optional[ExtractionInput]:
        matches = self.all_of(*types)
        return matches[0] if matches else None

    def __len__(self) -> int:
        return len(self.extractions)


RuleRunner = Callable[[DocumentSet, CheckBuilder], list[ReconciliationCheck]]


@dataclass(frozen=True)
class ReconciliationRule:
    """A named entry of the rule catalog."""

    name: str
    description: str
    runner: RuleRunner

    def run(self, documents: DocumentSet, builder: CheckBuilder) -> list[ReconciliationCheck]:
        return [replace(check, rule=self.name) for check in self.runner(documents, builder)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _w2_wage_total(w2s: Sequence[ExtractionInput]) -> Decimal:
    return sum((first_nonzero(w2.data, *W2_WAGE_PATHS) for w2 in w2s), ZERO)


def _first_schedule(data, key: str):
    """First entry of a schedule that may be a list or a single object."""
    records = as_records(resolve(data, key))
    return records[0] if records else None


def _parse_statement_date(value) -> Optional[tuple[int, int, int]]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = date.fromisoformat(text[:10])
        return parsed.year, parsed.month, parsed.day
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            parsed_dt = datetime.strptime(text, fmt)
            return parsed_dt.year, parsed_dt.month, parsed_dt.day
        except ValueError:
            continue
    return None


def _statement_period(data) -> dict:
    for key in ("statementPeriod", "period", "summary.period"):
        period = resolve(data, key)
        if isinstance(period, dict):
            return period
    return {}


def statement_sort_key(extraction: ExtractionInput) -> tuple[int, int, int]:
    """
    Sortable period key for a bank statement.

    The statement period end date when it parses, else (year, month, 0)
    from the extraction year (or data.year) and data.month.
    """
    data = extraction.data
    period = _statement_period(data)
    for candidate in (
        period.get("endDate"),
        period.get("end"),
        resolve(data, "endDate"),
        resolve(data, "statementDate"),
    ):
        parsed = _parse_statement_date(candidate)
        if parsed:
            return parsed

    year = extraction.year if extraction.year is not None else int(numeric_value(data, "year"))
    month = int(first_nonzero(data, "month", "summary.month"))
    return year, month, 0


def statement_label(extraction: ExtractionInput) -> str:
    """Human label for a statement period."""
    data = extraction.data
    period = _statement_period(data)
    if period.get("startDate") and period.get("endDate"):
        return f"{period['startDate']} to {period['endDate']}"

    month = int(first_nonzero(data, "month", "summary.month"))
    year = extraction.year or int(numeric_value(data, "year"))
    if month and year:
        return f"{year}-{month:02d}"
    return "unknown period"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def check_w2_vs_1040(documents: DocumentSet, builder: CheckBuilder) -> list[ReconciliationCheck]:
    """Sum of W-2 box 1 wages against 1040 line 1."""
    form_1040 = documents.first_of(*FORM_1040_TYPES)
    w2s = documents.all_of(*W2_TYPES)
    if form_1040 is None or not w2s:
        return []

    w2_total = _w2_wage_total(w2s)
    line1 = first_nonzero(form_1040.data, *FORM_1040_WAGE_PATHS)
    if w2_total == 0 or line1 == 0:
        return []

    return [
        builder.build(
            "Sum of W-2 wages (box 1) should match 1040 line 1 wages",
            "W-2",
            "wagesTips (sum)",
            w2_total,
            "FORM_1040",
            "income.wages_line1",
            line1,
            PERCENT_TOLERANCE,
            WARNING_THRESHOLD,
        )
    ]


def check_schedule_c_vs_pnl(documents: DocumentSet, builder: CheckBuilder) -> list[ReconciliationCheck]:
    """First Schedule C against the first P&L (single-business case)."""
    form_1040 = documents.first_of(*FORM_1040_TYPES)
    pnls = documents.all_of(*PNL_TYPES)
    if form_1040 is None or not pnls:
        return []

    schedule_c = _first_schedule(form_1040.data, "scheduleC")
    if schedule_c is None:
        return []
    pnl = pnls[0].data

    checks: list[ReconciliationCheck] = []

    receipts = first_nonzero(schedule_c, *SCHEDULE_C_RECEIPTS_PATHS)
    revenue = first_nonzero(pnl, *PNL_REVENUE_PATHS)
    if receipts != 0 and revenue != 0:
        checks.append(
            builder.build(
                "Schedule C gross receipts should match P&L revenue (same business)",
                "FORM_1040 (Schedule C)",
                "scheduleC.grossReceipts",
                receipts,
                "PROFIT_AND_LOSS",
                "netRevenue",
                revenue,
                WARNING_THRESHOLD,
                LOOSE_WARNING_THRESHOLD,
            )
        )

    net_profit = first_nonzero(schedule_c, *SCHEDULE_C_NET_PROFIT_PATHS)
    net_income = numeric_value(pnl, "netIncome")
    if net_profit != 0 and net_income != 0:
        checks.append(
            builder.build(
                "Schedule C net profit should be close to P&L net income",
                "FORM_1040 (Schedule C)",
                "scheduleC.netProfit",
                net_profit,
                "PROFIT_AND_LOSS",
                "netIncome",
                net_income,
                WARNING_THRESHOLD,
                LOOSE_WARNING_THRESHOLD,
            )
        )

    return checks


def check_bank_deposits_vs_income(
    documents: DocumentSet, builder: CheckBuilder
) -> list[ReconciliationCheck]:
    """Annualized deposits against 1040 total income; deliberately loose."""
    form_1040 = documents.first_of(*FORM_1040_TYPES)
    statements = documents.all_of(*BANK_STATEMENT_TYPES)
    if form_1040 is None or not statements:
        return []

    total_deposits = sum((first_nonzero(s.data, *DEPOSIT_PATHS) for s in statements), ZERO)
    months = len(statements)
    total_income = first_nonzero(form_1040.data, *FORM_1040_TOTAL_INCOME_PATHS)
    if total_deposits == 0 or total_income == 0:
        return []

    annualized = quantize_cents(total_deposits / months * 12)

    return [
        builder.build(
            f"Annualized bank deposits ({months} months extrapolated to 12) should be "
            f"in the range of 1040 total income",
            "BANK_STATEMENT",
            "annualizedDeposits",
            annualized,
            "FORM_1040",
            "income.totalIncome_line9",
            total_income,
            DEPOSITS_FAIL_THRESHOLD,
            DEPOSITS_WARNING_THRESHOLD,
        )
    ]


def check_schedule_e_vs_rent_roll(
    documents: DocumentSet, builder: CheckBuilder
) -> list[ReconciliationCheck]:
    """Schedule E rents received (all properties) against rent roll annual rent."""
    form_1040 = documents.first_of(*FORM_1040_TYPES)
    rent_rolls = documents.all_of(*RENT_ROLL_TYPES)
    if form_1040 is None or not rent_rolls:
        return []

    schedules = as_records(resolve(form_1040.data, "scheduleE"))
    if not schedules:
        return []

    properties = schedules[0].get("properties") if isinstance(schedules[0], dict) else None
    if not isinstance(properties, list):
        properties = schedules

    rents = sum((first_nonzero(p, *RENTS_RECEIVED_PATHS) for p in properties), ZERO)
    annual_rent = first_nonzero(rent_rolls[0].data, *RENT_ROLL_ANNUAL_PATHS)
    if rents == 0 or annual_rent == 0:
        return []

    return [
        builder.build(
            "Schedule E total rents received should match rent roll total annual rent",
            "FORM_1040 (Schedule E)",
            "scheduleE.rentsReceived",
            rents,
            "RENT_ROLL",
            "summary.totalAnnualRent",
            annual_rent,
            WARNING_THRESHOLD,
            LOOSE_WARNING_THRESHOLD,
        )
    ]


def check_1120s_officer_comp_vs_w2(
    documents: DocumentSet, builder: CheckBuilder
) -> list[ReconciliationCheck]:
    """1120S officer compensation (line 7) against summed W-2 wages."""
    form_1120s = documents.first_of(*FORM_1120S_TYPES)
    w2s = documents.all_of(*W2_TYPES)
    if form_1120s is None or not w2s:
        return []

    officer_comp = first_nonzero(form_1120s.data, *OFFICER_COMP_PATHS)
    w2_total = _w2_wage_total(w2s)
    if officer_comp == 0 or w2_total == 0:
        return []

    return [
        builder.build(
            "1120S officer compensation (line 7) should match total W-2 wages for that entity",
            "FORM_1120S",
            "officerCompensation_line7",
            officer_comp,
            "W-2",
            "wagesTips (sum)",
            w2_total,
            PERCENT_TOLERANCE,
            WARNING_THRESHOLD,
        )
    ]


def check_k1_vs_schedule_e(documents: DocumentSet, builder: CheckBuilder) -> list[ReconciliationCheck]:
    """Summed K-1 ordinary income against Schedule E Part II."""
    k1s = documents.all_of(*K1_TYPES)
    form_1040 = documents.first_of(*FORM_1040_TYPES)
    if not k1s or form_1040 is None:
        return []

    k1_income = sum((first_nonzero(k1.data, *K1_ORDINARY_INCOME_PATHS) for k1 in k1s), ZERO)

    schedule_e = _first_schedule(form_1040.data, "scheduleE")
    if schedule_e is None:
        return []
    part_ii = schedule_e.get("partII") if isinstance(schedule_e, dict) else None
    if part_ii is None:
        part_ii = schedule_e

    partnership_income = first_nonzero(part_ii, *SCHEDULE_E_PARTNERSHIP_PATHS)
    if k1_income == 0 or partnership_income == 0:
        return []

    return [
        builder.build(
            "K-1 ordinary income should match Schedule E Part II reporting",
            "K-1",
            "ordinaryIncome (sum)",
            k1_income,
            "FORM_1040 (Schedule E Part II)",
            "partnershipIncome",
            partnership_income,
            PERCENT_TOLERANCE,
            WARNING_THRESHOLD,
        )
    ]


def check_balance_sheet_equity_vs_pnl(
    documents: DocumentSet, builder: CheckBuilder
) -> list[ReconciliationCheck]:
    """Retained earnings change against P&L net income for the same period."""
    balance_sheets = documents.all_of(*BALANCE_SHEET_TYPES)
    pnls = documents.all_of(*PNL_TYPES)
    if not balance_sheets or not pnls:
        return []

    balance_sheet = balance_sheets[0].data
    current = first_nonzero(balance_sheet, "retainedEarnings", "retainedEarningsCurrent")
    prior = first_nonzero(balance_sheet, "priorRetainedEarnings", "retainedEarningsPrior")
    net_income = numeric_value(pnls[0].data, "netIncome")
    if current == 0 or prior == 0 or net_income == 0:
        return []

    return [
        builder.build(
            "Retained earnings change on the balance sheet should approximate P&L net income "
            "(same period)",
            "BALANCE_SHEET",
            "retainedEarnings (change)",
            current - prior,
            "PROFIT_AND_LOSS",
            "netIncome",
            net_income,
            WARNING_THRESHOLD,
            EQUITY_WARNING_THRESHOLD,
        )
    ]


def check_bank_statement_chain(
    documents: DocumentSet, builder: CheckBuilder
) -> list[ReconciliationCheck]:
    """Ending balance of each statement against the next statement's beginning balance."""
    statements = documents.all_of(*BANK_STATEMENT_TYPES)
    if len(statements) < 2:
        return []

    # sorted() is stable: statements with equal keys keep input order
    ordered = sorted(statements, key=statement_sort_key)

    checks: list[ReconciliationCheck] = []
    for current, following in zip(ordered, ordered[1:]):
        ending = first_nonzero(current.data, *ENDING_BALANCE_PATHS)
        beginning = first_nonzero(following.data, *BEGINNING_BALANCE_PATHS)
        if ending == 0 or beginning == 0:
            continue

        label = statement_label(current)
        next_label = statement_label(following)
        checks.append(
            builder.build(
                f"Bank statement chain: {label} ending balance should equal "
                f"{next_label} beginning balance",
                f"BANK_STATEMENT ({label})",
                "summary.endingBalance",
                ending,
                f"BANK_STATEMENT ({next_label})",
                "summary.beginningBalance",
                beginning,
                CHAIN_FAIL_THRESHOLD,
                CHAIN_WARNING_THRESHOLD,
            )
        )

    return checks


DEFAULT_RULES: tuple[ReconciliationRule, ...] = (
    ReconciliationRule("w2_vs_1040", "W-2 wages vs 1040 line 1", check_w2_vs_1040),
    ReconciliationRule("schedule_c_vs_pnl", "Schedule C vs P&L", check_schedule_c_vs_pnl),
    ReconciliationRule(
        "bank_deposits_vs_income",
        "Annualized deposits vs 1040 total income",
        check_bank_deposits_vs_income,
    ),
    ReconciliationRule(
        "schedule_e_vs_rent_roll",
        "Schedule E rents vs rent roll",
        check_schedule_e_vs_rent_roll,
    ),
    ReconciliationRule(
        "officer_comp_vs_w2",
        "1120S officer compensation vs W-2 wages",
        check_1120s_officer_comp_vs_w2,
    ),
    ReconciliationRule("k1_vs_schedule_e", "K-1 income vs Schedule E Part II", check_k1_vs_schedule_e),
    ReconciliationRule(
        "equity_rollforward",
        "Retained earnings change vs P&L net income",
        check_balance_sheet_equity_vs_pnl,
    ),
    ReconciliationRule(
        "bank_statement_chain",
        "Bank statement balance continuity",
        check_bank_statement_chain,
    ),
)


class CrossDocumentEngine:
    """
    Runs the reconciliation rule catalog over one deal.

    Usage:
        engine = CrossDocumentEngine()
        checks = engine.run(extractions)
    """

    def __init__(
        self,
        rules: Sequence[ReconciliationRule] = DEFAULT_RULES,
        absolute_tolerance: Decimal = ABSOLUTE_TOLERANCE,
    ) -> None:
        self.rules = tuple(rules)
        self.builder = CheckBuilder(absolute_tolerance)

    def run(self, extractions: Iterable[ExtractionInput]) -> list[ReconciliationCheck]:
        documents = DocumentSet(extractions or [])
        if not documents:
            return []

        checks: list[ReconciliationCheck] = []
        for rule in self.rules:
            produced = rule.run(documents, self.builder)
            if not produced:
                logger.debug("Rule %s produced no checks", rule.name)
            checks.extend(produced)

        logger.debug(
            "Cross-document checks: %d over %d documents",
            len(checks),
            len(documents),
        )
        return checks


def run_cross_document_checks(
    extractions: Iterable[ExtractionInput],
    absolute_tolerance: Decimal = ABSOLUTE_TOLERANCE,
) -> list[ReconciliationCheck]:
    """Run the default rule catalog over one deal's extractions."""
    return CrossDocumentEngine(absolute_tolerance=absolute_tolerance).run(extractions)
