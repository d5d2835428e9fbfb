"""
Arithmetic self-consistency checks.

Verifies that the numbers on a single structured extraction add up the way
the form says they must (line 9 is the sum of lines 1-8, ending balance is
beginning plus deposits minus withdrawals, ...). Deterministic, no AI.

A check is only produced when the total it verifies is present on the
document, so a form that simply lacks a section does not fail.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Optional

from ..mapping.currency import quantize_cents
from ..schemas.checks import ArithmeticCheck
from ..schemas.document_path import (
    MISSING,
    ZERO,
    as_records,
    first_nonzero,
    has_value,
    numeric_value,
    resolve,
)
from ..schemas.documents import DocumentValue, normalize_document_type

logger = logging.getLogger(__name__)

ABSOLUTE_TOLERANCE = Decimal("1")  # $1 rounding
ITEMIZED_PERCENT_TOLERANCE = Decimal("0.02")  # itemized lists vs their totals
EXACT = Decimal("0")

FORM_1040_INCOME_LINES = (
    "wages_line1",
    "taxableInterest_line2b",
    "ordinaryDividends_line3b",
    "taxableIra_line4b",
    "taxablePensions_line5b",
    "taxableSocialSecurity_line6b",
    "capitalGain_line7",
    "otherIncome_line8",
)

FORM_1120_INCOME_LINES = (
    "income.grossProfit_line3",
    "income.dividendsReceived_line4",
    "income.interestIncome_line5",
    "income.grossRents_line6",
    "income.grossRoyalties_line7",
    "income.capitalGainNet_line8",
    "income.netGainForm4797_line9",
    "income.otherIncome_line10",
)

FORM_1120S_INCOME_LINES = (
    "income.grossProfit_line3",
    "income.netGainForm4797_line4",
    "income.otherIncome_line5",
)

FORM_1065_INCOME_LINES = (
    "income.grossProfit_line3",
    "income.ordinaryIncomeFromOtherPartnerships_line4",
    "income.netFarmProfit_line5",
    "income.netGainForm4797_line6",
    "income.otherIncome_line7",
)


def _sum(document: DocumentValue, paths) -> Decimal:
    return sum((numeric_value(document, path) for path in paths), ZERO)


def _section(data: DocumentValue, key: str) -> DocumentValue:
    """data[key] when it is an object, else data itself (flat schema)."""
    section = resolve(data, key)
    return section if isinstance(section, dict) else data


class ArithmeticChecker:
    """
    Runs the per-document-type arithmetic catalog.

    Usage:
        checker = ArithmeticChecker()
        checks = checker.run("FORM_1040", data)
    """

    def __init__(self, absolute_tolerance: Decimal = ABSOLUTE_TOLERANCE) -> None:
        self.absolute_tolerance = absolute_tolerance
        self._dispatch: dict[str, Callable[[DocumentValue], list[ArithmeticCheck]]] = {}
        for types, handler in (
            (("FORM_1040", "1040", "TAX_RETURN_1040"), self.check_1040),
            (("FORM_1120", "1120", "TAX_RETURN_1120"), self.check_1120),
            (("FORM_1120S", "1120S", "1120_S", "TAX_RETURN_1120S"), self.check_1120s),
            (("FORM_1065", "1065", "TAX_RETURN_1065"), self.check_1065),
            (
                (
                    "BANK_STATEMENT",
                    "BANK_STATEMENTS",
                    "BANK_STATEMENT_CHECKING",
                    "BANK_STATEMENT_SAVINGS",
                ),
                self.check_bank_statement,
            ),
            (("PROFIT_AND_LOSS", "P&L", "PNL", "INCOME_STATEMENT"), self.check_profit_and_loss),
            (("BALANCE_SHEET",), self.check_balance_sheet),
            (("RENT_ROLL",), self.check_rent_roll),
        ):
            for document_type in types:
                self._dispatch[document_type] = handler

    def equation(
        self,
        description: str,
        field_path: str,
        expected: Decimal,
        actual: Decimal,
        tolerance: Optional[Decimal] = None,
    ) -> ArithmeticCheck:
        """actual should equal expected within tolerance (default: absolute_tolerance)."""
        if tolerance is None:
            tolerance = self.absolute_tolerance
        difference = abs(actual - expected)
        return ArithmeticCheck(
            field_path=field_path,
            description=description,
            expected=quantize_cents(expected),
            actual=quantize_cents(actual),
            difference=quantize_cents(difference),
            passed=difference <= tolerance,
        )

    def itemized_tolerance(self, total: Decimal) -> Decimal:
        return max(self.absolute_tolerance, abs(total) * ITEMIZED_PERCENT_TOLERANCE)

    def run(self, document_type: str, data: DocumentValue) -> list[ArithmeticCheck]:
        if not isinstance(data, dict) or not document_type:
            return []

        handler = self._dispatch.get(normalize_document_type(document_type))
        if handler is None:
            logger.debug("No arithmetic checks for document type %r", document_type)
            return []

        checks = handler(data)
        logger.debug(
            "Arithmetic checks for %s: %d (%d failed)",
            document_type,
            len(checks),
            sum(1 for c in checks if not c.passed),
        )
        return checks

    # ------------------------------------------------------------------
    # Tax returns
    # ------------------------------------------------------------------

    def check_1040(self, data: dict) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []
        income = _section(data, "income")

        total_income = numeric_value(income, "totalIncome_line9")
        if has_value(income, "totalIncome_line9"):
            checks.append(
                self.equation(
                    "Total income (line 9) should equal the sum of lines 1 through 8",
                    "income.totalIncome_line9",
                    _sum(income, FORM_1040_INCOME_LINES),
                    total_income,
                )
            )

        adjustments = first_nonzero(income, "adjustments_line10") or numeric_value(
            data, "adjustments_line10"
        )
        agi = first_nonzero(income, "agi_line11") or numeric_value(data, "agi_line11")
        if agi != 0 or has_value(income, "agi_line11"):
            checks.append(
                self.equation(
                    "AGI (line 11) should equal total income (line 9) minus adjustments (line 10)",
                    "income.agi_line11",
                    total_income - adjustments,
                    agi,
                )
            )

        if has_value(income, "taxableIncome_line15"):
            checks.append(
                self.equation(
                    "Taxable income (line 15) should equal AGI (line 11) minus deductions "
                    "(line 12) minus QBI (line 13a)",
                    "income.taxableIncome_line15",
                    agi
                    - numeric_value(income, "standardOrItemized_line12")
                    - numeric_value(income, "qbi_line13a"),
                    numeric_value(income, "taxableIncome_line15"),
                )
            )

        for index, schedule in enumerate(as_records(resolve(data, "scheduleC"))):
            checks.extend(self._check_schedule_c(index, schedule))

        return checks

    def _check_schedule_c(self, index: int, schedule: DocumentValue) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []
        prefix = f"scheduleC[{index}]"
        label = f"Schedule C #{index + 1}"

        gross_profit = numeric_value(schedule, "grossProfit_line5")
        if has_value(schedule, "grossProfit_line5"):
            checks.append(
                self.equation(
                    f"{label}: gross profit (line 5) should equal gross receipts (line 1) "
                    f"minus COGS (line 4)",
                    f"{prefix}.grossProfit_line5",
                    numeric_value(schedule, "grossReceipts_line1")
                    - first_nonzero(schedule, "cogs_line4", "costOfGoods_line4"),
                    gross_profit,
                )
            )

        other_income = numeric_value(schedule, "otherIncome_line6")
        gross_income = numeric_value(schedule, "grossIncome_line7")
        if has_value(schedule, "grossIncome_line7"):
            checks.append(
                self.equation(
                    f"{label}: gross income (line 7) should equal gross profit (line 5) "
                    f"plus other income (line 6)",
                    f"{prefix}.grossIncome_line7",
                    gross_profit + other_income,
                    gross_income,
                )
            )

        if has_value(schedule, "netProfit_line31"):
            base = gross_income if gross_income != 0 else gross_profit + other_income
            checks.append(
                self.equation(
                    f"{label}: net profit (line 31) should equal gross income (line 7) "
                    f"minus total expenses (line 28)",
                    f"{prefix}.netProfit_line31",
                    base - numeric_value(schedule, "totalExpenses_line28"),
                    numeric_value(schedule, "netProfit_line31"),
                )
            )

        return checks

    def _check_entity_income(
        self,
        data: dict,
        line_1c: str,
        income_lines: tuple[str, ...],
        total_income_path: str,
        total_income_line: str,
        total_deductions_path: str,
        ordinary_income_path: Optional[str],
    ) -> list[ArithmeticCheck]:
        """Receipts → gross profit → total income chain shared by business returns."""
        checks: list[ArithmeticCheck] = []

        balance = numeric_value(data, line_1c)
        if has_value(data, line_1c):
            checks.append(
                self.equation(
                    "Balance after returns (line 1c) should equal gross receipts (1a) "
                    "minus returns (1b)",
                    line_1c,
                    numeric_value(data, "income.grossReceipts_line1a")
                    - numeric_value(data, "income.returnsAllowances_line1b"),
                    balance,
                )
            )

        if has_value(data, "income.grossProfit_line3"):
            checks.append(
                self.equation(
                    "Gross profit (line 3) should equal balance after returns (1c) minus COGS (2)",
                    "income.grossProfit_line3",
                    balance - numeric_value(data, "income.costOfGoodsSold_line2"),
                    numeric_value(data, "income.grossProfit_line3"),
                )
            )

        total_income = numeric_value(data, total_income_path)
        if has_value(data, total_income_path):
            checks.append(
                self.equation(
                    f"Total income ({total_income_line}) should equal the sum of its income lines",
                    total_income_path,
                    _sum(data, income_lines),
                    total_income,
                )
            )

        if ordinary_income_path and has_value(data, ordinary_income_path):
            checks.append(
                self.equation(
                    "Ordinary business income should equal total income minus total deductions",
                    ordinary_income_path,
                    total_income - numeric_value(data, total_deductions_path),
                    numeric_value(data, ordinary_income_path),
                )
            )

        return checks

    def check_1120(self, data: dict) -> list[ArithmeticCheck]:
        checks = self._check_entity_income(
            data,
            "income.balanceAfterReturns_line1c",
            FORM_1120_INCOME_LINES,
            "income.totalIncome_line11",
            "line 11",
            "deductions.totalDeductions_line27",
            None,
        )

        before_nol_path = "taxableIncome.taxableIncomeBeforeNOL_line28"
        before_nol = numeric_value(data, before_nol_path)
        if has_value(data, before_nol_path):
            checks.append(
                self.equation(
                    "Taxable income before NOL (line 28) should equal total income (11) "
                    "minus total deductions (27)",
                    before_nol_path,
                    numeric_value(data, "income.totalIncome_line11")
                    - numeric_value(data, "deductions.totalDeductions_line27"),
                    before_nol,
                )
            )

        if has_value(data, "taxableIncome.taxableIncome_line30"):
            checks.append(
                self.equation(
                    "Taxable income (line 30) should equal line 28 minus NOL (29a) "
                    "minus special deductions (29c)",
                    "taxableIncome.taxableIncome_line30",
                    before_nol
                    - numeric_value(data, "taxableIncome.netOperatingLossDeduction_line29a")
                    - numeric_value(data, "taxableIncome.totalSpecialDeductions_line29c"),
                    numeric_value(data, "taxableIncome.taxableIncome_line30"),
                )
            )

        checks.extend(self._check_schedule_l(data))
        return checks

    def check_1120s(self, data: dict) -> list[ArithmeticCheck]:
        checks = self._check_entity_income(
            data,
            "income.balanceAfterReturns_line1c",
            FORM_1120S_INCOME_LINES,
            "income.totalIncome_line6",
            "line 6",
            "deductions.totalDeductions_line21",
            "ordinaryBusinessIncome_line22",
        )
        checks.extend(self._check_schedule_l(data))
        return checks

    def check_1065(self, data: dict) -> list[ArithmeticCheck]:
        checks = self._check_entity_income(
            data,
            "income.netReceipts_line1c",
            FORM_1065_INCOME_LINES,
            "income.totalIncome_line8",
            "line 8",
            "deductions.totalDeductions_line22",
            "ordinaryBusinessIncome_line23",
        )

        partners = resolve(data, "partners")
        if isinstance(partners, list) and partners:
            share_total = sum(
                (first_nonzero(p, "profitSharePercent", "profitShare") for p in partners),
                ZERO,
            )
            if share_total > 0:
                checks.append(
                    self.equation(
                        "Partner profit share percentages should sum to 100%",
                        "partners.profitSharePercent",
                        Decimal("100"),
                        share_total,
                        Decimal("0.5"),
                    )
                )

        checks.extend(self._check_schedule_l(data))
        return checks

    def _check_schedule_l(self, data: dict) -> list[ArithmeticCheck]:
        """Schedule L balance: liabilities plus equity equals total assets, per period."""
        checks: list[ArithmeticCheck] = []
        schedule_l = resolve(data, "scheduleL")
        if schedule_l is MISSING:
            schedule_l = resolve(data, "balanceSheet")
        if not isinstance(schedule_l, dict):
            return checks

        for period in ("beginningOfYear", "endOfYear", "boy", "eoy"):
            period_data = schedule_l.get(period)
            if not isinstance(period_data, dict) or not period_data:
                continue
            period_label = "Beginning of Year" if period in ("beginningOfYear", "boy") else "End of Year"

            # Flat period objects and the nested canonical layout are both accepted
            total_assets = first_nonzero(period_data, "totalAssets", "assets.totalAssets")
            total_liabilities = first_nonzero(
                period_data,
                "totalLiabilities",
                "liabilitiesAndEquity.totalLiabilities",
                "liabilitiesAndCapital.totalLiabilities",
            )
            total_equity = first_nonzero(
                period_data,
                "totalEquity",
                "totalShareholdersEquity",
                "partnersCapital",
                "liabilitiesAndCapital.partnersCapitalAccounts",
            )
            liab_and_equity = first_nonzero(
                period_data,
                "totalLiabilitiesAndEquity",
                "liabilitiesAndEquity.totalLiabilitiesAndEquity",
            )

            if total_assets != 0 and (
                liab_and_equity != 0 or (total_liabilities != 0 and total_equity != 0)
            ):
                checks.append(
                    self.equation(
                        f"Schedule L {period_label}: total liabilities + equity should equal "
                        f"total assets",
                        f"scheduleL.{period}.totalLiabilitiesAndEquity",
                        total_assets,
                        liab_and_equity if liab_and_equity != 0 else total_liabilities + total_equity,
                    )
                )

        return checks

    # ------------------------------------------------------------------
    # Financial statements
    # ------------------------------------------------------------------

    def check_bank_statement(self, data: dict) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []
        summary = _section(data, "summary")

        beginning = numeric_value(summary, "beginningBalance")
        ending = numeric_value(summary, "endingBalance")
        deposits = numeric_value(summary, "totalDeposits")
        withdrawals = numeric_value(summary, "totalWithdrawals")

        if beginning != 0 or ending != 0:
            checks.append(
                self.equation(
                    "Ending balance should equal beginning balance plus total deposits "
                    "minus total withdrawals",
                    "summary.endingBalance",
                    beginning + deposits - withdrawals,
                    ending,
                )
            )

        deposit_items = resolve(data, "deposits")
        if isinstance(deposit_items, list) and deposit_items and deposits != 0:
            checks.append(
                self.equation(
                    "Sum of individual deposits should approximately equal total deposits",
                    "summary.totalDeposits",
                    sum((numeric_value(item, "amount") for item in deposit_items), ZERO),
                    deposits,
                    self.itemized_tolerance(deposits),
                )
            )

        withdrawal_items = resolve(data, "withdrawals")
        if isinstance(withdrawal_items, list) and withdrawal_items and withdrawals != 0:
            checks.append(
                self.equation(
                    "Sum of individual withdrawals should approximately equal total withdrawals",
                    "summary.totalWithdrawals",
                    sum((abs(numeric_value(item, "amount")) for item in withdrawal_items), ZERO),
                    withdrawals,
                    self.itemized_tolerance(withdrawals),
                )
            )

        return checks

    def check_profit_and_loss(self, data: dict) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []

        revenue = first_nonzero(data, "netRevenue", "totalRevenue", "revenue")
        cogs = first_nonzero(data, "costOfGoodsSold", "cogs", "cogsTotal")
        gross_profit = numeric_value(data, "grossProfit")
        operating_expenses = first_nonzero(data, "operatingExpenses", "totalOperatingExpenses")
        operating_income = numeric_value(data, "operatingIncome")
        if has_value(data, "otherIncomeExpense"):
            other = numeric_value(data, "otherIncomeExpense")
        else:
            other = numeric_value(data, "otherIncome") - numeric_value(data, "otherExpense")
        income_tax = first_nonzero(data, "incomeTaxExpense", "taxes")
        net_income = numeric_value(data, "netIncome")

        if revenue != 0:
            checks.append(
                self.equation(
                    "Gross profit should equal net revenue minus cost of goods sold",
                    "grossProfit",
                    revenue - cogs,
                    gross_profit,
                )
            )

        if gross_profit != 0 and operating_expenses != 0:
            checks.append(
                self.equation(
                    "Operating income should equal gross profit minus operating expenses",
                    "operatingIncome",
                    gross_profit - operating_expenses,
                    operating_income,
                )
            )

        if operating_income != 0:
            checks.append(
                self.equation(
                    "Net income should equal operating income plus other income/expense "
                    "minus income tax expense",
                    "netIncome",
                    operating_income + other - income_tax,
                    net_income,
                )
            )

        expense_items = resolve(data, "operatingExpenseLineItems")
        if isinstance(expense_items, list) and expense_items:
            checks.append(
                self.equation(
                    "Operating expense line items should sum to total operating expenses",
                    "totalOperatingExpenses",
                    sum((numeric_value(item, "amount") for item in expense_items), ZERO),
                    operating_expenses,
                    self.itemized_tolerance(operating_expenses),
                )
            )

        return checks

    def check_balance_sheet(self, data: dict) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []

        total_assets = numeric_value(data, "totalAssets")
        net_fixed = first_nonzero(data, "netFixedAssets", "netFixed")
        if total_assets != 0:
            checks.append(
                self.equation(
                    "Total assets should equal total current assets plus net fixed assets "
                    "plus other assets",
                    "totalAssets",
                    numeric_value(data, "totalCurrentAssets")
                    + net_fixed
                    + first_nonzero(data, "otherAssets", "totalOtherAssets"),
                    total_assets,
                )
            )

        total_liabilities = numeric_value(data, "totalLiabilities")
        if total_liabilities != 0:
            checks.append(
                self.equation(
                    "Total liabilities should equal total current liabilities plus total "
                    "long-term liabilities",
                    "totalLiabilities",
                    numeric_value(data, "totalCurrentLiabilities")
                    + first_nonzero(data, "totalLongTermLiabilities", "totalLongTerm"),
                    total_liabilities,
                )
            )

        total_equity = first_nonzero(data, "totalEquity", "totalShareholdersEquity")
        liab_and_equity = numeric_value(data, "totalLiabilitiesAndEquity")
        if liab_and_equity != 0:
            checks.append(
                self.equation(
                    "Total liabilities and equity should equal total liabilities plus total equity",
                    "totalLiabilitiesAndEquity",
                    total_liabilities + total_equity,
                    liab_and_equity,
                )
            )

        if total_assets != 0 and (
            liab_and_equity != 0 or (total_liabilities != 0 and total_equity != 0)
        ):
            checks.append(
                self.equation(
                    "Total assets must equal total liabilities and equity",
                    "totalAssets_vs_totalLiabilitiesAndEquity",
                    total_assets,
                    liab_and_equity if liab_and_equity != 0 else total_liabilities + total_equity,
                )
            )

        gross_fixed = first_nonzero(data, "propertyEquipment", "grossFixedAssets")
        if gross_fixed != 0 and net_fixed != 0:
            checks.append(
                self.equation(
                    "Net fixed assets should equal property/equipment minus accumulated depreciation",
                    "netFixedAssets",
                    gross_fixed - numeric_value(data, "accumulatedDepreciation"),
                    net_fixed,
                )
            )

        return checks

    def check_rent_roll(self, data: dict) -> list[ArithmeticCheck]:
        checks: list[ArithmeticCheck] = []
        summary = _section(data, "summary")
        units = resolve(data, "units")
        units = units if isinstance(units, list) else []

        monthly = numeric_value(summary, "totalMonthlyRent")
        annual = numeric_value(summary, "totalAnnualRent")
        total_units = numeric_value(summary, "totalUnits") or Decimal(len(units))
        occupied = numeric_value(summary, "occupiedUnits")
        vacant = numeric_value(summary, "vacantUnits")

        if monthly != 0 and annual != 0:
            checks.append(
                self.equation(
                    "Total annual rent should equal total monthly rent times 12",
                    "summary.totalAnnualRent",
                    monthly * 12,
                    annual,
                )
            )

        if total_units > 0 and (occupied != 0 or vacant != 0):
            checks.append(
                self.equation(
                    "Occupied units plus vacant units should equal total units",
                    "summary.totalUnits",
                    occupied + vacant,
                    total_units,
                    EXACT,
                )
            )

        return checks


def run_arithmetic_checks(
    document_type: str,
    data: DocumentValue,
    absolute_tolerance: Decimal = ABSOLUTE_TOLERANCE,
) -> list[ArithmeticCheck]:
    """Arithmetic self-consistency checks for one structured extraction."""
    return ArithmeticChecker(absolute_tolerance).run(document_type, data)
