"""Tests for per-document arithmetic self-consistency checks."""

from decimal import Decimal

import pytest

from dealcheck.verification.arithmetic import ArithmeticChecker, run_arithmetic_checks


def by_path(checks):
    return {check.field_path: check for check in checks}


class TestForm1040:
    """Tests for the individual return."""

    def test_consistent_return_passes(self, sample_1040_data):
        checks = run_arithmetic_checks("FORM_1040", sample_1040_data)

        assert [c.field_path for c in checks] == [
            "income.totalIncome_line9",
            "income.agi_line11",
            "income.taxableIncome_line15",
            "scheduleC[0].grossProfit_line5",
            "scheduleC[0].grossIncome_line7",
            "scheduleC[0].netProfit_line31",
        ]
        assert all(c.passed for c in checks)

    def test_total_income_mismatch(self):
        data = {"income": {"wages_line1": 85000, "capitalGain_line7": 5000, "totalIncome_line9": 90500}}

        check = by_path(run_arithmetic_checks("1040", data))["income.totalIncome_line9"]

        assert not check.passed
        assert check.expected == Decimal("90000.00")
        assert check.actual == Decimal("90500.00")
        assert check.difference == Decimal("500.00")

    def test_rounding_within_a_dollar(self):
        data = {"income": {"wages_line1": 85000, "totalIncome_line9": "85000.75"}}
        check = by_path(run_arithmetic_checks("1040", data))["income.totalIncome_line9"]
        assert check.passed

    def test_absent_totals_produce_no_checks(self):
        assert run_arithmetic_checks("FORM_1040", {"income": {"wages_line1": 85000}}) == []

    def test_flat_schema(self):
        checks = run_arithmetic_checks("1040", {"wages_line1": 100, "totalIncome_line9": 100})
        assert [c.field_path for c in checks] == ["income.totalIncome_line9"]
        assert checks[0].passed

    def test_schedule_c_cogs_alias(self):
        data = {
            "scheduleC": {
                "grossReceipts_line1": 50000,
                "costOfGoods_line4": 10000,
                "grossProfit_line5": 40000,
            }
        }
        checks = run_arithmetic_checks("1040", data)
        assert [(c.field_path, c.passed) for c in checks] == [("scheduleC[0].grossProfit_line5", True)]

    def test_schedule_c_net_profit_mismatch(self):
        data = {
            "scheduleC": [
                {"grossIncome_line7": 100000, "totalExpenses_line28": 40000, "netProfit_line31": 65000}
            ]
        }
        check = by_path(run_arithmetic_checks("1040", data))["scheduleC[0].netProfit_line31"]
        assert not check.passed
        assert check.difference == Decimal("5000.00")


class TestBusinessReturns:
    """Tests for 1120, 1120-S and 1065."""

    def test_1120s_income_chain(self):
        data = {
            "income": {
                "grossReceipts_line1a": 1000,
                "returnsAllowances_line1b": 100,
                "balanceAfterReturns_line1c": 900,
                "costOfGoodsSold_line2": 300,
                "grossProfit_line3": 600,
                "otherIncome_line5": 50,
                "totalIncome_line6": 650,
            },
            "deductions": {"totalDeductions_line21": 400},
            "ordinaryBusinessIncome_line22": 250,
        }

        checks = run_arithmetic_checks("1120-S", data)

        assert [c.field_path for c in checks] == [
            "income.balanceAfterReturns_line1c",
            "income.grossProfit_line3",
            "income.totalIncome_line6",
            "ordinaryBusinessIncome_line22",
        ]
        assert all(c.passed for c in checks)

    def test_1120_taxable_income(self):
        data = {
            "income": {"totalIncome_line11": 500000},
            "deductions": {"totalDeductions_line27": 300000},
            "taxableIncome": {
                "taxableIncomeBeforeNOL_line28": 200000,
                "netOperatingLossDeduction_line29a": 50000,
                "taxableIncome_line30": 160000,
            },
        }

        checks = by_path(run_arithmetic_checks("FORM_1120", data))

        assert checks["taxableIncome.taxableIncomeBeforeNOL_line28"].passed
        assert not checks["taxableIncome.taxableIncome_line30"].passed

    def test_schedule_l_flat_period(self):
        data = {"scheduleL": {"endOfYear": {"totalAssets": 1000, "totalLiabilities": 400, "totalEquity": 500}}}

        checks = run_arithmetic_checks("1120", data)

        assert len(checks) == 1
        assert checks[0].field_path == "scheduleL.endOfYear.totalLiabilitiesAndEquity"
        assert not checks[0].passed
        assert checks[0].difference == Decimal("100.00")

    def test_schedule_l_nested_layout(self):
        data = {
            "scheduleL": {
                "beginningOfYear": {
                    "assets": {"totalAssets": 1000},
                    "liabilitiesAndEquity": {"totalLiabilitiesAndEquity": 1000},
                }
            }
        }
        checks = run_arithmetic_checks("1120S", data)
        assert [c.passed for c in checks] == [True]
        assert "Beginning of Year" in checks[0].description

    @pytest.mark.parametrize("shares,passed", [((60, 40), True), ((60, 30), False), ((33.3, 33.3, 33.4), True)])
    def test_1065_partner_shares(self, shares, passed):
        data = {"partners": [{"profitSharePercent": share} for share in shares]}
        checks = run_arithmetic_checks("1065", data)
        assert [c.passed for c in checks] == [passed]


class TestFinancialStatements:
    """Tests for bank statements, P&L, balance sheet and rent roll."""

    def test_bank_statement_balances(self):
        data = {
            "summary": {
                "beginningBalance": 10000,
                "totalDeposits": 7500,
                "totalWithdrawals": 5500,
                "endingBalance": 12000,
            },
            "deposits": [{"amount": 4000}, {"amount": 3450}],
            "withdrawals": [{"amount": -2000}],
        }

        checks = by_path(run_arithmetic_checks("BANK_STATEMENT", data))

        assert checks["summary.endingBalance"].passed
        # Itemized sums get a 2% tolerance: $50 off on $7,500 passes
        assert checks["summary.totalDeposits"].passed
        assert not checks["summary.totalWithdrawals"].passed

    def test_bank_statement_ending_mismatch(self):
        data = {"summary": {"beginningBalance": 100, "totalDeposits": 50, "endingBalance": 200}}
        checks = run_arithmetic_checks("bank statement", data)
        assert not checks[0].passed
        assert checks[0].expected == Decimal("150.00")

    def test_profit_and_loss(self):
        data = {
            "netRevenue": 120000,
            "costOfGoodsSold": 20000,
            "grossProfit": 100000,
            "operatingExpenses": 40000,
            "operatingIncome": 60000,
            "otherIncome": 1000,
            "otherExpense": 500,
            "incomeTaxExpense": 10000,
            "netIncome": 50500,
            "operatingExpenseLineItems": [{"amount": 25000}, {"amount": 15000}],
        }

        checks = run_arithmetic_checks("P&L", data)

        assert [c.field_path for c in checks] == [
            "grossProfit",
            "operatingIncome",
            "netIncome",
            "totalOperatingExpenses",
        ]
        assert all(c.passed for c in checks)

    def test_profit_and_loss_combined_other_line(self):
        data = {"operatingIncome": 1000, "otherIncomeExpense": -200, "netIncome": 900}
        checks = run_arithmetic_checks("PNL", data)
        assert not checks[0].passed
        assert checks[0].expected == Decimal("800.00")

    def test_balance_sheet(self):
        data = {
            "totalCurrentAssets": 500,
            "netFixedAssets": 400,
            "otherAssets": 100,
            "totalAssets": 1000,
            "totalCurrentLiabilities": 200,
            "totalLongTermLiabilities": 300,
            "totalLiabilities": 500,
            "totalEquity": 500,
            "totalLiabilitiesAndEquity": 1000,
            "propertyEquipment": 600,
            "accumulatedDepreciation": 200,
        }

        checks = run_arithmetic_checks("BALANCE_SHEET", data)

        assert len(checks) == 5
        assert all(c.passed for c in checks)

    def test_balance_sheet_out_of_balance(self):
        data = {"totalAssets": 1000, "totalLiabilities": 300, "totalEquity": 500}
        checks = by_path(run_arithmetic_checks("BALANCE_SHEET", data))
        assert not checks["totalAssets_vs_totalLiabilitiesAndEquity"].passed

    def test_rent_roll(self):
        data = {
            "summary": {
                "totalMonthlyRent": 10000,
                "totalAnnualRent": 120000,
                "totalUnits": 10,
                "occupiedUnits": 9,
                "vacantUnits": 1,
            }
        }
        assert all(c.passed for c in run_arithmetic_checks("RENT_ROLL", data))

    def test_rent_roll_units_are_exact(self):
        data = {"summary": {"occupiedUnits": 9}, "units": [{}] * 10}
        checks = run_arithmetic_checks("RENT_ROLL", data)
        assert [(c.field_path, c.passed) for c in checks] == [("summary.totalUnits", False)]


class TestDispatch:
    """Tests for document-type routing and malformed input."""

    def test_unknown_type(self, sample_1040_data):
        assert run_arithmetic_checks("W2", sample_1040_data) == []

    @pytest.mark.parametrize("data", [None, [], "text", 42])
    def test_non_object_data(self, data):
        assert run_arithmetic_checks("FORM_1040", data) == []

    def test_empty_type(self, sample_1040_data):
        assert run_arithmetic_checks("", sample_1040_data) == []

    def test_custom_tolerance(self):
        checker = ArithmeticChecker(absolute_tolerance=Decimal("1000"))
        data = {"income": {"wages_line1": 85000, "totalIncome_line9": 85500}}
        assert all(c.passed for c in checker.run("1040", data))

    def test_to_dict(self, sample_1040_data):
        data = run_arithmetic_checks("1040", sample_1040_data)[0].to_dict()
        assert data["expected"] == "90000.00"
        assert data["passed"] is True
