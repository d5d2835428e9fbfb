"""
Deterministic IRS line identifier → canonical field path tables.

NO AI. The OCR service reads the characters; these tables decide where a
line lands. Canonical paths are shared across forms wherever the fact is the
same (e.g. Schedule L totals), so they double as the join key between
documents.

Tables are read-only and built once at import. Anything that needs a
different table (tests, a new form revision) builds its own FieldMapper
instead of mutating these.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..schemas.documents import FormType

LineTable = Mapping[str, str]

# ─── Form 1040 (Individual) ─────────────────────────────────────────────────

IRS_1040_MAP: LineTable = MappingProxyType({
    # Income
    "1": "income.wages_line1",
    "1a": "income.wages_line1",
    "2a": "income.taxExemptInterest_line2a",
    "2b": "income.taxableInterest_line2b",
    "3a": "income.qualifiedDividends_line3a",
    "3b": "income.ordinaryDividends_line3b",
    "4a": "income.iraDistributions_line4a",
    "4b": "income.taxableIra_line4b",
    "5a": "income.pensions_line5a",
    "5b": "income.taxablePensions_line5b",
    "6a": "income.socialSecurity_line6a",
    "6b": "income.taxableSocialSecurity_line6b",
    "7": "income.capitalGain_line7",
    "8": "income.otherIncome_line8",
    "9": "income.totalIncome_line9",
    "10": "income.adjustments_line10",
    "11": "income.agi_line11",
    "12": "income.standardOrItemized_line12",
    "13": "income.qbi_line13a",
    "14": "income.totalDeductions_line14",
    "15": "income.taxableIncome_line15",
    # Tax and credits
    "16": "tax.taxBeforeCredits_line16",
    "23": "tax.otherTaxes_line23",
    "24": "tax.totalTax_line24",
    "25": "tax.federalWithholding_line25a",
    "25a": "tax.federalWithholding_line25a",
    "33": "tax.totalPayments_line33",
    "34": "tax.overpaid_line34",
    "37": "tax.amountOwed_line37",
    # Filing info
    "filing_status": "metadata.filingStatus",
    "spouse": "metadata.spouseName",
    "ssn": "metadata.ssn_last4",
    "occupation": "metadata.occupation",
})

# ─── Schedule C (Profit or Loss from Business) ──────────────────────────────

IRS_SCHEDULE_C_MAP: LineTable = MappingProxyType({
    "1": "scheduleC.grossReceipts_line1",
    "2": "scheduleC.returns_line2",
    "3": "scheduleC.subtractLine2_line3",
    "4": "scheduleC.costOfGoods_line4",
    "5": "scheduleC.grossProfit_line5",
    "6": "scheduleC.otherIncome_line6",
    "7": "scheduleC.grossIncome_line7",
    # Expenses
    "8": "scheduleC.advertising_line8",
    "9": "scheduleC.carExpenses_line9",
    "10": "scheduleC.commissions_line10",
    "11": "scheduleC.contractLabor_line11",
    "12": "scheduleC.depletion_line12",
    "13": "scheduleC.depreciation_line13",
    "14": "scheduleC.employeeBenefits_line14",
    "15": "scheduleC.insurance_line15",
    "16a": "scheduleC.mortgageInterest_line16a",
    "16b": "scheduleC.otherInterest_line16b",
    "17": "scheduleC.legal_line17",
    "18": "scheduleC.officeExpense_line18",
    "19": "scheduleC.pensionPlans_line19",
    "20a": "scheduleC.rentVehicles_line20a",
    "20b": "scheduleC.rentOther_line20b",
    "21": "scheduleC.repairs_line21",
    "22": "scheduleC.supplies_line22",
    "23": "scheduleC.taxesLicenses_line23",
    "24a": "scheduleC.travel_line24a",
    "24b": "scheduleC.meals_line24b",
    "25": "scheduleC.utilities_line25",
    "26": "scheduleC.wages_line26",
    "27a": "scheduleC.otherExpenses_line27a",
    "27b": "scheduleC.otherExpensesDetail_line27b",
    "28": "scheduleC.totalExpenses_line28",
    "29": "scheduleC.tentativeProfit_line29",
    "30": "scheduleC.homeOffice_line30",
    "31": "scheduleC.netProfit_line31",
    # Business info
    "a": "scheduleC.principalBusiness",
    "b": "scheduleC.principalCode",
    "c": "scheduleC.businessName",
    "d": "scheduleC.ein",
    "e": "scheduleC.businessAddress",
    "f": "scheduleC.accountingMethod",
    "g": "scheduleC.materialParticipation",
})

# ─── Schedule E (Supplemental Income) ───────────────────────────────────────

IRS_SCHEDULE_E_MAP: LineTable = MappingProxyType({
    # Part I, per property
    "3": "scheduleE.rentsReceived_line3",
    "4": "scheduleE.royaltiesReceived_line4",
    "5": "scheduleE.advertising_line5",
    "6": "scheduleE.auto_line6",
    "7": "scheduleE.cleaning_line7",
    "8": "scheduleE.commissions_line8",
    "9": "scheduleE.insurance_line9",
    "10": "scheduleE.legal_line10",
    "11": "scheduleE.management_line11",
    "12": "scheduleE.mortgageInterest_line12",
    "13": "scheduleE.otherInterest_line13",
    "14": "scheduleE.repairs_line14",
    "15": "scheduleE.supplies_line15",
    "16": "scheduleE.taxes_line16",
    "17": "scheduleE.utilities_line17",
    "18": "scheduleE.depreciation_line18",
    "19": "scheduleE.other_line19",
    "20": "scheduleE.totalExpenses_line20",
    "21": "scheduleE.netRentOrRoyalty_line21",
    # Totals
    "23a": "scheduleE.totalRentalLoss_line23a",
    "24": "scheduleE.totalNetRental_line24",
    "25": "scheduleE.totalRentalIncome_line25",
    "26": "scheduleE.totalSupplemental_line26",
    # Part II, partnerships and S corporations
    "28": "scheduleE.partnershipIncome_line28",
    "29a": "scheduleE.passiveIncome_line29a",
    "29b": "scheduleE.nonpassiveIncome_line29b",
    "30": "scheduleE.passiveLoss_line30",
    "31": "scheduleE.nonpassiveLoss_line31",
    "32": "scheduleE.totalPartnership_line32",
    # Property info
    "1a_address": "scheduleE.property1Address",
    "1b_address": "scheduleE.property2Address",
    "1c_address": "scheduleE.property3Address",
    "1a_type": "scheduleE.property1Type",
    "1b_type": "scheduleE.property2Type",
    "1c_type": "scheduleE.property3Type",
    "2_fairrentaldays": "scheduleE.fairRentalDays",
    "2_personalusedays": "scheduleE.personalUseDays",
})

# ─── Form 1120 (C corporation) ──────────────────────────────────────────────

IRS_1120_MAP: LineTable = MappingProxyType({
    # Income
    "1a": "income.grossReceipts_line1a",
    "1b": "income.returnsAllowances_line1b",
    "1c": "income.balanceAfterReturns_line1c",
    "2": "income.costOfGoodsSold_line2",
    "3": "income.grossProfit_line3",
    "4": "income.dividendsReceived_line4",
    "5": "income.interestIncome_line5",
    "6": "income.grossRents_line6",
    "7": "income.grossRoyalties_line7",
    "8": "income.capitalGainNet_line8",
    "9": "income.netGainForm4797_line9",
    "10": "income.otherIncome_line10",
    "11": "income.totalIncome_line11",
    # Deductions
    "12": "deductions.compensationOfOfficers_line12",
    "13": "deductions.salariesAndWages_line13",
    "14": "deductions.repairsAndMaintenance_line14",
    "15": "deductions.badDebts_line15",
    "16": "deductions.rents_line16",
    "17": "deductions.taxesAndLicenses_line17",
    "18": "deductions.interestExpense_line18",
    "19": "deductions.charitableContributions_line19",
    "20": "deductions.depreciationForm4562_line20",
    "21": "deductions.depletion_line21",
    "22": "deductions.advertising_line22",
    "23": "deductions.pensionProfitSharing_line23",
    "24": "deductions.employeeBenefitPrograms_line24",
    "25": "deductions.energyEfficientBuildings_line25",
    "26": "deductions.otherDeductions_line26",
    "27": "deductions.totalDeductions_line27",
    "28": "taxableIncome.taxableIncomeBeforeNOL_line28",
    "29a": "taxableIncome.netOperatingLossDeduction_line29a",
    "29b": "taxableIncome.specialDeductions_line29b",
    "29c": "taxableIncome.totalSpecialDeductions_line29c",
    "30": "taxableIncome.taxableIncome_line30",
    # Tax and payments
    "31": "taxAndPayments.totalTax_line31",
    "32": "taxAndPayments.totalPaymentsAndCredits_line32",
    "33": "taxAndPayments.estimatedTaxPenalty_line33",
    "34": "taxAndPayments.amountOwed_line34",
    "35": "taxAndPayments.overpayment_line35",
    "36": "taxAndPayments.refundedAmount_line36",
    # Schedule L, balance sheet
    "schedule_l_total_assets_boy": "scheduleL.beginningOfYear.assets.totalAssets",
    "schedule_l_total_assets_eoy": "scheduleL.endOfYear.assets.totalAssets",
    "schedule_l_total_liabilities_boy": "scheduleL.beginningOfYear.liabilitiesAndEquity.totalLiabilities",
    "schedule_l_total_liabilities_eoy": "scheduleL.endOfYear.liabilitiesAndEquity.totalLiabilities",
    "schedule_l_retained_earnings_boy": "scheduleL.beginningOfYear.liabilitiesAndEquity.retainedEarnings",
    "schedule_l_retained_earnings_eoy": "scheduleL.endOfYear.liabilitiesAndEquity.retainedEarnings",
    "schedule_l_total_liab_equity_boy": "scheduleL.beginningOfYear.liabilitiesAndEquity.totalLiabilitiesAndEquity",
    "schedule_l_total_liab_equity_eoy": "scheduleL.endOfYear.liabilitiesAndEquity.totalLiabilitiesAndEquity",
})

# ─── Form 1120S (S corporation) ─────────────────────────────────────────────

IRS_1120S_MAP: LineTable = MappingProxyType({
    # Income
    "1a": "income.grossReceipts_line1a",
    "1b": "income.returnsAllowances_line1b",
    "1c": "income.balanceAfterReturns_line1c",
    "2": "income.costOfGoodsSold_line2",
    "3": "income.grossProfit_line3",
    "4": "income.netGainForm4797_line4",
    "5": "income.otherIncome_line5",
    "6": "income.totalIncome_line6",
    # Deductions
    "7": "deductions.compensationOfOfficers_line7",
    "8": "deductions.salariesAndWages_line8",
    "9": "deductions.repairsAndMaintenance_line9",
    "10": "deductions.badDebts_line10",
    "11": "deductions.rents_line11",
    "12": "deductions.taxesAndLicenses_line12",
    "13": "deductions.interestExpense_line13",
    "14": "deductions.totalDepreciation_line14",
    "15": "deductions.depletion_line15",
    "16": "deductions.advertising_line16",
    "17": "deductions.pensionProfitSharing_line17",
    "18": "deductions.employeeBenefitPrograms_line18",
    "19": "deductions.energyEfficientBuildings_line19",
    "20": "deductions.otherDeductions_line20",
    "21": "deductions.totalDeductions_line21",
    "22": "ordinaryBusinessIncome_line22",
    # Tax and payments
    "23a": "taxAndPayments.excessNetPassiveIncomeTax_line23a",
    "23b": "taxAndPayments.builtInGainsTax_line23b",
    "23c": "taxAndPayments.totalTax_line23c",
    "24a": "taxAndPayments.estimatedTaxPayments_line24a",
    "24d": "taxAndPayments.totalPayments_line24d",
    "25": "taxAndPayments.estimatedTaxPenalty_line25",
    "26": "taxAndPayments.amountOwed_line26",
    "27": "taxAndPayments.overpayment_line27",
    # Schedule K, shareholders' pro rata share items
    "k_1": "scheduleK.incomeAndLoss.ordinaryBusinessIncome_line1",
    "k_2": "scheduleK.incomeAndLoss.netRentalRealEstateIncome_line2",
    "k_3": "scheduleK.incomeAndLoss.otherNetRentalIncome_line3",
    "k_4": "scheduleK.incomeAndLoss.interestIncome_line4",
    "k_5a": "scheduleK.incomeAndLoss.ordinaryDividends_line5a",
    "k_5b": "scheduleK.incomeAndLoss.qualifiedDividends_line5b",
    "k_6": "scheduleK.incomeAndLoss.royalties_line6",
    "k_7": "scheduleK.incomeAndLoss.netShortTermCapitalGain_line7",
    "k_8a": "scheduleK.incomeAndLoss.netLongTermCapitalGain_line8a",
    "k_9": "scheduleK.incomeAndLoss.netSection1231Gain_line9",
    "k_10": "scheduleK.incomeAndLoss.otherIncome_line10",
    "k_11": "scheduleK.deductions.section179Deduction_line11",
    "k_12": "scheduleK.deductions.otherDeductions_line12a",
    "k_16a": "scheduleK.distributions.cashAndMarketableSecurities_line16a",
    "k_16b": "scheduleK.distributions.propertyDistributions_line16b",
    # Schedule L, balance sheet
    "schedule_l_total_assets_boy": "scheduleL.beginningOfYear.assets.totalAssets",
    "schedule_l_total_assets_eoy": "scheduleL.endOfYear.assets.totalAssets",
    "schedule_l_total_liabilities_boy": "scheduleL.beginningOfYear.liabilitiesAndEquity.totalLiabilities",
    "schedule_l_total_liabilities_eoy": "scheduleL.endOfYear.liabilitiesAndEquity.totalLiabilities",
    "schedule_l_retained_earnings_boy": "scheduleL.beginningOfYear.liabilitiesAndEquity.retainedEarnings",
    "schedule_l_retained_earnings_eoy": "scheduleL.endOfYear.liabilitiesAndEquity.retainedEarnings",
    # Officer compensation statement (Form 1125-E)
    "officer_comp_name": "officerCompensation.name",
    "officer_comp_ssn": "officerCompensation.ssn_last4",
    "officer_comp_percent_time": "officerCompensation.percentTimeDevoted",
    "officer_comp_percent_owned": "officerCompensation.percentStockOwned",
    "officer_comp_amount": "officerCompensation.compensationAmount",
})

# ─── Form 1065 (Partnership) ────────────────────────────────────────────────

IRS_1065_MAP: LineTable = MappingProxyType({
    # Income
    "1a": "income.grossReceipts_line1a",
    "1b": "income.returnsAllowances_line1b",
    "1c": "income.balanceAfterReturns_line1c",
    "2": "income.costOfGoodsSold_line2",
    "3": "income.grossProfit_line3",
    "4": "income.ordinaryIncomeFromOtherPartnerships_line4",
    "5": "income.netFarmProfit_line5",
    "6": "income.netGainForm4797_line6",
    "7": "income.otherIncome_line7",
    "8": "income.totalIncome_line8",
    # Deductions
    "9": "deductions.salariesAndWages_line9",
    "10": "deductions.guaranteedPaymentsToPartners_line10",
    "11": "deductions.repairsAndMaintenance_line11",
    "12": "deductions.badDebts_line12",
    "13": "deductions.rent_line13",
    "14": "deductions.taxesAndLicenses_line14",
    "15": "deductions.interestExpense_line15",
    "16a": "deductions.depreciationNotOnForm4562_line16a",
    "16b": "deductions.depreciationFromForm4562_line16b",
    "16c": "deductions.netDepreciation_line16c",
    "17": "deductions.depletion_line17",
    "18": "deductions.retirementPlans_line18",
    "19": "deductions.employeeBenefitPrograms_line19",
    "20": "deductions.energyEfficientBuildings_line20",
    "21": "deductions.otherDeductions_line21",
    "22": "deductions.totalDeductions_line22",
    "23": "ordinaryBusinessIncome_line23",
    # Schedule K
    "k_1": "scheduleK.incomeAndLoss.ordinaryBusinessIncome_line1",
    "k_2": "scheduleK.incomeAndLoss.netRentalRealEstateIncome_line2",
    "k_3": "scheduleK.incomeAndLoss.otherNetRentalIncome_line3",
    "k_4a": "scheduleK.incomeAndLoss.guaranteedPaymentsServices_line4a",
    "k_4b": "scheduleK.incomeAndLoss.guaranteedPaymentsCapital_line4b",
    "k_4c": "scheduleK.incomeAndLoss.totalGuaranteedPayments_line4c",
    "k_5": "scheduleK.incomeAndLoss.interestIncome_line5",
    "k_6a": "scheduleK.incomeAndLoss.ordinaryDividends_line6a",
    "k_6b": "scheduleK.incomeAndLoss.qualifiedDividends_line6b",
    "k_7": "scheduleK.incomeAndLoss.royalties_line7",
    "k_8": "scheduleK.incomeAndLoss.netShortTermCapitalGain_line8",
    "k_9a": "scheduleK.incomeAndLoss.netLongTermCapitalGain_line9a",
    "k_10": "scheduleK.incomeAndLoss.netSection1231Gain_line10",
    "k_11": "scheduleK.incomeAndLoss.otherIncome_line11",
    "k_12": "scheduleK.deductions.section179Deduction_line12",
    "k_13a": "scheduleK.deductions.charitableContributions_line13a",
    "k_19a": "scheduleK.distributions.cashAndMarketableSecurities_line19a",
    "k_19b": "scheduleK.distributions.propertyDistributions_line19b",
    # Analysis of net income
    "analysis_general_partners": "analysisOfNetIncome.generalPartners.netIncome",
    "analysis_limited_partners": "analysisOfNetIncome.limitedPartners.netIncome",
    # Schedule L, balance sheet
    "schedule_l_total_assets_boy": "scheduleL.beginningOfYear.assets.totalAssets",
    "schedule_l_total_assets_eoy": "scheduleL.endOfYear.assets.totalAssets",
    "schedule_l_total_liabilities_boy": "scheduleL.beginningOfYear.liabilitiesAndCapital.totalLiabilities",
    "schedule_l_total_liabilities_eoy": "scheduleL.endOfYear.liabilitiesAndCapital.totalLiabilities",
    "schedule_l_partners_capital_boy": "scheduleL.beginningOfYear.liabilitiesAndCapital.partnersCapitalAccounts",
    "schedule_l_partners_capital_eoy": "scheduleL.endOfYear.liabilitiesAndCapital.partnersCapitalAccounts",
})

# ─── Schedule K-1 (partner / shareholder statement) ─────────────────────────

IRS_K1_MAP: LineTable = MappingProxyType({
    # Entity and partner info
    "part_i_a": "metadata.entityName",
    "part_i_b": "metadata.entityEin",
    "part_ii_e": "metadata.partnerName",
    "part_ii_i": "metadata.partnerSsn_last4",
    "part_ii_j": "metadata.profitSharingPercent_ending",
    "part_ii_j2": "metadata.lossSharingPercent_ending",
    "part_ii_j3": "metadata.capitalSharingPercent_ending",
    # Part III, income and loss
    "1": "incomeAndLoss.ordinaryBusinessIncome_line1",
    "2": "incomeAndLoss.netRentalRealEstateIncome_line2",
    "3": "incomeAndLoss.otherNetRentalIncome_line3",
    "4a": "incomeAndLoss.guaranteedPaymentsServices_line4a",
    "4b": "incomeAndLoss.guaranteedPaymentsCapital_line4b",
    "4c": "incomeAndLoss.totalGuaranteedPayments_line4c",
    "5": "incomeAndLoss.interestIncome_line5",
    "6a": "incomeAndLoss.ordinaryDividends_line6a",
    "6b": "incomeAndLoss.qualifiedDividends_line6b",
    "7": "incomeAndLoss.royalties_line7",
    "8": "incomeAndLoss.netShortTermCapitalGain_line8",
    "9a": "incomeAndLoss.netLongTermCapitalGain_line9a",
    "10": "incomeAndLoss.netSection1231Gain_line10",
    "11": "incomeAndLoss.otherIncome_line11",
    # Deductions
    "12": "deductions.section179Deduction_line12",
    "13": "deductions.otherDeductions_line13",
    # Self-employment
    "14a": "selfEmployment.netEarningsFromSE_line14a",
    "14b": "selfEmployment.grossFarmingIncome_line14b",
    "14c": "selfEmployment.grossNonfarmIncome_line14c",
    # Credits
    "15a": "credits.lowIncomeHousingCredit_line15a",
    # Distributions
    "19a": "distributions.cashAndMarketableSecurities_line19a",
    "19b": "distributions.propertyDistributions_line19b",
    # Box 20, section 199A
    "20_z_qbi": "otherInformation.section199A_qbi_line20_codeZ",
    "20_z_w2": "otherInformation.section199A_w2Wages_line20_codeZ",
    "20_z_ubia": "otherInformation.section199A_ubia_line20_codeZ",
    # Capital account analysis
    "capital_beginning": "capitalAccount.beginningCapitalAccount",
    "capital_increase": "capitalAccount.currentYearIncrease",
    "capital_decrease": "capitalAccount.currentYearDecrease",
    "capital_withdrawals": "capitalAccount.withdrawalsAndDistributions",
    "capital_ending": "capitalAccount.endingCapitalAccount",
    "capital_method": "capitalAccount.method",
})

DEFAULT_TABLES: Mapping[FormType, LineTable] = MappingProxyType({
    FormType.FORM_1040: IRS_1040_MAP,
    FormType.FORM_1120: IRS_1120_MAP,
    FormType.FORM_1120S: IRS_1120S_MAP,
    FormType.FORM_1065: IRS_1065_MAP,
    FormType.K1: IRS_K1_MAP,
    FormType.SCHEDULE_C: IRS_SCHEDULE_C_MAP,
    FormType.SCHEDULE_E: IRS_SCHEDULE_E_MAP,
})
