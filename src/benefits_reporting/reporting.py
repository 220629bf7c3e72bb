"""
benefits_reporting/reporting.py - Excel Report Workbook

Produces the client-ready benefits workbook:
1. C&E Summary - the 28-item statement, monthly and cumulative
2. Budget vs Actual - monthly variance with YTD and trailing 3 months
3. High-Cost Claimants - ISL allocation per claimant
4. Executive Summary - YTD totals, fuel gauge, plan mix, claimant buckets

Percent figures are held as percentages (94.31) by the engine and written
as fractions so Excel's % format displays them correctly.

Author: Actuarial Pipeline Project
License: MIT
"""

from datetime import date
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .budget_variance import BudgetCalculationResult, PeriodSummary
from .ce_summary import CESummaryResult, ColorCode, DisplayFormat, RowType
from .engine import ExecutiveSummary
from .high_claimants import HighClaimantResult, HighClaimantSummary, calculate_high_claimant_summary

logger = logging.getLogger(__name__)


CE_SHEET = "C&E Summary"
BUDGET_SHEET = "Budget vs Actual"
HCC_SHEET = "High-Cost Claimants"
EXECUTIVE_SHEET = "Executive Summary"

_COLOR_FILLS = {
    ColorCode.ADJUSTMENT: "FEF3C7",
    ColorCode.TOTAL: "E5E7EB",
    ColorCode.VARIANCE_POSITIVE: "DCFCE7",
    ColorCode.VARIANCE_NEGATIVE: "FEE2E2",
}

# (header, MonthlyVariance attribute, format)
_BUDGET_COLUMNS = [
    ("Month", "month", "date"),
    ("Actual Claims", "actual_claims", "currency"),
    ("Fixed Costs", "fixed_costs", "currency"),
    ("Stop Loss Reimb.", "stop_loss_reimbursement", "currency"),
    ("Rx Rebates", "rx_rebates", "currency"),
    ("Actual Total", "actual_total", "currency"),
    ("Budget Claims", "budget_claims", "currency"),
    ("Budget Fixed", "budget_fixed", "currency"),
    ("Budget Total", "budget_total", "currency"),
    ("Variance $", "variance_dollars", "currency"),
    ("Variance %", "variance_percent", "percent"),
    ("PEPM", "pepm", "currency"),
    ("Members", "members", "number"),
]

_HCC_COLUMNS = [
    ("Claimant", "claimant_key", "text"),
    ("Plan", "plan_id", "text"),
    ("Medical Paid", "med_paid", "currency"),
    ("Rx Paid", "rx_paid", "currency"),
    ("Total Paid", "total_paid", "currency"),
    ("Employer Share", "employer_share", "currency"),
    ("Stop Loss Share", "stop_loss_share", "currency"),
    ("% of ISL", "percent_of_isl", "percent"),
]


class ReportWorkbookBuilder:
    """
    Builds the reporting workbook one sheet at a time.

    Sheets are added only for the sections supplied, in the order the
    add_* methods are called.
    """

    def __init__(self, client_name: str = ""):
        self.client_name = client_name
        self.workbook = Workbook()
        del self.workbook[self.workbook.active.title]

        self.currency_format = '$#,##0.00'
        self.percent_format = '0.00%'
        self.number_format = '#,##0'
        self.date_format = 'MMM YYYY'

        self.title_font = Font(bold=True, size=14)
        self.header_font = Font(bold=True, size=11)
        self.header_font_white = Font(bold=True, size=11, color="FFFFFF")
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")

    # -------------------------------------------------------------------------
    # Cell helpers
    # -------------------------------------------------------------------------

    def _new_sheet(self, name: str, title: str) -> Worksheet:
        sheet = self.workbook.create_sheet(name)
        sheet.page_setup.orientation = 'landscape'
        sheet['A1'] = f"{self.client_name} - {title}" if self.client_name else title
        sheet['A1'].font = self.title_font
        return sheet

    def _write(self, sheet: Worksheet, row: int, column: int, value: Any,
               format_type: str = "text") -> None:
        if format_type == "percent" and value is not None:
            value = value / 100
        cell = sheet.cell(row=row, column=column, value=value)

        if format_type == "currency":
            cell.number_format = self.currency_format
        elif format_type == "percent":
            cell.number_format = self.percent_format
        elif format_type == "number":
            cell.number_format = self.number_format
        elif format_type == "date" and isinstance(value, date):
            cell.number_format = self.date_format

    def _write_header_row(self, sheet: Worksheet, row: int, headers: Sequence[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=row, column=col, value=header)
            cell.font = self.header_font_white
            cell.fill = self.header_fill
            sheet.column_dimensions[get_column_letter(col)].width = max(14, len(header) + 4)

    # -------------------------------------------------------------------------
    # Sheets
    # -------------------------------------------------------------------------

    def add_ce_summary(self, result: CESummaryResult, period_label: str = "") -> Worksheet:
        title = f"Claims & Expenses {period_label}".strip()
        sheet = self._new_sheet(CE_SHEET, title)
        self._write_header_row(sheet, 3, ["#", "Item", "Monthly", "Cumulative", "Formula"])
        sheet.column_dimensions['B'].width = 32

        row = 4
        for ce_row in result.rows:
            if ce_row.row_type is RowType.HEADER:
                sheet.cell(row=row, column=2, value=ce_row.item_name).font = self.header_font
                row += 1
                continue

            fmt = {
                DisplayFormat.PERCENT: "percent",
                DisplayFormat.NUMBER: "number",
            }.get(ce_row.display_format, "currency")

            self._write(sheet, row, 1, ce_row.item_number)
            self._write(sheet, row, 2, ce_row.item_name)
            self._write(sheet, row, 3, ce_row.monthly_value, fmt)
            self._write(sheet, row, 4, ce_row.cumulative_value, fmt)
            self._write(sheet, row, 5, ce_row.formula)

            if ce_row.row_type in (RowType.SUBTOTAL, RowType.TOTAL):
                for col in range(1, 6):
                    sheet.cell(row=row, column=col).font = self.header_font
            if ce_row.color_code is not None:
                fill = _COLOR_FILLS[ce_row.color_code]
                for col in range(1, 6):
                    sheet.cell(row=row, column=col).fill = PatternFill(
                        start_color=fill, end_color=fill, fill_type="solid")
            row += 1

        return sheet

    def add_budget_variance(self, result: BudgetCalculationResult) -> Worksheet:
        sheet = self._new_sheet(BUDGET_SHEET, "Budget vs Actual")
        self._write_header_row(sheet, 3, [header for header, _, _ in _BUDGET_COLUMNS])

        row = 4
        for month in result.months:
            for col, (_, attr, fmt) in enumerate(_BUDGET_COLUMNS, start=1):
                self._write(sheet, row, col, getattr(month, attr), fmt)
            row += 1

        row += 1
        for label, summary in (("Year to Date", result.ytd),
                               ("Last 3 Months", result.last_three_months)):
            self._write_period_summary(sheet, row, label, summary)
            row += 1

        return sheet

    def _write_period_summary(self, sheet: Worksheet, row: int, label: str,
                              summary: PeriodSummary) -> None:
        sheet.cell(row=row, column=1, value=label).font = self.header_font
        self._write(sheet, row, 6, summary.actual_total, "currency")
        self._write(sheet, row, 9, summary.budget_total, "currency")
        self._write(sheet, row, 10, summary.variance_dollars, "currency")
        self._write(sheet, row, 11, summary.variance_percent, "percent")
        self._write(sheet, row, 12, summary.avg_pepm, "currency")
        self._write(sheet, row, 13, summary.member_months, "number")

    def add_high_claimants(self, results: Sequence[HighClaimantResult],
                           summary: HighClaimantSummary) -> Worksheet:
        sheet = self._new_sheet(HCC_SHEET, "High-Cost Claimants")
        self._write_header_row(sheet, 3, [header for header, _, _ in _HCC_COLUMNS] + ["Status"])

        row = 4
        for claimant in results:
            for col, (_, attr, fmt) in enumerate(_HCC_COLUMNS, start=1):
                self._write(sheet, row, col, getattr(claimant, attr), fmt)
            self._write(sheet, row, len(_HCC_COLUMNS) + 1, claimant.status.value)
            row += 1

        row += 1
        totals = [
            ("Claimants", summary.count, "number"),
            ("Total Paid", summary.total_paid, "currency"),
            ("Employer Share", summary.employer_share, "currency"),
            ("Stop Loss Share", summary.stop_loss_share, "currency"),
            ("Average Paid", summary.average_paid, "currency"),
        ]
        for label, value, fmt in totals:
            sheet.cell(row=row, column=1, value=label).font = self.header_font
            self._write(sheet, row, 2, value, fmt)
            row += 1

        return sheet

    def add_executive_summary(self, summary: ExecutiveSummary) -> Worksheet:
        sheet = self._new_sheet(EXECUTIVE_SHEET, "Executive Summary")
        sheet.column_dimensions['A'].width = 28
        sheet.column_dimensions['B'].width = 18
        ytd = summary.ytd

        sheet['A3'] = "YEAR TO DATE"
        sheet['A3'].font = self.header_font
        kpis = [
            ("Budgeted Premium", ytd.budgeted_premium, "currency"),
            ("Total Paid", ytd.total_paid, "currency"),
            ("Net Paid", ytd.net_paid, "currency"),
            ("Total Cost", ytd.total_cost, "currency"),
            ("Surplus / (Deficit)", ytd.surplus, "currency"),
            ("% of Budget", ytd.percent_of_budget, "percent"),
            ("Budget Status", ytd.fuel_gauge_status.value, "text"),
            ("PEPM", ytd.pepm, "currency"),
        ]
        row = 4
        for label, value, fmt in kpis:
            self._write(sheet, row, 1, label)
            self._write(sheet, row, 2, value, fmt)
            row += 1

        row += 1
        self._write_header_row(sheet, row, ["Plan", "Total Cost", "% of Total"])
        row += 1
        for entry in summary.plan_mix:
            self._write(sheet, row, 1, entry.plan_name)
            self._write(sheet, row, 2, entry.amount, "currency")
            self._write(sheet, row, 3, entry.percentage, "percent")
            row += 1

        row += 1
        self._write_header_row(sheet, row, ["Category", "Paid", "% of Paid"])
        row += 1
        split = summary.med_rx_split
        for label, amount, pct in (("Medical", split.medical_amount, split.medical_percent),
                                   ("Pharmacy", split.rx_amount, split.rx_percent)):
            self._write(sheet, row, 1, label)
            self._write(sheet, row, 2, amount, "currency")
            self._write(sheet, row, 3, pct, "percent")
            row += 1

        row += 1
        self._write_header_row(sheet, row, ["Claimant Bucket", "Total Paid", "Claimants"])
        row += 1
        for bucket in summary.claimant_buckets:
            self._write(sheet, row, 1, bucket.name)
            self._write(sheet, row, 2, bucket.value, "currency")
            self._write(sheet, row, 3, bucket.count, "number")
            row += 1

        return sheet

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if not self.workbook.sheetnames:
            self.workbook.create_sheet(EXECUTIVE_SHEET)
        self.workbook.save(path)
        logger.info(f"Saved report workbook: {path} ({len(self.workbook.sheetnames)} sheets)")
        return path


def export_report_workbook(
    path: Union[str, Path],
    ce_summary: Optional[CESummaryResult] = None,
    budget: Optional[BudgetCalculationResult] = None,
    high_claimants: Optional[List[HighClaimantResult]] = None,
    high_claimant_summary: Optional[HighClaimantSummary] = None,
    executive: Optional[ExecutiveSummary] = None,
    client_name: str = "",
    period_label: str = "",
) -> Path:
    """
    Write whichever report sections are supplied to one workbook.

    Returns:
        Path of the saved workbook
    """
    builder = ReportWorkbookBuilder(client_name)

    if executive is not None:
        builder.add_executive_summary(executive)
    if ce_summary is not None:
        builder.add_ce_summary(ce_summary, period_label)
    if budget is not None:
        builder.add_budget_variance(budget)
    if high_claimants is not None:
        builder.add_high_claimants(high_claimants,
                                   high_claimant_summary or calculate_high_claimant_summary(high_claimants))

    return builder.save(path)
