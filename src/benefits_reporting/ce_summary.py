"""
benefits_reporting/ce_summary.py - Claims & Expenses (C&E) Statement Engine

Assembles the 28-item Claims & Expenses statement, grouped under nine
section headers:

    MEDICAL CLAIMS            #1-7
    PHARMACY                  #8-9
    STOP LOSS                 #10-11
    ADMINISTRATIVE FEES       #12-14
    TOTALS                    #15-16
    ENROLLMENT                #17-18
    PER EMPLOYEE PER MONTH    #19-21
    BUDGET                    #22-24
    VARIANCE (ACTUAL - BUDGET) #25-28

Item numbers, names and order are consumed by the presentation layer and
must not change. Header rows carry item number 0.

Monthly C&E (#15) = #7 + #8 + #9 + #10 + #11 + #14

Totals policy:
- Medical subtotal (#4) and total (#7) are always recomputed from their parts.
- Total admin fees (#14) and total budget (#24) are caller-authoritative;
  a disagreement with their parts is logged, never corrected.

Cumulative figures are produced by running the same calculation over an
input that the caller has already aggregated (see aggregate_ce_summary),
so ratios such as PEPM and variance % are never summed.

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass, asdict, fields
from enum import Enum
from functools import reduce
import logging
from typing import List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

CONSISTENCY_TOLERANCE = 0.01


class RowType(Enum):
    HEADER = "HEADER"
    DATA = "DATA"
    SUBTOTAL = "SUBTOTAL"
    TOTAL = "TOTAL"


class ColorCode(Enum):
    """Row highlight. Variance polarity is favorable/unfavorable, not sign."""
    ADJUSTMENT = "adjustment"
    TOTAL = "total"
    VARIANCE_POSITIVE = "variance-positive"   # under budget (favorable)
    VARIANCE_NEGATIVE = "variance-negative"   # at or over budget (unfavorable)


class DisplayFormat(Enum):
    CURRENCY = "currency"
    NUMBER = "number"
    PERCENT = "percent"


@dataclass(frozen=True)
class CESummaryInput:
    """
    One month's (or one aggregated period's) statement inputs.

    medical_subtotal and medical_total are accepted for symmetry with the
    source data but ignored by the calculation.
    """
    # Medical (#1-7)
    domestic_claims: float = 0.0
    non_domestic_claims: float = 0.0
    non_hospital_medical: float = 0.0
    medical_subtotal: float = 0.0
    medical_adjustment: float = 0.0
    medical_total: float = 0.0

    # Pharmacy (#8-9)
    rx_claims: float = 0.0
    rx_rebates: float = 0.0

    # Stop loss (#10-11)
    stop_loss_premiums: float = 0.0
    stop_loss_reimbursements: float = 0.0

    # Admin (#12-14)
    aso_fees: float = 0.0
    stop_loss_coord_fees: float = 0.0
    admin_total: float = 0.0

    # Enrollment (#17-18), point-in-time
    employee_count: float = 0.0
    member_count: float = 0.0

    # Budget (#22-24)
    budgeted_claims: float = 0.0
    budgeted_fixed: float = 0.0
    total_budget: float = 0.0


@dataclass(frozen=True)
class CESummaryRow:
    item_number: int
    item_name: str
    monthly_value: float
    row_type: RowType
    cumulative_value: Optional[float] = None
    formula: Optional[str] = None
    is_user_editable: bool = False
    color_code: Optional[ColorCode] = None
    display_format: Optional[DisplayFormat] = None


@dataclass(frozen=True)
class CESummaryKpis:
    monthly_ce: float         # #15
    pepm_actual: float        # #21
    pepm_budget: float        # #19
    budget_variance: float    # #27
    variance_percent: float   # #28
    cumulative_ce: float      # #15, cumulative


@dataclass(frozen=True)
class CESummaryResult:
    rows: List[CESummaryRow]
    kpis: CESummaryKpis

    def row_by_item(self, item_number: int) -> CESummaryRow:
        """Return the numbered row (1-28)."""
        if item_number < 1:
            raise ValueError("Header rows have no item number")
        for row in self.rows:
            if row.item_number == item_number:
                return row
        raise KeyError(item_number)

    def to_dataframe(self) -> pd.DataFrame:
        records = []
        for row in self.rows:
            record = asdict(row)
            record['row_type'] = row.row_type.value
            record['color_code'] = row.color_code.value if row.color_code else None
            record['display_format'] = row.display_format.value if row.display_format else None
            records.append(record)
        return pd.DataFrame(records, columns=[f.name for f in fields(CESummaryRow)])


# =============================================================================
# ROW BUILDERS
# =============================================================================

def _header(name: str) -> CESummaryRow:
    return CESummaryRow(item_number=0, item_name=name, monthly_value=0.0,
                        row_type=RowType.HEADER)


def _reserved(item_number: int) -> CESummaryRow:
    return CESummaryRow(item_number=item_number, item_name='Reserved', monthly_value=0.0,
                        cumulative_value=0.0, row_type=RowType.DATA,
                        display_format=DisplayFormat.CURRENCY)


def _variance_color(value: float) -> ColorCode:
    return ColorCode.VARIANCE_NEGATIVE if value >= 0 else ColorCode.VARIANCE_POSITIVE


def _check_caller_totals(data: CESummaryInput) -> None:
    admin_parts = data.aso_fees + data.stop_loss_coord_fees
    if abs(data.admin_total - admin_parts) > CONSISTENCY_TOLERANCE:
        logger.warning(f"Total admin fees {data.admin_total:,.2f} differ from "
                       f"ASO + coordination fees {admin_parts:,.2f}; using supplied total")

    budget_parts = data.budgeted_claims + data.budgeted_fixed
    if abs(data.total_budget - budget_parts) > CONSISTENCY_TOLERANCE:
        logger.warning(f"Total budget {data.total_budget:,.2f} differs from "
                       f"budgeted claims + fixed costs {budget_parts:,.2f}; using supplied total")


# =============================================================================
# STATEMENT
# =============================================================================

def calculate_ce_summary(data: CESummaryInput,
                         cumulative_input: Optional[CESummaryInput] = None) -> CESummaryResult:
    """
    Build the C&E statement for one month.

    Args:
        data: The month's inputs
        cumulative_input: Pre-aggregated inputs for the cumulative column;
            when omitted, cumulative values are None except on Reserved rows
            (cumulative C&E KPI falls back to the monthly figure)

    Returns:
        CESummaryResult with the fixed row sequence and headline KPIs
    """
    _check_caller_totals(data)
    cum = cumulative_input

    medical_subtotal = data.domestic_claims + data.non_domestic_claims + data.non_hospital_medical
    medical_total = medical_subtotal + 0.0 + data.medical_adjustment  # #5 is reserved

    monthly_ce = (medical_total + data.rx_claims + data.rx_rebates +
                  data.stop_loss_premiums + data.stop_loss_reimbursements +
                  data.admin_total)

    pepm_actual = monthly_ce / data.member_count if data.member_count > 0 else 0.0
    pepm_budget = data.total_budget / data.member_count if data.member_count > 0 else 0.0

    variance_dollars = monthly_ce - data.total_budget
    variance_percent = (variance_dollars / data.total_budget) * 100 if data.total_budget != 0 else 0.0

    cumulative_ce = calculate_ce_summary(cum).kpis.monthly_ce if cum is not None else monthly_ce

    def cumulative(field_name: str) -> Optional[float]:
        return getattr(cum, field_name) if cum is not None else None

    currency = DisplayFormat.CURRENCY

    rows = [
        _header('MEDICAL CLAIMS'),
        CESummaryRow(1, 'Domestic Facility (IP/OP)', data.domestic_claims, RowType.DATA,
                     cumulative_value=cumulative('domestic_claims'), display_format=currency),
        CESummaryRow(2, 'Non-Domestic (IP/OP)', data.non_domestic_claims, RowType.DATA,
                     cumulative_value=cumulative('non_domestic_claims'), display_format=currency),
        CESummaryRow(3, 'Non-Hospital Medical', data.non_hospital_medical, RowType.DATA,
                     cumulative_value=cumulative('non_hospital_medical'), display_format=currency),
        CESummaryRow(4, 'Medical Claims Subtotal', medical_subtotal, RowType.SUBTOTAL,
                     cumulative_value=(cum.domestic_claims + cum.non_domestic_claims +
                                       cum.non_hospital_medical) if cum is not None else None,
                     formula='#1 + #2 + #3', color_code=ColorCode.TOTAL,
                     display_format=currency),
        _reserved(5),
        CESummaryRow(6, 'Adjustment', data.medical_adjustment, RowType.DATA,
                     cumulative_value=cumulative('medical_adjustment'),
                     is_user_editable=True, color_code=ColorCode.ADJUSTMENT,
                     display_format=currency),
        CESummaryRow(7, 'Total Medical', medical_total, RowType.SUBTOTAL,
                     cumulative_value=(cum.domestic_claims + cum.non_domestic_claims +
                                       cum.non_hospital_medical +
                                       cum.medical_adjustment) if cum is not None else None,
                     formula='#4 + #5 + #6', color_code=ColorCode.TOTAL,
                     display_format=currency),

        _header('PHARMACY'),
        CESummaryRow(8, 'Rx Claims', data.rx_claims, RowType.DATA,
                     cumulative_value=cumulative('rx_claims'), display_format=currency),
        CESummaryRow(9, 'Rx Rebates', data.rx_rebates, RowType.DATA,
                     cumulative_value=cumulative('rx_rebates'),
                     is_user_editable=True, color_code=ColorCode.ADJUSTMENT,
                     display_format=currency),

        _header('STOP LOSS'),
        CESummaryRow(10, 'Stop Loss Premiums', data.stop_loss_premiums, RowType.DATA,
                     cumulative_value=cumulative('stop_loss_premiums'), display_format=currency),
        CESummaryRow(11, 'Stop Loss Reimbursements', data.stop_loss_reimbursements, RowType.DATA,
                     cumulative_value=cumulative('stop_loss_reimbursements'),
                     is_user_editable=True, color_code=ColorCode.ADJUSTMENT,
                     display_format=currency),

        _header('ADMINISTRATIVE FEES'),
        CESummaryRow(12, 'ASO Fees', data.aso_fees, RowType.DATA,
                     cumulative_value=cumulative('aso_fees'), display_format=currency),
        CESummaryRow(13, 'Stop Loss Coordination', data.stop_loss_coord_fees, RowType.DATA,
                     cumulative_value=cumulative('stop_loss_coord_fees'), display_format=currency),
        CESummaryRow(14, 'Total Admin Fees', data.admin_total, RowType.SUBTOTAL,
                     cumulative_value=cumulative('admin_total'),
                     formula='#12 + #13', color_code=ColorCode.TOTAL,
                     display_format=currency),

        _header('TOTALS'),
        CESummaryRow(15, 'Monthly C&E', monthly_ce, RowType.TOTAL,
                     cumulative_value=cumulative_ce,
                     formula='#7 + #8 + #9 + #10 + #11 + #14', color_code=ColorCode.TOTAL,
                     display_format=currency),
        _reserved(16),

        _header('ENROLLMENT'),
        CESummaryRow(17, 'Employee Count', data.employee_count, RowType.DATA,
                     cumulative_value=cumulative('employee_count'),
                     display_format=DisplayFormat.NUMBER),
        CESummaryRow(18, 'Member Count', data.member_count, RowType.DATA,
                     cumulative_value=cumulative('member_count'),
                     display_format=DisplayFormat.NUMBER),

        _header('PER EMPLOYEE PER MONTH'),
        CESummaryRow(19, 'PEPM Budget', pepm_budget, RowType.DATA,
                     cumulative_value=(cum.total_budget / cum.member_count)
                     if cum is not None and cum.member_count > 0 else None,
                     display_format=currency),
        _reserved(20),
        CESummaryRow(21, 'PEPM Actual', pepm_actual, RowType.DATA,
                     cumulative_value=(cumulative_ce / cum.member_count)
                     if cum is not None and cum.member_count > 0 else None,
                     color_code=ColorCode.TOTAL, display_format=currency),

        _header('BUDGET'),
        CESummaryRow(22, 'Budgeted Claims', data.budgeted_claims, RowType.DATA,
                     cumulative_value=cumulative('budgeted_claims'), display_format=currency),
        CESummaryRow(23, 'Budgeted Fixed Costs', data.budgeted_fixed, RowType.DATA,
                     cumulative_value=cumulative('budgeted_fixed'), display_format=currency),
        CESummaryRow(24, 'Total Budget', data.total_budget, RowType.SUBTOTAL,
                     cumulative_value=cumulative('total_budget'),
                     formula='#22 + #23', color_code=ColorCode.TOTAL,
                     display_format=currency),

        _header('VARIANCE (ACTUAL - BUDGET)'),
        _reserved(25),
        _reserved(26),
        CESummaryRow(27, 'Variance $', variance_dollars, RowType.TOTAL,
                     cumulative_value=(cumulative_ce - cum.total_budget) if cum is not None else None,
                     formula='#15 - #24', color_code=_variance_color(variance_dollars),
                     display_format=currency),
        CESummaryRow(28, 'Variance %', variance_percent, RowType.TOTAL,
                     cumulative_value=((cumulative_ce - cum.total_budget) / cum.total_budget) * 100
                     if cum is not None and cum.total_budget != 0 else None,
                     formula='#27 / #24 × 100', color_code=_variance_color(variance_percent),
                     display_format=DisplayFormat.PERCENT),
    ]

    return CESummaryResult(
        rows=rows,
        kpis=CESummaryKpis(
            monthly_ce=monthly_ce,
            pepm_actual=pepm_actual,
            pepm_budget=pepm_budget,
            budget_variance=variance_dollars,
            variance_percent=variance_percent,
            cumulative_ce=cumulative_ce,
        ),
    )


# =============================================================================
# AGGREGATION
# =============================================================================

POINT_IN_TIME_FIELDS = ('employee_count', 'member_count')


def aggregate_ce_summary(inputs: Sequence[CESummaryInput]) -> CESummaryInput:
    """
    Combine several months into one cumulative input.

    Every field is summed except the enrollment counts, which take the
    latest (last) month's value.

    Raises:
        ValueError: If inputs is empty
    """
    if len(inputs) == 0:
        logger.error("C&E aggregation requested over zero months")
        raise ValueError("Cannot aggregate empty inputs array")

    def combine(acc: CESummaryInput, curr: CESummaryInput) -> CESummaryInput:
        return CESummaryInput(**{
            f.name: (getattr(curr, f.name) if f.name in POINT_IN_TIME_FIELDS
                     else getattr(acc, f.name) + getattr(curr, f.name))
            for f in fields(CESummaryInput)
        })

    return reduce(combine, inputs)
