"""
benefits_reporting/monthly_columns.py - Monthly Column Engine (A-N)

Derives the calculated columns of the monthly plan statistics sheet:
- E = C + D          (Total Paid)
- H = E + F + G      (Net Paid; F and G are credits, typically negative)
- K = H + I + J      (Total Cost)
- M = L - K          (Surplus / Deficit)
- N = K / L x 100    (% of Budget)

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass
from typing import List, Sequence

from .rounding import round_currency


@dataclass(frozen=True)
class MonthlyPlanData:
    """One plan's statistics for one calendar month."""
    total_subscribers: float = 0.0
    medical_paid: float = 0.0            # Column C
    rx_paid: float = 0.0                 # Column D
    spec_stop_loss_reimb: float = 0.0    # Column F (credit)
    est_rx_rebates: float = 0.0          # Column G (credit)
    admin_fees: float = 0.0              # Column I
    stop_loss_fees: float = 0.0          # Column J
    budgeted_premium: float = 0.0        # Column L


@dataclass(frozen=True)
class MonthlyColumnsResult:
    """Calculated columns, rounded to cents."""
    total_paid: float          # E
    net_paid: float            # H
    total_cost: float          # K
    surplus: float             # M
    percent_of_budget: float   # N


def calculate_monthly_columns(data: MonthlyPlanData) -> MonthlyColumnsResult:
    """
    Calculate columns E, H, K, M and N for one plan-month.

    Percent of budget is 0 when the budgeted premium is not positive.
    """
    total_paid = data.medical_paid + data.rx_paid
    net_paid = total_paid + data.spec_stop_loss_reimb + data.est_rx_rebates
    total_cost = net_paid + data.admin_fees + data.stop_loss_fees
    surplus = data.budgeted_premium - total_cost
    percent_of_budget = (
        (total_cost / data.budgeted_premium) * 100 if data.budgeted_premium > 0 else 0.0
    )

    return MonthlyColumnsResult(
        total_paid=round_currency(total_paid),
        net_paid=round_currency(net_paid),
        total_cost=round_currency(total_cost),
        surplus=round_currency(surplus),
        percent_of_budget=round_currency(percent_of_budget),
    )


def calculate_monthly_columns_batch(data: Sequence[MonthlyPlanData]) -> List[MonthlyColumnsResult]:
    """Calculate columns for several months, preserving order."""
    return [calculate_monthly_columns(month) for month in data]
