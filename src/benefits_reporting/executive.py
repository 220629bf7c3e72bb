"""
benefits_reporting/executive.py - Executive Summary Aggregator

Year-to-date rollups for the executive dashboard:
1. YTD totals with the budget fuel gauge (GREEN / YELLOW / RED)
2. Plan mix as a share of total cost
3. Medical vs pharmacy split
4. Claimant cost buckets ($200K+, $100-200K, Other)

YTD totals sum the raw monthly inputs first and then apply the monthly
column formulas to the sums. Rounding happens once, on the derived values.

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import List, Mapping, Sequence

from .monthly_columns import MonthlyPlanData
from .pepm import calculate_pepm
from .rounding import round_currency

logger = logging.getLogger(__name__)


# Fuel gauge bounds on % of budget; 105 itself is YELLOW
GAUGE_GREEN_BELOW = 95.0
GAUGE_YELLOW_THROUGH = 105.0

# Claimant bucket floors
BUCKET_TOP_FLOOR = 200000.0
BUCKET_MID_FLOOR = 100000.0

BUCKET_COLORS = {
    '$200K+': '#ef4444',
    '$100-200K': '#eab308',
    'Other': '#64748b',
}


class FuelGaugeStatus(Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


@dataclass(frozen=True)
class ExecutiveYtdTotals:
    """Summed raw inputs plus derived (rounded) YTD figures."""
    budgeted_premium: float
    medical_paid: float
    rx_paid: float
    spec_stop_loss_reimb: float
    est_rx_rebates: float
    admin_fees: float
    stop_loss_fees: float
    total_paid: float
    net_paid: float
    total_cost: float
    surplus: float
    percent_of_budget: float
    fuel_gauge_status: FuelGaugeStatus
    months: int = 0
    subscriber_months: float = 0.0
    pepm: float = 0.0


@dataclass(frozen=True)
class PlanMixEntry:
    plan_name: str
    amount: float
    percentage: float


@dataclass(frozen=True)
class MedRxSplit:
    medical_amount: float
    rx_amount: float
    medical_percent: float
    rx_percent: float


@dataclass(frozen=True)
class ClaimantBucket:
    name: str
    value: float
    count: int
    color: str


def calculate_fuel_gauge_status(percent_of_budget: float) -> FuelGaugeStatus:
    """GREEN below 95%, YELLOW from 95% through 105%, RED above 105%."""
    if percent_of_budget < GAUGE_GREEN_BELOW:
        return FuelGaugeStatus.GREEN
    elif percent_of_budget <= GAUGE_YELLOW_THROUGH:
        return FuelGaugeStatus.YELLOW
    return FuelGaugeStatus.RED


def calculate_executive_ytd(monthly_data: Sequence[MonthlyPlanData]) -> ExecutiveYtdTotals:
    """
    Roll up a year (or any run) of monthly plan statistics.

    The fuel gauge is classified on the unrounded percent of budget, so a
    true 94.996% stays GREEN even though it displays as 95.00.

    Args:
        monthly_data: One MonthlyPlanData per month

    Returns:
        ExecutiveYtdTotals; all zeros with a GREEN gauge for no months
    """
    budgeted_premium = sum(m.budgeted_premium for m in monthly_data)
    medical_paid = sum(m.medical_paid for m in monthly_data)
    rx_paid = sum(m.rx_paid for m in monthly_data)
    spec_stop_loss_reimb = sum(m.spec_stop_loss_reimb for m in monthly_data)
    est_rx_rebates = sum(m.est_rx_rebates for m in monthly_data)
    admin_fees = sum(m.admin_fees for m in monthly_data)
    stop_loss_fees = sum(m.stop_loss_fees for m in monthly_data)
    subscriber_months = sum(m.total_subscribers for m in monthly_data)

    total_paid = medical_paid + rx_paid
    net_paid = total_paid + spec_stop_loss_reimb + est_rx_rebates
    total_cost = net_paid + admin_fees + stop_loss_fees
    surplus = budgeted_premium - total_cost
    percent_of_budget = (total_cost / budgeted_premium) * 100 if budgeted_premium > 0 else 0.0

    status = calculate_fuel_gauge_status(percent_of_budget)
    logger.info(f"YTD over {len(monthly_data)} months: total cost ${total_cost:,.2f}, "
                f"{percent_of_budget:.2f}% of budget ({status.value})")

    return ExecutiveYtdTotals(
        budgeted_premium=budgeted_premium,
        medical_paid=medical_paid,
        rx_paid=rx_paid,
        spec_stop_loss_reimb=spec_stop_loss_reimb,
        est_rx_rebates=est_rx_rebates,
        admin_fees=admin_fees,
        stop_loss_fees=stop_loss_fees,
        total_paid=round_currency(total_paid),
        net_paid=round_currency(net_paid),
        total_cost=round_currency(total_cost),
        surplus=round_currency(surplus),
        percent_of_budget=round_currency(percent_of_budget),
        fuel_gauge_status=status,
        months=len(monthly_data),
        subscriber_months=subscriber_months,
        pepm=round_currency(calculate_pepm(total_cost, subscriber_months, len(monthly_data))),
    )


def calculate_plan_mix(plan_costs: Mapping[str, float]) -> List[PlanMixEntry]:
    """Each plan's share of total cost, in the mapping's order."""
    total = sum(plan_costs.values())
    if total == 0:
        return [PlanMixEntry(plan_name=name, amount=0.0, percentage=0.0) for name in plan_costs]

    return [
        PlanMixEntry(
            plan_name=name,
            amount=cost,
            percentage=round_currency((cost / total) * 100),
        )
        for name, cost in plan_costs.items()
    ]


def calculate_med_vs_rx_split(medical_paid: float, rx_paid: float) -> MedRxSplit:
    total = medical_paid + rx_paid
    if total == 0:
        return MedRxSplit(medical_amount=0.0, rx_amount=0.0, medical_percent=0.0, rx_percent=0.0)

    return MedRxSplit(
        medical_amount=medical_paid,
        rx_amount=rx_paid,
        medical_percent=round_currency((medical_paid / total) * 100),
        rx_percent=round_currency((rx_paid / total) * 100),
    )


def calculate_claimant_buckets(claimants: Sequence) -> List[ClaimantBucket]:
    """
    Bucket claimants by total paid.

    Any object with a ``total_paid`` attribute is accepted (HighClaimantInput
    or HighClaimantResult). Buckets are always returned, in display order,
    even when empty.
    """
    totals = {name: 0.0 for name in BUCKET_COLORS}
    counts = {name: 0 for name in BUCKET_COLORS}

    for claimant in claimants:
        if claimant.total_paid >= BUCKET_TOP_FLOOR:
            name = '$200K+'
        elif claimant.total_paid >= BUCKET_MID_FLOOR:
            name = '$100-200K'
        else:
            name = 'Other'
        totals[name] += claimant.total_paid
        counts[name] += 1

    return [
        ClaimantBucket(name=name, value=round_currency(totals[name]),
                       count=counts[name], color=color)
        for name, color in BUCKET_COLORS.items()
    ]
