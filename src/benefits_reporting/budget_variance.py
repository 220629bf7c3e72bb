"""
benefits_reporting/budget_variance.py - Budget vs Actuals Variance Engine

Compares actual claims and expenses against budget, month by month, with:
1. Fee windows of several unit types (annual, monthly, PEPM, PEPEM,
   percent of claims, flat) prorated by effective days within each month
2. Budget fixed costs priced against a synthetic claims split
3. Monthly, year-to-date and trailing-three-month variance

Every actual month must have a budget configuration for the same service
month; a missing configuration aborts the calculation.

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass, asdict, replace
from datetime import date
from enum import Enum
import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from .rounding import (
    RoundingMode,
    get_days_in_month,
    get_effective_days,
    get_month_end,
    round_number,
    to_date,
)

logger = logging.getLogger(__name__)


# Budgets are set in aggregate; PERCENT_OF_CLAIMS fees need a category split.
BUDGET_CLAIM_SPLIT = {
    'domestic_facility_ip_op': 0.4,
    'non_domestic_ip_op': 0.1,
    'non_hospital_medical': 0.3,
    'rx_claims': 0.2,
}

VARIANCE_PERCENT_PRECISION = 1


class FeeUnitType(Enum):
    """How a fee rate converts to a monthly dollar amount."""
    ANNUAL = "ANNUAL"
    MONTHLY = "MONTHLY"
    PEPM = "PEPM"                            # per member per month
    PEPEM = "PEPEM"                          # per enrolled employee per month
    PERCENT_OF_CLAIMS = "PERCENT_OF_CLAIMS"
    FLAT = "FLAT"


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================

class FeeWindow(BaseModel):
    """A fee rate in force over an inclusive date range."""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    category: str = ""
    unit_type: FeeUnitType
    rate: float
    start_date: date
    end_date: date


class BudgetConfig(BaseModel):
    """Rounding applied to every variance output."""
    model_config = ConfigDict(frozen=True)

    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    precision: int = Field(default=2, ge=0, le=10)


# =============================================================================
# MONTHLY RECORDS
# =============================================================================

@dataclass(frozen=True)
class MonthlyActuals:
    """Actual claims decomposition and enrollment for one service month."""
    service_month: date
    domestic_facility_ip_op: float = 0.0
    non_domestic_ip_op: float = 0.0
    non_hospital_medical: float = 0.0
    rx_claims: float = 0.0
    ee_count_active_cobra: float = 0.0
    member_count: float = 0.0

    @property
    def total_claims(self) -> float:
        return (self.domestic_facility_ip_op + self.non_domestic_ip_op +
                self.non_hospital_medical + self.rx_claims)


@dataclass(frozen=True)
class MonthlyConfig:
    """Budget configuration for one service month."""
    service_month: date
    expected_claims: float = 0.0
    stop_loss_reimbursement: float = 0.0
    rx_rebates: float = 0.0


@dataclass(frozen=True)
class MonthlyVariance:
    """Rounded variance line for one month."""
    month: date
    actual_claims: float
    fixed_costs: float
    stop_loss_reimbursement: float
    rx_rebates: float
    actual_total: float
    budget_claims: float
    budget_fixed: float
    budget_total: float
    variance_dollars: float
    variance_percent: float
    pepm: float
    members: float


@dataclass(frozen=True)
class PeriodSummary:
    """Rollup over several months of rounded monthly values."""
    actual_total: float
    budget_total: float
    variance_dollars: float
    variance_percent: float
    avg_pepm: float
    member_months: float = 0.0


@dataclass(frozen=True)
class BudgetCalculationResult:
    months: List[MonthlyVariance]
    ytd: PeriodSummary
    last_three_months: PeriodSummary

    def to_dataframe(self) -> pd.DataFrame:
        """One row per month, columns in MonthlyVariance field order."""
        columns = list(MonthlyVariance.__dataclass_fields__)
        return pd.DataFrame([asdict(m) for m in self.months], columns=columns)


# =============================================================================
# PRORATION
# =============================================================================

def calculate_prorated_fee(fee_window: FeeWindow, month_start: date,
                           month_end: date, actuals: MonthlyActuals) -> float:
    """
    Dollar amount a fee window contributes to one month.

    The window is prorated by effective days over the calendar days of the
    month. FLAT fees are charged in full when the window covers the whole
    month.

    Args:
        fee_window: Fee definition
        month_start: First day counted in the month
        month_end: Last day of the month
        actuals: Enrollment and claims used by per-capita and percent fees

    Returns:
        Unrounded fee amount (0.0 when the window misses the month)
    """
    days_in_month = get_days_in_month(month_start)
    effective_days = get_effective_days(
        fee_window.start_date, fee_window.end_date, month_start, month_end
    )

    if effective_days == 0:
        return 0.0

    proration_factor = effective_days / days_in_month
    unit_type = fee_window.unit_type
    rate = fee_window.rate

    if unit_type is FeeUnitType.ANNUAL:
        return (rate / 12) * proration_factor
    if unit_type is FeeUnitType.MONTHLY:
        return rate * proration_factor
    if unit_type is FeeUnitType.PEPM:
        return rate * actuals.member_count * proration_factor
    if unit_type is FeeUnitType.PEPEM:
        return rate * actuals.ee_count_active_cobra * proration_factor
    if unit_type is FeeUnitType.PERCENT_OF_CLAIMS:
        return (rate / 100) * actuals.total_claims * proration_factor
    if unit_type is FeeUnitType.FLAT:
        return rate if effective_days == days_in_month else rate * proration_factor

    raise ValueError(f"Unsupported fee unit type: {unit_type}")


def _budget_actuals(actual: MonthlyActuals, expected_claims: float) -> MonthlyActuals:
    """Actual enrollment with claims rebuilt from the budgeted total."""
    return replace(
        actual,
        **{name: expected_claims * share for name, share in BUDGET_CLAIM_SPLIT.items()}
    )


# =============================================================================
# VARIANCE
# =============================================================================

def _summarize_period(months: Sequence[MonthlyVariance],
                      budget_config: BudgetConfig) -> PeriodSummary:
    mode = budget_config.rounding_mode
    precision = budget_config.precision

    actual_total = sum(m.actual_total for m in months)
    budget_total = sum(m.budget_total for m in months)
    variance_dollars = actual_total - budget_total
    variance_percent = (variance_dollars / budget_total) * 100 if budget_total != 0 else 0.0
    member_months = sum(m.members for m in months)
    avg_pepm = actual_total / member_months if member_months > 0 else 0.0

    return PeriodSummary(
        actual_total=round_number(actual_total, precision, mode),
        budget_total=round_number(budget_total, precision, mode),
        variance_dollars=round_number(variance_dollars, precision, mode),
        variance_percent=round_number(variance_percent, VARIANCE_PERCENT_PRECISION, mode),
        avg_pepm=round_number(avg_pepm, precision, mode),
        member_months=member_months,
    )


def calculate_budget_variance(
    actuals: Sequence[MonthlyActuals],
    configs: Sequence[MonthlyConfig],
    fee_windows: Sequence[FeeWindow],
    budget_config: Optional[BudgetConfig] = None,
) -> BudgetCalculationResult:
    """
    Calculate monthly, YTD and trailing-three-month budget variance.

    Actual total = claims + prorated fees + stop-loss reimbursement + Rx rebates.
    Budget total = expected claims + fees prorated against the budget split.

    Raises:
        ValueError: If an actual month has no matching MonthlyConfig
    """
    budget_config = budget_config or BudgetConfig()
    mode = budget_config.rounding_mode
    precision = budget_config.precision

    config_by_month: Dict[date, MonthlyConfig] = {}
    for config in configs:
        config_by_month.setdefault(to_date(config.service_month), config)

    sorted_actuals = sorted(actuals, key=lambda a: to_date(a.service_month))
    months: List[MonthlyVariance] = []

    for actual in sorted_actuals:
        month_start = to_date(actual.service_month)
        config = config_by_month.get(month_start)
        if config is None:
            logger.error(f"Budget configuration missing for {month_start.isoformat()}")
            raise ValueError(f"No config found for month {month_start.isoformat()}")

        month_end = get_month_end(month_start)
        actual_claims = actual.total_claims

        fixed_costs = sum(
            calculate_prorated_fee(window, month_start, month_end, actual)
            for window in fee_windows
        )
        actual_total = (actual_claims + fixed_costs +
                        config.stop_loss_reimbursement + config.rx_rebates)

        budget_actuals = _budget_actuals(actual, config.expected_claims)
        budget_fixed = sum(
            calculate_prorated_fee(window, month_start, month_end, budget_actuals)
            for window in fee_windows
        )
        budget_total = config.expected_claims + budget_fixed

        variance_dollars = actual_total - budget_total
        variance_percent = (variance_dollars / budget_total) * 100 if budget_total != 0 else 0.0
        pepm = actual_total / actual.member_count if actual.member_count > 0 else 0.0

        months.append(MonthlyVariance(
            month=actual.service_month,
            actual_claims=round_number(actual_claims, precision, mode),
            fixed_costs=round_number(fixed_costs, precision, mode),
            stop_loss_reimbursement=round_number(config.stop_loss_reimbursement, precision, mode),
            rx_rebates=round_number(config.rx_rebates, precision, mode),
            actual_total=round_number(actual_total, precision, mode),
            budget_claims=round_number(config.expected_claims, precision, mode),
            budget_fixed=round_number(budget_fixed, precision, mode),
            budget_total=round_number(budget_total, precision, mode),
            variance_dollars=round_number(variance_dollars, precision, mode),
            variance_percent=round_number(variance_percent, VARIANCE_PERCENT_PRECISION, mode),
            pepm=round_number(pepm, precision, mode),
            members=actual.member_count,
        ))

    logger.info(f"Budget variance calculated for {len(months)} months "
                f"across {len(fee_windows)} fee windows")

    return BudgetCalculationResult(
        months=months,
        ytd=_summarize_period(months, budget_config),
        last_three_months=_summarize_period(months[-3:], budget_config),
    )
