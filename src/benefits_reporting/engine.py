"""
benefits_reporting/engine.py - Reporting Engine Facade

Binds the calculation modules to one client's configuration:
- Monthly columns and budget variance
- C&E statement with year-to-date cumulative figures
- High-cost claimant allocation
- Executive summary rollup
- Conversion of validated upload rows into engine records

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .budget_variance import (
    BudgetCalculationResult,
    FeeWindow,
    MonthlyActuals,
    MonthlyConfig,
    calculate_budget_variance,
)
from .ce_summary import CESummaryInput, CESummaryResult, aggregate_ce_summary, calculate_ce_summary
from .config import EngineConfig
from .executive import (
    ClaimantBucket,
    ExecutiveYtdTotals,
    MedRxSplit,
    PlanMixEntry,
    calculate_claimant_buckets,
    calculate_executive_ytd,
    calculate_med_vs_rx_split,
    calculate_plan_mix,
)
from .high_claimants import (
    HighClaimantInput,
    HighClaimantResult,
    HighClaimantSummary,
    calculate_high_claimant_summary,
    filter_high_claimants,
)
from .ingestion import ParsedRow, is_all_plans_name
from .monthly_columns import (
    MonthlyColumnsResult,
    MonthlyPlanData,
    calculate_monthly_columns,
    calculate_monthly_columns_batch,
)

logger = logging.getLogger(__name__)


# Upload column -> MonthlyPlanData field
MONTHLY_FIELD_MAP = {
    'totalSubscribers': 'total_subscribers',
    'medicalPaid': 'medical_paid',
    'rxPaid': 'rx_paid',
    'specStopLossReimb': 'spec_stop_loss_reimb',
    'estRxRebates': 'est_rx_rebates',
    'adminFees': 'admin_fees',
    'stopLossFees': 'stop_loss_fees',
    'budgetedPremium': 'budgeted_premium',
}

ACTUALS_FIELDS = (
    'domestic_facility_ip_op',
    'non_domestic_ip_op',
    'non_hospital_medical',
    'rx_claims',
    'ee_count_active_cobra',
    'member_count',
)


@dataclass(frozen=True)
class ExecutiveSummary:
    ytd: ExecutiveYtdTotals
    plan_mix: List[PlanMixEntry]
    med_rx_split: MedRxSplit
    claimant_buckets: List[ClaimantBucket]
    high_claimants: HighClaimantSummary


def _parse_month(val) -> Optional[date]:
    if val is None or val == '':
        return None
    parsed = pd.to_datetime(val, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def _amount(row: ParsedRow, column: str) -> float:
    value = row.get(column)
    return float(value) if value not in (None, '') else 0.0


class ReportingEngine:
    """
    Stateless calculation facade configured for one client.

    Every method is a pure function of its arguments and the configuration;
    the engine holds no per-call state.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        logger.info(f"Reporting engine ready for '{self.config.client_name or 'unnamed client'}' "
                    f"(ISL ${self.config.isl_threshold:,.0f})")

    # -------------------------------------------------------------------------
    # Calculations
    # -------------------------------------------------------------------------

    def monthly_columns(self, data: Sequence[MonthlyPlanData]) -> List[MonthlyColumnsResult]:
        return calculate_monthly_columns_batch(data)

    def budget_variance(self, actuals: Sequence[MonthlyActuals],
                        configs: Sequence[MonthlyConfig],
                        fee_windows: Sequence[FeeWindow]) -> BudgetCalculationResult:
        return calculate_budget_variance(actuals, configs, fee_windows, self.config.budget_config())

    def ce_statement(self, month_inputs: Sequence[CESummaryInput],
                     month_index: int = -1) -> CESummaryResult:
        """
        C&E statement for one month of a plan year.

        Cumulative figures cover months 0 through month_index inclusive.

        Args:
            month_inputs: Monthly inputs in chronological order
            month_index: Month to report; negative values count from the end

        Raises:
            ValueError: If month_inputs is empty or month_index is out of range
        """
        count = len(month_inputs)
        index = month_index + count if month_index < 0 else month_index
        if not 0 <= index < count:
            logger.error(f"C&E month index {month_index} outside {count} months")
            raise ValueError(f"Month index {month_index} out of range for {count} months")

        cumulative = aggregate_ce_summary(month_inputs[:index + 1])
        return calculate_ce_summary(month_inputs[index], cumulative)

    def high_claimants(self, claimants: Sequence[HighClaimantInput]
                       ) -> Tuple[List[HighClaimantResult], HighClaimantSummary]:
        results = filter_high_claimants(claimants, self.config.isl_threshold,
                                        self.config.min_percent_threshold)
        return results, calculate_high_claimant_summary(results)

    def executive_summary(self, monthly_data: Sequence[MonthlyPlanData],
                          plan_costs: Optional[Dict[str, float]] = None,
                          claimants: Sequence[HighClaimantInput] = ()) -> ExecutiveSummary:
        ytd = calculate_executive_ytd(monthly_data)
        _, hcc_summary = self.high_claimants(claimants)

        return ExecutiveSummary(
            ytd=ytd,
            plan_mix=calculate_plan_mix(plan_costs or {}),
            med_rx_split=calculate_med_vs_rx_split(ytd.medical_paid, ytd.rx_paid),
            claimant_buckets=calculate_claimant_buckets(claimants),
            high_claimants=hcc_summary,
        )

    # -------------------------------------------------------------------------
    # Upload rows -> engine records
    # -------------------------------------------------------------------------

    def _is_aggregate_plan(self, name: str) -> bool:
        return (name.strip().lower() == self.config.all_plans_name.lower()
                or is_all_plans_name(name))

    def rows_to_monthly_plan_data(self, rows: Sequence[ParsedRow],
                                  plan: Optional[str] = None) -> List[MonthlyPlanData]:
        """
        Monthly statistics for one plan, oldest month first.

        Args:
            rows: Validated rows from parse_monthly_csv
            plan: Plan name (case-insensitive); defaults to the aggregate row,
                matched the same way reconciliation finds it
        """
        if plan:
            wanted = plan.strip().lower()
            selected = [row for row in rows if str(row.get('plan') or '').strip().lower() == wanted]
        else:
            selected = [row for row in rows if self._is_aggregate_plan(str(row.get('plan') or ''))]
        selected.sort(key=lambda row: _parse_month(row.get('month')) or date.min)

        return [
            MonthlyPlanData(**{name: _amount(row, column) for column, name in MONTHLY_FIELD_MAP.items()})
            for row in selected
        ]

    def plan_costs(self, rows: Sequence[ParsedRow]) -> Dict[str, float]:
        """Total cost (column K) per individual plan, excluding the aggregate row."""
        costs: Dict[str, float] = {}
        for row in rows:
            name = str(row.get('plan') or '').strip()
            if not name or self._is_aggregate_plan(name):
                continue
            data = MonthlyPlanData(**{attr: _amount(row, column)
                                      for column, attr in MONTHLY_FIELD_MAP.items()})
            costs[name] = costs.get(name, 0.0) + calculate_monthly_columns(data).total_cost
        return costs

    def rows_to_claimants(self, rows: Sequence[ParsedRow]) -> List[HighClaimantInput]:
        return [
            HighClaimantInput(
                claimant_key=str(row.get('claimantKey') or ''),
                plan_id=str(row.get('plan') or ''),
                med_paid=_amount(row, 'medPaid'),
                rx_paid=_amount(row, 'rxPaid'),
                total_paid=_amount(row, 'totalPaid'),
            )
            for row in rows
        ]

    def rows_to_actuals(self, rows: Sequence[ParsedRow]) -> List[MonthlyActuals]:
        """Budget actuals rows (parse_budget_csv) as MonthlyActuals."""
        actuals = []
        for row in rows:
            service_month = _parse_month(row.get('service_month'))
            if service_month is None:
                logger.error(f"Budget actuals row missing service_month: {row}")
                raise ValueError(f"Budget row without a service month: {row}")
            actuals.append(MonthlyActuals(
                service_month=service_month.replace(day=1),
                **{name: _amount(row, name) for name in ACTUALS_FIELDS}
            ))
        return actuals


def create_engine(config: Optional[Dict] = None) -> ReportingEngine:
    return ReportingEngine(EngineConfig.from_dict(config or {}))
