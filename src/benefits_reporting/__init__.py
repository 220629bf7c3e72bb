"""
Benefits Reporting Engine

Deterministic financial calculations for self-funded health plan reporting:
monthly plan statistics, the 28-item Claims & Expenses statement, budget vs
actual variance with fee proration, PEPM normalization, high-cost claimant
stop-loss allocation, executive summary rollups, and upload validation with
"All Plans" reconciliation.

Author: Actuarial Pipeline Project
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Actuarial Pipeline Project"

from .rounding import (
    RoundingMode,
    round_number,
    round_currency,
    get_days_in_month,
    get_month_end,
    get_effective_days,
)

from .pepm import (
    PepmDataPoint,
    PeriodSplit,
    calculate_pepm,
    compare_periods,
    create_pepm_trend_data,
    split_24_months,
)

from .monthly_columns import (
    MonthlyPlanData,
    MonthlyColumnsResult,
    calculate_monthly_columns,
    calculate_monthly_columns_batch,
)

from .budget_variance import (
    FeeUnitType,
    FeeWindow,
    BudgetConfig,
    MonthlyActuals,
    MonthlyConfig,
    MonthlyVariance,
    PeriodSummary,
    BudgetCalculationResult,
    calculate_prorated_fee,
    calculate_budget_variance,
)

from .ce_summary import (
    RowType,
    ColorCode,
    DisplayFormat,
    CESummaryInput,
    CESummaryRow,
    CESummaryKpis,
    CESummaryResult,
    calculate_ce_summary,
    aggregate_ce_summary,
)

from .high_claimants import (
    ClaimantStatus,
    HighClaimantInput,
    HighClaimantResult,
    HighClaimantSummary,
    filter_high_claimants,
    calculate_high_claimant_summary,
)

from .executive import (
    FuelGaugeStatus,
    ExecutiveYtdTotals,
    PlanMixEntry,
    MedRxSplit,
    ClaimantBucket,
    calculate_fuel_gauge_status,
    calculate_executive_ytd,
    calculate_plan_mix,
    calculate_med_vs_rx_split,
    calculate_claimant_buckets,
)

from .ingestion import (
    FileType,
    SourceFormat,
    ReconciliationStatus,
    ValidationIssue,
    ParsePreview,
    ParseResult,
    ReconciliationResult,
    UploadResult,
    RECONCILIATION_TOLERANCE,
    normalize_value,
    parse_numeric,
    validate_headers,
    validate_data_types,
    is_all_plans_name,
    perform_reconciliation,
    validate_and_reconcile,
    parse_monthly_csv,
    parse_hcc_csv,
    parse_budget_csv,
    detect_file_type,
    xlsx_to_csv,
    build_upload_result,
)

from .config import EngineConfig, load_config

from .engine import ReportingEngine, ExecutiveSummary, create_engine

from .reporting import ReportWorkbookBuilder, export_report_workbook

__all__ = [
    # Engine
    "ReportingEngine",
    "ExecutiveSummary",
    "create_engine",
    "EngineConfig",
    "load_config",

    # Rounding
    "RoundingMode",
    "round_number",
    "round_currency",
    "get_days_in_month",
    "get_month_end",
    "get_effective_days",

    # PEPM
    "PepmDataPoint",
    "PeriodSplit",
    "calculate_pepm",
    "compare_periods",
    "create_pepm_trend_data",
    "split_24_months",

    # Monthly columns
    "MonthlyPlanData",
    "MonthlyColumnsResult",
    "calculate_monthly_columns",
    "calculate_monthly_columns_batch",

    # Budget variance
    "FeeUnitType",
    "FeeWindow",
    "BudgetConfig",
    "MonthlyActuals",
    "MonthlyConfig",
    "MonthlyVariance",
    "PeriodSummary",
    "BudgetCalculationResult",
    "calculate_prorated_fee",
    "calculate_budget_variance",

    # C&E statement
    "RowType",
    "ColorCode",
    "DisplayFormat",
    "CESummaryInput",
    "CESummaryRow",
    "CESummaryKpis",
    "CESummaryResult",
    "calculate_ce_summary",
    "aggregate_ce_summary",

    # High-cost claimants
    "ClaimantStatus",
    "HighClaimantInput",
    "HighClaimantResult",
    "HighClaimantSummary",
    "filter_high_claimants",
    "calculate_high_claimant_summary",

    # Executive summary
    "FuelGaugeStatus",
    "ExecutiveYtdTotals",
    "PlanMixEntry",
    "MedRxSplit",
    "ClaimantBucket",
    "calculate_fuel_gauge_status",
    "calculate_executive_ytd",
    "calculate_plan_mix",
    "calculate_med_vs_rx_split",
    "calculate_claimant_buckets",

    # Ingestion
    "FileType",
    "SourceFormat",
    "ReconciliationStatus",
    "ValidationIssue",
    "ParsePreview",
    "ParseResult",
    "ReconciliationResult",
    "UploadResult",
    "RECONCILIATION_TOLERANCE",
    "normalize_value",
    "parse_numeric",
    "validate_headers",
    "validate_data_types",
    "is_all_plans_name",
    "perform_reconciliation",
    "validate_and_reconcile",
    "parse_monthly_csv",
    "parse_hcc_csv",
    "parse_budget_csv",
    "detect_file_type",
    "xlsx_to_csv",
    "build_upload_result",

    # Reporting
    "ReportWorkbookBuilder",
    "export_report_workbook",
]
