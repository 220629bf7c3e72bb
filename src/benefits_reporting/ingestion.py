"""
benefits_reporting/ingestion.py - Upload Validation and Reconciliation

Validation rules applied to uploaded monthly statistics, high-cost claimant
and budget actuals files:
1. Header Validation - Required columns present (case-insensitive)
2. Data Type Validation - Numeric and date columns parse; negatives only
   in credit columns (rebates, reimbursements, adjustments). Credit
   columns are matched on "reimb" rather than the full "reimbursement",
   so abbreviated headers such as specStopLossReimb may hold credits too
3. Reconciliation - Individual plans sum to the "All Plans" row within
   $0.01 per column

Validation problems are collected and returned, never raised. CSV text is
read with pandas; XLSX workbooks are converted to CSV text first.

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass, field
from enum import Enum
import io
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)

ParsedRow = Dict[str, Any]

RECONCILIATION_TOLERANCE = 0.01
_TOLERANCE_EPSILON = 1e-9

# Column-name substrings that mark credit columns allowed to go negative.
# "reimb" also covers abbreviated columns like specStopLossReimb.
NEGATIVE_ALLOWED_KEYWORDS = ('rebate', 'reimb', 'adjustment')

SAMPLE_ROW_COUNT = 10


# =============================================================================
# FILE LAYOUTS
# =============================================================================

MONTHLY_COLUMN_MAPPING = {
    'plan': 'plan',
    'month': 'month',
    'subscribers': 'totalSubscribers',
    'medical paid': 'medicalPaid',
    'rx paid': 'rxPaid',
    'admin fees': 'adminFees',
    'stop loss fees': 'stopLossFees',
    'budgeted premium': 'budgetedPremium',
    'spec stop loss reimb': 'specStopLossReimb',
    'est rx rebates': 'estRxRebates',
}

MONTHLY_REQUIRED_COLUMNS = ['month', 'plan', 'medicalPaid', 'rxPaid']
MONTHLY_NUMERIC_COLUMNS = [
    'medicalPaid', 'rxPaid', 'totalSubscribers', 'specStopLossReimb',
    'estRxRebates', 'adminFees', 'stopLossFees', 'budgetedPremium',
]
MONTHLY_DATE_COLUMNS = ['month']

HCC_REQUIRED_COLUMNS = ['claimantKey', 'plan', 'medPaid', 'rxPaid', 'totalPaid']
HCC_NUMERIC_COLUMNS = ['medPaid', 'rxPaid', 'totalPaid', 'amountExceedingIsl']

BUDGET_REQUIRED_COLUMNS = [
    'service_month',
    'domestic_facility_ip_op',
    'non_domestic_ip_op',
    'non_hospital_medical',
    'rx_claims',
    'ee_count_active_cobra',
    'member_count',
]
BUDGET_NUMERIC_COLUMNS = BUDGET_REQUIRED_COLUMNS[1:]
BUDGET_DATE_COLUMNS = ['service_month']


class FileType(Enum):
    """Kind of upload, which selects the column layout."""
    MONTHLY = "monthly"
    HCC = "hcc"
    BUDGET = "budget"


class SourceFormat(Enum):
    CSV = "csv"
    XLSX = "xlsx"
    UNKNOWN = "unknown"


class ReconciliationStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    NOT_DETECTED = "not_detected"


# =============================================================================
# RESULT RECORDS
# =============================================================================

@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in an upload. Row 0 is the header row."""
    row: int
    column: str
    message: str
    value: Any = None


@dataclass
class ParsePreview:
    row_count: int = 0
    column_count: int = 0
    columns: List[str] = field(default_factory=list)
    sample_rows: List[ParsedRow] = field(default_factory=list)


@dataclass
class ParseResult:
    success: bool
    data: List[ParsedRow] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    preview: ParsePreview = field(default_factory=ParsePreview)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.data, columns=self.preview.columns)


@dataclass(frozen=True)
class ReconciliationResult:
    passed: bool
    sum_detected: bool
    tolerance: float
    all_plans_total: float
    individual_plans_total: float
    difference: float
    message: str

    @property
    def status(self) -> ReconciliationStatus:
        if not self.sum_detected:
            return ReconciliationStatus.NOT_DETECTED
        return ReconciliationStatus.PASSED if self.passed else ReconciliationStatus.FAILED


@dataclass
class UploadResult(ParseResult):
    """ParseResult enriched with reconciliation and detected months/plans."""
    file_type: FileType = FileType.MONTHLY
    data_rows: int = 0
    sum_row_detected: bool = False
    sum_validation_passed: bool = False
    reconciliation: Optional[ReconciliationResult] = None
    detected_months: List[str] = field(default_factory=list)
    detected_plans: List[str] = field(default_factory=list)


# =============================================================================
# VALUE PARSING
# =============================================================================

def normalize_value(value: Any) -> Any:
    """Strip dollar signs, thousands separators and surrounding whitespace."""
    if not isinstance(value, str):
        return value
    return re.sub(r'[$,]', '', value).strip()


def parse_numeric(value: Any) -> Optional[float]:
    """
    Parse a currency or count cell.

    Returns None for blanks and for anything that is not a finite number
    once normalized ("$1,234.50" -> 1234.5, "abc" -> None).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    normalized = normalize_value(str(value))
    if normalized == '':
        return None
    try:
        parsed = float(normalized)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def _allows_negative(column: str) -> bool:
    lowered = column.lower()
    return any(keyword in lowered for keyword in NEGATIVE_ALLOWED_KEYWORDS)


def _is_valid_date(value: Any) -> bool:
    return not pd.isna(pd.to_datetime(value, errors='coerce'))


# =============================================================================
# VALIDATION
# =============================================================================

def validate_headers(headers: Sequence[str], required_columns: Sequence[str]) -> List[ValidationIssue]:
    """One issue per required column missing from headers."""
    normalized_headers = {h.lower().strip() for h in headers}
    return [
        ValidationIssue(row=0, column=required,
                        message=f"Missing required column: {required}")
        for required in required_columns
        if required.lower() not in normalized_headers
    ]


def validate_data_types(rows: Sequence[ParsedRow],
                        numeric_columns: Sequence[str],
                        date_columns: Sequence[str] = ()) -> List[ValidationIssue]:
    """
    Check every non-blank numeric and date cell.

    Row numbers are 1-based data rows (the header is row 0).
    """
    errors: List[ValidationIssue] = []

    for index, row in enumerate(rows):
        row_number = index + 1

        for column in numeric_columns:
            value = row.get(column)
            if _is_blank(value):
                continue
            parsed = parse_numeric(value)
            if parsed is None:
                errors.append(ValidationIssue(row_number, column,
                                              f"Invalid numeric value: {value}", value))
            elif parsed < 0 and not _allows_negative(column):
                errors.append(ValidationIssue(row_number, column,
                                              f"Negative value not allowed: {value}", value))

        for column in date_columns:
            value = row.get(column)
            if _is_blank(value):
                continue
            if not _is_valid_date(value):
                errors.append(ValidationIssue(row_number, column,
                                              f"Invalid date format: {value}", value))

    return errors


# =============================================================================
# RECONCILIATION
# =============================================================================

def is_all_plans_name(name: Any) -> bool:
    """True for an aggregate row name: contains both "all" and "plan", any case."""
    plan = str(name or '').lower()
    return 'all' in plan and 'plan' in plan


def _is_all_plans(row: ParsedRow, plan_column: str) -> bool:
    return is_all_plans_name(row.get(plan_column))


def _column_total(rows: Sequence[ParsedRow], column: str) -> float:
    return sum(parse_numeric(row.get(column)) or 0.0 for row in rows)


def perform_reconciliation(rows: Sequence[ParsedRow],
                           plan_column: str = 'plan',
                           value_columns: Sequence[str] = ('medicalPaid', 'rxPaid')) -> ReconciliationResult:
    """
    Check that the individual plan rows add up to the "All Plans" row.

    The aggregate row is the first whose plan name contains both "all" and
    "plan". Each value column must agree within RECONCILIATION_TOLERANCE.
    The reported totals are for the first value column; the reported
    difference is the sum of absolute differences over all columns.
    """
    tolerance = RECONCILIATION_TOLERANCE
    all_plans_row = next((row for row in rows if _is_all_plans(row, plan_column)), None)

    if all_plans_row is None:
        logger.warning('Reconciliation skipped: no "All Plans" row')
        return ReconciliationResult(
            passed=False,
            sum_detected=False,
            tolerance=tolerance,
            all_plans_total=0.0,
            individual_plans_total=0.0,
            difference=0.0,
            message='"All Plans" row not found',
        )

    individual_rows = [row for row in rows if not _is_all_plans(row, plan_column)]

    all_match = True
    total_difference = 0.0
    for column in value_columns:
        all_plans_value = parse_numeric(all_plans_row.get(column)) or 0.0
        difference = abs(all_plans_value - _column_total(individual_rows, column))
        total_difference += difference
        if difference > tolerance + _TOLERANCE_EPSILON:
            all_match = False

    first_column = value_columns[0]
    if all_match:
        message = 'Reconciliation passed: Sum of individual plans matches "All Plans"'
    else:
        message = (f"Reconciliation failed: Difference of ${total_difference:.2f} "
                   f"exceeds tolerance of ${tolerance}")
        logger.warning(message)

    return ReconciliationResult(
        passed=all_match,
        sum_detected=True,
        tolerance=tolerance,
        all_plans_total=parse_numeric(all_plans_row.get(first_column)) or 0.0,
        individual_plans_total=_column_total(individual_rows, first_column),
        difference=total_difference,
        message=message,
    )


def validate_and_reconcile(rows: Sequence[ParsedRow]) -> ReconciliationResult:
    """Reconcile monthly statistics on medical and pharmacy paid."""
    return perform_reconciliation(rows, 'plan', ('medicalPaid', 'rxPaid'))


# =============================================================================
# CSV PARSERS
# =============================================================================

def _failed(errors: List[ValidationIssue], columns: Optional[List[str]] = None) -> ParseResult:
    columns = columns or []
    return ParseResult(
        success=False,
        errors=errors,
        preview=ParsePreview(row_count=0, column_count=len(columns), columns=columns),
    )


def _parse_csv(content: str,
               required_columns: Sequence[str],
               numeric_columns: Sequence[str],
               date_columns: Sequence[str] = (),
               header_mapping: Optional[Mapping[str, str]] = None) -> ParseResult:
    """
    Read CSV text, map headers onto canonical column names and validate.

    Raw cell text is validated before numeric columns are converted, so an
    unparseable amount is reported rather than silently blanked.
    """
    if not content or not content.strip():
        return _failed([ValidationIssue(row=0, column='', message='Empty file')])

    try:
        df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False,
                         skip_blank_lines=True, index_col=False)
    except pd.errors.EmptyDataError:
        return _failed([ValidationIssue(row=0, column='', message='Empty file')])
    except pd.errors.ParserError as e:
        logger.error(f"CSV could not be read: {e}")
        return _failed([ValidationIssue(row=0, column='', message=f"Unreadable CSV: {e}")])

    canonical = {c.lower(): c for c in [*required_columns, *numeric_columns, *date_columns]}
    headers = []
    for raw in df.columns:
        name = str(raw).strip()
        if header_mapping is not None:
            name = header_mapping.get(name.lower(), name)
        headers.append(canonical.get(name.lower(), name))
    df.columns = headers

    errors = validate_headers(headers, required_columns)
    if errors:
        return _failed(errors, headers)

    df = df.fillna('')
    raw_rows = [
        {column: str(value).strip() for column, value in record.items()}
        for record in df.to_dict(orient='records')
    ]
    errors = validate_data_types(raw_rows, numeric_columns, date_columns)

    numeric = set(numeric_columns)
    data = [
        {column: parse_numeric(value) if column in numeric else value
         for column, value in row.items()}
        for row in raw_rows
    ]

    logger.info(f"Parsed {len(data)} rows x {len(headers)} columns "
                f"({len(errors)} validation errors)")

    return ParseResult(
        success=len(errors) == 0,
        data=data,
        errors=errors,
        warnings=[],
        preview=ParsePreview(
            row_count=len(data),
            column_count=len(headers),
            columns=headers,
            sample_rows=data[:SAMPLE_ROW_COUNT],
        ),
    )


def parse_monthly_csv(content: str) -> ParseResult:
    """Parse monthly plan statistics; friendly headers map to internal keys."""
    return _parse_csv(content, MONTHLY_REQUIRED_COLUMNS, MONTHLY_NUMERIC_COLUMNS,
                      MONTHLY_DATE_COLUMNS, header_mapping=MONTHLY_COLUMN_MAPPING)


def parse_hcc_csv(content: str) -> ParseResult:
    return _parse_csv(content, HCC_REQUIRED_COLUMNS, HCC_NUMERIC_COLUMNS)


def parse_budget_csv(content: str) -> ParseResult:
    return _parse_csv(content, BUDGET_REQUIRED_COLUMNS, BUDGET_NUMERIC_COLUMNS,
                      BUDGET_DATE_COLUMNS)


PARSERS = {
    FileType.MONTHLY: parse_monthly_csv,
    FileType.HCC: parse_hcc_csv,
    FileType.BUDGET: parse_budget_csv,
}


# =============================================================================
# FILE FORMAT HANDLING
# =============================================================================

def detect_file_type(content: bytes) -> SourceFormat:
    """Sniff CSV vs Excel from the leading bytes."""
    if len(content) < 4:
        return SourceFormat.UNKNOWN

    # ZIP container (xlsx)
    if content[:2] == b'PK':
        return SourceFormat.XLSX
    # OLE2 container (legacy xls)
    if content[:4] == b'\xd0\xcf\x11\xe0':
        return SourceFormat.XLSX

    sample = content[:100].decode('utf-8', errors='replace')
    if re.match(r'^[a-zA-Z0-9,\s"\'\-_]+', sample):
        return SourceFormat.CSV

    return SourceFormat.UNKNOWN


def xlsx_to_csv(source: Union[bytes, str], sheet_name: Union[int, str] = 0) -> str:
    """Convert one worksheet to CSV text for the CSV parsers."""
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    df = pd.read_excel(source, sheet_name=sheet_name, dtype=str, engine='openpyxl')
    return df.fillna('').to_csv(index=False)


# =============================================================================
# UPLOAD SUMMARY
# =============================================================================

def _month_key(value: Any) -> Optional[str]:
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.strftime('%Y-%m')


def build_upload_result(parse_result: ParseResult, file_type: FileType) -> UploadResult:
    """
    Summarize a parsed upload for review before it is committed.

    Monthly statistics are reconciled against their "All Plans" row; a
    failed reconciliation is reported as a warning, not an error.
    """
    rows = parse_result.data
    warnings = list(parse_result.warnings)
    reconciliation = None

    if file_type is FileType.MONTHLY and parse_result.success:
        reconciliation = validate_and_reconcile(rows)
        if reconciliation.status is ReconciliationStatus.FAILED:
            warnings.append(reconciliation.message)

    sum_rows = [row for row in rows if _is_all_plans(row, 'plan')]

    month_column = {FileType.MONTHLY: 'month', FileType.BUDGET: 'service_month'}.get(file_type)
    detected_months: List[str] = []
    if month_column is not None:
        keys = {_month_key(row.get(month_column)) for row in rows}
        detected_months = sorted(k for k in keys if k is not None)

    detected_plans: List[str] = []
    for row in rows:
        plan = str(row.get('plan') or '').strip()
        if plan and not _is_all_plans(row, 'plan') and plan not in detected_plans:
            detected_plans.append(plan)

    return UploadResult(
        success=parse_result.success,
        data=rows,
        errors=list(parse_result.errors),
        warnings=warnings,
        preview=parse_result.preview,
        file_type=file_type,
        data_rows=len(rows) - len(sum_rows),
        sum_row_detected=len(sum_rows) > 0,
        sum_validation_passed=reconciliation is not None and reconciliation.passed,
        reconciliation=reconciliation,
        detected_months=detected_months,
        detected_plans=detected_plans,
    )
