#!/usr/bin/env python3
"""
run_report.py - Benefits Reporting Runner

Builds the monthly benefits workbook from uploaded plan statistics:
1. Parse and validate the monthly statistics upload (CSV or XLSX)
2. Reconcile individual plans against the "All Plans" row
3. Parse high-cost claimants (optional)
4. Compute the executive summary and HCC allocation
5. Write the Excel report

Usage:
    python run_report.py \\
        --monthly monthly_stats.csv \\
        --claimants hcc.csv \\
        --output benefits_report.xlsx \\
        --config client.json

Author: Actuarial Pipeline Project
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def read_upload(path: str, parser: Callable):
    """Read a CSV or XLSX upload and run it through a CSV parser."""
    from benefits_reporting import SourceFormat, detect_file_type, xlsx_to_csv

    upload = Path(path)
    content = upload.read_bytes()
    suffix = upload.suffix.lower()
    source_format = detect_file_type(content)

    if suffix in ('.xlsx', '.xls') or source_format is SourceFormat.XLSX:
        text = xlsx_to_csv(content)
    elif suffix == '.csv' or source_format is SourceFormat.CSV:
        text = content.decode('utf-8-sig')
    else:
        logger.error(f"Unsupported upload file: {upload.name}")
        raise ValueError(f"Unsupported upload file: {path}")

    return parser(text)


def _print_errors(label: str, errors) -> None:
    print(f"ERROR: {label} failed validation ({len(errors)} issues)")
    for issue in errors:
        where = f"row {issue.row}" + (f", column '{issue.column}'" if issue.column else "")
        print(f"  {where}: {issue.message}")


def run_report(
    monthly_path: str,
    output_path: str,
    claimants_path: Optional[str] = None,
    config=None,
    plan: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the reporting pipeline end to end.

    Args:
        monthly_path: Monthly plan statistics upload
        output_path: Path for the Excel report
        claimants_path: High-cost claimant upload (optional)
        config: EngineConfig (defaults apply when None)
        plan: Plan to report on; defaults to the "All Plans" row

    Returns:
        Dict with success flag, errors, reconciliation, executive summary,
        HCC results and the output path
    """
    from benefits_reporting import (
        EngineConfig,
        FileType,
        ReportingEngine,
        build_upload_result,
        export_report_workbook,
        parse_hcc_csv,
        parse_monthly_csv,
    )

    engine = ReportingEngine(config or EngineConfig())

    print("=" * 70)
    print("BENEFITS REPORT")
    print("=" * 70)
    print(f"Monthly:     {monthly_path}")
    print(f"Claimants:   {claimants_path or '(none)'}")
    print(f"Output:      {output_path}")
    print()

    # =========================================================================
    # STEP 1: Monthly statistics
    # =========================================================================
    print("Step 1: Validating monthly statistics...")
    monthly = build_upload_result(read_upload(monthly_path, parse_monthly_csv), FileType.MONTHLY)

    if not monthly.success:
        _print_errors("Monthly statistics", monthly.errors)
        return {'success': False, 'errors': monthly.errors, 'output_path': None}

    print(f"  Rows: {monthly.data_rows} plan rows, months {', '.join(monthly.detected_months)}")
    print(f"  Plans: {', '.join(monthly.detected_plans)}")
    if monthly.reconciliation is not None:
        print(f"  {monthly.reconciliation.message}")
    print()

    monthly_data = engine.rows_to_monthly_plan_data(monthly.data, plan)
    if not monthly_data:
        selected = plan or engine.config.all_plans_name
        logger.error(f"No monthly rows for plan '{selected}'")
        print(f"ERROR: No monthly rows for plan '{selected}'")
        return {'success': False, 'errors': [], 'output_path': None}

    # =========================================================================
    # STEP 2: High-cost claimants
    # =========================================================================
    claimants = []
    if claimants_path:
        print("Step 2: Validating high-cost claimants...")
        hcc = read_upload(claimants_path, parse_hcc_csv)
        if not hcc.success:
            _print_errors("High-cost claimants", hcc.errors)
            return {'success': False, 'errors': hcc.errors, 'output_path': None}
        claimants = engine.rows_to_claimants(hcc.data)
        print(f"  Claimants: {len(claimants)}")
        print()

    # =========================================================================
    # STEP 3: Calculations
    # =========================================================================
    print("Step 3: Calculating...")
    executive = engine.executive_summary(monthly_data, engine.plan_costs(monthly.data), claimants)
    hcc_results, hcc_summary = engine.high_claimants(claimants)

    ytd = executive.ytd
    print(f"  Total cost:    ${ytd.total_cost:,.2f}")
    print(f"  % of budget:   {ytd.percent_of_budget:.2f}% ({ytd.fuel_gauge_status.value})")
    print(f"  HCC above ISL: {hcc_summary.count} (stop loss ${hcc_summary.stop_loss_share:,.2f})")
    print()

    # =========================================================================
    # STEP 4: Workbook
    # =========================================================================
    print("Step 4: Writing report...")
    output = export_report_workbook(
        output_path,
        high_claimants=hcc_results if claimants_path else None,
        high_claimant_summary=hcc_summary,
        executive=executive,
        client_name=engine.config.client_name,
    )
    print(f"  Saved: {output}")

    return {
        'success': True,
        'errors': [],
        'output_path': output,
        'reconciliation': monthly.reconciliation,
        'executive': executive,
        'high_claimants': hcc_results,
    }


def main():
    parser = argparse.ArgumentParser(
        description='Build the monthly benefits report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_report.py --monthly monthly_stats.csv --output report.xlsx

  python run_report.py \\
      --monthly monthly_stats.xlsx \\
      --claimants hcc.csv \\
      --output report.xlsx \\
      --config client.json \\
      --isl-threshold 250000
"""
    )

    parser.add_argument('--monthly', type=str, required=True,
                        help='Monthly plan statistics (CSV or XLSX)')
    parser.add_argument('--claimants', type=str, help='High-cost claimants (CSV or XLSX)')
    parser.add_argument('--output', type=str, required=True, help='Output Excel file')
    parser.add_argument('--config', type=str, help='Client configuration (JSON)')
    parser.add_argument('--isl-threshold', type=float, help='Specific stop-loss attachment point')
    parser.add_argument('--plan', type=str, help='Plan to report on (default: All Plans)')

    args = parser.parse_args()

    from benefits_reporting import EngineConfig, load_config

    config = load_config(args.config) if args.config else EngineConfig()
    if args.isl_threshold is not None:
        config = EngineConfig(**{**config.model_dump(), 'isl_threshold': args.isl_threshold})

    result = run_report(
        monthly_path=args.monthly,
        output_path=args.output,
        claimants_path=args.claimants,
        config=config,
        plan=args.plan,
    )

    if not result['success']:
        sys.exit(1)


if __name__ == '__main__':
    main()
