"""
tests/test_ce_summary.py - Claims & Expenses Statement Tests

Covers:
1. Row layout: 28 numbered items under 9 section headers, fixed order
2. Monthly C&E, PEPM and variance KPIs
3. Cumulative figures recomputed from pre-aggregated inputs
4. Favorable/unfavorable variance coloring
5. Aggregation of months (enrollment is point-in-time)

Author: Actuarial Pipeline Project
License: MIT
"""

import logging

import pytest

from benefits_reporting.ce_summary import (
    CESummaryInput,
    ColorCode,
    DisplayFormat,
    RowType,
    aggregate_ce_summary,
    calculate_ce_summary,
)


def month_input(**overrides) -> CESummaryInput:
    """Monthly C&E of $240 against a $200 budget with 20 members."""
    values = dict(
        domestic_claims=50,
        non_domestic_claims=30,
        non_hospital_medical=20,
        medical_adjustment=10,
        rx_claims=60,
        rx_rebates=-10,
        stop_loss_premiums=40,
        stop_loss_reimbursements=-20,
        aso_fees=50,
        stop_loss_coord_fees=10,
        admin_total=60,
        employee_count=15,
        member_count=20,
        budgeted_claims=150,
        budgeted_fixed=50,
        total_budget=200,
    )
    values.update(overrides)
    return CESummaryInput(**values)


class TestRowLayout:
    """Presentation code keys off item numbers and names; they must not move."""

    @pytest.fixture
    def rows(self):
        return calculate_ce_summary(month_input()).rows

    def test_row_counts(self, rows):
        headers = [r for r in rows if r.row_type is RowType.HEADER]
        assert len(rows) == 37
        assert len(headers) == 9

    def test_items_numbered_in_order(self, rows):
        numbers = [r.item_number for r in rows if r.row_type is not RowType.HEADER]
        assert numbers == list(range(1, 29))

    def test_section_headers(self, rows):
        headers = [r.item_name for r in rows if r.row_type is RowType.HEADER]
        assert headers == [
            'MEDICAL CLAIMS', 'PHARMACY', 'STOP LOSS', 'ADMINISTRATIVE FEES', 'TOTALS',
            'ENROLLMENT', 'PER EMPLOYEE PER MONTH', 'BUDGET', 'VARIANCE (ACTUAL - BUDGET)',
        ]

    def test_key_item_names(self, rows):
        names = {r.item_number: r.item_name for r in rows if r.row_type is not RowType.HEADER}
        assert names[1] == 'Domestic Facility (IP/OP)'
        assert names[7] == 'Total Medical'
        assert names[15] == 'Monthly C&E'
        assert names[21] == 'PEPM Actual'
        assert names[24] == 'Total Budget'
        assert names[27] == 'Variance $'
        assert names[28] == 'Variance %'
        assert [names[n] for n in (5, 16, 20, 25, 26)] == ['Reserved'] * 5

    def test_adjustment_rows_are_user_editable(self, rows):
        editable = [r.item_number for r in rows if r.is_user_editable]
        assert editable == [6, 9, 11]
        for row in rows:
            if row.is_user_editable:
                assert row.color_code is ColorCode.ADJUSTMENT

    def test_display_formats(self, rows):
        formats = {r.item_number: r.display_format for r in rows if r.row_type is not RowType.HEADER}
        assert formats[17] is DisplayFormat.NUMBER
        assert formats[18] is DisplayFormat.NUMBER
        assert formats[28] is DisplayFormat.PERCENT
        assert formats[15] is DisplayFormat.CURRENCY


class TestMonthlyKpis:

    def test_monthly_ce(self):
        """#7 + #8 + #9 + #10 + #11 + #14 = 110 + 60 - 10 + 40 - 20 + 60."""
        result = calculate_ce_summary(month_input())
        assert result.kpis.monthly_ce == 240
        assert result.row_by_item(15).monthly_value == 240

    def test_pepm_and_variance(self):
        kpis = calculate_ce_summary(month_input()).kpis
        assert kpis.pepm_actual == pytest.approx(12.0)
        assert kpis.pepm_budget == pytest.approx(10.0)
        assert kpis.budget_variance == pytest.approx(40.0)
        assert kpis.variance_percent == pytest.approx(20.0)

    def test_medical_subtotal_always_recomputed(self):
        result = calculate_ce_summary(month_input(medical_subtotal=999, medical_total=999))
        assert result.row_by_item(4).monthly_value == 100
        assert result.row_by_item(7).monthly_value == 110

    def test_admin_total_taken_as_supplied(self, caplog):
        with caplog.at_level(logging.WARNING, logger='benefits_reporting.ce_summary'):
            result = calculate_ce_summary(month_input(admin_total=70))

        assert result.kpis.monthly_ce == 250, "Supplied admin total is authoritative"
        assert any('Total admin fees' in r.message for r in caplog.records), \
            "Inconsistent admin total should be logged"

    def test_consistent_totals_do_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger='benefits_reporting.ce_summary'):
            calculate_ce_summary(month_input())
        assert caplog.records == []

    def test_zero_members_and_budget(self):
        kpis = calculate_ce_summary(month_input(member_count=0, total_budget=0)).kpis
        assert kpis.pepm_actual == 0.0
        assert kpis.pepm_budget == 0.0
        assert kpis.variance_percent == 0.0


class TestVarianceColoring:
    """Over budget is unfavorable (variance-negative) even though the number is positive."""

    def test_over_budget(self):
        result = calculate_ce_summary(month_input())
        assert result.row_by_item(27).color_code is ColorCode.VARIANCE_NEGATIVE
        assert result.row_by_item(28).color_code is ColorCode.VARIANCE_NEGATIVE

    def test_under_budget(self):
        result = calculate_ce_summary(month_input(total_budget=300))
        assert result.row_by_item(27).monthly_value == -60
        assert result.row_by_item(27).color_code is ColorCode.VARIANCE_POSITIVE

    def test_exactly_on_budget_is_unfavorable(self):
        result = calculate_ce_summary(month_input(total_budget=240))
        assert result.row_by_item(27).color_code is ColorCode.VARIANCE_NEGATIVE


class TestCumulative:
    """
    Cumulative figures come from running the statement over an aggregated
    input, not from adding up monthly rows.
    """

    @pytest.fixture
    def result(self):
        months = [month_input(), month_input()]
        return calculate_ce_summary(months[-1], aggregate_ce_summary(months))

    def test_cumulative_ce(self, result):
        assert result.kpis.cumulative_ce == 480
        assert result.row_by_item(15).cumulative_value == 480

    def test_cumulative_pepm_uses_latest_enrollment(self, result):
        """480 over the current 20 members, not 40 member-months."""
        assert result.row_by_item(21).cumulative_value == pytest.approx(24.0)
        assert result.row_by_item(19).cumulative_value == pytest.approx(20.0)

    def test_cumulative_variance(self, result):
        assert result.row_by_item(27).cumulative_value == pytest.approx(80.0)
        assert result.row_by_item(28).cumulative_value == pytest.approx(20.0)

    def test_cumulative_data_rows_come_from_aggregate(self, result):
        assert result.row_by_item(1).cumulative_value == 100
        assert result.row_by_item(17).cumulative_value == 15

    def test_without_cumulative_input(self):
        result = calculate_ce_summary(month_input())
        assert result.row_by_item(1).cumulative_value is None
        assert result.row_by_item(5).cumulative_value == 0.0
        assert result.kpis.cumulative_ce == result.kpis.monthly_ce


class TestAggregate:

    def test_empty_is_an_error(self):
        with pytest.raises(ValueError, match="Cannot aggregate empty inputs array"):
            aggregate_ce_summary([])

    def test_enrollment_takes_latest_month(self):
        a = month_input(employee_count=15, member_count=20)
        b = month_input(employee_count=17, member_count=23)
        total = aggregate_ce_summary([a, b])
        assert total.employee_count == 17
        assert total.member_count == 23

    def test_money_fields_summed(self):
        total = aggregate_ce_summary([month_input(), month_input(rx_claims=40)])
        assert total.rx_claims == 100
        assert total.admin_total == 120

    def test_single_month_is_unchanged(self):
        a = month_input()
        assert aggregate_ce_summary([a]) == a


class TestResultHelpers:

    def test_row_by_item_rejects_headers(self):
        result = calculate_ce_summary(month_input())
        with pytest.raises(ValueError):
            result.row_by_item(0)
        with pytest.raises(KeyError):
            result.row_by_item(29)

    def test_to_dataframe(self):
        df = calculate_ce_summary(month_input()).to_dataframe()
        assert df.shape == (37, 9)
        assert df.loc[df['item_number'] == 15, 'monthly_value'].iloc[0] == 240
        assert df['row_type'].iloc[0] == 'HEADER'
