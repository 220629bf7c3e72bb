"""
tests/test_pepm.py - PEPM Normalization Tests

Author: Actuarial Pipeline Project
License: MIT
"""

import pytest

from benefits_reporting.pepm import (
    PepmDataPoint,
    calculate_pepm,
    compare_periods,
    create_pepm_trend_data,
    split_24_months,
)


class TestCalculatePepm:

    def test_total_over_average_subscribers(self):
        """$120,000 over 12 months with 1,200 subscriber-months is $1,200 PEPM."""
        pepm = calculate_pepm(120000, 1200, 12)
        assert pepm == pytest.approx(1200.0), f"Expected 1200, got {pepm}"

    def test_zero_months_is_no_data(self):
        assert calculate_pepm(120000, 1200, 0) == 0.0

    def test_zero_subscribers_is_no_data(self):
        assert calculate_pepm(120000, 0, 12) == 0.0

    def test_compare_periods_uses_twelve_months(self):
        result = compare_periods(120000, 1200, 60000, 1200)
        assert result['current'] == pytest.approx(1200.0)
        assert result['prior'] == pytest.approx(600.0)


class TestTrendData:

    def test_months_missing_from_a_period_are_none(self):
        points = create_pepm_trend_data(['Jan', 'Feb'], {'Jan': 510.0}, {'Feb': 480.0})
        assert points == [
            PepmDataPoint(month='Jan', current=510.0, prior=None),
            PepmDataPoint(month='Feb', current=None, prior=480.0),
        ]

    def test_no_prior_period(self):
        points = create_pepm_trend_data(['Jan'], {'Jan': 510.0})
        assert points[0].prior is None


class TestSplit24Months:
    """
    The first 12 entries are the current period. No sorting is performed,
    so callers must hand over the most recent month first.
    """

    def test_full_24_months(self):
        split = split_24_months(list(range(24)))
        assert split.current_12 == list(range(12))
        assert split.prior_12 == list(range(12, 24))

    def test_extra_months_ignored(self):
        split = split_24_months(list(range(30)))
        assert split.prior_12 == list(range(12, 24)), "Only entries 13-24 form the prior period"

    def test_fewer_than_24_all_current(self):
        split = split_24_months(list(range(20)))
        assert split.current_12 == list(range(20))
        assert split.prior_12 == []

    def test_order_is_not_changed(self):
        """Oldest-first input puts the oldest months in 'current'."""
        months = [f"2023-{m:02d}" for m in range(1, 13)] + [f"2024-{m:02d}" for m in range(1, 13)]
        split = split_24_months(months)
        assert split.current_12[0] == "2023-01"
        assert split.prior_12[-1] == "2024-12"
