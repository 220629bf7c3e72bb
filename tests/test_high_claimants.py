"""
tests/test_high_claimants.py - High-Cost Claimant Allocation Tests

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
import pytest

from benefits_reporting.high_claimants import (
    ClaimantStatus,
    HighClaimantInput,
    HighClaimantSummary,
    calculate_high_claimant_summary,
    filter_high_claimants,
)


def claimant(key: str, total_paid: float, plan: str = "PPO", **kwargs) -> HighClaimantInput:
    med = kwargs.pop('med_paid', total_paid * 0.8)
    rx = kwargs.pop('rx_paid', total_paid * 0.2)
    return HighClaimantInput(claimant_key=key, plan_id=plan, med_paid=med, rx_paid=rx,
                             total_paid=total_paid, **kwargs)


class TestReportingThreshold:
    """Claimants at or above 50% of the $200,000 ISL are reported."""

    def test_boundary_is_inclusive(self):
        results = filter_high_claimants([claimant('C1', 100000)], 200000, 0.5)
        assert len(results) == 1, "Exactly 50% of ISL must be retained"

    def test_just_below_boundary_excluded(self):
        results = filter_high_claimants([claimant('C1', 99999.99)], 200000, 0.5)
        assert results == []

    def test_defaults(self):
        results = filter_high_claimants([claimant('C1', 100000), claimant('C2', 90000)])
        assert [r.claimant_key for r in results] == ['C1']


class TestAllocation:

    def test_claimant_above_isl(self):
        result = filter_high_claimants([claimant('C1', 250000)], 200000)[0]
        assert result.employer_share == 200000.0
        assert result.stop_loss_share == 50000.0
        assert result.percent_of_isl == 125.0

    def test_claimant_below_isl(self):
        result = filter_high_claimants([claimant('C1', 150000)], 200000)[0]
        assert result.employer_share == 150000.0
        assert result.stop_loss_share == 0.0, "Carrier pays nothing below the attachment point"
        assert result.percent_of_isl == 75.0

    def test_percent_rounded_to_two_decimals(self):
        result = filter_high_claimants([claimant('C1', 123456.789)], 200000)[0]
        assert result.percent_of_isl == 61.73

    def test_inputs_carried_through(self):
        source = claimant('C9', 300000, plan='HMO', med_paid=250000, rx_paid=50000,
                          status=ClaimantStatus.UNDER_REVIEW)
        result = filter_high_claimants([source])[0]
        assert (result.claimant_key, result.plan_id) == ('C9', 'HMO')
        assert (result.med_paid, result.rx_paid) == (250000, 50000)
        assert result.status is ClaimantStatus.UNDER_REVIEW

    def test_status_defaults_to_open(self):
        assert filter_high_claimants([claimant('C1', 300000)])[0].status is ClaimantStatus.OPEN

    def test_shares_add_up_to_total_paid(self):
        totals = np.array([100000, 150000, 199999.99, 200000, 200000.01, 612345.67])
        results = filter_high_claimants([claimant(f"C{i}", t) for i, t in enumerate(totals)])

        employer = np.array([r.employer_share for r in results])
        stop_loss = np.array([r.stop_loss_share for r in results])
        paid = np.array([r.total_paid for r in results])
        np.testing.assert_array_almost_equal(employer + stop_loss, paid, decimal=2)
        assert np.all(employer <= 200000)

    def test_zero_threshold(self):
        result = filter_high_claimants([claimant('C1', 5000)], 0)[0]
        assert result.percent_of_isl == 0.0
        assert result.employer_share == 0.0
        assert result.stop_loss_share == 5000.0


class TestOrdering:

    def test_sorted_by_total_paid_descending(self):
        claimants = [claimant('A', 120000), claimant('B', 410000), claimant('C', 250000)]
        results = filter_high_claimants(claimants)
        assert [r.claimant_key for r in results] == ['B', 'C', 'A']

    def test_ties_keep_input_order(self):
        claimants = [claimant('first', 150000), claimant('second', 150000)]
        results = filter_high_claimants(claimants)
        assert [r.claimant_key for r in results] == ['first', 'second']


class TestSummary:

    def test_empty_set_is_all_zeros(self):
        assert calculate_high_claimant_summary([]) == HighClaimantSummary()

    def test_totals_and_average(self):
        results = filter_high_claimants([claimant('A', 250000), claimant('B', 150000),
                                         claimant('C', 50000)])
        summary = calculate_high_claimant_summary(results)

        assert summary.count == 2, "Only filtered claimants are summarized"
        assert summary.total_paid == 400000.0
        assert summary.employer_share == 350000.0
        assert summary.stop_loss_share == 50000.0
        assert summary.average_paid == pytest.approx(200000.0)
