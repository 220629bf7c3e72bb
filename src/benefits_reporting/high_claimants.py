"""
benefits_reporting/high_claimants.py - High-Cost Claimant (HCC) Engine

Allocates large claimant costs between the employer and the specific
stop-loss carrier:

    Employer share   = min(Total Paid, ISL)
    Stop-loss share  = max(0, Total Paid - ISL)
    % of ISL         = Total Paid / ISL x 100

Only claimants at or above a fraction of the individual stop-loss (ISL)
attachment point are reported (default: 50% of $200,000).

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import List, Sequence

import numpy as np

from .rounding import round_currency

logger = logging.getLogger(__name__)

DEFAULT_ISL_THRESHOLD = 200000.0
DEFAULT_MIN_PERCENT_THRESHOLD = 0.5


class ClaimantStatus(Enum):
    """Review status of a claimant on the HCC report."""
    OPEN = "OPEN"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"


@dataclass(frozen=True)
class HighClaimantInput:
    claimant_key: str
    plan_id: str
    med_paid: float
    rx_paid: float
    total_paid: float
    status: ClaimantStatus = ClaimantStatus.OPEN


@dataclass(frozen=True)
class HighClaimantResult:
    claimant_key: str
    plan_id: str
    med_paid: float
    rx_paid: float
    total_paid: float
    employer_share: float
    stop_loss_share: float
    percent_of_isl: float
    status: ClaimantStatus = ClaimantStatus.OPEN


@dataclass(frozen=True)
class HighClaimantSummary:
    count: int = 0
    total_paid: float = 0.0
    employer_share: float = 0.0
    stop_loss_share: float = 0.0
    average_paid: float = 0.0


def filter_high_claimants(
    claimants: Sequence[HighClaimantInput],
    isl_threshold: float = DEFAULT_ISL_THRESHOLD,
    min_percent_threshold: float = DEFAULT_MIN_PERCENT_THRESHOLD,
) -> List[HighClaimantResult]:
    """
    Keep claimants at or above isl_threshold x min_percent_threshold and
    split their cost between employer and stop-loss carrier.

    Args:
        claimants: Claimant totals for the period
        isl_threshold: Specific stop-loss attachment point
        min_percent_threshold: Reporting floor as a fraction of the ISL

    Returns:
        Results sorted by total paid, largest first (stable for ties)
    """
    min_amount = isl_threshold * min_percent_threshold
    retained = [c for c in claimants if c.total_paid >= min_amount]

    if not retained:
        logger.info(f"No claimants at or above ${min_amount:,.2f}")
        return []

    total_paid = np.array([c.total_paid for c in retained], dtype=float)
    employer_share = np.minimum(total_paid, isl_threshold)
    stop_loss_share = np.maximum(0.0, total_paid - isl_threshold)
    if isl_threshold > 0:
        percent_of_isl = total_paid / isl_threshold * 100
    else:
        percent_of_isl = np.zeros_like(total_paid)

    results = [
        HighClaimantResult(
            claimant_key=c.claimant_key,
            plan_id=c.plan_id,
            med_paid=c.med_paid,
            rx_paid=c.rx_paid,
            total_paid=c.total_paid,
            employer_share=round_currency(float(employer_share[i])),
            stop_loss_share=round_currency(float(stop_loss_share[i])),
            percent_of_isl=round_currency(float(percent_of_isl[i])),
            status=c.status,
        )
        for i, c in enumerate(retained)
    ]

    logger.info(f"{len(results)} of {len(claimants)} claimants at or above "
                f"{min_percent_threshold:.0%} of ISL ${isl_threshold:,.0f}")

    return sorted(results, key=lambda r: r.total_paid, reverse=True)


def calculate_high_claimant_summary(claimants: Sequence[HighClaimantResult]) -> HighClaimantSummary:
    """Count, totals and average total paid over filtered claimants."""
    if len(claimants) == 0:
        return HighClaimantSummary()

    total_paid = sum(c.total_paid for c in claimants)
    employer_share = sum(c.employer_share for c in claimants)
    stop_loss_share = sum(c.stop_loss_share for c in claimants)

    return HighClaimantSummary(
        count=len(claimants),
        total_paid=round_currency(total_paid),
        employer_share=round_currency(employer_share),
        stop_loss_share=round_currency(stop_loss_share),
        average_paid=round_currency(total_paid / len(claimants)),
    )
