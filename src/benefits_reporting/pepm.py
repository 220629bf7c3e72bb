"""
benefits_reporting/pepm.py - Per-Employee-Per-Month Normalization

PEPM = Total metric / Average subscribers
Average subscribers = Subscriber-months / Number of months

Author: Actuarial Pipeline Project
License: MIT
"""

from dataclasses import dataclass, field
from typing import Dict, Generic, List, Mapping, Optional, Sequence, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class PepmDataPoint:
    """One month of a PEPM trend chart."""
    month: str
    current: Optional[float] = None
    prior: Optional[float] = None


@dataclass(frozen=True)
class PeriodSplit(Generic[T]):
    """Result of splitting a 24-month series into two 12-month periods."""
    current_12: List[T] = field(default_factory=list)
    prior_12: List[T] = field(default_factory=list)


def calculate_pepm(total_amount: float, subscriber_months: float,
                   number_of_months: int) -> float:
    """
    Normalize a total over an aggregation window to a monthly per-subscriber
    figure.

    Args:
        total_amount: Dollar total over the window
        subscriber_months: Sum of monthly subscriber counts over the window
        number_of_months: Months in the window

    Returns:
        PEPM, or 0.0 when there are no months or no subscribers
    """
    if number_of_months == 0 or subscriber_months == 0:
        return 0.0
    average_subscribers = subscriber_months / number_of_months
    return total_amount / average_subscribers


def compare_periods(current_total: float, current_subscriber_months: float,
                    prior_total: float, prior_subscriber_months: float) -> Dict[str, float]:
    """PEPM for the current 12 months against the prior 12 months."""
    return {
        'current': calculate_pepm(current_total, current_subscriber_months, 12),
        'prior': calculate_pepm(prior_total, prior_subscriber_months, 12),
    }


def create_pepm_trend_data(months: Sequence[str],
                           current_period: Mapping[str, float],
                           prior_period: Optional[Mapping[str, float]] = None) -> List[PepmDataPoint]:
    """Build chart points; months missing from a period map to None."""
    return [
        PepmDataPoint(
            month=month,
            current=current_period.get(month),
            prior=prior_period.get(month) if prior_period is not None else None,
        )
        for month in months
    ]


def split_24_months(data: Sequence[T]) -> PeriodSplit[T]:
    """
    Split a series into "current 12" and "prior 12".

    The first 12 entries are the current period and entries 13-24 are the
    prior period. The input order is used as given; callers that hold the
    series oldest-first must reverse it before calling. With fewer than 24
    entries everything is current and the prior period is empty.
    """
    data = list(data)
    if len(data) < 24:
        return PeriodSplit(current_12=data, prior_12=[])
    return PeriodSplit(current_12=data[:12], prior_12=data[12:24])
