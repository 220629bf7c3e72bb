"""
benefits_reporting/rounding.py - Rounding & Calendar Utilities

Shared numeric helpers for the financial statements:
- Decimal rounding in two regimes (half-up and banker's)
- Calendar helpers for month boundaries
- Inclusive day counting for fee-window proration

Rounding is applied to the shortest decimal representation of a value, so
results agree with the spreadsheet (ROUND(1.005, 2) = 1.01) rather than with
the binary floating-point expansion of the input.

Author: Actuarial Pipeline Project
License: MIT
"""

import calendar
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP
from enum import Enum
from typing import Union

Number = Union[int, float]


class RoundingMode(Enum):
    """Supported rounding regimes."""
    HALF_UP = "HALF_UP"
    BANKERS = "BANKERS"


_DECIMAL_ROUNDING = {
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.BANKERS: ROUND_HALF_EVEN,
}


def round_number(value: Number, precision: int = 2,
                 mode: Union[RoundingMode, str] = RoundingMode.HALF_UP) -> float:
    """
    Round a value to a fixed number of decimal places.

    HALF_UP rounds ties away from zero (2.5 -> 3, -2.5 -> -3).
    BANKERS rounds ties to the nearest even digit (2.5 -> 2, 3.5 -> 4), so
    repeated rounding of many small allocations does not drift upward.

    Args:
        value: Number to round
        precision: Decimal places to keep (0 rounds to an integer value)
        mode: RoundingMode or its string name

    Returns:
        Rounded value as a float
    """
    mode = RoundingMode(mode)
    quantum = Decimal(1).scaleb(-precision)
    rounded = Decimal(str(value)).quantize(quantum, rounding=_DECIMAL_ROUNDING[mode])
    return float(rounded)


def round_currency(value: Number) -> float:
    """Round to cents, half-up."""
    return round_number(value, 2, RoundingMode.HALF_UP)


def to_date(value: Union[date, datetime, str]) -> date:
    """Coerce a date, datetime or ISO string (YYYY-MM-DD) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value.strip()[:10], '%Y-%m-%d').date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


def get_days_in_month(value: Union[date, datetime]) -> int:
    """Number of calendar days in the month containing value (28-31)."""
    d = to_date(value)
    return calendar.monthrange(d.year, d.month)[1]


def get_month_end(value: Union[date, datetime]) -> date:
    """Last calendar day of the month containing value."""
    d = to_date(value)
    return date(d.year, d.month, get_days_in_month(d))


def get_effective_days(window_start: date, window_end: date,
                       month_start: date, month_end: date) -> int:
    """
    Count the days a fee window is in force within a month.

    Both ranges are inclusive on both ends. Only whole days are counted.

    Returns:
        Days in the intersection of [window_start, window_end] and
        [month_start, month_end]; 0 if they do not overlap
    """
    effective_start = max(to_date(window_start), to_date(month_start))
    effective_end = min(to_date(window_end), to_date(month_end))

    if effective_start > effective_end:
        return 0

    return (effective_end - effective_start).days + 1
