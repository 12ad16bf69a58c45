"""
BayPlan - Business Day Calendar
===============================

US business-day helpers. The timeline uses them to flag non-working slots.

Holidays:
- Fixed: New Year's Day, Independence Day, Veterans Day, Christmas Day.
  Saturday holidays are observed on Friday, Sunday holidays on Monday.
- Variable: MLK Day, Presidents' Day, Memorial Day, Labor Day,
  Columbus Day, Thanksgiving.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from functools import lru_cache
from typing import Dict, Optional, Tuple

FIXED_HOLIDAYS: Dict[Tuple[int, int], str] = {
    (1, 1): "New Year's Day",
    (7, 4): "Independence Day",
    (11, 11): "Veterans Day",
    (12, 25): "Christmas Day",
}

# (month, weekday Mon=0, occurrence; -1 = last)
VARIABLE_HOLIDAYS: Dict[str, Tuple[int, int, int]] = {
    "Martin Luther King Jr. Day": (1, 0, 3),
    "Presidents' Day": (2, 0, 3),
    "Memorial Day": (5, 0, -1),
    "Labor Day": (9, 0, 1),
    "Columbus Day": (10, 0, 2),
    "Thanksgiving": (11, 3, 4),
}


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """
    n-th occurrence of a weekday in a month (n = -1 for the last one).

    weekday follows date.weekday(): Monday = 0.
    """
    if n < 0:
        last_day = calendar.monthrange(year, month)[1]
        d = date(year, month, last_day)
        while d.weekday() != weekday:
            d -= timedelta(days=1)
        return d

    d = date(year, month, 1)
    while d.weekday() != weekday:
        d += timedelta(days=1)
    return d + timedelta(weeks=n - 1)


@lru_cache(maxsize=64)
def us_holidays(year: int) -> Dict[date, str]:
    """Observed US holidays for a year."""
    holidays: Dict[date, str] = {}

    for (month, day), name in FIXED_HOLIDAYS.items():
        observed = date(year, month, day)
        if observed.weekday() == 6:
            observed += timedelta(days=1)
        elif observed.weekday() == 5:
            observed -= timedelta(days=1)
        holidays[observed] = name

    for name, (month, weekday, n) in VARIABLE_HOLIDAYS.items():
        holidays[nth_weekday_of_month(year, month, weekday, n)] = name

    return holidays


def is_holiday(d: date) -> bool:
    # New Year's Day on a Saturday is observed on Dec 31 of the previous year
    return d in us_holidays(d.year) or d in us_holidays(d.year + 1)


def is_business_day(d: Optional[date]) -> bool:
    if d is None:
        return False
    if d.weekday() >= 5:
        return False
    return not is_holiday(d)


def count_working_days(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """
    Weekdays that are not holidays in [start, end], inclusive.

    Returns None for missing dates or start > end.
    """
    if start is None or end is None or start > end:
        return None

    count = 0
    current = start
    while current <= end:
        if is_business_day(current):
            count += 1
        current += timedelta(days=1)
    return count


def adjust_to_next_business_day(d: Optional[date]) -> Optional[date]:
    if d is None:
        return None
    while not is_business_day(d):
        d += timedelta(days=1)
    return d


def adjust_to_previous_business_day(d: Optional[date]) -> Optional[date]:
    if d is None:
        return None
    while not is_business_day(d):
        d -= timedelta(days=1)
    return d
