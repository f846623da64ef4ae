"""
Calendar Arithmetic
===================

Pure date helpers used by the due-date rule catalog.

All functions take and return ``datetime`` values and preserve the anchor's
time of day and tzinfo. Weekends (Saturday/Sunday) are the only non-working
days; holidays are not modelled.
"""

import calendar
from datetime import datetime, timedelta
from typing import Iterable, Tuple

SATURDAY = 5


def is_working_day(d: datetime) -> bool:
    return d.weekday() < SATURDAY


def add_calendar_days(d: datetime, days: int) -> datetime:
    return d + timedelta(days=days)


def add_working_days(d: datetime, days: int) -> datetime:
    """
    Walk ``abs(days)`` working days from ``d`` in the direction of ``days``.

    The walk steps before it checks, so the anchor day itself never counts:
    a Saturday anchor plus one working day lands on Monday, and a Saturday
    anchor minus one lands on Friday.
    """
    step = 1 if days >= 0 else -1
    remaining = abs(days)
    current = d
    while remaining > 0:
        current = current + timedelta(days=step)
        if is_working_day(current):
            remaining -= 1
    return current


def end_of_month(d: datetime) -> datetime:
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=last_day)


def next_month_day(d: datetime, month: int, day: int) -> datetime:
    """The given month/day this year if it is on or after ``d``, else next year."""
    candidate = d.replace(month=month, day=day)
    if candidate.date() >= d.date():
        return candidate
    return candidate.replace(year=d.year + 1)


def next_from_candidates(d: datetime, candidates: Iterable[Tuple[int, int]]) -> datetime:
    """Earliest (month, day) on or after ``d`` across this year and next."""
    options = []
    for year in (d.year, d.year + 1):
        for month, day in candidates:
            candidate = d.replace(year=year, month=month, day=day)
            if candidate.date() >= d.date():
                options.append(candidate)
    return min(options)


def nth_working_day_of_month(year: int, month: int, n: int, like: datetime) -> datetime:
    """
    The ``n``-th Monday-Friday of ``year``/``month``, carrying the time of day
    and tzinfo of ``like``.
    """
    current = like.replace(year=year, month=month, day=1)
    count = 0
    while True:
        if is_working_day(current):
            count += 1
            if count == n:
                return current
        current = current + timedelta(days=1)


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def nth_working_day_of_next_month(d: datetime, n: int) -> datetime:
    year, month = _shift_month(d.year, d.month, 1)
    return nth_working_day_of_month(year, month, n, like=d)


def second_working_day_of_next_month(d: datetime) -> datetime:
    return nth_working_day_of_next_month(d, 2)


def second_working_day_of_next_quarter(d: datetime) -> datetime:
    quarter = (d.month - 1) // 3
    year, month = d.year, (quarter + 1) * 3 + 1
    if month > 12:
        year, month = year + 1, month - 12
    return nth_working_day_of_month(year, month, 2, like=d)


# ========== Recurring cycles ==========

def next_payroll_cutoff(d: datetime) -> datetime:
    """Next payroll cutoff: the 2nd or the 17th of a month, on or after ``d``."""
    if d.day <= 2:
        return d.replace(day=2)
    if d.day <= 17:
        return d.replace(day=17)
    year, month = _shift_month(d.year, d.month, 1)
    return d.replace(year=year, month=month, day=2)


def next_open_enrollment(d: datetime) -> datetime:
    """Benefits open enrollment runs every June 1 and December 1."""
    return next_from_candidates(d, [(6, 1), (12, 1)])


def next_calibration_week(d: datetime) -> datetime:
    """
    Managerial calibration happens in the 2nd week of February, June,
    September and December, approximated as the 8th.
    """
    return next_from_candidates(d, [(2, 8), (6, 8), (9, 8), (12, 8)])
