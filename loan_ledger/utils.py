"""Utility functions for the loan ledger.

This module provides the calendar helpers every projection relies on: shifting
dates by whole months, clamping a day-of-month to the length of its month and
computing salary-cycle windows. It also parses user input (year-month strings,
ISO dates, amounts) into Python data types. Day-of-month values are never an
error path here; out-of-range days are silently clamped.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal, getcontext
from typing import Iterator, Tuple

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamped_date(year: int, month: int, day: int) -> date:
    """Return ``date(year, month, day)`` with ``day`` clamped to the month.

    ``clamped_date(2023, 2, 31)`` is 2023-02-28 and ``clamped_date(2024, 2, 31)``
    is 2024-02-29. Days below 1 are treated as 1.
    """
    day = max(1, min(day, days_in_month(year, month)))
    return date(year, month, day)


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29). ``months`` may be
    negative.
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    return clamped_date(year, month, dt.day)


def shift_to_day(dt: date, months: int, day: int) -> date:
    """Shift ``dt`` by ``months`` and place the result on ``day`` (clamped)."""
    shifted = add_months(month_start(dt), months)
    return clamped_date(shifted.year, shifted.month, day)


def month_start(dt: date) -> date:
    return dt.replace(day=1)


def month_end(dt: date) -> date:
    return dt.replace(day=days_in_month(dt.year, dt.month))


def iter_months(start: date, count: int) -> Iterator[date]:
    """Yield the first day of ``count`` consecutive months starting at ``start``."""
    first = month_start(start)
    for offset in range(max(count, 0)):
        yield add_months(first, offset)


def month_key(dt: date) -> str:
    return dt.strftime("%Y-%m")


def month_display(dt: date) -> str:
    return f"{calendar.month_name[dt.month]} {dt.year}"


def cycle_window(day: date, salary_day: int) -> Tuple[date, date]:
    """Return the half-open salary cycle ``[start, end)`` containing ``day``.

    Both bounds fall on ``salary_day`` clamped to their month. The cycle starts
    this month once this month's salary date has been reached, otherwise it
    started last month. The end is placed from the month index rather than by
    shifting the start, so a clamped start (Feb 28 for day 31) does not drift
    into later cycles.
    """
    this_month_salary = clamped_date(day.year, day.month, salary_day)
    offset = 0 if day >= this_month_salary else -1
    start = shift_to_day(day, offset, salary_day)
    end = shift_to_day(day, offset + 1, salary_day)
    return start, end


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except Exception as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a ``date``."""
    try:
        return date.fromisoformat(value.strip())
    except Exception as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        return Decimal(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
