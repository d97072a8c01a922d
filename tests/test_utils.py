from datetime import date
from decimal import Decimal

import pytest

from loan_ledger.utils import (
    add_months,
    clamped_date,
    cycle_window,
    decimal_from_str,
    iter_months,
    month_display,
    month_end,
    month_key,
    parse_iso_date,
    parse_year_month,
    shift_to_day,
)


def test_clamped_date_handles_short_months():
    assert clamped_date(2024, 2, 31) == date(2024, 2, 29)
    assert clamped_date(2023, 2, 31) == date(2023, 2, 28)
    assert clamped_date(2023, 4, 31) == date(2023, 4, 30)
    assert clamped_date(2023, 4, 0) == date(2023, 4, 1)


def test_add_months_clamps_and_accepts_negative_offsets():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_shift_to_day_places_result_on_requested_day():
    assert shift_to_day(date(2024, 1, 10), 1, 31) == date(2024, 2, 29)
    assert shift_to_day(date(2024, 1, 31), 2, 15) == date(2024, 3, 15)


def test_month_helpers():
    assert list(iter_months(date(2024, 11, 15), 3)) == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1)]
    assert list(iter_months(date(2024, 11, 15), 0)) == []
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert month_key(date(2026, 10, 5)) == "2026-10"
    assert month_display(date(2026, 10, 1)) == "October 2026"


def test_cycle_window_before_and_on_salary_day():
    assert cycle_window(date(2026, 10, 19), 20) == (date(2026, 9, 20), date(2026, 10, 20))
    assert cycle_window(date(2026, 10, 20), 20) == (date(2026, 10, 20), date(2026, 11, 20))


def test_cycle_window_with_salary_day_past_month_end():
    assert cycle_window(date(2024, 2, 29), 31) == (date(2024, 2, 29), date(2024, 3, 31))
    assert cycle_window(date(2024, 2, 28), 31) == (date(2024, 1, 31), date(2024, 2, 29))


def test_parsers():
    assert parse_year_month("2026-10") == date(2026, 10, 1)
    assert parse_iso_date(" 2026-10-19 ") == date(2026, 10, 19)
    assert decimal_from_str("1,234.50") == Decimal("1234.50")
    with pytest.raises(ValueError):
        parse_year_month("2026-13")
    with pytest.raises(ValueError):
        parse_iso_date("19/10/2026")
    with pytest.raises(ValueError):
        decimal_from_str("abc")
