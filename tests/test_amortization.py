from datetime import date
from decimal import Decimal

import pytest

from conftest import make_loan
from loan_ledger.amortization import (
    apply_payment,
    loan_plan,
    months_between,
    normalize,
    payoff_date,
    remaining_amount,
    remaining_periods,
    repaid_percentage,
)
from loan_ledger.data_models import LOAN_ACTIVE, LOAN_COMPLETED


def test_remaining_amount_is_derived_from_periods():
    loan = make_loan(paid_periods=3, remaining_amount=Decimal("1"))
    assert remaining_periods(loan) == 9
    assert remaining_amount(loan) == Decimal("9000")


def test_remaining_amount_falls_back_to_stored_value():
    loan = make_loan(total_periods=None, remaining_amount=Decimal("2500"))
    assert remaining_periods(loan) is None
    assert remaining_amount(loan) == Decimal("2500")
    assert remaining_amount(make_loan(total_periods=None)) == Decimal("0")


def test_payoff_date_when_payment_day_has_passed():
    # today is after the 15th, so the first remaining installment is next month
    assert payoff_date(make_loan(), date(2026, 10, 20)) == date(2027, 10, 15)


def test_payoff_date_when_payment_day_is_ahead():
    assert payoff_date(make_loan(), date(2026, 10, 10)) == date(2027, 9, 15)
    assert payoff_date(make_loan(), date(2026, 10, 15)) == date(2027, 9, 15)


def test_settled_loan_has_no_payoff_and_full_progress():
    loan = make_loan(paid_periods=12)
    assert payoff_date(loan, date(2026, 10, 19)) is None
    assert repaid_percentage(loan) == Decimal("100")


def test_payoff_date_without_periods_uses_remaining_balance():
    loan = make_loan(total_periods=None, payment_day=None, remaining_amount=Decimal("2500"))
    assert payoff_date(loan, date(2026, 10, 19)) == date(2027, 1, 19)

    with_day = make_loan(total_periods=None, payment_day=5, remaining_amount=Decimal("2500"))
    assert payoff_date(with_day, date(2026, 10, 19)) == date(2027, 1, 5)


def test_payoff_date_requires_positive_installment():
    assert payoff_date(make_loan(monthly_amount=None), date(2026, 10, 19)) is None
    assert payoff_date(make_loan(monthly_amount=Decimal("0")), date(2026, 10, 19)) is None


def test_repaid_percentage():
    loan = make_loan(principal=Decimal("10000"), total_periods=10, paid_periods=3)
    assert repaid_percentage(loan) == Decimal("30")
    assert repaid_percentage(make_loan(principal=None)) == Decimal("0")


def test_apply_payment_settles_last_installment():
    loan = make_loan(total_periods=3, paid_periods=2, monthly_amount=Decimal("100"))
    paid = apply_payment(loan, Decimal("100"))
    assert paid.paid_periods == 3
    assert paid.remaining_amount == Decimal("0")
    assert paid.status == LOAN_COMPLETED

    with pytest.raises(ValueError):
        apply_payment(paid, Decimal("100"))


def test_apply_payment_without_periods_subtracts_amount():
    loan = make_loan(total_periods=None, monthly_amount=Decimal("100"), remaining_amount=Decimal("250"))
    paid = apply_payment(loan, Decimal("100"))
    assert paid.remaining_amount == Decimal("150")
    assert paid.status == LOAN_ACTIVE


def test_apply_payment_rejects_non_positive_amount():
    with pytest.raises(ValueError):
        apply_payment(make_loan(), Decimal("0"))


def test_normalize_caps_paid_periods():
    loan = normalize(make_loan(paid_periods=15))
    assert loan.paid_periods == 12
    assert loan.remaining_amount == Decimal("0")
    assert loan.status == LOAN_COMPLETED


def test_loan_plan_orders_by_remaining_months():
    today = date(2026, 10, 19)
    long_loan = make_loan(name="Mortgage", id=1)
    short_loan = make_loan(name="Phone", id=2, total_periods=3)
    done = make_loan(name="Old", id=3, status=LOAN_COMPLETED)
    plans = loan_plan([long_loan, short_loan, done], today)
    assert [p.loan.name for p in plans] == ["Phone", "Mortgage"]
    assert plans[0].payoff_date == date(2027, 1, 15)
    assert plans[0].remaining_months == 2


def test_months_between():
    assert months_between(date(2026, 10, 19), date(2027, 1, 19)) == 3
    assert months_between(date(2026, 10, 19), date(2027, 1, 15)) == 2
