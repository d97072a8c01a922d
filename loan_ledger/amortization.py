"""Payoff date and remaining balance math for a single loan.

Everything here is a pure function of loan state and the evaluation date.
Nothing is cached on the ``Loan`` object: the remaining amount, payoff date and
repaid percentage are recomputed every time they are needed so they cannot
drift from the inputs they are derived from.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from .data_models import LOAN_ACTIVE, LOAN_COMPLETED, Loan
from .utils import add_months, shift_to_day

HUNDRED = Decimal("100")
PERCENT_QUANTUM = Decimal("0.0001")


@dataclass
class LoanPlan:
    """Computed repayment outlook for one active loan."""

    loan: Loan
    remaining_amount: Decimal
    remaining_periods: Optional[int]
    payoff_date: Optional[date]
    remaining_months: int
    repaid_percentage: Decimal


def remaining_periods(loan: Loan) -> Optional[int]:
    """Return ``total - paid`` (never negative) or ``None`` if unknown."""
    if loan.total_periods is None or loan.paid_periods is None:
        return None
    return max(loan.total_periods - loan.paid_periods, 0)


def remaining_amount(loan: Loan) -> Decimal:
    """Return the outstanding balance of ``loan``.

    When the installment and period counts are known the balance is derived as
    ``monthly_amount * (total_periods - paid_periods)``; otherwise the stored
    ``remaining_amount`` is used. Missing values give zero.
    """
    periods = remaining_periods(loan)
    if periods is not None and loan.monthly_amount is not None:
        return loan.monthly_amount * Decimal(periods)
    if loan.remaining_amount is not None:
        return max(loan.remaining_amount, Decimal("0"))
    return Decimal("0")


def _base_offset(today: date, payment_day: int) -> int:
    # This month's installment is still ahead of us until its day has passed.
    return 0 if today.day <= payment_day else 1


def first_due_date(today: date, payment_day: int) -> date:
    """Due date of the next outstanding installment as seen from ``today``."""
    return shift_to_day(today, _base_offset(today, payment_day), payment_day)


def _last_due_date(today: date, payment_day: int, periods: int) -> date:
    return shift_to_day(today, _base_offset(today, payment_day) + periods - 1, payment_day)


def payoff_date(loan: Loan, today: Optional[date] = None) -> Optional[date]:
    """Return the due date of the last outstanding installment.

    ``None`` means the loan is already settled or the installment amount is
    unknown. Period counts are preferred; when they are missing the number of
    months is estimated from the remaining balance.
    """
    today = today or date.today()
    monthly = loan.monthly_amount
    if monthly is None or monthly <= 0:
        return None

    periods = remaining_periods(loan)
    if periods is not None and loan.payment_day is not None:
        if periods <= 0:
            return None
        return _last_due_date(today, loan.payment_day, periods)

    if loan.remaining_amount is None:
        return None
    months = int((loan.remaining_amount / monthly).to_integral_value(rounding=ROUND_CEILING))
    if months <= 0:
        return None
    if loan.payment_day is not None:
        return _last_due_date(today, loan.payment_day, months)
    return add_months(today, months)


def repaid_percentage(loan: Loan) -> Decimal:
    """Return the share of the principal already repaid, 0-100.

    The ratio is rounded half-up to four decimal places before scaling, so
    the result carries at most two decimals (``12.35`` for 12.345...%).
    """
    total = loan.principal
    if total is None or total == 0:
        return Decimal("0")
    repaid = total - remaining_amount(loan)
    ratio = (repaid / total).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
    ratio = min(max(ratio, Decimal("0")), Decimal("1"))
    return ratio * HUNDRED


def is_settled(loan: Loan) -> bool:
    if loan.status == LOAN_COMPLETED:
        return True
    periods = remaining_periods(loan)
    if periods is not None and periods == 0:
        return True
    if periods is None and loan.remaining_amount is not None:
        return loan.remaining_amount <= 0
    return False


def settle_status(loan: Loan) -> str:
    """Return the status ``loan`` should carry; completed is terminal."""
    return LOAN_COMPLETED if is_settled(loan) else LOAN_ACTIVE


def normalize(loan: Loan) -> Loan:
    """Return a copy with the stored balance and status brought in line."""
    paid = loan.paid_periods
    if paid is not None and loan.total_periods is not None:
        paid = min(max(paid, 0), loan.total_periods)
    updated = dataclasses.replace(loan, paid_periods=paid)
    updated = dataclasses.replace(updated, remaining_amount=remaining_amount(updated))
    return dataclasses.replace(updated, status=settle_status(updated))


def apply_payment(loan: Loan, amount: Decimal) -> Loan:
    """Return ``loan`` after one installment of ``amount`` has been paid."""
    if loan.status == LOAN_COMPLETED:
        raise ValueError(f"Loan {loan.name!r} is already completed")
    if amount <= 0:
        raise ValueError("Payment amount must be positive")

    paid = loan.paid_periods
    if paid is not None:
        paid += 1
        if loan.total_periods is not None:
            paid = min(paid, loan.total_periods)
    updated = dataclasses.replace(loan, paid_periods=paid)

    if remaining_periods(updated) is not None and updated.monthly_amount is not None:
        new_remaining = remaining_amount(updated)
    else:
        new_remaining = max(remaining_amount(loan) - amount, Decimal("0"))
    updated = dataclasses.replace(updated, remaining_amount=new_remaining)
    if new_remaining <= 0:
        updated = dataclasses.replace(updated, remaining_amount=Decimal("0"), status=LOAN_COMPLETED)
        return updated
    return dataclasses.replace(updated, status=settle_status(updated))


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (may be negative)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def loan_plan(loans: Iterable[Loan], today: Optional[date] = None) -> List[LoanPlan]:
    """Summarize active loans, soonest payoff first."""
    today = today or date.today()
    plans: List[LoanPlan] = []
    for loan in loans:
        if not loan.is_active:
            continue
        payoff = payoff_date(loan, today)
        remaining_months = 0
        if payoff is not None and payoff > today:
            remaining_months = max(months_between(today, payoff), 0)
        plans.append(
            LoanPlan(
                loan=loan,
                remaining_amount=remaining_amount(loan),
                remaining_periods=remaining_periods(loan),
                payoff_date=payoff,
                remaining_months=remaining_months,
                repaid_percentage=repaid_percentage(loan),
            )
        )
    plans.sort(key=lambda p: p.remaining_months)
    return plans
