"""Multi-month cash-flow forecast.

The monthly forecast aggregates every active income, fixed expense and loan
installment into one row per calendar month and keeps a running cumulative
balance starting at zero. It is a relative trend, not a prediction of the
actual account balance. ``generate_event_timeline`` instead lists each cash
movement on its own day for day-level inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .amortization import first_due_date, payoff_date
from .data_models import LedgerData
from .utils import add_months, clamped_date, iter_months, month_display, month_key, month_start

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_MONTHS = 12
MAX_HORIZON_MONTHS = 120

EVENT_INCOME = "income"
EVENT_EXPENSE = "expense"
EVENT_PAYMENT = "payment"


@dataclass
class PaymentDetail:
    loan_name: str
    platform: Optional[str]
    amount: Decimal
    payment_day: Optional[int]


@dataclass
class ForecastMonth:
    """Aggregated cash flow for one forecast month."""

    month: str
    month_display: str
    income: Decimal
    expense: Decimal
    payment: Decimal
    surplus: Decimal
    start_balance: Decimal
    end_balance: Decimal
    is_deficit: bool
    payment_details: List[PaymentDetail] = field(default_factory=list)


@dataclass
class DeficitReport:
    has_deficit: bool
    deficit_months: List[ForecastMonth]
    first_deficit_month: Optional[str] = None
    first_deficit_index: Optional[int] = None
    warning: Optional[str] = None


@dataclass
class CashEvent:
    """A single dated income, expense or loan payment."""

    date: date
    type: str
    amount: Decimal
    source: str


def _validate_horizon(months: int) -> int:
    months = int(months)
    if months > MAX_HORIZON_MONTHS:
        raise ValueError(f"Forecast horizon must be at most {MAX_HORIZON_MONTHS} months; got {months}")
    return max(months, 0)


def _amount(value: Optional[Decimal]) -> Decimal:
    return value if value is not None else Decimal("0")


def forecast_cash_flow(
    ledger: LedgerData, months: int = DEFAULT_HORIZON_MONTHS, today: Optional[date] = None
) -> List[ForecastMonth]:
    """Project income, expense and loan payments for ``months`` months.

    A loan contributes its installment to every month up to and including the
    month of its computed payoff date, then drops out. Loans without a payoff
    date (settled, or missing an installment amount) contribute nothing.
    """
    months = _validate_horizon(months)
    today = today or date.today()

    monthly_income = sum((_amount(i.amount) for i in ledger.active_incomes), Decimal("0"))
    monthly_expense = sum((_amount(e.amount) for e in ledger.active_expenses), Decimal("0"))

    payoff_months = []
    for loan in ledger.active_loans:
        payoff = payoff_date(loan, today)
        if payoff is None:
            logger.debug("Loan %r has no payoff date; excluded from forecast", loan.name)
            continue
        payoff_months.append((loan, month_start(payoff)))

    forecast: List[ForecastMonth] = []
    cumulative = Decimal("0")
    for month in iter_months(today, months):
        payment = Decimal("0")
        details: List[PaymentDetail] = []
        for loan, payoff_month in payoff_months:
            if month <= payoff_month:
                payment += loan.monthly_amount
                details.append(
                    PaymentDetail(
                        loan_name=loan.name,
                        platform=loan.platform,
                        amount=loan.monthly_amount,
                        payment_day=loan.payment_day,
                    )
                )
        surplus = monthly_income - monthly_expense - payment
        start_balance = cumulative
        cumulative += surplus
        forecast.append(
            ForecastMonth(
                month=month_key(month),
                month_display=month_display(month),
                income=monthly_income,
                expense=monthly_expense,
                payment=payment,
                surplus=surplus,
                start_balance=start_balance,
                end_balance=cumulative,
                is_deficit=cumulative < 0,
                payment_details=details,
            )
        )
    return forecast


def detect_deficit(
    ledger: LedgerData, months: int = DEFAULT_HORIZON_MONTHS, today: Optional[date] = None
) -> DeficitReport:
    """Return the forecast months whose cumulative balance is negative."""
    forecast = forecast_cash_flow(ledger, months, today)
    deficit_months = [m for m in forecast if m.is_deficit]
    if not deficit_months:
        return DeficitReport(has_deficit=False, deficit_months=[])
    first = deficit_months[0]
    return DeficitReport(
        has_deficit=True,
        deficit_months=deficit_months,
        first_deficit_month=first.month_display,
        first_deficit_index=forecast.index(first),
        warning=f"A deficit is expected in {first.month_display}",
    )


def generate_event_timeline(
    ledger: LedgerData, months: int = DEFAULT_HORIZON_MONTHS, today: Optional[date] = None
) -> List[CashEvent]:
    """List every income, expense and payment occurrence, sorted by date.

    One occurrence per item is emitted for each month of the horizon, placed on
    the item's day of month (clamped). Loan payments start at the next
    outstanding installment and stop after the loan's payoff date, so each loan
    contributes at most its remaining periods.
    """
    months = _validate_horizon(months)
    today = today or date.today()
    end = add_months(today, months)

    payoffs = []
    for loan in ledger.active_loans:
        payoff = payoff_date(loan, today)
        if payoff is None or loan.payment_day is None:
            continue
        payoffs.append((loan, first_due_date(today, loan.payment_day), payoff))

    events: List[CashEvent] = []
    current = today
    step = 0
    while current < end:
        for income in ledger.active_incomes:
            events.append(
                CashEvent(
                    date=clamped_date(current.year, current.month, income.income_day),
                    type=EVENT_INCOME,
                    amount=_amount(income.amount),
                    source=income.source,
                )
            )
        for expense in ledger.active_expenses:
            events.append(
                CashEvent(
                    date=clamped_date(current.year, current.month, expense.expense_day),
                    type=EVENT_EXPENSE,
                    amount=_amount(expense.amount),
                    source=expense.name,
                )
            )
        for loan, first_due, payoff in payoffs:
            due = clamped_date(current.year, current.month, loan.payment_day)
            if first_due <= due <= payoff:
                events.append(
                    CashEvent(date=due, type=EVENT_PAYMENT, amount=loan.monthly_amount, source=loan.name)
                )
        step += 1
        current = add_months(today, step)

    events.sort(key=lambda e: e.date)
    return events
