"""Salary-cycle projection.

A salary cycle is the half-open window ``[cycle_start, cycle_end)`` between two
consecutive salary days. For the current cycle the projection starts today and
only looks forward; any other cycle covers the full window. Loan installments,
fixed expenses and one-off transactions falling in the window are merged into
one date-ordered timeline and walked with a running balance seeded from the
current cash balance. The balance left after the last event is the
"before salary" figure; it is never computed separately from the walk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from .amortization import payoff_date
from .config import LedgerConfig
from .data_models import LedgerData, TempTransaction
from .utils import add_months, clamped_date, cycle_window, month_start, shift_to_day

KIND_LOAN = "loan"
KIND_EXPENSE = "expense"
KIND_TEMPORARY = "temporary"


@dataclass
class TimelineEvent:
    """A cash movement inside a cycle, annotated with the running balance."""

    date: date
    kind: str
    description: str
    amount: Decimal
    is_income: bool = False
    platform: Optional[str] = None
    balance_before: Optional[Decimal] = None
    balance_after: Optional[Decimal] = None


@dataclass
class SalaryCycle:
    cycle_start: date
    cycle_end: date
    is_current: bool
    current_balance: Decimal
    salary_income: Decimal
    loan_payments: Decimal
    fixed_expenses: Decimal
    temp_income: Decimal
    temp_expense: Decimal
    before_salary_balance: Decimal
    after_salary_balance: Decimal
    is_sufficient: bool
    days_to_salary: Optional[int] = None
    timeline: List[TimelineEvent] = field(default_factory=list)

    def events_of(self, kind: str) -> List[TimelineEvent]:
        return [event for event in self.timeline if event.kind == kind]


def _months_spanning(start: date, end: date) -> Iterable[date]:
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = add_months(current, 1)


def loan_events(ledger: LedgerData, start: date, end: date, today: Optional[date] = None) -> List[TimelineEvent]:
    """Installments due in ``[start, end)``, skipping those after payoff."""
    today = today or date.today()
    events: List[TimelineEvent] = []
    for loan in ledger.active_loans:
        payoff = payoff_date(loan, today)
        if payoff is None or loan.payment_day is None:
            continue
        for month in _months_spanning(start, end):
            due = clamped_date(month.year, month.month, loan.payment_day)
            if start <= due < end and due <= payoff:
                events.append(
                    TimelineEvent(
                        date=due,
                        kind=KIND_LOAN,
                        description=loan.name,
                        platform=loan.platform,
                        amount=loan.monthly_amount,
                    )
                )
    events.sort(key=lambda e: e.date)
    return events


def expense_events(ledger: LedgerData, start: date, end: date) -> List[TimelineEvent]:
    """Fixed expense occurrences in ``[start, end)``."""
    events: List[TimelineEvent] = []
    for expense in ledger.active_expenses:
        for month in _months_spanning(start, end):
            due = clamped_date(month.year, month.month, expense.expense_day)
            if start <= due < end:
                events.append(
                    TimelineEvent(date=due, kind=KIND_EXPENSE, description=expense.name, amount=expense.amount)
                )
    events.sort(key=lambda e: e.date)
    return events


def transactions_in_range(transactions: Iterable[TempTransaction], start: date, end: date) -> List[TempTransaction]:
    return [t for t in transactions if start <= t.transaction_date < end]


def temporary_events(ledger: LedgerData, start: date, end: date) -> List[TimelineEvent]:
    return [
        TimelineEvent(
            date=t.transaction_date,
            kind=KIND_TEMPORARY,
            description=t.description,
            amount=t.amount,
            is_income=t.is_income,
        )
        for t in transactions_in_range(ledger.temp_transactions, start, end)
    ]


def build_timeline(events: Iterable[TimelineEvent], start_balance: Decimal) -> List[TimelineEvent]:
    """Sort ``events`` by date and annotate each with the running balance.

    The sort is stable, so events on the same day keep their input order.
    """
    balance = start_balance
    timeline: List[TimelineEvent] = []
    for event in sorted(events, key=lambda e: e.date):
        event.balance_before = balance
        if event.is_income:
            balance = balance + event.amount
        else:
            balance = balance - event.amount
        event.balance_after = balance
        timeline.append(event)
    return timeline


def _sum(events: Iterable[TimelineEvent]) -> Decimal:
    return sum((e.amount for e in events), Decimal("0"))


def calculate_cycle(
    ledger: LedgerData,
    config: LedgerConfig,
    cycle_start: date,
    cycle_end: date,
    is_current: bool,
    today: Optional[date] = None,
) -> SalaryCycle:
    """Project the cycle ``[cycle_start, cycle_end)``."""
    today = today or date.today()
    window_start = today if is_current else cycle_start

    events = (
        loan_events(ledger, window_start, cycle_end, today)
        + expense_events(ledger, window_start, cycle_end)
        + temporary_events(ledger, window_start, cycle_end)
    )
    timeline = build_timeline(events, ledger.current_balance)

    before_salary = timeline[-1].balance_after if timeline else ledger.current_balance
    temporary = [e for e in timeline if e.kind == KIND_TEMPORARY]
    return SalaryCycle(
        cycle_start=cycle_start,
        cycle_end=cycle_end,
        is_current=is_current,
        days_to_salary=(cycle_end - today).days if is_current else None,
        current_balance=ledger.current_balance,
        salary_income=config.salary_amount,
        loan_payments=_sum(e for e in timeline if e.kind == KIND_LOAN),
        fixed_expenses=_sum(e for e in timeline if e.kind == KIND_EXPENSE),
        temp_income=_sum(e for e in temporary if e.is_income),
        temp_expense=_sum(e for e in temporary if not e.is_income),
        timeline=timeline,
        before_salary_balance=before_salary,
        after_salary_balance=before_salary + config.salary_amount,
        is_sufficient=before_salary >= 0,
    )


def current_cycle(ledger: LedgerData, config: LedgerConfig, today: Optional[date] = None) -> SalaryCycle:
    """Project the cycle containing today, from today onwards."""
    today = today or date.today()
    start, end = cycle_window(today, config.salary_day)
    return calculate_cycle(ledger, config, start, end, True, today)


def cycle_by_date(
    ledger: LedgerData, config: LedgerConfig, day: date, today: Optional[date] = None
) -> SalaryCycle:
    """Project the full cycle containing ``day``."""
    today = today or date.today()
    start, end = cycle_window(day, config.salary_day)
    return calculate_cycle(ledger, config, start, end, False, today)


def future_cycles(
    ledger: LedgerData, config: LedgerConfig, count: int, today: Optional[date] = None
) -> List[SalaryCycle]:
    """Project ``count`` consecutive cycles; the first one is the current cycle."""
    today = today or date.today()
    start, _ = cycle_window(today, config.salary_day)
    cycles: List[SalaryCycle] = []
    for offset in range(max(count, 0)):
        cycle_start = shift_to_day(start, offset, config.salary_day)
        cycle_end = shift_to_day(start, offset + 1, config.salary_day)
        cycles.append(calculate_cycle(ledger, config, cycle_start, cycle_end, offset == 0, today))
    return cycles
