"""Repayment schedule generation for the loan ledger.

This module expands a loan into one dated installment per period. Generation
is retroactive: installments whose due date is already behind us are created
as paid at their nominal amount, so changing a loan's parameters after the
fact rebuilds a consistent history without one payment call per period. The
functions here only produce entries; persisting them (delete-by-loan then a
single batch insert) is the store's job.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from .data_models import ENTRY_OVERDUE, ENTRY_PAID, ENTRY_PENDING, Loan, RepaymentScheduleEntry
from .utils import shift_to_day

SCHEDULE_FIELDS = ("total_periods", "monthly_amount", "payment_day", "start_date")


def has_schedule_inputs(loan: Loan) -> bool:
    """Return True when ``loan`` carries everything a schedule needs."""
    return all(getattr(loan, name) is not None for name in SCHEDULE_FIELDS) and loan.total_periods > 0


def schedule_inputs_changed(old: Loan, new: Loan) -> bool:
    """Return True if an update touches any schedule-affecting field."""
    return any(getattr(old, name) != getattr(new, name) for name in SCHEDULE_FIELDS)


def compute_schedule(loan: Loan, today: Optional[date] = None) -> List[RepaymentScheduleEntry]:
    """Compute the repayment schedule for a loan.

    Parameters
    ----------
    loan: Loan
        The loan to expand. ``total_periods``, ``monthly_amount``,
        ``payment_day`` and ``start_date`` must all be set; otherwise an empty
        list is returned.
    today: date
        Evaluation date. Installments due strictly before it are marked paid.

    Returns
    -------
    List[RepaymentScheduleEntry]
        One entry per period ``1..total_periods``. Period ``p`` is due on
        ``payment_day`` (clamped) of the month ``p - 1`` months after the
        start date.
    """
    if not has_schedule_inputs(loan):
        return []
    today = today or date.today()

    schedule: List[RepaymentScheduleEntry] = []
    for period in range(1, loan.total_periods + 1):
        due_date = shift_to_day(loan.start_date, period - 1, loan.payment_day)
        entry = RepaymentScheduleEntry(
            loan_id=loan.id,
            period=period,
            due_date=due_date,
            amount=loan.monthly_amount,
        )
        if due_date < today:
            entry.status = ENTRY_PAID
            entry.paid_date = due_date
            entry.paid_amount = loan.monthly_amount
        schedule.append(entry)
    return schedule


def record_entry_payment(
    entry: RepaymentScheduleEntry, amount: Decimal, paid_date: date
) -> RepaymentScheduleEntry:
    """Return ``entry`` marked paid with the actual amount and date."""
    if entry.status == ENTRY_PAID:
        raise ValueError(f"Schedule entry for period {entry.period} is already paid")
    if amount <= 0:
        raise ValueError("Payment amount must be positive")
    return dataclasses.replace(entry, status=ENTRY_PAID, paid_date=paid_date, paid_amount=amount)


def mark_due_as_paid(
    entries: Iterable[RepaymentScheduleEntry], today: Optional[date] = None
) -> List[RepaymentScheduleEntry]:
    """Return the unpaid entries due on or before ``today``, now marked paid.

    Entries that are already paid, or not yet due, are left out of the result.
    The paid amount is the nominal installment and the paid date is ``today``.
    """
    today = today or date.today()
    changed: List[RepaymentScheduleEntry] = []
    for entry in entries:
        if entry.status == ENTRY_PAID or entry.due_date > today:
            continue
        changed.append(
            dataclasses.replace(entry, status=ENTRY_PAID, paid_date=today, paid_amount=entry.amount)
        )
    return changed


def overdue_entries(
    entries: Iterable[RepaymentScheduleEntry], today: Optional[date] = None
) -> List[RepaymentScheduleEntry]:
    """Return pending entries whose due date has passed, flagged overdue."""
    today = today or date.today()
    return [
        dataclasses.replace(entry, status=ENTRY_OVERDUE)
        for entry in entries
        if entry.status == ENTRY_PENDING and entry.due_date < today
    ]


def summarize_schedule(entries: Iterable[RepaymentScheduleEntry]) -> dict:
    """Aggregate totals over a loan's schedule."""
    entries = list(entries)
    paid = [e for e in entries if e.status == ENTRY_PAID]
    total_due = sum((e.amount for e in entries), Decimal("0"))
    total_paid = sum((e.paid_amount or Decimal("0") for e in paid), Decimal("0"))
    return {
        "periods": len(entries),
        "paid_periods": len(paid),
        "total_due": total_due,
        "total_paid": total_paid,
        "outstanding": total_due - sum((e.amount for e in paid), Decimal("0")),
        "first_due_date": entries[0].due_date if entries else None,
        "last_due_date": entries[-1].due_date if entries else None,
    }
