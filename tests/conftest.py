from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from loan_ledger.data_models import FixedExpense, Income, LedgerData, Loan, TempTransaction
from loan_ledger.store import LedgerStore

TODAY = date(2026, 10, 19)


@pytest.fixture()
def store(tmp_path):
    ledger_store = LedgerStore(f"sqlite:///{tmp_path / 'ledger.db'}")
    try:
        yield ledger_store
    finally:
        ledger_store.dispose()


def make_loan(**overrides) -> Loan:
    values = dict(
        name="Car loan",
        platform="Bank",
        principal=Decimal("12000"),
        monthly_amount=Decimal("1000"),
        payment_day=15,
        total_periods=12,
        paid_periods=0,
    )
    values.update(overrides)
    return Loan(**values)


def make_ledger(
    loans=(), incomes=(), expenses=(), transactions=(), balance: Decimal = Decimal("0")
) -> LedgerData:
    return LedgerData(
        loans=list(loans),
        incomes=list(incomes),
        expenses=list(expenses),
        temp_transactions=list(transactions),
        current_balance=balance,
    )


def income(amount: str, day: int, source: str = "Salary") -> Income:
    return Income(source=source, amount=Decimal(amount), income_day=day)


def expense(amount: str, day: int, name: str = "Rent") -> FixedExpense:
    return FixedExpense(name=name, amount=Decimal(amount), expense_day=day)


def transaction(kind: str, amount: str, on: date, description: str = "") -> TempTransaction:
    return TempTransaction(transaction_date=on, type=kind, amount=Decimal(amount), description=description)
