import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from conftest import TODAY, make_loan, transaction
from loan_ledger.data_models import (
    CHANGE_EXPENSE,
    CHANGE_PAYMENT,
    ENTRY_OVERDUE,
    ENTRY_PAID,
    ENTRY_PENDING,
    TRANSACTION_INCOME,
    FixedExpense,
    Income,
)
from loan_ledger.store import NotFoundError


def _add_scheduled_loan(store):
    loan = make_loan(
        start_date=date(2026, 8, 10),
        payment_day=31,
        monthly_amount=Decimal("500"),
        principal=Decimal("2000"),
        total_periods=4,
    )
    return store.add_loan(loan, TODAY)


def test_add_loan_generates_schedule(store):
    loan = _add_scheduled_loan(store)
    assert loan.id is not None
    assert loan.remaining_amount == Decimal("2000")

    schedule = store.list_schedule(loan.id)
    assert [e.period for e in schedule] == [1, 2, 3, 4]
    assert [e.status for e in schedule] == [ENTRY_PAID, ENTRY_PAID, ENTRY_PENDING, ENTRY_PENDING]
    assert [e.id for e in store.pending_schedule(loan.id)] == [schedule[2].id, schedule[3].id]
    assert [e.due_date for e in store.schedule_for_month(2026, 10)] == [date(2026, 10, 31)]


def test_delete_loan_cascades_to_schedule(store):
    loan = _add_scheduled_loan(store)
    store.delete_loan(loan.id)
    with pytest.raises(NotFoundError):
        store.list_schedule(loan.id)
    assert store.schedule_for_month(2026, 10) == []
    with pytest.raises(NotFoundError):
        store.delete_loan(loan.id)


def test_update_regenerates_only_when_schedule_inputs_change(store):
    loan = _add_scheduled_loan(store)
    original_ids = [e.id for e in store.list_schedule(loan.id)]

    store.update_loan(loan.id, dataclasses.replace(loan, note="renamed"), TODAY)
    assert [e.id for e in store.list_schedule(loan.id)] == original_ids

    store.update_loan(loan.id, dataclasses.replace(loan, total_periods=6), TODAY)
    schedule = store.list_schedule(loan.id)
    assert len(schedule) == 6
    assert schedule[-1].due_date == date(2027, 1, 31)


def test_record_payment_with_auto_deduct(store):
    loan = _add_scheduled_loan(store)
    store.update_balance(Decimal("1000"))

    saved = store.record_payment(loan.id, Decimal("500"), date(2026, 10, 20), auto_deduct=True)

    assert saved.paid_periods == 1
    assert saved.remaining_amount == Decimal("1500")
    assert store.current_balance() == Decimal("500")
    latest = store.balance_history()[0]
    assert latest.change_type == CHANGE_PAYMENT
    assert latest.change_amount == Decimal("-500")
    assert latest.related_id == loan.id
    period_three = store.list_schedule(loan.id)[2]
    assert period_three.status == ENTRY_PAID
    assert period_three.paid_date == date(2026, 10, 20)


def test_record_payment_on_missing_loan(store):
    with pytest.raises(NotFoundError):
        store.record_payment(42, Decimal("100"))


def test_pay_schedule_entry_twice_fails(store):
    loan = _add_scheduled_loan(store)
    entry = store.pending_schedule(loan.id)[0]
    paid = store.pay_schedule_entry(entry.id, Decimal("480"), TODAY)
    assert paid.paid_amount == Decimal("480")
    with pytest.raises(ValueError):
        store.pay_schedule_entry(entry.id)
    with pytest.raises(NotFoundError):
        store.pay_schedule_entry(999)


def test_mark_due_as_paid_and_overdue(store):
    loan = _add_scheduled_loan(store)
    later = date(2026, 11, 1)

    overdue = store.overdue_schedule(later)
    assert [(e.period, e.status) for e in overdue] == [(3, ENTRY_OVERDUE)]

    assert store.mark_due_as_paid(later) == 1
    assert store.mark_due_as_paid(later) == 0
    assert store.list_schedule(loan.id)[2].paid_date == later
    assert store.overdue_schedule(later) == []


def test_regenerate_schedule_discards_actual_payments(store):
    loan = _add_scheduled_loan(store)
    entry = store.pending_schedule(loan.id)[0]
    store.pay_schedule_entry(entry.id, Decimal("480"), TODAY)

    regenerated = store.regenerate_schedule(loan.id, TODAY)
    assert [e.status for e in regenerated] == [ENTRY_PAID, ENTRY_PAID, ENTRY_PENDING, ENTRY_PENDING]


def test_income_and_expense_toggles(store):
    salary = store.add_income(Income(source="Salary", amount=Decimal("3000"), income_day=20))
    rent = store.add_expense(FixedExpense(name="Rent", amount=Decimal("900"), expense_day=1))
    store.set_income_active(salary.id, False)
    store.set_expense_active(rent.id, False)

    assert store.list_incomes(active_only=True) == []
    assert store.list_expenses(active_only=True) == []
    assert len(store.list_incomes()) == 1
    with pytest.raises(NotFoundError):
        store.set_expense_active(999, True)


def test_temp_transactions_range_is_half_open(store):
    for day in (1, 15, 20):
        store.add_temp_transaction(transaction(TRANSACTION_INCOME, "10", date(2026, 10, day)))
    found = store.list_temp_transactions(date(2026, 10, 1), date(2026, 10, 20))
    assert [t.transaction_date.day for t in found] == [1, 15]

    store.delete_temp_transaction(found[0].id)
    assert len(store.list_temp_transactions()) == 2
    with pytest.raises(ValueError):
        store.add_temp_transaction(transaction("gift", "10", TODAY))


def test_balance_ledger(store):
    assert store.current_balance() == Decimal("0")
    store.update_balance(Decimal("1000"), "opening")
    store.add_balance(Decimal("250"))
    store.deduct_balance(Decimal("100"), change_type=CHANGE_EXPENSE)
    assert store.current_balance() == Decimal("1150")
    assert [e.change_amount for e in store.balance_history()] == [
        Decimal("-100"),
        Decimal("250"),
        Decimal("1000"),
    ]


def test_ledger_config_defaults_and_overrides(store):
    config = store.ledger_config()
    assert config.salary_day == 20
    assert config.salary_amount == Decimal("0")

    assert store.get_config_value("salary_day", "unset") == "unset"
    store.set_config_value("salary_day", "31")
    assert store.get_config_value("salary_day") == "31"
    store.set_config_value("salary_amount", "4500.50")
    config = store.ledger_config()
    assert config.salary_day == 31
    assert config.salary_amount == Decimal("4500.50")

    store.set_config_value("salary_day", "soon")
    assert store.ledger_config().salary_day == 20


def test_load_ledger_returns_active_items(store):
    _add_scheduled_loan(store)
    store.add_loan(make_loan(name="Done", paid_periods=12), TODAY)
    store.add_income(Income(source="Salary", amount=Decimal("3000"), income_day=20))
    store.update_balance(Decimal("700"))

    ledger = store.load_ledger()
    assert [loan.name for loan in ledger.loans] == ["Car loan"]
    assert len(ledger.incomes) == 1
    assert ledger.current_balance == Decimal("700")
