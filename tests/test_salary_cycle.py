from datetime import date
from decimal import Decimal

from conftest import expense, make_ledger, make_loan, transaction
from loan_ledger.config import LedgerConfig
from loan_ledger.data_models import TRANSACTION_EXPENSE, TRANSACTION_INCOME, FixedExpense, Income
from loan_ledger.salary_cycle import (
    KIND_EXPENSE,
    KIND_LOAN,
    KIND_TEMPORARY,
    build_timeline,
    current_cycle,
    cycle_by_date,
    expense_events,
    future_cycles,
)

TODAY = date(2026, 10, 1)
CONFIG = LedgerConfig(salary_day=20, salary_amount=Decimal("5000"))


def test_current_cycle_walks_running_balance():
    ledger = make_ledger(
        expenses=[expense("300", 5)],
        transactions=[transaction(TRANSACTION_INCOME, "200", date(2026, 10, 10), "Refund")],
        balance=Decimal("1000"),
    )
    cycle = current_cycle(ledger, CONFIG, TODAY)

    assert (cycle.cycle_start, cycle.cycle_end) == (date(2026, 9, 20), date(2026, 10, 20))
    assert cycle.is_current
    assert cycle.days_to_salary == 19
    assert [e.kind for e in cycle.timeline] == [KIND_EXPENSE, KIND_TEMPORARY]
    assert [e.balance_after for e in cycle.timeline] == [Decimal("700"), Decimal("900")]
    assert cycle.fixed_expenses == Decimal("300")
    assert cycle.temp_income == Decimal("200")
    assert cycle.before_salary_balance == Decimal("900")
    assert cycle.after_salary_balance == Decimal("5900")
    assert cycle.is_sufficient


def test_current_cycle_only_looks_forward():
    ledger = make_ledger(
        transactions=[transaction(TRANSACTION_EXPENSE, "50", date(2026, 9, 25))],
        balance=Decimal("100"),
    )
    cycle = current_cycle(ledger, CONFIG, TODAY)
    assert cycle.timeline == []
    assert cycle.before_salary_balance == Decimal("100")


def test_insufficient_cycle():
    ledger = make_ledger(expenses=[expense("300", 5)], balance=Decimal("100"))
    cycle = current_cycle(ledger, CONFIG, TODAY)
    assert cycle.before_salary_balance == Decimal("-200")
    assert not cycle.is_sufficient


def test_cycle_by_date_covers_full_window():
    ledger = make_ledger(expenses=[expense("300", 5)], balance=Decimal("1000"))
    cycle = cycle_by_date(ledger, CONFIG, date(2026, 11, 25), TODAY)
    assert (cycle.cycle_start, cycle.cycle_end) == (date(2026, 11, 20), date(2026, 12, 20))
    assert not cycle.is_current
    assert cycle.days_to_salary is None
    assert [e.date for e in cycle.timeline] == [date(2026, 12, 5)]


def test_future_cycles_skip_installments_after_payoff():
    # the only remaining installment is due 2026-10-15
    ledger = make_ledger(loans=[make_loan(total_periods=1, monthly_amount=Decimal("100"))], balance=Decimal("500"))
    first, second = future_cycles(ledger, CONFIG, 2, TODAY)
    assert first.is_current and not second.is_current
    assert [e.date for e in first.events_of(KIND_LOAN)] == [date(2026, 10, 15)]
    assert first.loan_payments == Decimal("100")
    assert second.events_of(KIND_LOAN) == []
    assert (second.cycle_start, second.cycle_end) == (date(2026, 10, 20), date(2026, 11, 20))


def test_future_cycles_do_not_drift_with_month_end_salary():
    config = LedgerConfig(salary_day=31)
    cycles = future_cycles(make_ledger(), config, 3, date(2024, 1, 31))
    assert [(c.cycle_start, c.cycle_end) for c in cycles] == [
        (date(2024, 1, 31), date(2024, 2, 29)),
        (date(2024, 2, 29), date(2024, 3, 31)),
        (date(2024, 3, 31), date(2024, 4, 30)),
    ]


def test_build_timeline_keeps_same_day_order():
    ledger = make_ledger(expenses=[expense("10", 5, "A"), expense("20", 5, "B")])
    events = expense_events(ledger, date(2026, 10, 1), date(2026, 10, 20))
    timeline = build_timeline(events, Decimal("100"))
    assert [e.description for e in timeline] == ["A", "B"]
    assert timeline[-1].balance_after == Decimal("70")


def test_inactive_items_stay_out_of_the_cycle():
    ledger = make_ledger(
        incomes=[Income(source="Bonus", amount=Decimal("900"), income_day=10, is_active=False)],
        expenses=[
            expense("300", 5),
            FixedExpense(name="Gym", amount=Decimal("50"), expense_day=8, is_active=False),
        ],
        balance=Decimal("1000"),
    )
    cycle = current_cycle(ledger, CONFIG, TODAY)
    assert [e.description for e in cycle.timeline] == ["Rent"]
    assert cycle.fixed_expenses == Decimal("300")
    assert cycle.before_salary_balance == Decimal("700")
