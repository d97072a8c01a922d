"""Data models for the loan ledger.

This module defines dataclasses representing the entities the projection
engines consume: loans and their repayment schedule entries, recurring income
and fixed expenses, one-off transactions, the balance ledger and debt
snapshots. Derived figures (remaining amount, payoff date, repaid percentage)
are deliberately absent; they are computed on demand in ``amortization``.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

LOAN_ACTIVE = "active"
LOAN_COMPLETED = "completed"

ENTRY_PENDING = "pending"
ENTRY_PAID = "paid"
ENTRY_OVERDUE = "overdue"

TRANSACTION_INCOME = "income"
TRANSACTION_EXPENSE = "expense"

SNAPSHOT_DAILY = "daily"
SNAPSHOT_WEEKLY = "weekly"
SNAPSHOT_MONTHLY = "monthly"
SNAPSHOT_TYPES = (SNAPSHOT_DAILY, SNAPSHOT_WEEKLY, SNAPSHOT_MONTHLY)

CHANGE_MANUAL = "manual"
CHANGE_PAYMENT = "payment"
CHANGE_INCOME = "income"
CHANGE_EXPENSE = "expense"


@dataclass
class Loan:
    """A personal loan repaid in fixed monthly installments.

    Attributes
    ----------
    principal: Decimal
        The total loan amount, used for the repaid percentage.
    monthly_amount: Decimal
        The installment due every month on ``payment_day``.
    payment_day: int
        Day of month (1-31) the installment is due; clamped for short months.
    remaining_amount: Decimal
        Stored balance, only authoritative when periods are unknown.
    """

    name: str
    principal: Optional[Decimal] = None
    monthly_amount: Optional[Decimal] = None
    payment_day: Optional[int] = None
    total_periods: Optional[int] = None
    paid_periods: Optional[int] = 0
    remaining_amount: Optional[Decimal] = None
    start_date: Optional[date] = None
    platform: Optional[str] = None
    status: str = LOAN_ACTIVE
    note: Optional[str] = None
    id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == LOAN_ACTIVE


@dataclass
class RepaymentScheduleEntry:
    """One dated installment of a loan."""

    loan_id: Optional[int]
    period: int
    due_date: date
    amount: Decimal
    status: str = ENTRY_PENDING
    paid_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None
    id: Optional[int] = None


@dataclass
class Income:
    source: str
    amount: Decimal
    income_day: int
    is_active: bool = True
    description: Optional[str] = None
    id: Optional[int] = None


@dataclass
class FixedExpense:
    name: str
    amount: Decimal
    expense_day: int
    is_active: bool = True
    id: Optional[int] = None


@dataclass
class TempTransaction:
    """A one-off income or expense on a specific date."""

    transaction_date: date
    type: str  # "income" or "expense"
    amount: Decimal
    description: str = ""
    id: Optional[int] = None

    @property
    def is_income(self) -> bool:
        return self.type == TRANSACTION_INCOME


@dataclass
class BalanceHistoryEntry:
    """Append-only record of the cash balance after a change."""

    balance: Decimal
    change_amount: Decimal = Decimal("0")
    change_type: str = CHANGE_MANUAL
    related_id: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass
class DebtSnapshot:
    """Point-in-time rollup of debt figures, unique per (date, type)."""

    snapshot_date: date
    total_debt: Decimal
    total_monthly_payment: Decimal
    active_loan_count: int
    snapshot_type: str = SNAPSHOT_DAILY
    id: Optional[int] = None


@dataclass
class LedgerData:
    """Read-only view of everything the projections need.

    The store builds one of these per request; the forecast and salary-cycle
    engines never query persistence themselves.
    """

    loans: List[Loan] = field(default_factory=list)
    incomes: List[Income] = field(default_factory=list)
    expenses: List[FixedExpense] = field(default_factory=list)
    temp_transactions: List[TempTransaction] = field(default_factory=list)
    current_balance: Decimal = Decimal("0")

    @property
    def active_loans(self) -> List[Loan]:
        return [loan for loan in self.loans if loan.is_active]

    @property
    def active_incomes(self) -> List[Income]:
        return [income for income in self.incomes if income.is_active]

    @property
    def active_expenses(self) -> List[FixedExpense]:
        return [expense for expense in self.expenses if expense.is_active]
