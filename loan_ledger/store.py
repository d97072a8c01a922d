"""Persistence layer for the loan ledger.

This module keeps loans, their repayment schedules, recurring income and
expenses, one-off transactions, the balance ledger, debt snapshots and the
small key-value configuration in a relational database. It defaults to SQLite
for local use, but accepts any SQLAlchemy-compatible URL.

Each write that touches a loan together with its dependent rows runs inside a
single transaction, so a failure part-way leaves nothing behind.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    extract,
    select,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from . import amortization, engine
from .config import DEFAULT_DATABASE_URL, SALARY_AMOUNT_KEY, SALARY_DAY_KEY, LedgerConfig
from .data_models import (
    CHANGE_INCOME,
    CHANGE_MANUAL,
    CHANGE_PAYMENT,
    ENTRY_PAID,
    ENTRY_PENDING,
    LOAN_ACTIVE,
    SNAPSHOT_DAILY,
    TRANSACTION_EXPENSE,
    TRANSACTION_INCOME,
    BalanceHistoryEntry,
    DebtSnapshot,
    FixedExpense,
    Income,
    LedgerData,
    Loan,
    RepaymentScheduleEntry,
    TempTransaction,
)

logger = logging.getLogger(__name__)

Base = declarative_base()
MONEY = Numeric(14, 2)


class NotFoundError(LookupError):
    """Raised when a loan, schedule entry or snapshot does not exist."""


class LoanModel(Base):
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    platform = Column(String(255))
    principal = Column(MONEY)
    monthly_amount = Column(MONEY)
    payment_day = Column(Integer)
    total_periods = Column(Integer)
    paid_periods = Column(Integer, default=0)
    remaining_amount = Column(MONEY)
    start_date = Column(Date)
    status = Column(String(16), nullable=False, default=LOAN_ACTIVE, index=True)
    note = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    schedule = relationship(
        "RepaymentScheduleModel",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="RepaymentScheduleModel.period",
    )


class RepaymentScheduleModel(Base):
    __tablename__ = "repayment_schedules"
    __table_args__ = (UniqueConstraint("loan_id", "period", name="uq_schedule_loan_period"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    period = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    status = Column(String(16), nullable=False, default=ENTRY_PENDING)
    paid_date = Column(Date)
    paid_amount = Column(MONEY)

    loan = relationship("LoanModel", back_populates="schedule")


class IncomeModel(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(255), nullable=False)
    amount = Column(MONEY, nullable=False)
    income_day = Column(Integer, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)


class ExpenseModel(Base):
    __tablename__ = "fixed_expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    amount = Column(MONEY, nullable=False)
    expense_day = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class TempTransactionModel(Base):
    __tablename__ = "temp_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_date = Column(Date, nullable=False, index=True)
    type = Column(String(16), nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(Text, nullable=False, default="")


class BalanceHistoryModel(Base):
    __tablename__ = "balance_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    balance = Column(MONEY, nullable=False)
    change_amount = Column(MONEY, nullable=False, default=Decimal("0"))
    change_type = Column(String(32), nullable=False)
    related_id = Column(Integer)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class DebtSnapshotModel(Base):
    __tablename__ = "debt_snapshots"
    __table_args__ = (UniqueConstraint("snapshot_date", "snapshot_type", name="uq_snapshot_date_type"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    snapshot_date = Column(Date, nullable=False, index=True)
    snapshot_type = Column(String(16), nullable=False, default=SNAPSHOT_DAILY)
    total_debt = Column(MONEY, nullable=False)
    total_monthly_payment = Column(MONEY, nullable=False)
    active_loan_count = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SystemConfigModel(Base):
    __tablename__ = "system_config"

    config_key = Column(String(64), primary_key=True)
    config_value = Column(Text)


_LOAN_FIELDS = (
    "name",
    "platform",
    "principal",
    "monthly_amount",
    "payment_day",
    "total_periods",
    "paid_periods",
    "remaining_amount",
    "start_date",
    "status",
    "note",
)


class LedgerStore:
    """Database-backed store for every ledger entity."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def dispose(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------ loans

    def list_loans(self, status: Optional[str] = None) -> List[Loan]:
        with self._session_factory() as session:
            query = select(LoanModel).order_by(LoanModel.id.asc())
            if status:
                query = query.where(LoanModel.status == status)
            return [self._to_loan(row) for row in session.execute(query).scalars()]

    def active_loans(self) -> List[Loan]:
        return self.list_loans(LOAN_ACTIVE)

    def get_loan(self, loan_id: int) -> Loan:
        with self._session_factory() as session:
            return self._to_loan(self._require_loan(session, loan_id))

    def add_loan(self, loan: Loan, today: Optional[date] = None) -> Loan:
        """Insert ``loan`` and, when possible, its generated schedule."""
        loan = amortization.normalize(loan)
        with self._session_factory.begin() as session:
            row = LoanModel(**{name: getattr(loan, name) for name in _LOAN_FIELDS})
            session.add(row)
            session.flush()
            saved = self._to_loan(row)
            self._replace_schedule(session, saved, today)
        logger.info("Added loan %s (%s)", saved.id, saved.name)
        return saved

    def update_loan(self, loan_id: int, loan: Loan, today: Optional[date] = None) -> Loan:
        """Overwrite a loan; the schedule is rebuilt if its inputs changed."""
        loan = amortization.normalize(loan)
        with self._session_factory.begin() as session:
            row = self._require_loan(session, loan_id)
            previous = self._to_loan(row)
            for name in _LOAN_FIELDS:
                setattr(row, name, getattr(loan, name))
            session.flush()
            saved = self._to_loan(row)
            if engine.schedule_inputs_changed(previous, saved):
                self._replace_schedule(session, saved, today)
        return saved

    def delete_loan(self, loan_id: int) -> None:
        with self._session_factory.begin() as session:
            row = self._require_loan(session, loan_id)
            session.delete(row)
        logger.info("Deleted loan %s", loan_id)

    def record_payment(
        self,
        loan_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
        auto_deduct: bool = False,
        note: Optional[str] = None,
    ) -> Loan:
        """Apply one installment payment to a loan.

        With ``auto_deduct`` the amount is also taken off the cash balance. The
        loan update and the balance entry are committed together.
        """
        payment_date = payment_date or date.today()
        with self._session_factory.begin() as session:
            row = self._require_loan(session, loan_id)
            updated = amortization.apply_payment(self._to_loan(row), amount)
            for name in ("paid_periods", "remaining_amount", "status"):
                setattr(row, name, getattr(updated, name))
            next_entry = session.execute(
                select(RepaymentScheduleModel)
                .where(RepaymentScheduleModel.loan_id == loan_id, RepaymentScheduleModel.status != ENTRY_PAID)
                .order_by(RepaymentScheduleModel.period.asc())
                .limit(1)
            ).scalar_one_or_none()
            if next_entry is not None:
                next_entry.status = ENTRY_PAID
                next_entry.paid_date = payment_date
                next_entry.paid_amount = amount
            if auto_deduct:
                description = note or f"Payment: {updated.name}"
                self._append_balance(session, -amount, CHANGE_PAYMENT, loan_id, description)
            saved = self._to_loan(row)
        logger.info("Recorded payment of %s on loan %s (%s)", amount, loan_id, payment_date.isoformat())
        return saved

    # --------------------------------------------------------------- schedule

    def list_schedule(self, loan_id: int) -> List[RepaymentScheduleEntry]:
        with self._session_factory() as session:
            self._require_loan(session, loan_id)
            rows = session.execute(
                select(RepaymentScheduleModel)
                .where(RepaymentScheduleModel.loan_id == loan_id)
                .order_by(RepaymentScheduleModel.period.asc())
            ).scalars()
            return [self._to_entry(row) for row in rows]

    def pending_schedule(self, loan_id: int) -> List[RepaymentScheduleEntry]:
        return [e for e in self.list_schedule(loan_id) if e.status == ENTRY_PENDING]

    def schedule_for_month(self, year: int, month: int) -> List[RepaymentScheduleEntry]:
        with self._session_factory() as session:
            rows = session.execute(
                select(RepaymentScheduleModel)
                .where(
                    extract("year", RepaymentScheduleModel.due_date) == year,
                    extract("month", RepaymentScheduleModel.due_date) == month,
                )
                .order_by(RepaymentScheduleModel.due_date.asc(), RepaymentScheduleModel.id.asc())
            ).scalars()
            return [self._to_entry(row) for row in rows]

    def overdue_schedule(self, today: Optional[date] = None) -> List[RepaymentScheduleEntry]:
        """Pending installments already past due, reported as overdue."""
        today = today or date.today()
        with self._session_factory() as session:
            rows = session.execute(
                select(RepaymentScheduleModel)
                .where(RepaymentScheduleModel.status == ENTRY_PENDING, RepaymentScheduleModel.due_date < today)
                .order_by(RepaymentScheduleModel.due_date.asc(), RepaymentScheduleModel.id.asc())
            ).scalars()
            return engine.overdue_entries([self._to_entry(row) for row in rows], today)

    def regenerate_schedule(self, loan_id: int, today: Optional[date] = None) -> List[RepaymentScheduleEntry]:
        with self._session_factory.begin() as session:
            loan = self._to_loan(self._require_loan(session, loan_id))
            return self._replace_schedule(session, loan, today)

    def pay_schedule_entry(
        self, entry_id: int, amount: Optional[Decimal] = None, paid_date: Optional[date] = None
    ) -> RepaymentScheduleEntry:
        with self._session_factory.begin() as session:
            row = session.get(RepaymentScheduleModel, entry_id)
            if row is None:
                raise NotFoundError(f"Schedule entry not found: {entry_id}")
            entry = self._to_entry(row)
            paid = engine.record_entry_payment(
                entry, amount if amount is not None else entry.amount, paid_date or date.today()
            )
            row.status, row.paid_date, row.paid_amount = paid.status, paid.paid_date, paid.paid_amount
            return paid

    def mark_due_as_paid(self, today: Optional[date] = None) -> int:
        """Mark every unpaid installment due on or before ``today`` as paid."""
        today = today or date.today()
        with self._session_factory.begin() as session:
            rows = session.execute(
                select(RepaymentScheduleModel).where(
                    RepaymentScheduleModel.status != ENTRY_PAID,
                    RepaymentScheduleModel.due_date <= today,
                )
            ).scalars().all()
            by_id = {row.id: row for row in rows}
            changed = engine.mark_due_as_paid([self._to_entry(row) for row in rows], today)
            for entry in changed:
                row = by_id[entry.id]
                row.status, row.paid_date, row.paid_amount = entry.status, entry.paid_date, entry.paid_amount
        return len(changed)

    # ------------------------------------------------------ income / expenses

    def add_income(self, income: Income) -> Income:
        with self._session_factory.begin() as session:
            row = IncomeModel(
                source=income.source,
                amount=income.amount,
                income_day=income.income_day,
                description=income.description,
                is_active=income.is_active,
            )
            session.add(row)
            session.flush()
            return self._to_income(row)

    def list_incomes(self, active_only: bool = False) -> List[Income]:
        with self._session_factory() as session:
            query = select(IncomeModel).order_by(IncomeModel.id.asc())
            if active_only:
                query = query.where(IncomeModel.is_active.is_(True))
            return [self._to_income(row) for row in session.execute(query).scalars()]

    def set_income_active(self, income_id: int, active: bool) -> None:
        with self._session_factory.begin() as session:
            row = session.get(IncomeModel, income_id)
            if row is None:
                raise NotFoundError(f"Income not found: {income_id}")
            row.is_active = active

    def add_expense(self, expense: FixedExpense) -> FixedExpense:
        with self._session_factory.begin() as session:
            row = ExpenseModel(
                name=expense.name,
                amount=expense.amount,
                expense_day=expense.expense_day,
                is_active=expense.is_active,
            )
            session.add(row)
            session.flush()
            return self._to_expense(row)

    def list_expenses(self, active_only: bool = False) -> List[FixedExpense]:
        with self._session_factory() as session:
            query = select(ExpenseModel).order_by(ExpenseModel.id.asc())
            if active_only:
                query = query.where(ExpenseModel.is_active.is_(True))
            return [self._to_expense(row) for row in session.execute(query).scalars()]

    def set_expense_active(self, expense_id: int, active: bool) -> None:
        with self._session_factory.begin() as session:
            row = session.get(ExpenseModel, expense_id)
            if row is None:
                raise NotFoundError(f"Expense not found: {expense_id}")
            row.is_active = active

    # --------------------------------------------------- temporary transactions

    def add_temp_transaction(self, transaction: TempTransaction) -> TempTransaction:
        if transaction.type not in (TRANSACTION_INCOME, TRANSACTION_EXPENSE):
            raise ValueError(f"Transaction type must be 'income' or 'expense'; got {transaction.type}")
        with self._session_factory.begin() as session:
            row = TempTransactionModel(
                transaction_date=transaction.transaction_date,
                type=transaction.type,
                amount=transaction.amount,
                description=transaction.description or "",
            )
            session.add(row)
            session.flush()
            return self._to_transaction(row)

    def list_temp_transactions(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[TempTransaction]:
        """Return transactions in ``[start, end)``; open bounds are unbounded."""
        with self._session_factory() as session:
            query = select(TempTransactionModel)
            if start is not None:
                query = query.where(TempTransactionModel.transaction_date >= start)
            if end is not None:
                query = query.where(TempTransactionModel.transaction_date < end)
            query = query.order_by(TempTransactionModel.transaction_date.asc(), TempTransactionModel.id.asc())
            return [self._to_transaction(row) for row in session.execute(query).scalars()]

    def delete_temp_transaction(self, transaction_id: int) -> None:
        with self._session_factory.begin() as session:
            row = session.get(TempTransactionModel, transaction_id)
            if row is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")
            session.delete(row)

    # ---------------------------------------------------------------- balance

    def current_balance(self) -> Decimal:
        with self._session_factory() as session:
            return self._latest_balance(session)

    def balance_history(self) -> List[BalanceHistoryEntry]:
        with self._session_factory() as session:
            rows = session.execute(
                select(BalanceHistoryModel).order_by(BalanceHistoryModel.id.desc())
            ).scalars()
            return [self._to_balance(row) for row in rows]

    def update_balance(self, new_balance: Decimal, description: Optional[str] = None) -> BalanceHistoryEntry:
        with self._session_factory.begin() as session:
            change = new_balance - self._latest_balance(session)
            return self._append_balance(session, change, CHANGE_MANUAL, None, description)

    def add_balance(
        self,
        amount: Decimal,
        change_type: str = CHANGE_INCOME,
        related_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> BalanceHistoryEntry:
        with self._session_factory.begin() as session:
            return self._append_balance(session, amount, change_type, related_id, description)

    def deduct_balance(
        self,
        amount: Decimal,
        change_type: str = CHANGE_PAYMENT,
        related_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> BalanceHistoryEntry:
        with self._session_factory.begin() as session:
            return self._append_balance(session, -amount, change_type, related_id, description)

    # ----------------------------------------------------------------- config

    def get_config_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(SystemConfigModel, key)
            return row.config_value if row is not None else default

    def set_config_value(self, key: str, value: str) -> None:
        with self._session_factory.begin() as session:
            row = session.get(SystemConfigModel, key)
            if row is None:
                session.add(SystemConfigModel(config_key=key, config_value=value))
            else:
                row.config_value = value

    def ledger_config(self) -> LedgerConfig:
        with self._session_factory() as session:
            rows = session.execute(
                select(SystemConfigModel).where(
                    SystemConfigModel.config_key.in_([SALARY_DAY_KEY, SALARY_AMOUNT_KEY])
                )
            ).scalars()
            values: Dict[str, Optional[str]] = {row.config_key: row.config_value for row in rows}
        return LedgerConfig.from_mapping(values)

    # -------------------------------------------------------------- snapshots

    def upsert_snapshot(self, snapshot: DebtSnapshot) -> DebtSnapshot:
        """Insert the snapshot, or overwrite the figures of the existing one."""
        with self._session_factory.begin() as session:
            row = session.execute(
                select(DebtSnapshotModel).where(
                    DebtSnapshotModel.snapshot_date == snapshot.snapshot_date,
                    DebtSnapshotModel.snapshot_type == snapshot.snapshot_type,
                )
            ).scalar_one_or_none()
            if row is None:
                row = DebtSnapshotModel(
                    snapshot_date=snapshot.snapshot_date, snapshot_type=snapshot.snapshot_type
                )
                session.add(row)
            row.total_debt = snapshot.total_debt
            row.total_monthly_payment = snapshot.total_monthly_payment
            row.active_loan_count = snapshot.active_loan_count
            session.flush()
            return self._to_snapshot(row)

    def get_snapshot(self, snapshot_date: date, snapshot_type: str = SNAPSHOT_DAILY) -> Optional[DebtSnapshot]:
        with self._session_factory() as session:
            row = session.execute(
                select(DebtSnapshotModel).where(
                    DebtSnapshotModel.snapshot_date == snapshot_date,
                    DebtSnapshotModel.snapshot_type == snapshot_type,
                )
            ).scalar_one_or_none()
            return self._to_snapshot(row) if row is not None else None

    def snapshots_between(
        self, start: date, end: date, snapshot_type: str = SNAPSHOT_DAILY
    ) -> List[DebtSnapshot]:
        """Return snapshots dated in ``[start, end]``, oldest first."""
        with self._session_factory() as session:
            rows = session.execute(
                select(DebtSnapshotModel)
                .where(
                    DebtSnapshotModel.snapshot_type == snapshot_type,
                    DebtSnapshotModel.snapshot_date >= start,
                    DebtSnapshotModel.snapshot_date <= end,
                )
                .order_by(DebtSnapshotModel.snapshot_date.asc())
            ).scalars()
            return [self._to_snapshot(row) for row in rows]

    def latest_snapshot(
        self, snapshot_type: str = SNAPSHOT_DAILY, on_or_before: Optional[date] = None
    ) -> Optional[DebtSnapshot]:
        with self._session_factory() as session:
            query = select(DebtSnapshotModel).where(DebtSnapshotModel.snapshot_type == snapshot_type)
            if on_or_before is not None:
                query = query.where(DebtSnapshotModel.snapshot_date <= on_or_before)
            row = session.execute(
                query.order_by(DebtSnapshotModel.snapshot_date.desc()).limit(1)
            ).scalar_one_or_none()
            return self._to_snapshot(row) if row is not None else None

    # -------------------------------------------------------------- aggregate

    def load_ledger(self) -> LedgerData:
        """Read everything the projections need in one pass."""
        with self._session_factory() as session:
            return LedgerData(
                loans=[self._to_loan(r) for r in session.execute(
                    select(LoanModel).where(LoanModel.status == LOAN_ACTIVE).order_by(LoanModel.id)
                ).scalars()],
                incomes=[self._to_income(r) for r in session.execute(
                    select(IncomeModel).where(IncomeModel.is_active.is_(True)).order_by(IncomeModel.id)
                ).scalars()],
                expenses=[self._to_expense(r) for r in session.execute(
                    select(ExpenseModel).where(ExpenseModel.is_active.is_(True)).order_by(ExpenseModel.id)
                ).scalars()],
                temp_transactions=[self._to_transaction(r) for r in session.execute(
                    select(TempTransactionModel).order_by(
                        TempTransactionModel.transaction_date, TempTransactionModel.id
                    )
                ).scalars()],
                current_balance=self._latest_balance(session),
            )

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _require_loan(session, loan_id: int) -> LoanModel:
        row = session.get(LoanModel, loan_id)
        if row is None:
            raise NotFoundError(f"Loan not found: {loan_id}")
        return row

    @staticmethod
    def _replace_schedule(session, loan: Loan, today: Optional[date]) -> List[RepaymentScheduleEntry]:
        session.execute(delete(RepaymentScheduleModel).where(RepaymentScheduleModel.loan_id == loan.id))
        entries = engine.compute_schedule(loan, today)
        session.add_all(
            RepaymentScheduleModel(
                loan_id=loan.id,
                period=e.period,
                due_date=e.due_date,
                amount=e.amount,
                status=e.status,
                paid_date=e.paid_date,
                paid_amount=e.paid_amount,
            )
            for e in entries
        )
        logger.debug("Regenerated %d schedule entries for loan %s", len(entries), loan.id)
        return entries

    @staticmethod
    def _latest_balance(session) -> Decimal:
        row = session.execute(
            select(BalanceHistoryModel).order_by(BalanceHistoryModel.id.desc()).limit(1)
        ).scalar_one_or_none()
        return Decimal(row.balance) if row is not None else Decimal("0")

    def _append_balance(
        self,
        session,
        change: Decimal,
        change_type: str,
        related_id: Optional[int],
        description: Optional[str],
    ) -> BalanceHistoryEntry:
        row = BalanceHistoryModel(
            balance=self._latest_balance(session) + change,
            change_amount=change,
            change_type=change_type,
            related_id=related_id,
            description=description,
        )
        session.add(row)
        session.flush()
        return self._to_balance(row)

    @staticmethod
    def _money(value) -> Optional[Decimal]:
        return Decimal(value) if value is not None else None

    @classmethod
    def _to_loan(cls, row: LoanModel) -> Loan:
        return Loan(
            id=row.id,
            name=row.name,
            platform=row.platform,
            principal=cls._money(row.principal),
            monthly_amount=cls._money(row.monthly_amount),
            payment_day=row.payment_day,
            total_periods=row.total_periods,
            paid_periods=row.paid_periods,
            remaining_amount=cls._money(row.remaining_amount),
            start_date=row.start_date,
            status=row.status,
            note=row.note,
        )

    @classmethod
    def _to_entry(cls, row: RepaymentScheduleModel) -> RepaymentScheduleEntry:
        return RepaymentScheduleEntry(
            id=row.id,
            loan_id=row.loan_id,
            period=row.period,
            due_date=row.due_date,
            amount=Decimal(row.amount),
            status=row.status,
            paid_date=row.paid_date,
            paid_amount=cls._money(row.paid_amount),
        )

    @staticmethod
    def _to_income(row: IncomeModel) -> Income:
        return Income(
            id=row.id,
            source=row.source,
            amount=Decimal(row.amount),
            income_day=row.income_day,
            description=row.description,
            is_active=row.is_active,
        )

    @staticmethod
    def _to_expense(row: ExpenseModel) -> FixedExpense:
        return FixedExpense(
            id=row.id,
            name=row.name,
            amount=Decimal(row.amount),
            expense_day=row.expense_day,
            is_active=row.is_active,
        )

    @staticmethod
    def _to_transaction(row: TempTransactionModel) -> TempTransaction:
        return TempTransaction(
            id=row.id,
            transaction_date=row.transaction_date,
            type=row.type,
            amount=Decimal(row.amount),
            description=row.description or "",
        )

    @staticmethod
    def _to_balance(row: BalanceHistoryModel) -> BalanceHistoryEntry:
        return BalanceHistoryEntry(
            id=row.id,
            balance=Decimal(row.balance),
            change_amount=Decimal(row.change_amount),
            change_type=row.change_type,
            related_id=row.related_id,
            description=row.description,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_snapshot(row: DebtSnapshotModel) -> DebtSnapshot:
        return DebtSnapshot(
            id=row.id,
            snapshot_date=row.snapshot_date,
            snapshot_type=row.snapshot_type,
            total_debt=Decimal(row.total_debt),
            total_monthly_payment=Decimal(row.total_monthly_payment),
            active_loan_count=row.active_loan_count,
        )


def create_store_from_env(url: Optional[str]) -> LedgerStore:
    return LedgerStore(url or DEFAULT_DATABASE_URL)
