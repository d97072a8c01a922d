"""Debt snapshots and trend queries.

A snapshot rolls up the outstanding debt, the monthly payment obligation and
the number of active loans on a given date. Snapshots are keyed by
``(snapshot_date, snapshot_type)`` and re-capturing the same key overwrites the
figures, so the daily trigger and manual captures can both run any number of
times without duplicating rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from .amortization import remaining_amount
from .data_models import SNAPSHOT_DAILY, SNAPSHOT_TYPES, DebtSnapshot, Loan
from .utils import add_months, month_end, month_key, month_start

logger = logging.getLogger(__name__)

CLOSEST_SNAPSHOT_WINDOW_DAYS = 7
STATISTICS_COMPARISON_DAYS = 30
MAX_TREND_DAYS = 3660
MAX_TREND_MONTHS = 120


@dataclass
class TrendPoint:
    date: date
    label: str
    total_debt: Decimal
    total_monthly_payment: Decimal
    active_loan_count: int
    has_data: bool = True

    @classmethod
    def from_snapshot(cls, snapshot: DebtSnapshot, label: str) -> "TrendPoint":
        return cls(
            date=snapshot.snapshot_date,
            label=label,
            total_debt=snapshot.total_debt,
            total_monthly_payment=snapshot.total_monthly_payment,
            active_loan_count=snapshot.active_loan_count,
        )

    @classmethod
    def empty(cls, target: date, label: str) -> "TrendPoint":
        return cls(
            date=target,
            label=label,
            total_debt=Decimal("0"),
            total_monthly_payment=Decimal("0"),
            active_loan_count=0,
            has_data=False,
        )


@dataclass
class SnapshotStatistics:
    has_data: bool = False
    snapshot_date: Optional[date] = None
    current_debt: Decimal = Decimal("0")
    monthly_payment: Decimal = Decimal("0")
    active_loan_count: int = 0
    has_comparison: bool = False
    comparison_date: Optional[date] = None
    debt_decrease: Decimal = Decimal("0")


def compute_snapshot(
    loans: Iterable[Loan], snapshot_date: date, snapshot_type: str = SNAPSHOT_DAILY
) -> DebtSnapshot:
    """Roll up the active loans in ``loans`` into a snapshot record."""
    if snapshot_type not in SNAPSHOT_TYPES:
        raise ValueError(f"Snapshot type must be one of {', '.join(SNAPSHOT_TYPES)}; got {snapshot_type}")
    active = [loan for loan in loans if loan.is_active]
    return DebtSnapshot(
        snapshot_date=snapshot_date,
        snapshot_type=snapshot_type,
        total_debt=sum((remaining_amount(loan) for loan in active), Decimal("0")),
        total_monthly_payment=sum((loan.monthly_amount or Decimal("0") for loan in active), Decimal("0")),
        active_loan_count=len(active),
    )


class DebtSnapshotService:
    """Captures snapshots into a store and answers trend queries."""

    def __init__(self, store, window_days: int = CLOSEST_SNAPSHOT_WINDOW_DAYS) -> None:
        self._store = store
        self._window_days = window_days

    def create_snapshot(
        self, snapshot_date: Optional[date] = None, snapshot_type: str = SNAPSHOT_DAILY
    ) -> DebtSnapshot:
        """Capture the current active loans and upsert the snapshot."""
        snapshot_date = snapshot_date or date.today()
        snapshot = compute_snapshot(self._store.active_loans(), snapshot_date, snapshot_type)
        saved = self._store.upsert_snapshot(snapshot)
        logger.info(
            "Captured %s snapshot for %s: debt=%s monthly=%s loans=%d",
            snapshot_type,
            snapshot_date.isoformat(),
            saved.total_debt,
            saved.total_monthly_payment,
            saved.active_loan_count,
        )
        return saved

    def get_recent_snapshots(self, days: int, today: Optional[date] = None) -> List[DebtSnapshot]:
        today = today or date.today()
        return self._store.snapshots_between(today - timedelta(days=days), today)

    def get_daily_trend(self, days: int = 30, today: Optional[date] = None) -> List[TrendPoint]:
        """Snapshots for each of the last ``days`` days that has one."""
        if days > MAX_TREND_DAYS:
            raise ValueError(f"Trend length must be at most {MAX_TREND_DAYS} days; got {days}")
        if days <= 0:
            return []
        today = today or date.today()
        start = today - timedelta(days=days - 1)
        return [
            TrendPoint.from_snapshot(s, s.snapshot_date.isoformat())
            for s in self._store.snapshots_between(start, today)
        ]

    def find_closest_snapshot(self, target: date) -> Optional[DebtSnapshot]:
        """Return the snapshot on ``target`` or the nearest earlier one in the window."""
        exact = self._store.get_snapshot(target)
        if exact is not None:
            return exact
        earlier = self._store.snapshots_between(target - timedelta(days=self._window_days), target)
        return earlier[-1] if earlier else None

    def get_monthly_trend(self, months: int = 12, today: Optional[date] = None) -> List[TrendPoint]:
        """One point per trailing month, oldest first, always ``months`` long.

        Each month is represented by its last day (today for the current
        month). Months without a snapshot close enough get a zero point with
        ``has_data=False``.
        """
        if months > MAX_TREND_MONTHS:
            raise ValueError(f"Trend length must be at most {MAX_TREND_MONTHS} months; got {months}")
        today = today or date.today()
        current_month = month_start(today)
        trend: List[TrendPoint] = []
        for offset in range(max(months, 0) - 1, -1, -1):
            month = add_months(current_month, -offset)
            target = today if month == current_month else month_end(month)
            snapshot = self.find_closest_snapshot(target)
            if snapshot is None:
                trend.append(TrendPoint.empty(target, month_key(month)))
            else:
                trend.append(TrendPoint.from_snapshot(snapshot, month_key(month)))
        return trend

    def get_statistics(self) -> SnapshotStatistics:
        """Latest debt figures and the decrease over the last thirty days."""
        latest = self._store.latest_snapshot()
        if latest is None:
            return SnapshotStatistics()
        stats = SnapshotStatistics(
            has_data=True,
            snapshot_date=latest.snapshot_date,
            current_debt=latest.total_debt,
            monthly_payment=latest.total_monthly_payment,
            active_loan_count=latest.active_loan_count,
        )
        previous = self._store.latest_snapshot(
            on_or_before=latest.snapshot_date - timedelta(days=STATISTICS_COMPARISON_DAYS)
        )
        if previous is not None:
            stats.has_comparison = True
            stats.comparison_date = previous.snapshot_date
            stats.debt_decrease = previous.total_debt - latest.total_debt
        return stats
