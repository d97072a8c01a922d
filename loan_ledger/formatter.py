"""Output helpers for the loan ledger.

This module renders projections as simple tab-separated tables for the
terminal and converts result dataclasses into JSON-serialisable structures for
file export and the web API.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from .amortization import LoanPlan
from .data_models import RepaymentScheduleEntry
from .forecast import CashEvent, DeficitReport, ForecastMonth
from .salary_cycle import SalaryCycle
from .snapshots import SnapshotStatistics, TrendPoint


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses, decimals and dates for ``json.dump``."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def print_loan_plan(plans: Iterable[LoanPlan]) -> None:
    print("\t".join(["ID", "Loan", "Platform", "Remaining", "Periods", "Payoff", "Months", "Repaid%"]))
    for plan in plans:
        row = [
            str(plan.loan.id),
            plan.loan.name,
            plan.loan.platform or "-",
            f"{plan.remaining_amount:.2f}",
            "-" if plan.remaining_periods is None else str(plan.remaining_periods),
            plan.payoff_date.isoformat() if plan.payoff_date else "-",
            str(plan.remaining_months),
            f"{plan.repaid_percentage:.2f}",
        ]
        print("\t".join(row))


def print_schedule(schedule: Iterable[RepaymentScheduleEntry]) -> None:
    """Print a loan's repayment schedule as a simple table."""
    print("\t".join(["Period", "Due", "Amount", "Status", "PaidDate", "PaidAmount"]))
    for entry in schedule:
        print(
            "\t".join(
                [
                    str(entry.period),
                    entry.due_date.isoformat(),
                    f"{entry.amount:.2f}",
                    entry.status,
                    entry.paid_date.isoformat() if entry.paid_date else "-",
                    f"{entry.paid_amount:.2f}" if entry.paid_amount is not None else "-",
                ]
            )
        )


def print_forecast(forecast: Iterable[ForecastMonth]) -> None:
    headers = ["Month", "Income", "Expense", "Payment", "Surplus", "StartBal", "EndBal", "Deficit"]
    print("\t".join(headers))
    for month in forecast:
        row = [
            month.month,
            f"{month.income:.2f}",
            f"{month.expense:.2f}",
            f"{month.payment:.2f}",
            f"{month.surplus:.2f}",
            f"{month.start_balance:.2f}",
            f"{month.end_balance:.2f}",
            "Yes" if month.is_deficit else "No",
        ]
        print("\t".join(row))


def print_deficit(report: DeficitReport) -> None:
    if not report.has_deficit:
        print("No deficit expected within the forecast horizon.")
        return
    print(f"Warning: {report.warning}")
    print(f"Deficit months: {', '.join(m.month for m in report.deficit_months)}")


def print_events(events: Iterable[CashEvent]) -> None:
    print("\t".join(["Date", "Type", "Amount", "Source"]))
    for event in events:
        print("\t".join([event.date.isoformat(), event.type, f"{event.amount:.2f}", event.source]))


def print_cycle(cycle: SalaryCycle) -> None:
    """Print a salary cycle summary followed by its timeline."""
    suffix = " (current)" if cycle.is_current else ""
    print(f"Cycle {cycle.cycle_start.isoformat()} -> {cycle.cycle_end.isoformat()}{suffix}")
    print("-" * 72)
    if cycle.days_to_salary is not None:
        print(f"Days to salary     : {cycle.days_to_salary}")
    print(f"Current balance    : {cycle.current_balance:.2f}")
    print(f"Loan payments      : {cycle.loan_payments:.2f}")
    print(f"Fixed expenses     : {cycle.fixed_expenses:.2f}")
    if cycle.temp_income or cycle.temp_expense:
        print(f"Temporary income   : {cycle.temp_income:.2f}")
        print(f"Temporary expense  : {cycle.temp_expense:.2f}")
    print(f"Before salary      : {cycle.before_salary_balance:.2f}")
    print(f"Salary             : {cycle.salary_income:.2f}")
    print(f"After salary       : {cycle.after_salary_balance:.2f}")
    print(f"Sufficient         : {'Yes' if cycle.is_sufficient else 'No'}")
    print("-" * 72)
    if cycle.timeline:
        print("\t".join(["Date", "Kind", "Description", "Amount", "Before", "After"]))
        for event in cycle.timeline:
            sign = "+" if event.is_income else "-"
            print(
                "\t".join(
                    [
                        event.date.isoformat(),
                        event.kind,
                        event.description,
                        f"{sign}{event.amount:.2f}",
                        f"{event.balance_before:.2f}",
                        f"{event.balance_after:.2f}",
                    ]
                )
            )


def print_trend(trend: Iterable[TrendPoint]) -> None:
    print("\t".join(["Label", "Date", "TotalDebt", "Monthly", "Loans"]))
    for point in trend:
        if not point.has_data:
            print("\t".join([point.label, point.date.isoformat(), "-", "-", "-"]))
            continue
        print(
            "\t".join(
                [
                    point.label,
                    point.date.isoformat(),
                    f"{point.total_debt:.2f}",
                    f"{point.total_monthly_payment:.2f}",
                    str(point.active_loan_count),
                ]
            )
        )


def print_statistics(stats: SnapshotStatistics) -> None:
    print("Debt statistics")
    print("-" * 72)
    if not stats.has_data:
        print("No snapshots recorded yet.")
        print("-" * 72)
        return
    print(f"Snapshot date      : {stats.snapshot_date.isoformat()}")
    print(f"Total debt         : {stats.current_debt:.2f}")
    print(f"Monthly payment    : {stats.monthly_payment:.2f}")
    print(f"Active loans       : {stats.active_loan_count}")
    if stats.has_comparison:
        print(f"Decrease since {stats.comparison_date.isoformat()}: {stats.debt_decrease:.2f}")
    print("-" * 72)
