"""Command‑line interface for the loan ledger.

This module uses the ``click`` library to implement a multi‑command interface
over the ledger database: data entry for loans, income, expenses, one-off
transactions and the cash balance, and the projections built on top of them
(payoff plan, repayment schedule, cash-flow forecast, salary cycle and debt
snapshots). Projections can be printed to the terminal or exported to
JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import click

from . import amortization, forecast, salary_cycle
from .config import SALARY_AMOUNT_KEY, SALARY_DAY_KEY, Settings
from .data_models import TRANSACTION_EXPENSE, TRANSACTION_INCOME, FixedExpense, Income, Loan, TempTransaction
from .engine import summarize_schedule
from .formatter import (
    print_cycle,
    print_deficit,
    print_events,
    print_forecast,
    print_loan_plan,
    print_schedule,
    print_statistics,
    print_trend,
    to_jsonable,
)
from .snapshots import DebtSnapshotService
from .store import LedgerStore, NotFoundError, create_store_from_env
from .tasks import run_daily_tasks, run_scheduler
from .utils import decimal_from_str, parse_iso_date

logger = logging.getLogger(__name__)


def parse_amount(value: str):
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("5000") and shorthand with ``k``/``m`` suffixes
    (e.g., "12k" meaning 12_000). Returns a Decimal.
    """
    value = value.strip().lower().replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_date_option(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def export_rows(path: Path, rows: List[Any]) -> None:
    """Export projection rows to a JSON or CSV file, chosen by extension."""
    data = to_jsonable(rows)
    if path.suffix.lower() == ".json":
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    elif path.suffix.lower() == ".csv":
        if not data:
            path.write_text("", encoding="utf-8")
            return
        header = [k for k, v in data[0].items() if not isinstance(v, (list, dict))]
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for row in data:
                writer.writerow([row[k] for k in header])
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Exported to {path}")


def _store(ctx: click.Context) -> LedgerStore:
    return ctx.obj["store"]


@click.group()
@click.option("--db", "database_url", envvar="LOAN_LEDGER_DATABASE_URL", help="SQLAlchemy database URL")
@click.option("--log-level", "log_level", default=None, help="Logging level (DEBUG, INFO, ...)")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], log_level: Optional[str]) -> None:
    """Track loans, income and expenses and project future solvency."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    if "store" not in ctx.obj:
        ctx.obj["store"] = create_store_from_env(database_url or settings.database_url)


@cli.command("add-loan")
@click.option("--name", "-n", required=True, help="Loan name")
@click.option("--platform", help="Lender or platform tag")
@click.option("--principal", "-p", required=True, help="Total loan amount")
@click.option("--monthly", "-m", "monthly", required=True, help="Monthly installment")
@click.option("--payment-day", "-d", type=click.IntRange(1, 31), required=True, help="Day of month the installment is due")
@click.option("--periods", "-t", type=click.IntRange(min=1), help="Total number of installments")
@click.option("--paid", type=click.IntRange(min=0), default=0, show_default=True, help="Installments already paid")
@click.option("--remaining", help="Remaining balance (only used when periods are unknown)")
@click.option("--start-date", "-s", help="First installment month (YYYY-MM-DD)")
@click.option("--note", help="Free-text note")
@click.pass_context
def add_loan(ctx, name, platform, principal, monthly, payment_day, periods, paid, remaining, start_date, note) -> None:
    """Add a loan and generate its repayment schedule."""
    loan = Loan(
        name=name,
        platform=platform,
        principal=parse_amount(principal),
        monthly_amount=parse_amount(monthly),
        payment_day=payment_day,
        total_periods=periods,
        paid_periods=paid,
        remaining_amount=parse_amount(remaining) if remaining else None,
        start_date=parse_date_option(start_date),
        note=note,
    )
    saved = _store(ctx).add_loan(loan)
    click.echo(f"Added loan {saved.id}: {saved.name}")


@cli.command("record-payment")
@click.argument("loan_id", type=int)
@click.option("--amount", "-a", help="Amount paid (defaults to the installment)")
@click.option("--date", "payment_date", help="Payment date (YYYY-MM-DD)")
@click.option("--deduct/--no-deduct", default=False, help="Also deduct the amount from the cash balance")
@click.option("--note", help="Balance entry description")
@click.pass_context
def record_payment(ctx, loan_id, amount, payment_date, deduct, note) -> None:
    """Record one installment payment on a loan."""
    store = _store(ctx)
    try:
        loan = store.get_loan(loan_id)
        value = parse_amount(amount) if amount else loan.monthly_amount
        if value is None:
            raise click.BadParameter("Loan has no installment amount; pass --amount")
        saved = store.record_payment(loan_id, value, parse_date_option(payment_date), deduct, note)
    except (NotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Loan {saved.id} now {saved.paid_periods}/{saved.total_periods} paid ({saved.status})")


@cli.command("add-income")
@click.option("--source", required=True, help="Income source")
@click.option("--amount", "-a", required=True, help="Monthly amount")
@click.option("--day", type=click.IntRange(1, 31), required=True, help="Day of month received")
@click.pass_context
def add_income(ctx, source, amount, day) -> None:
    """Add a recurring monthly income."""
    saved = _store(ctx).add_income(Income(source=source, amount=parse_amount(amount), income_day=day))
    click.echo(f"Added income {saved.id}: {saved.source}")


@cli.command("add-expense")
@click.option("--name", required=True, help="Expense name")
@click.option("--amount", "-a", required=True, help="Monthly amount")
@click.option("--day", type=click.IntRange(1, 31), required=True, help="Day of month due")
@click.pass_context
def add_expense(ctx, name, amount, day) -> None:
    """Add a recurring monthly fixed expense."""
    saved = _store(ctx).add_expense(FixedExpense(name=name, amount=parse_amount(amount), expense_day=day))
    click.echo(f"Added expense {saved.id}: {saved.name}")


@cli.command("add-transaction")
@click.option("--type", "kind", type=click.Choice([TRANSACTION_INCOME, TRANSACTION_EXPENSE]), required=True)
@click.option("--amount", "-a", required=True, help="Amount")
@click.option("--date", "transaction_date", required=True, help="Transaction date (YYYY-MM-DD)")
@click.option("--description", default="", help="Description")
@click.pass_context
def add_transaction(ctx, kind, amount, transaction_date, description) -> None:
    """Add a one-off income or expense."""
    saved = _store(ctx).add_temp_transaction(
        TempTransaction(
            transaction_date=parse_date_option(transaction_date),
            type=kind,
            amount=parse_amount(amount),
            description=description,
        )
    )
    click.echo(f"Added {saved.type} {saved.id} on {saved.transaction_date.isoformat()}")


@cli.command("set-balance")
@click.argument("amount")
@click.option("--description", help="Reason for the change")
@click.pass_context
def set_balance(ctx, amount, description) -> None:
    """Set the current cash balance."""
    entry = _store(ctx).update_balance(parse_amount(amount), description)
    click.echo(f"Balance is now {entry.balance:.2f} (change {entry.change_amount:+.2f})")


@cli.command("set-config")
@click.option("--salary-day", type=click.IntRange(1, 31), help="Day of month salary arrives")
@click.option("--salary-amount", help="Salary amount")
@click.pass_context
def set_config(ctx, salary_day, salary_amount) -> None:
    """Update the salary settings used by the salary cycle."""
    store = _store(ctx)
    if salary_day is not None:
        store.set_config_value(SALARY_DAY_KEY, str(salary_day))
    if salary_amount is not None:
        store.set_config_value(SALARY_AMOUNT_KEY, str(parse_amount(salary_amount)))
    config = store.ledger_config()
    click.echo(f"Salary day {config.salary_day}, amount {config.salary_amount:.2f}")


@cli.command()
@click.pass_context
def payoff(ctx) -> None:
    """Show payoff date and progress for every active loan."""
    print_loan_plan(amortization.loan_plan(_store(ctx).active_loans()))


@cli.command()
@click.argument("loan_id", type=int)
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def schedule(ctx, loan_id: int, output: Optional[str]) -> None:
    """Print the repayment schedule of a loan."""
    try:
        entries = _store(ctx).list_schedule(loan_id)
    except NotFoundError as exc:
        raise click.ClickException(str(exc))
    if output:
        export_rows(Path(output), entries)
        return
    print_schedule(entries)
    summary = summarize_schedule(entries)
    click.echo(
        f"Paid {summary['paid_periods']}/{summary['periods']}, "
        f"total paid {summary['total_paid']:.2f}, outstanding {summary['outstanding']:.2f}"
    )


@cli.command()
@click.pass_context
def overdue(ctx) -> None:
    """List pending installments whose due date has passed."""
    entries = _store(ctx).overdue_schedule()
    if not entries:
        click.echo("No overdue installments.")
        return
    print_schedule(entries)


@cli.command("forecast")
@click.option("--months", "-m", type=int, default=forecast.DEFAULT_HORIZON_MONTHS, show_default=True)
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def forecast_command(ctx, months: int, output: Optional[str]) -> None:
    """Project monthly cash flow and the cumulative balance."""
    try:
        rows = forecast.forecast_cash_flow(_store(ctx).load_ledger(), months)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--months")
    if output:
        export_rows(Path(output), rows)
    else:
        print_forecast(rows)


@cli.command()
@click.option("--months", "-m", type=int, default=forecast.DEFAULT_HORIZON_MONTHS, show_default=True)
@click.pass_context
def deficit(ctx, months: int) -> None:
    """Warn about the first month the cumulative balance turns negative."""
    try:
        report = forecast.detect_deficit(_store(ctx).load_ledger(), months)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--months")
    print_deficit(report)


@cli.command()
@click.option("--months", "-m", type=int, default=forecast.DEFAULT_HORIZON_MONTHS, show_default=True)
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def events(ctx, months: int, output: Optional[str]) -> None:
    """List every dated income, expense and payment in the horizon."""
    try:
        rows = forecast.generate_event_timeline(_store(ctx).load_ledger(), months)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--months")
    if output:
        export_rows(Path(output), rows)
    else:
        print_events(rows)


@cli.command()
@click.option("--date", "cycle_date", help="Show the full cycle containing this date (YYYY-MM-DD)")
@click.option("--future", type=click.IntRange(min=1), help="Show this many cycles starting with the current one")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_context
def cycle(ctx, cycle_date: Optional[str], future: Optional[int], output: Optional[str]) -> None:
    """Project the salary cycle with a running balance timeline."""
    store = _store(ctx)
    ledger = store.load_ledger()
    config = store.ledger_config()
    if future:
        cycles = salary_cycle.future_cycles(ledger, config, future)
    elif cycle_date:
        cycles = [salary_cycle.cycle_by_date(ledger, config, parse_date_option(cycle_date))]
    else:
        cycles = [salary_cycle.current_cycle(ledger, config)]
    if output:
        if Path(output).suffix.lower() != ".json":
            raise click.BadParameter("Cycle export must use .json extension")
        export_rows(Path(output), cycles)
        return
    for item in cycles:
        print_cycle(item)


@cli.group()
def snapshot() -> None:
    """Debt snapshots and trends."""


@snapshot.command("create")
@click.option("--date", "snapshot_date", help="Snapshot date (YYYY-MM-DD), defaults to today")
@click.option("--type", "snapshot_type", type=click.Choice(["daily", "weekly", "monthly"]), default="daily")
@click.pass_context
def snapshot_create(ctx, snapshot_date, snapshot_type) -> None:
    """Capture (or refresh) a debt snapshot."""
    saved = DebtSnapshotService(_store(ctx)).create_snapshot(parse_date_option(snapshot_date), snapshot_type)
    click.echo(
        f"Snapshot {saved.snapshot_date.isoformat()} ({saved.snapshot_type}): "
        f"debt {saved.total_debt:.2f}, monthly {saved.total_monthly_payment:.2f}, loans {saved.active_loan_count}"
    )


@snapshot.command("trend")
@click.option("--days", type=int, help="Daily trend over this many days")
@click.option("--months", type=int, help="Monthly trend over this many months")
@click.pass_context
def snapshot_trend(ctx, days: Optional[int], months: Optional[int]) -> None:
    """Show the daily or monthly debt trend."""
    service = DebtSnapshotService(_store(ctx))
    try:
        if days is not None:
            print_trend(service.get_daily_trend(days))
        else:
            print_trend(service.get_monthly_trend(months or 12))
    except ValueError as exc:
        raise click.BadParameter(str(exc))


@snapshot.command("stats")
@click.pass_context
def snapshot_stats(ctx) -> None:
    """Show the latest debt figures and the thirty-day decrease."""
    print_statistics(DebtSnapshotService(_store(ctx)).get_statistics())


@cli.command()
@click.pass_context
def daily(ctx) -> None:
    """Run the daily tasks once (snapshot and auto-mark paid)."""
    result = run_daily_tasks(_store(ctx))
    click.echo(f"Marked {result['marked_paid']} installments paid; snapshot saved for {result['date'].isoformat()}")


@cli.command()
@click.pass_context
def scheduler(ctx) -> None:
    """Run the daily tasks in a loop until interrupted."""
    run_scheduler(_store(ctx), ctx.obj["settings"])


if __name__ == "__main__":
    cli()
