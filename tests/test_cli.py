from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from loan_ledger.main import cli, parse_amount


@pytest.fixture()
def invoke(store):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, list(args), obj={"store": store})

    return _invoke


def _add_loan(invoke):
    return invoke(
        "add-loan",
        "--name", "Car",
        "--principal", "12k",
        "--monthly", "1000",
        "--payment-day", "15",
        "--periods", "12",
        "--start-date", "2026-01-15",
    )


def test_parse_amount_suffixes():
    assert parse_amount("12k") == Decimal("12000")
    assert parse_amount("1.5m") == Decimal("1500000")
    assert parse_amount("1,250") == Decimal("1250")
    with pytest.raises(click.BadParameter):
        parse_amount("lots")


def test_add_loan_and_payoff(invoke, store):
    result = _add_loan(invoke)
    assert result.exit_code == 0, result.output
    assert "Added loan 1: Car" in result.output
    assert store.get_loan(1).principal == Decimal("12000")

    result = invoke("payoff")
    assert result.exit_code == 0
    assert "Car" in result.output


def test_schedule_prints_summary_and_rejects_unknown_loan(invoke):
    _add_loan(invoke)
    result = invoke("schedule", "1")
    assert result.exit_code == 0
    assert "Period\tDue" in result.output
    assert "/12, total paid" in result.output

    result = invoke("schedule", "99")
    assert result.exit_code == 1
    assert "Loan not found: 99" in result.output


def test_record_payment_deducts_balance(invoke, store):
    _add_loan(invoke)
    invoke("set-balance", "5000")
    result = invoke("record-payment", "1", "--deduct")
    assert result.exit_code == 0, result.output
    assert "Loan 1 now 1/12 paid (active)" in result.output
    assert store.current_balance() == Decimal("4000")


def test_forecast_rejects_long_horizon(invoke):
    result = invoke("forecast", "--months", "121")
    assert result.exit_code == 2
    assert "at most 120" in result.output


def test_forecast_export_csv(invoke, tmp_path):
    invoke("add-income", "--source", "Salary", "--amount", "3000", "--day", "20")
    target = tmp_path / "forecast.csv"
    result = invoke("forecast", "--months", "3", "--output", str(target))
    assert result.exit_code == 0, result.output
    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("month,month_display,income")
    assert len(lines) == 4


def test_deficit_warning(invoke):
    invoke("add-expense", "--name", "Rent", "--amount", "900", "--day", "1")
    result = invoke("deficit", "--months", "2")
    assert result.exit_code == 0
    assert "Warning: A deficit is expected in" in result.output


def test_cycle_and_config(invoke):
    result = invoke("set-config", "--salary-day", "31", "--salary-amount", "4.5k")
    assert result.exit_code == 0
    assert "Salary day 31, amount 4500.00" in result.output

    invoke("add-transaction", "--type", "expense", "--amount", "50", "--date", "2026-10-25")
    result = invoke("cycle", "--date", "2026-10-25")
    assert result.exit_code == 0, result.output
    assert "Cycle 2026-09-30 -> 2026-10-31" in result.output

    result = invoke("cycle", "--future", "2", "--output", "cycles.csv")
    assert result.exit_code == 2


def test_snapshot_commands(invoke):
    _add_loan(invoke)
    result = invoke("snapshot", "create", "--date", "2026-10-19")
    assert result.exit_code == 0
    assert "Snapshot 2026-10-19 (daily)" in result.output

    result = invoke("snapshot", "stats")
    assert "Active loans       : 1" in result.output

    result = invoke("snapshot", "trend", "--months", "2")
    assert result.exit_code == 0
    assert "Label\tDate" in result.output


def test_daily_command(invoke):
    result = invoke("daily")
    assert result.exit_code == 0
    assert "Marked 0 installments paid" in result.output
