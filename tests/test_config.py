from datetime import date
from decimal import Decimal

from loan_ledger.config import DEFAULT_DATABASE_URL, LedgerConfig, Settings
from loan_ledger.data_models import DebtSnapshot
from loan_ledger.formatter import to_jsonable


def test_ledger_config_from_mapping():
    assert LedgerConfig.from_mapping({}) == LedgerConfig(salary_day=20, salary_amount=Decimal("0"))
    config = LedgerConfig.from_mapping({"salary_day": "45", "salary_amount": "3,200.00"})
    assert config.salary_day == 31
    assert config.salary_amount == Decimal("3200.00")
    assert LedgerConfig.from_mapping({"salary_day": "0"}).salary_day == 1


def test_ledger_config_ignores_bad_values(caplog):
    config = LedgerConfig.from_mapping({"salary_day": "soon", "salary_amount": "plenty"})
    assert config == LedgerConfig()
    assert "Ignoring invalid salary_day" in caplog.text


def test_settings_from_env(monkeypatch):
    monkeypatch.delenv("LOAN_LEDGER_DATABASE_URL", raising=False)
    monkeypatch.setenv("LOAN_LEDGER_POLL_INTERVAL", "5")
    monkeypatch.setenv("LOAN_LEDGER_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.poll_interval == 5.0
    assert settings.log_level == "DEBUG"


def test_to_jsonable_converts_nested_values():
    snapshot = DebtSnapshot(
        snapshot_date=date(2026, 10, 19),
        total_debt=Decimal("1200.50"),
        total_monthly_payment=Decimal("100"),
        active_loan_count=2,
    )
    data = to_jsonable({"rows": [snapshot]})
    assert data["rows"][0]["snapshot_date"] == "2026-10-19"
    assert data["rows"][0]["total_debt"] == 1200.5
