"""Configuration for the loan ledger.

Two layers of configuration exist. ``LedgerConfig`` holds the owner's salary
settings, which live in the database key-value table and are passed
explicitly into the salary-cycle projection. ``Settings`` holds process
settings read from the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .utils import decimal_from_str

logger = logging.getLogger(__name__)

SALARY_DAY_KEY = "salary_day"
SALARY_AMOUNT_KEY = "salary_amount"

DEFAULT_SALARY_DAY = 20
DEFAULT_SALARY_AMOUNT = Decimal("0")
DEFAULT_DATABASE_URL = "sqlite:///loan_ledger.sqlite3"


@dataclass(frozen=True)
class LedgerConfig:
    """Salary settings used to place salary cycles.

    Defaults are ``salary_day=20`` and ``salary_amount=0``.
    """

    salary_day: int = DEFAULT_SALARY_DAY
    salary_amount: Decimal = DEFAULT_SALARY_AMOUNT

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[str]]) -> "LedgerConfig":
        """Build a config from raw key-value strings, falling back to defaults."""
        salary_day = DEFAULT_SALARY_DAY
        raw_day = values.get(SALARY_DAY_KEY)
        if raw_day not in (None, ""):
            try:
                salary_day = min(max(int(str(raw_day).strip()), 1), 31)
            except ValueError:
                logger.warning("Ignoring invalid %s value %r", SALARY_DAY_KEY, raw_day)

        salary_amount = DEFAULT_SALARY_AMOUNT
        raw_amount = values.get(SALARY_AMOUNT_KEY)
        if raw_amount not in (None, ""):
            try:
                salary_amount = decimal_from_str(str(raw_amount))
            except ValueError:
                logger.warning("Ignoring invalid %s value %r", SALARY_AMOUNT_KEY, raw_amount)

        return cls(salary_day=salary_day, salary_amount=salary_amount)


@dataclass
class Settings:
    """Process-level knobs read from the environment."""

    database_url: str
    poll_interval: float
    secret_key: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment with sensible defaults."""
        return cls(
            database_url=os.environ.get("LOAN_LEDGER_DATABASE_URL", DEFAULT_DATABASE_URL),
            poll_interval=float(os.environ.get("LOAN_LEDGER_POLL_INTERVAL", "60")),
            secret_key=os.environ.get("LOAN_LEDGER_SECRET_KEY", "dev-secret-key"),
            log_level=os.environ.get("LOAN_LEDGER_LOG_LEVEL", "INFO").upper(),
        )
