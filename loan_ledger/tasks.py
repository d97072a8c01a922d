"""Daily background tasks: debt snapshot and auto-mark of due installments."""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .snapshots import DebtSnapshotService

logger = logging.getLogger(__name__)


def run_daily_tasks(store, today: Optional[date] = None) -> Dict[str, object]:
    """Capture today's snapshot and mark installments due by today as paid.

    Both steps are idempotent, so running this twice on the same day is safe.
    """
    today = today or date.today()
    marked = store.mark_due_as_paid(today)
    snapshot = DebtSnapshotService(store).create_snapshot(today)
    logger.info("Daily tasks for %s complete: %d installments marked paid", today.isoformat(), marked)
    return {"date": today, "marked_paid": marked, "snapshot": snapshot}


def run_scheduler(
    store,
    settings: Optional[Settings] = None,
    stop_event: Optional[threading.Event] = None,
    clock: Callable[[], date] = date.today,
) -> None:
    """
    Wake every poll interval and run the daily tasks once per calendar day.

    The loop keeps no state besides the date of the last successful run; a
    failed run is retried on the next tick.
    """
    cfg = settings or Settings.from_env()
    stop = stop_event or threading.Event()
    last_run: Optional[date] = None

    logger.info("Starting daily scheduler (poll_interval=%ss)", cfg.poll_interval)
    try:
        while not stop.is_set():
            today = clock()
            if today != last_run:
                try:
                    run_daily_tasks(store, today)
                    last_run = today
                except SQLAlchemyError:
                    logger.exception("Database error while running daily tasks")
            stop.wait(cfg.poll_interval)
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user")
