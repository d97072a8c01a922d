import logging
from datetime import date
from typing import Optional

from flask import Flask, jsonify, request

from loan_ledger import amortization, forecast, salary_cycle
from loan_ledger.config import SALARY_AMOUNT_KEY, SALARY_DAY_KEY, Settings
from loan_ledger.data_models import CHANGE_EXPENSE, SNAPSHOT_DAILY, FixedExpense, Income, Loan, TempTransaction
from loan_ledger.engine import summarize_schedule
from loan_ledger.formatter import to_jsonable
from loan_ledger.snapshots import DebtSnapshotService
from loan_ledger.store import LedgerStore, NotFoundError, create_store_from_env
from loan_ledger.utils import decimal_from_str, parse_iso_date, parse_year_month

logger = logging.getLogger(__name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _optional_decimal(data: dict, key: str):
    value = data.get(key)
    if value in (None, ""):
        return None
    return decimal_from_str(str(value))


def _optional_int(data: dict, key: str) -> Optional[int]:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid integer for {key}: {value}") from exc


def _optional_date(data: dict, key: str) -> Optional[date]:
    value = data.get(key)
    if value in (None, ""):
        return None
    return parse_iso_date(str(value))


def _required(data: dict, key: str):
    if data.get(key) in (None, ""):
        raise ValueError(f"Missing required field: {key}")
    return data[key]


def _json_bool(data: dict, key: str, default: Optional[bool] = None) -> bool:
    value = data.get(key)
    if value is None and default is not None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a JSON boolean")
    return value


def _loan_from_payload(data: dict) -> Loan:
    payment_day = _optional_int(data, "payment_day")
    if payment_day is not None and not 1 <= payment_day <= 31:
        raise ValueError("payment_day must be between 1 and 31")
    return Loan(
        name=str(_required(data, "name")),
        platform=data.get("platform"),
        principal=_optional_decimal(data, "principal"),
        monthly_amount=_optional_decimal(data, "monthly_amount"),
        payment_day=payment_day,
        total_periods=_optional_int(data, "total_periods"),
        paid_periods=_optional_int(data, "paid_periods") or 0,
        remaining_amount=_optional_decimal(data, "remaining_amount"),
        start_date=_optional_date(data, "start_date"),
        status=data.get("status") or "active",
        note=data.get("note"),
    )


def _serialize_loan(loan: Loan, today: date) -> dict:
    """Loan fields plus the computed payoff date and repaid percentage."""
    payload = to_jsonable(loan)
    payoff = amortization.payoff_date(loan, today)
    payload["remaining_amount"] = float(amortization.remaining_amount(loan))
    payload["payoff_date"] = payoff.isoformat() if payoff else None
    payload["repaid_percentage"] = float(amortization.repaid_percentage(loan))
    return payload


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Query parameter {name} must be an integer") from exc


def create_app(store: Optional[LedgerStore] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.secret_key = settings.secret_key
    ledger_store = store or create_store_from_env(settings.database_url)
    snapshots = DebtSnapshotService(ledger_store)
    app.extensions["ledger_store"] = ledger_store

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(ValueError)
    def handle_bad_request(exc):
        logger.info("Rejected %s %s: %s", request.method, request.path, exc)
        return jsonify({"error": str(exc)}), 400

    # ---------------------------------------------------------------- loans

    @app.get("/api/loans")
    def list_loans():
        today = date.today()
        status = request.args.get("status")
        return jsonify([_serialize_loan(loan, today) for loan in ledger_store.list_loans(status)])

    @app.post("/api/loans")
    def create_loan():
        loan = ledger_store.add_loan(_loan_from_payload(_payload()))
        return jsonify(_serialize_loan(loan, date.today())), 201

    @app.get("/api/loans/plan")
    def loan_plan():
        return jsonify(to_jsonable(amortization.loan_plan(ledger_store.active_loans())))

    @app.get("/api/loans/<int:loan_id>")
    def get_loan(loan_id: int):
        return jsonify(_serialize_loan(ledger_store.get_loan(loan_id), date.today()))

    @app.put("/api/loans/<int:loan_id>")
    def update_loan(loan_id: int):
        loan = ledger_store.update_loan(loan_id, _loan_from_payload(_payload()))
        return jsonify(_serialize_loan(loan, date.today()))

    @app.delete("/api/loans/<int:loan_id>")
    def delete_loan(loan_id: int):
        ledger_store.delete_loan(loan_id)
        return "", 204

    @app.get("/api/loans/<int:loan_id>/schedule")
    def loan_schedule(loan_id: int):
        if request.args.get("pending") in ("1", "true"):
            return jsonify(to_jsonable(ledger_store.pending_schedule(loan_id)))
        entries = ledger_store.list_schedule(loan_id)
        return jsonify({"entries": to_jsonable(entries), "summary": to_jsonable(summarize_schedule(entries))})

    @app.post("/api/loans/<int:loan_id>/schedule/regenerate")
    def regenerate_schedule(loan_id: int):
        return jsonify(to_jsonable(ledger_store.regenerate_schedule(loan_id)))

    @app.get("/api/schedules")
    def schedules_for_month():
        month = parse_year_month(str(request.args.get("month", "")))
        return jsonify(to_jsonable(ledger_store.schedule_for_month(month.year, month.month)))

    @app.get("/api/schedules/overdue")
    def overdue_schedules():
        return jsonify(to_jsonable(ledger_store.overdue_schedule()))

    @app.post("/api/loans/<int:loan_id>/payments")
    def record_payment(loan_id: int):
        data = request.get_json(silent=True) or {}
        amount = _optional_decimal(data, "amount")
        if amount is None:
            amount = ledger_store.get_loan(loan_id).monthly_amount
            if amount is None:
                raise ValueError("Loan has no installment amount; pass amount")
        loan = ledger_store.record_payment(
            loan_id,
            amount,
            _optional_date(data, "payment_date"),
            _json_bool(data, "auto_deduct", False),
            data.get("note"),
        )
        return jsonify(_serialize_loan(loan, date.today()))

    @app.post("/api/schedules/<int:entry_id>/pay")
    def pay_schedule_entry(entry_id: int):
        data = request.get_json(silent=True) or {}
        entry = ledger_store.pay_schedule_entry(
            entry_id, _optional_decimal(data, "amount"), _optional_date(data, "paid_date")
        )
        return jsonify(to_jsonable(entry))

    # ------------------------------------------------ income / expenses / temp

    @app.get("/api/incomes")
    def list_incomes():
        return jsonify(to_jsonable(ledger_store.list_incomes()))

    @app.post("/api/incomes")
    def create_income():
        data = _payload()
        income = Income(
            source=str(_required(data, "source")),
            amount=decimal_from_str(str(_required(data, "amount"))),
            income_day=int(_required(data, "income_day")),
            description=data.get("description"),
        )
        return jsonify(to_jsonable(ledger_store.add_income(income))), 201

    @app.patch("/api/incomes/<int:income_id>")
    def toggle_income(income_id: int):
        ledger_store.set_income_active(income_id, _json_bool(_payload(), "is_active"))
        return "", 204

    @app.get("/api/expenses")
    def list_expenses():
        return jsonify(to_jsonable(ledger_store.list_expenses()))

    @app.post("/api/expenses")
    def create_expense():
        data = _payload()
        expense = FixedExpense(
            name=str(_required(data, "name")),
            amount=decimal_from_str(str(_required(data, "amount"))),
            expense_day=int(_required(data, "expense_day")),
        )
        return jsonify(to_jsonable(ledger_store.add_expense(expense))), 201

    @app.patch("/api/expenses/<int:expense_id>")
    def toggle_expense(expense_id: int):
        ledger_store.set_expense_active(expense_id, _json_bool(_payload(), "is_active"))
        return "", 204

    @app.get("/api/temp-transactions")
    def list_temp_transactions():
        start = request.args.get("start")
        end = request.args.get("end")
        rows = ledger_store.list_temp_transactions(
            parse_iso_date(start) if start else None, parse_iso_date(end) if end else None
        )
        return jsonify(to_jsonable(rows))

    @app.post("/api/temp-transactions")
    def create_temp_transaction():
        data = _payload()
        transaction = TempTransaction(
            transaction_date=parse_iso_date(str(_required(data, "transaction_date"))),
            type=str(_required(data, "type")),
            amount=decimal_from_str(str(_required(data, "amount"))),
            description=data.get("description") or "",
        )
        return jsonify(to_jsonable(ledger_store.add_temp_transaction(transaction))), 201

    @app.delete("/api/temp-transactions/<int:transaction_id>")
    def delete_temp_transaction(transaction_id: int):
        ledger_store.delete_temp_transaction(transaction_id)
        return "", 204

    # -------------------------------------------------------- balance / config

    @app.get("/api/balance")
    def get_balance():
        return jsonify({"balance": float(ledger_store.current_balance())})

    @app.put("/api/balance")
    def set_balance():
        data = _payload()
        entry = ledger_store.update_balance(
            decimal_from_str(str(_required(data, "balance"))), data.get("description")
        )
        return jsonify(to_jsonable(entry))

    @app.post("/api/balance/add")
    def add_balance():
        data = _payload()
        entry = ledger_store.add_balance(
            decimal_from_str(str(_required(data, "amount"))), description=data.get("description")
        )
        return jsonify(to_jsonable(entry))

    @app.post("/api/balance/deduct")
    def deduct_balance():
        data = _payload()
        entry = ledger_store.deduct_balance(
            decimal_from_str(str(_required(data, "amount"))),
            change_type=CHANGE_EXPENSE,
            description=data.get("description"),
        )
        return jsonify(to_jsonable(entry))

    @app.get("/api/balance/history")
    def balance_history():
        return jsonify(to_jsonable(ledger_store.balance_history()))

    @app.get("/api/config")
    def get_config():
        return jsonify(to_jsonable(ledger_store.ledger_config()))

    @app.put("/api/config")
    def set_config():
        data = _payload()
        if data.get("salary_day") is not None:
            day = int(data["salary_day"])
            if not 1 <= day <= 31:
                raise ValueError("salary_day must be between 1 and 31")
            ledger_store.set_config_value(SALARY_DAY_KEY, str(day))
        if data.get("salary_amount") is not None:
            amount = decimal_from_str(str(data["salary_amount"]))
            ledger_store.set_config_value(SALARY_AMOUNT_KEY, str(amount))
        return jsonify(to_jsonable(ledger_store.ledger_config()))

    # ------------------------------------------------------------- forecast

    @app.get("/api/forecast")
    def cash_flow_forecast():
        months = _int_arg("months", forecast.DEFAULT_HORIZON_MONTHS)
        return jsonify(to_jsonable(forecast.forecast_cash_flow(ledger_store.load_ledger(), months)))

    @app.get("/api/forecast/deficit")
    def deficit_warning():
        months = _int_arg("months", forecast.DEFAULT_HORIZON_MONTHS)
        return jsonify(to_jsonable(forecast.detect_deficit(ledger_store.load_ledger(), months)))

    @app.get("/api/forecast/events")
    def event_timeline():
        months = _int_arg("months", forecast.DEFAULT_HORIZON_MONTHS)
        return jsonify(to_jsonable(forecast.generate_event_timeline(ledger_store.load_ledger(), months)))

    # ---------------------------------------------------------- salary cycle

    @app.get("/api/salary-cycle/current")
    def current_cycle():
        result = salary_cycle.current_cycle(ledger_store.load_ledger(), ledger_store.ledger_config())
        return jsonify(to_jsonable(result))

    @app.get("/api/salary-cycle")
    def cycle_by_date():
        day = parse_iso_date(str(request.args.get("date", "")))
        result = salary_cycle.cycle_by_date(ledger_store.load_ledger(), ledger_store.ledger_config(), day)
        return jsonify(to_jsonable(result))

    @app.get("/api/salary-cycle/future")
    def future_cycles():
        count = _int_arg("count", 3)
        if not 1 <= count <= 24:
            raise ValueError("count must be between 1 and 24")
        result = salary_cycle.future_cycles(ledger_store.load_ledger(), ledger_store.ledger_config(), count)
        return jsonify(to_jsonable(result))

    # ---------------------------------------------------------- debt snapshot

    @app.post("/api/debt-snapshot/create")
    def create_snapshot():
        data = request.get_json(silent=True) or {}
        snapshot = snapshots.create_snapshot(
            _optional_date(data, "snapshot_date") or date.today(),
            data.get("snapshot_type") or SNAPSHOT_DAILY,
        )
        return jsonify(to_jsonable(snapshot))

    @app.get("/api/debt-snapshot/recent")
    def recent_snapshots():
        return jsonify(to_jsonable(snapshots.get_recent_snapshots(_int_arg("days", 7))))

    @app.get("/api/debt-snapshot/trend/daily")
    def daily_trend():
        return jsonify(to_jsonable(snapshots.get_daily_trend(_int_arg("days", 30))))

    @app.get("/api/debt-snapshot/trend/monthly")
    def monthly_trend():
        return jsonify(to_jsonable(snapshots.get_monthly_trend(_int_arg("months", 12))))

    @app.get("/api/debt-snapshot/statistics")
    def snapshot_statistics():
        return jsonify(to_jsonable(snapshots.get_statistics()))

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    print("Starting Loan Ledger API...")
    create_app(settings=settings).run(host="0.0.0.0", port=8710, debug=True)
