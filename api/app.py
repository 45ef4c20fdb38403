"""Flask REST API exposing the finance ledger services."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS

from ledger.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from ledger.reports import Period
from ledger.services import LedgerService
from ledger.storage import JSONStorage
from ledger.validators import parse_int


def create_app(data_dir: Optional[Path] = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)

    env_name = os.getenv("FINANCE_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("FINANCE_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    storage = JSONStorage(Path(data_dir or os.getenv("FINANCE_TRACKER_DATA_DIR", "data")))
    ledger = LedgerService.from_storage(storage)
    transactions = ledger.transactions

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        app.logger.error("Persistence error: %s", exc)
        return jsonify({"error": "Persistence error", "details": "The data store is unavailable"}), 500

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _int_arg(name: str, default: int) -> int:
        raw = request.args.get(name)
        if raw in (None, ""):
            return default
        return parse_int(raw, name, minimum=1)

    # Transactions ---------------------------------------------------------
    @app.get("/transactions")
    def list_transactions():
        items = transactions.search(
            query=request.args.get("q"),
            scope=request.args.get("scope") or "all",
            on=request.args.get("on"),
            order=request.args.get("order") or "desc",
        )
        return _success({"items": [txn.to_dict() for txn in items]})

    @app.post("/transactions")
    def create_transaction():
        payload = _json_body()
        txn = transactions.record(
            payload.get("type"),
            payload.get("title"),
            payload.get("amount"),
            description=payload.get("description"),
            date=payload.get("date"),
        )
        return _success(txn.to_dict(), 201)

    @app.get("/transactions/<int:transaction_id>")
    def get_transaction(transaction_id: int):
        return _success(transactions.get(transaction_id).to_dict())

    @app.delete("/transactions/<int:transaction_id>")
    def discard_transaction(transaction_id: int):
        transactions.discard(transaction_id)
        return _success({}, 204)

    # Balance and savings --------------------------------------------------
    @app.get("/balance")
    def balance():
        return _success({"balance": f"{transactions.balance():.2f}"})

    @app.get("/savings")
    def savings():
        history = transactions.savings_history(
            on=request.args.get("on"),
            page=_int_arg("page", 1),
            per_page=_int_arg("per_page", 5),
        )
        return _success({
            "savings": f"{transactions.savings():.2f}",
            "items": [txn.to_dict() for txn in history.items],
            "total": history.total,
            "has_more": history.has_more,
        })

    @app.post("/savings/deposit")
    def deposit_to_savings():
        payload = _json_body()
        txn = transactions.save_to_savings(payload.get("amount"), date=payload.get("date"))
        return _success(txn.to_dict(), 201)

    @app.post("/savings/withdraw")
    def withdraw_from_savings():
        payload = _json_body()
        txn = transactions.take_from_savings(payload.get("amount"), date=payload.get("date"))
        return _success(txn.to_dict(), 201)

    # Categories -----------------------------------------------------------
    @app.get("/categories/<kind>")
    def list_categories(kind: str):
        service = ledger.categories(kind)
        return _success({
            "items": [category.to_dict() for category in service.list()],
            "total": f"{service.total():.2f}",
        })

    @app.post("/categories/<kind>")
    def create_category(kind: str):
        payload = _json_body()
        category = ledger.categories(kind).add(payload)
        return _success(category.to_dict(), 201)

    @app.get("/categories/<kind>/<int:category_id>")
    def get_category(kind: str, category_id: int):
        return _success(ledger.categories(kind).get(category_id).to_dict())

    @app.put("/categories/<kind>/<int:category_id>")
    def update_category(kind: str, category_id: int):
        payload = _json_body()
        category = ledger.categories(kind).update(category_id, payload)
        return _success(category.to_dict())

    @app.delete("/categories/<kind>/<int:category_id>")
    def delete_category(kind: str, category_id: int):
        ledger.categories(kind).delete(category_id)
        return _success({}, 204)

    # Reporting ------------------------------------------------------------
    @app.get("/reports")
    def report():
        period = Period.parse(request.args.get("year"), request.args.get("month"))
        return _success(transactions.report(period).to_dict())

    @app.get("/summary")
    def summary():
        return _success(ledger.summary())

    return app
