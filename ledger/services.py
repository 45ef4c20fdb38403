"""Framework-agnostic business services for the finance ledger."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from .balance import (
    LedgerState,
    ZERO,
    replay,
    validate_savings_deposit,
    validate_savings_withdrawal,
)
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .models import Category, CategoryKind, Transaction, TransactionKind
from .reports import HistoryPage, Period, Report, build_report, savings_history, search_transactions
from .storage import JSONStorage
from .validators import (
    CATEGORY_NAME_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    parse_amount,
    parse_decimal,
    validate_datetime,
    validate_enum,
    validate_optional_str,
    validate_required_str,
)

logger = logging.getLogger(__name__)

SET_BALANCE_TITLE = "Set balance"
SAVE_TITLE = "Add to savings"
TAKE_TITLE = "Take from savings"

# Raised by from_dict on records with missing fields, unknown kinds or malformed values.
HYDRATION_ERRORS = (KeyError, TypeError, ValueError, AttributeError, InvalidOperation)


class TransactionService:
    """Records and discards ledger transactions and answers replay queries."""

    def __init__(self, storage: JSONStorage, resource: str = "transactions.json") -> None:
        self._storage = storage
        self._resource = resource
        self._lock = threading.RLock()
        self._transactions: Dict[int, Transaction] = {}
        self._next_id = 1
        self.load()

    # Commands -------------------------------------------------------------
    def record(
        self,
        kind: object,
        title: object = None,
        amount: object = None,
        description: object = None,
        date: object = None,
    ) -> Transaction:
        """Validate and append a transaction.

        Savings transfers are checked against a fresh replay of the ledger so
        neither the balance nor the savings can be driven below zero by them.
        """
        kind = validate_enum(kind, "type", TransactionKind)
        if kind is TransactionKind.SET_BALANCE:
            clean_title = validate_optional_str(title, "title", TITLE_MAX_LENGTH) or SET_BALANCE_TITLE
        else:
            clean_title = validate_required_str(title, "title", TITLE_MAX_LENGTH)
        clean_amount = parse_amount(amount)
        clean_description = validate_optional_str(description, "description", DESCRIPTION_MAX_LENGTH)
        now = datetime.now(timezone.utc)
        effective = now if date in (None, "") else validate_datetime(date, "date")

        with self._lock:
            if kind.affects_savings:
                state = replay(self._transactions.values())
                if kind is TransactionKind.SAVE_TO_SAVINGS:
                    clean_amount = validate_savings_deposit(clean_amount, state.balance)
                else:
                    clean_amount = validate_savings_withdrawal(clean_amount, state.savings)

            transaction = Transaction(
                id=self._next_id,
                kind=kind,
                title=clean_title,
                description=clean_description,
                amount=clean_amount,
                date=effective,
                created_at=now,
            )
            updated = {**self._transactions, transaction.id: transaction}
            self._persist(updated, self._next_id + 1)
            self._transactions = updated
            self._next_id += 1

        logger.info("Recorded %s transaction %s for %.2f", kind.value, transaction.id, clean_amount)
        return transaction

    def discard(self, transaction_id: int) -> None:
        """Delete a transaction permanently; aggregates follow on the next replay."""
        with self._lock:
            self._get_or_raise(transaction_id)
            updated = {key: txn for key, txn in self._transactions.items() if key != transaction_id}
            self._persist(updated, self._next_id)
            self._transactions = updated
        logger.info("Discarded transaction %s", transaction_id)

    def save_to_savings(self, amount: object, date: object = None) -> Transaction:
        return self.record(TransactionKind.SAVE_TO_SAVINGS, SAVE_TITLE, amount, date=date)

    def take_from_savings(self, amount: object, date: object = None) -> Transaction:
        return self.record(TransactionKind.TAKE_FROM_SAVINGS, TAKE_TITLE, amount, date=date)

    # Queries --------------------------------------------------------------
    def get(self, transaction_id: int) -> Transaction:
        return self._get_or_raise(transaction_id)

    def list(
        self, order: str = "asc", kinds: Optional[Iterable[TransactionKind]] = None
    ) -> List[Transaction]:
        if order not in ("asc", "desc"):
            raise ValidationError("order must be 'asc' or 'desc'")
        records: Iterable[Transaction] = self._transactions.values()
        if kinds is not None:
            wanted = set(kinds)
            records = (txn for txn in records if txn.kind in wanted)
        return sorted(records, key=lambda txn: (txn.date, txn.id), reverse=order == "desc")

    def search(
        self,
        query: Optional[str] = None,
        scope: str = "all",
        on: object = None,
        order: str = "desc",
    ) -> List[Transaction]:
        return search_transactions(self.list(order=order), query=query, scope=scope, on=on)

    def state(self) -> LedgerState:
        return replay(self._transactions.values())

    def balance(self) -> Decimal:
        return self.state().balance

    def savings(self) -> Decimal:
        return self.state().savings

    def savings_history(self, on: object = None, page: int = 1, per_page: int = 5) -> HistoryPage:
        return savings_history(self._transactions.values(), on=on, page=page, per_page=per_page)

    def report(self, period: Optional[Period] = None, today: Optional[date] = None) -> Report:
        return build_report(self._transactions.values(), period, today=today)

    def load(self) -> None:
        """Load existing transactions from persistence."""
        stored = self._storage.load(self._resource)
        try:
            transactions = {
                txn.id: txn for txn in (Transaction.from_dict(payload) for payload in stored.records)
            }
        except HYDRATION_ERRORS as exc:
            logger.error("Corrupted record in %s: %s", self._resource, exc)
            raise PersistenceError(f"Corrupted record in {self._resource}") from exc
        with self._lock:
            self._transactions = transactions
            self._next_id = stored.next_id

    # Internal helpers -----------------------------------------------------
    def _persist(self, transactions: Dict[int, Transaction], next_id: int) -> None:
        try:
            self._storage.save(
                self._resource,
                [txn.to_dict() for txn in sorted(transactions.values(), key=lambda txn: txn.id)],
                next_id,
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving transactions") from exc

    def _get_or_raise(self, transaction_id: int) -> Transaction:
        try:
            return self._transactions[transaction_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Transaction {transaction_id} not found") from exc


class CategoryService:
    """Manages one budgeting category list (income or expense)."""

    def __init__(self, storage: JSONStorage, kind: CategoryKind) -> None:
        self._storage = storage
        self._kind = kind
        self._resource = f"{kind.value}_categories.json"
        self._lock = threading.RLock()
        self._categories: Dict[int, Category] = {}
        self._next_id = 1
        self.load()

    @property
    def kind(self) -> CategoryKind:
        return self._kind

    def add(self, payload: Dict[str, object]) -> Category:
        with self._lock:
            data = self._validate_payload(payload)
            category = Category(id=self._next_id, created_at=datetime.now(timezone.utc), **data)
            updated = {**self._categories, category.id: category}
            self._persist(updated, self._next_id + 1)
            self._categories = updated
            self._next_id += 1
        logger.info("Added %s category %s (%s)", self._kind.value, category.id, category.name)
        return category

    def update(self, category_id: int, changes: Dict[str, object]) -> Category:
        with self._lock:
            existing = self._get_or_raise(category_id)
            merged_payload = {**existing.to_dict(), **changes}
            data = self._validate_payload(merged_payload)
            updated_category = Category(id=existing.id, created_at=existing.created_at, **data)
            updated = {**self._categories, category_id: updated_category}
            self._persist(updated, self._next_id)
            self._categories = updated
        logger.info("Updated %s category %s", self._kind.value, category_id)
        return updated_category

    def delete(self, category_id: int) -> None:
        with self._lock:
            self._get_or_raise(category_id)
            updated = {key: cat for key, cat in self._categories.items() if key != category_id}
            self._persist(updated, self._next_id)
            self._categories = updated
        logger.info("Deleted %s category %s", self._kind.value, category_id)

    def get(self, category_id: int) -> Category:
        return self._get_or_raise(category_id)

    def list(self) -> List[Category]:
        """Newest first."""
        return sorted(
            self._categories.values(), key=lambda cat: (cat.created_at, cat.id), reverse=True
        )

    def total(self) -> Decimal:
        return sum((cat.value for cat in self._categories.values()), start=ZERO)

    def load(self) -> None:
        stored = self._storage.load(self._resource)
        try:
            categories = {
                cat.id: cat for cat in (Category.from_dict(payload) for payload in stored.records)
            }
        except HYDRATION_ERRORS as exc:
            logger.error("Corrupted record in %s: %s", self._resource, exc)
            raise PersistenceError(f"Corrupted record in {self._resource}") from exc
        with self._lock:
            self._categories = categories
            self._next_id = stored.next_id

    def _persist(self, categories: Dict[int, Category], next_id: int) -> None:
        try:
            self._storage.save(
                self._resource,
                [cat.to_dict() for cat in sorted(categories.values(), key=lambda cat: cat.id)],
                next_id,
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError(f"Unexpected error while saving {self._kind.value} categories") from exc

    def _get_or_raise(self, category_id: int) -> Category:
        try:
            return self._categories[category_id]
        except KeyError as exc:
            raise RecordNotFoundError(
                f"{self._kind.value.capitalize()} category {category_id} not found"
            ) from exc

    @staticmethod
    def _validate_payload(payload: Dict[str, object]) -> Dict[str, object]:
        return {
            "name": validate_required_str(payload.get("name"), "name", CATEGORY_NAME_MAX_LENGTH),
            "value": parse_decimal(payload.get("value"), "value"),
        }


class LedgerService:
    """Combines ledger and category figures for the dashboard."""

    def __init__(
        self,
        transactions: TransactionService,
        income_categories: CategoryService,
        expense_categories: CategoryService,
    ) -> None:
        self._transactions = transactions
        self._categories = {
            CategoryKind.INCOME: income_categories,
            CategoryKind.EXPENSE: expense_categories,
        }

    @classmethod
    def from_storage(cls, storage: JSONStorage) -> "LedgerService":
        return cls(
            TransactionService(storage),
            CategoryService(storage, CategoryKind.INCOME),
            CategoryService(storage, CategoryKind.EXPENSE),
        )

    @property
    def transactions(self) -> TransactionService:
        return self._transactions

    def categories(self, kind: object) -> CategoryService:
        return self._categories[validate_enum(kind, "kind", CategoryKind)]

    def summary(self) -> Dict[str, str]:
        """Return the dashboard figures rendered as two-decimal strings."""
        state = self._transactions.state()
        return {
            "balance": f"{state.balance:.2f}",
            "savings": f"{state.savings:.2f}",
            "income": f"{self._categories[CategoryKind.INCOME].total():.2f}",
            "expenses": f"{self._categories[CategoryKind.EXPENSE].total():.2f}",
        }

    def refresh(self) -> None:
        """Reload data from persistence for every service."""
        self._transactions.load()
        for service in self._categories.values():
            service.load()
