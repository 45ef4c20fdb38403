"""Core business logic package for the finance tracker."""

from .balance import (
    LedgerState,
    compute_balance,
    compute_savings,
    replay,
    validate_savings_deposit,
    validate_savings_withdrawal,
)
from .exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from .models import Category, CategoryKind, Transaction, TransactionKind
from .reports import Period, Report, build_report, percent_change
from .services import CategoryService, LedgerService, TransactionService
from .storage import JSONStorage

__all__ = [
    "Category",
    "CategoryKind",
    "Transaction",
    "TransactionKind",
    "LedgerState",
    "compute_balance",
    "compute_savings",
    "replay",
    "validate_savings_deposit",
    "validate_savings_withdrawal",
    "Period",
    "Report",
    "build_report",
    "percent_change",
    "CategoryService",
    "LedgerService",
    "TransactionService",
    "JSONStorage",
    "InsufficientFundsError",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
]
