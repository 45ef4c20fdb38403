"""Ledger rules: derive balance and savings by replaying transactions.

Nothing here keeps a running total. A ``SET_BALANCE`` entry overrides every
effect dated before it, so removing an entry can change the outcome of all
later ones; the figures are therefore always rebuilt from the full ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List

from .exceptions import InsufficientFundsError
from .models import Transaction, TransactionKind
from .validators import parse_positive_amount

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class LedgerState:
    balance: Decimal = ZERO
    savings: Decimal = ZERO

    def apply(self, transaction: Transaction) -> "LedgerState":
        """Return the state after one transaction's effect."""
        kind = transaction.kind
        amount = transaction.amount
        if kind is TransactionKind.SET_BALANCE:
            return LedgerState(amount, self.savings)
        if kind is TransactionKind.ADD_BALANCE:
            return LedgerState(self.balance + amount, self.savings)
        if kind is TransactionKind.ADD_SPENDING:
            return LedgerState(self.balance - amount, self.savings)
        if kind is TransactionKind.SAVE_TO_SAVINGS:
            return LedgerState(self.balance - amount, self.savings + amount)
        if kind is TransactionKind.TAKE_FROM_SAVINGS:
            return LedgerState(self.balance + amount, self.savings - amount)
        raise ValueError(f"Unknown transaction kind: {kind!r}")


def chronological(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Sort by effective date; equal dates keep id order."""
    return sorted(transactions, key=lambda txn: (txn.date, txn.id))


def replay(transactions: Iterable[Transaction]) -> LedgerState:
    state = LedgerState()
    for transaction in chronological(transactions):
        state = state.apply(transaction)
    return state


def compute_balance(transactions: Iterable[Transaction]) -> Decimal:
    return replay(transactions).balance


def compute_savings(transactions: Iterable[Transaction]) -> Decimal:
    """Saved minus taken; ordering is irrelevant since no kind overrides savings."""
    saved = ZERO
    taken = ZERO
    for transaction in transactions:
        if transaction.kind is TransactionKind.SAVE_TO_SAVINGS:
            saved += transaction.amount
        elif transaction.kind is TransactionKind.TAKE_FROM_SAVINGS:
            taken += transaction.amount
    return saved - taken


def validate_savings_deposit(amount: object, current_balance: Decimal) -> Decimal:
    """Check a transfer into savings against the spendable balance."""
    parsed = parse_positive_amount(amount)
    if parsed > current_balance:
        raise InsufficientFundsError(
            f"Cannot save {parsed:.2f}: only {current_balance:.2f} available in balance"
        )
    return parsed


def validate_savings_withdrawal(amount: object, current_savings: Decimal) -> Decimal:
    """Check a transfer out of savings against the saved total."""
    parsed = parse_positive_amount(amount)
    if parsed > current_savings:
        raise InsufficientFundsError(
            f"Cannot take {parsed:.2f}: only {current_savings:.2f} available in savings"
        )
    return parsed
