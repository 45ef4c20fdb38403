"""Data models for the finance ledger domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "Category",
    "CategoryKind",
    "Transaction",
    "TransactionKind",
    "isoformat_utc",
    "parse_datetime",
]


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="seconds")
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Naive input is taken as UTC.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TransactionKind(str, Enum):
    SET_BALANCE = "SET_BALANCE"
    ADD_BALANCE = "ADD_BALANCE"
    ADD_SPENDING = "ADD_SPENDING"
    SAVE_TO_SAVINGS = "SAVE_TO_SAVINGS"
    TAKE_FROM_SAVINGS = "TAKE_FROM_SAVINGS"

    @property
    def affects_savings(self) -> bool:
        return self in (TransactionKind.SAVE_TO_SAVINGS, TransactionKind.TAKE_FROM_SAVINGS)


class CategoryKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    id: int
    kind: TransactionKind
    title: str
    amount: Decimal
    date: datetime
    created_at: datetime
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "id": self.id,
            "type": self.kind.value,
            "title": self.title,
            "description": self.description,
            "amount": f"{self.amount:.2f}",
            "date": isoformat_utc(self.date),
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Hydrate a Transaction from JSON-native data."""
        return cls(
            id=int(data["id"]),
            kind=TransactionKind(data["type"]),
            title=data["title"],
            description=data.get("description"),
            amount=Decimal(str(data["amount"])),
            date=parse_datetime(data["date"]),
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    value: Decimal
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "value": f"{self.value:.2f}",
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            value=Decimal(str(data["value"])),
            created_at=parse_datetime(data["created_at"]),
        )
