"""Period reports, transaction search and savings history over a ledger snapshot."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from .balance import ZERO
from .exceptions import ValidationError
from .models import Transaction, TransactionKind
from .validators import parse_int, validate_date

DAYS_PER_YEAR = 365
HISTORY_PAGE_SIZE = 5
SEARCH_SCOPES = ("all", "day", "month", "year")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Period:
    """A calendar filter: all time, one year, or one month of a year."""

    year: Optional[int] = None
    month: Optional[int] = None

    def __post_init__(self) -> None:
        if self.month is not None and self.year is None:
            raise ValidationError("month filter requires a year")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError("month must be between 1 and 12")

    @classmethod
    def parse(cls, year: object = None, month: object = None) -> "Period":
        """Build a period from raw query values; blanks mean 'not filtered'."""
        parsed_year = None if year in (None, "") else parse_int(year, "year", minimum=1, maximum=9999)
        parsed_month = None if month in (None, "") else parse_int(month, "month", minimum=1, maximum=12)
        return cls(parsed_year, parsed_month)

    def contains(self, moment: datetime) -> bool:
        if self.year is None:
            return True
        if moment.year != self.year:
            return False
        return self.month is None or moment.month == self.month

    def previous(self, today: Optional[date] = None) -> "Period":
        if self.month is not None:
            if self.month == 1:
                return Period(self.year - 1, 12)
            return Period(self.year, self.month - 1)
        if self.year is not None:
            return Period(self.year - 1)
        today = today or datetime.now(timezone.utc).date()
        return Period(today.year - 1)

    @property
    def days(self) -> int:
        if self.month is not None:
            return calendar.monthrange(self.year, self.month)[1]
        return DAYS_PER_YEAR

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {"year": self.year, "month": self.month}


@dataclass(frozen=True)
class Report:
    period: Period
    total_income: Decimal
    total_spending: Decimal
    saved: Decimal
    taken: Decimal
    net_savings: Decimal
    previous_net_savings: Decimal
    savings_growth_percent: Decimal
    average_daily_spending: Decimal
    counts: Dict[str, int]
    total_transactions: int
    spending_share_percent: Decimal
    income_share_percent: Decimal

    def to_dict(self) -> Dict[str, object]:
        return {
            "period": self.period.to_dict(),
            "total_income": f"{self.total_income:.2f}",
            "total_spending": f"{self.total_spending:.2f}",
            "saved": f"{self.saved:.2f}",
            "taken": f"{self.taken:.2f}",
            "net_savings": f"{self.net_savings:.2f}",
            "previous_net_savings": f"{self.previous_net_savings:.2f}",
            "savings_growth_percent": f"{self.savings_growth_percent:.1f}",
            "average_daily_spending": f"{self.average_daily_spending:.2f}",
            "counts": dict(self.counts),
            "total_transactions": self.total_transactions,
            "spending_share_percent": f"{self.spending_share_percent:.1f}",
            "income_share_percent": f"{self.income_share_percent:.1f}",
        }


@dataclass(frozen=True)
class HistoryPage:
    items: List[Transaction] = field(default_factory=list)
    total: int = 0
    has_more: bool = False


def filter_by_period(transactions: Iterable[Transaction], period: Period) -> List[Transaction]:
    return [txn for txn in transactions if period.contains(txn.date)]


def sum_kind(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((txn.amount for txn in transactions if txn.kind is kind), start=ZERO)


def net_savings(transactions: Iterable[Transaction]) -> Decimal:
    items = list(transactions)
    return sum_kind(items, TransactionKind.SAVE_TO_SAVINGS) - sum_kind(
        items, TransactionKind.TAKE_FROM_SAVINGS
    )


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Growth of ``current`` over ``previous`` in percent.

    A non-positive baseline has no meaningful ratio: growth is then reported
    as 100 when the current figure is positive and 0 otherwise.
    """
    if previous > 0:
        return (current - previous) / previous * HUNDRED
    return HUNDRED if current > 0 else Decimal("0")


def share(part: int, whole: int) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return Decimal(part) / Decimal(whole) * HUNDRED


def build_report(
    transactions: Iterable[Transaction],
    period: Optional[Period] = None,
    today: Optional[date] = None,
) -> Report:
    """Aggregate one period and compare its net savings with the period before it."""
    period = period or Period()
    snapshot = list(transactions)
    current = filter_by_period(snapshot, period)
    previous = filter_by_period(snapshot, period.previous(today))

    spending = sum_kind(current, TransactionKind.ADD_SPENDING)
    saved = sum_kind(current, TransactionKind.SAVE_TO_SAVINGS)
    taken = sum_kind(current, TransactionKind.TAKE_FROM_SAVINGS)
    current_net = saved - taken
    previous_net = net_savings(previous)

    counts = {kind.value: 0 for kind in TransactionKind}
    for txn in current:
        counts[txn.kind.value] += 1
    total = len(current)

    return Report(
        period=period,
        total_income=sum_kind(current, TransactionKind.ADD_BALANCE),
        total_spending=spending,
        saved=saved,
        taken=taken,
        net_savings=current_net,
        previous_net_savings=previous_net,
        savings_growth_percent=percent_change(current_net, previous_net),
        average_daily_spending=(spending / Decimal(period.days)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        ),
        counts=counts,
        total_transactions=total,
        spending_share_percent=share(counts[TransactionKind.ADD_SPENDING.value], total),
        income_share_percent=share(counts[TransactionKind.ADD_BALANCE.value], total),
    )


def search_transactions(
    transactions: Iterable[Transaction],
    query: Optional[str] = None,
    scope: str = "all",
    on: object = None,
) -> List[Transaction]:
    """Filter by a case-insensitive text match and an optional day/month/year scope.

    The scope is ignored unless a reference date ``on`` is given.
    """
    if scope not in SEARCH_SCOPES:
        raise ValidationError(f"scope must be one of: {', '.join(SEARCH_SCOPES)}")
    results = list(transactions)

    needle = (query or "").strip().lower()
    if needle:
        results = [
            txn
            for txn in results
            if needle in txn.title.lower()
            or (txn.description is not None and needle in txn.description.lower())
        ]

    if scope != "all" and on not in (None, ""):
        target = validate_date(on, "on")

        def matches(txn: Transaction) -> bool:
            moment = txn.date.date()
            if moment.year != target.year:
                return False
            if scope == "year":
                return True
            if moment.month != target.month:
                return False
            return scope == "month" or moment.day == target.day

        results = [txn for txn in results if matches(txn)]
    return results


def savings_history(
    transactions: Iterable[Transaction],
    on: object = None,
    page: int = 1,
    per_page: int = HISTORY_PAGE_SIZE,
) -> HistoryPage:
    """Savings transfers newest first, revealed ``per_page`` rows at a time."""
    if page < 1:
        raise ValidationError("page must be at least 1")
    if per_page < 1:
        raise ValidationError("per_page must be at least 1")
    rows = [txn for txn in transactions if txn.kind.affects_savings]
    if on not in (None, ""):
        day = validate_date(on, "on")
        rows = [txn for txn in rows if txn.date.date() == day]
    rows.sort(key=lambda txn: (txn.date, txn.id), reverse=True)
    visible = rows[: page * per_page]
    return HistoryPage(items=visible, total=len(rows), has_more=len(visible) < len(rows))
