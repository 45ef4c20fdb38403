"""Console interface for the finance tracker."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from ledger.exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from ledger.models import CategoryKind, TransactionKind
from ledger.reports import Period
from ledger.services import CategoryService, LedgerService, TransactionService
from ledger.storage import JSONStorage

DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _parse_datetime(value: str) -> str:
    try:
        datetime.strptime(value, DATETIME_FORMAT)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid datetime '{value}'. Expected format YYYY-MM-DDTHH:MM:SS."
        ) from exc
    return value


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite() or amount < 0:
        raise argparse.ArgumentTypeError("Amount must be a non-negative number")
    return value


def _load_ledger(data_dir: Path) -> LedgerService:
    return LedgerService.from_storage(JSONStorage(data_dir))


def _format_transaction(txn: Dict[str, Any]) -> str:
    return (
        f"[{txn['id']}] {txn['date']} {txn['type']} {txn['amount']}\n"
        f"  Title: {txn['title']}\n"
        f"  Description: {txn.get('description') or '-'}\n"
    )


def _format_category(category: Dict[str, Any]) -> str:
    return f"[{category['id']}] {category['name']}: {category['value']}"


def handle_transaction(args: argparse.Namespace, service: TransactionService) -> None:
    if args.command == "add":
        txn = service.record(
            args.type,
            args.title,
            args.amount,
            description=args.description,
            date=args.date,
        )
        print("Transaction recorded:\n" + _format_transaction(txn.to_dict()))
        print(f"Balance: {service.balance():.2f} | Savings: {service.savings():.2f}")
    elif args.command == "list":
        items = service.search(query=args.query, scope=args.scope, on=args.on, order=args.order)
        if not items:
            print("No transactions found.")
            return
        print(f"Found {len(items)} transactions:")
        for txn in items:
            print(_format_transaction(txn.to_dict()))
    elif args.command == "discard":
        service.discard(args.id)
        print(f"Transaction {args.id} discarded.")
        print(f"Balance: {service.balance():.2f} | Savings: {service.savings():.2f}")


def handle_balance(args: argparse.Namespace, ledger: LedgerService) -> None:
    summary = ledger.summary()
    print(f"Balance: {summary['balance']}")
    print(f"Savings: {summary['savings']}")
    print(f"Income categories: {summary['income']} | Expense categories: {summary['expenses']}")


def handle_savings(args: argparse.Namespace, service: TransactionService) -> None:
    if args.command == "show":
        history = service.savings_history(on=args.on, page=args.page)
        print(f"Savings: {service.savings():.2f}")
        for txn in history.items:
            sign = "+" if txn.kind is TransactionKind.SAVE_TO_SAVINGS else "-"
            print(f"  {txn.to_dict()['date']} {sign}{txn.amount:.2f} {txn.title}")
        if history.has_more:
            print(f"  ... {history.total - len(history.items)} more (use --page {args.page + 1})")
    elif args.command == "deposit":
        txn = service.save_to_savings(args.amount)
        print(f"Saved {txn.amount:.2f}. Savings: {service.savings():.2f}")
    elif args.command == "withdraw":
        txn = service.take_from_savings(args.amount)
        print(f"Took {txn.amount:.2f} from savings. Savings: {service.savings():.2f}")


def handle_category(args: argparse.Namespace, service: CategoryService) -> None:
    label = service.kind.value.capitalize()
    if args.command == "add":
        category = service.add({"name": args.name, "value": args.value})
        print(f"{label} category added: " + _format_category(category.to_dict()))
    elif args.command == "list":
        categories = service.list()
        if not categories:
            print(f"No {service.kind.value} categories found.")
            return
        print(f"{label} categories (total {service.total():.2f}):")
        for category in categories:
            print("  " + _format_category(category.to_dict()))
    elif args.command == "edit":
        changes = {k: v for k, v in {"name": args.name, "value": args.value}.items() if v is not None}
        category = service.update(args.id, changes)
        print(f"{label} category updated: " + _format_category(category.to_dict()))
    elif args.command == "delete":
        service.delete(args.id)
        print(f"{label} category {args.id} deleted.")


def handle_report(args: argparse.Namespace, service: TransactionService) -> None:
    report = service.report(Period.parse(args.year, args.month)).to_dict()
    period = report["period"]
    if period["month"]:
        heading = f"{period['year']}-{period['month']:02d}"
    elif period["year"]:
        heading = str(period["year"])
    else:
        heading = "all time"
    print(f"Report for {heading}")
    print(f"  Income: {report['total_income']} | Spending: {report['total_spending']}")
    print(f"  Net savings: {report['net_savings']} (previous {report['previous_net_savings']}, "
          f"growth {report['savings_growth_percent']}%)")
    print(f"  Average daily spending: {report['average_daily_spending']}")
    print(f"  Transactions: {report['total_transactions']} "
          f"(spending {report['spending_share_percent']}%, income {report['income_share_percent']}%)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Finance Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )

    subparsers = parser.add_subparsers(dest="entity", required=True)

    txn_parser = subparsers.add_parser("transaction", help="Manage ledger transactions")
    txn_sub = txn_parser.add_subparsers(dest="command", required=True)

    txn_add = txn_sub.add_parser("add", help="Record a transaction")
    txn_add.add_argument("type", choices=[kind.value for kind in TransactionKind])
    txn_add.add_argument("amount", type=_parse_amount)
    txn_add.add_argument("--title")
    txn_add.add_argument("--description")
    txn_add.add_argument("--date", type=_parse_datetime)

    txn_list = txn_sub.add_parser("list", help="List transactions")
    txn_list.add_argument("--query")
    txn_list.add_argument("--scope", choices=["all", "day", "month", "year"], default="all")
    txn_list.add_argument("--on", help="Reference date YYYY-MM-DD for --scope")
    txn_list.add_argument("--order", choices=["asc", "desc"], default="desc")

    txn_discard = txn_sub.add_parser("discard", help="Delete a transaction permanently")
    txn_discard.add_argument("id", type=int)

    subparsers.add_parser("balance", help="Show balance, savings and category totals")

    savings_parser = subparsers.add_parser("savings", help="Move money into or out of savings")
    savings_sub = savings_parser.add_subparsers(dest="command", required=True)
    savings_show = savings_sub.add_parser("show", help="Show savings history")
    savings_show.add_argument("--on", help="Only transfers on this date (YYYY-MM-DD)")
    savings_show.add_argument("--page", type=int, default=1)
    savings_deposit = savings_sub.add_parser("deposit", help="Move balance into savings")
    savings_deposit.add_argument("amount", type=_parse_amount)
    savings_withdraw = savings_sub.add_parser("withdraw", help="Move savings back into balance")
    savings_withdraw.add_argument("amount", type=_parse_amount)

    category_parser = subparsers.add_parser("category", help="Manage budget categories")
    category_parser.add_argument("kind", choices=[kind.value for kind in CategoryKind])
    category_sub = category_parser.add_subparsers(dest="command", required=True)

    category_add = category_sub.add_parser("add", help="Add a category")
    category_add.add_argument("name")
    category_add.add_argument("value")

    category_sub.add_parser("list", help="List categories")

    category_edit = category_sub.add_parser("edit", help="Edit a category")
    category_edit.add_argument("id", type=int)
    category_edit.add_argument("--name")
    category_edit.add_argument("--value")

    category_delete = category_sub.add_parser("delete", help="Delete a category")
    category_delete.add_argument("id", type=int)

    report_parser = subparsers.add_parser("report", help="Summarise a year or month")
    report_parser.add_argument("--year", type=int)
    report_parser.add_argument("--month", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        ledger = _load_ledger(args.data_dir)
        if args.entity == "transaction":
            handle_transaction(args, ledger.transactions)
        elif args.entity == "balance":
            handle_balance(args, ledger)
        elif args.entity == "savings":
            handle_savings(args, ledger.transactions)
        elif args.entity == "category":
            handle_category(args, ledger.categories(args.kind))
        elif args.entity == "report":
            handle_report(args, ledger.transactions)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except InsufficientFundsError as exc:
        print(f"Not enough funds: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
