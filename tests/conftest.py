from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ledger.models import Transaction, TransactionKind
from ledger.services import LedgerService
from ledger.storage import JSONStorage


@pytest.fixture
def storage(tmp_path):
    return JSONStorage(tmp_path / "data")


@pytest.fixture
def ledger(storage):
    return LedgerService.from_storage(storage)


@pytest.fixture
def make_txn():
    counter = {"next": 1}

    def _make(kind, amount, when, title="entry", description=None, txn_id=None):
        if txn_id is None:
            txn_id = counter["next"]
        counter["next"] = max(counter["next"], txn_id) + 1
        if isinstance(when, str):
            when = datetime.fromisoformat(when).replace(tzinfo=timezone.utc)
        return Transaction(
            id=txn_id,
            kind=TransactionKind(kind),
            title=title,
            description=description,
            amount=Decimal(str(amount)),
            date=when,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make
