import json

import pytest

from ledger.exceptions import PersistenceError
from ledger.storage import JSONStorage


def test_missing_resource_is_empty(storage):
    stored = storage.load("transactions.json")
    assert stored.records == []
    assert stored.next_id == 1


def test_save_then_load(storage):
    storage.save("items.json", [{"id": 1}, {"id": 4}], next_id=7)
    stored = storage.load("items.json")
    assert stored.records == [{"id": 1}, {"id": 4}]
    assert stored.next_id == 7
    assert not (storage.base_path / "items.json.tmp").exists()


def test_next_id_never_behind_records(storage):
    path = storage.base_path / "items.json"
    path.write_text(json.dumps({"next_id": 2, "records": [{"id": 9}]}))
    assert storage.load("items.json").next_id == 10


def test_bare_list_documents_are_accepted(storage):
    (storage.base_path / "items.json").write_text(json.dumps([{"id": 3}, {"id": 5}]))
    assert storage.load("items.json").next_id == 6


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"records": "nope"}), json.dumps([{"name": "no id"}]), "42"],
)
def test_corrupted_documents_raise(tmp_path, content):
    storage = JSONStorage(tmp_path)
    (tmp_path / "items.json").write_text(content)
    with pytest.raises(PersistenceError):
        storage.load("items.json")
