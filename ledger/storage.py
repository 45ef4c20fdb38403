"""Persistence utilities for the finance ledger services."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class StoredResource:
    """Records of one resource plus the next integer id to hand out."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    next_id: int = 1


class JSONStorage:
    """File-based JSON storage with crash-safe writes and integer id sequences.

    Each resource is a document of the form ``{"next_id": n, "records": [...]}``.
    The sequence only moves forward, so ids of deleted records are never reused.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        self._base_path.mkdir(parents=True, exist_ok=True)

    def load(self, resource: str) -> StoredResource:
        path = self._base_path / resource
        if not path.exists():
            return StoredResource()
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            logger.error("Corrupted JSON document %s", path)
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            logger.error("Unable to read %s: %s", path, exc)
            raise PersistenceError(f"Unable to read from {path}") from exc

        if isinstance(payload, list):
            # Bare lists predate the id sequence; derive it from the records.
            return StoredResource(records=payload, next_id=_after_highest_id(payload))
        if not isinstance(payload, dict) or not isinstance(payload.get("records"), list):
            raise PersistenceError(f"Expected a records document in {path}")

        records = payload["records"]
        try:
            next_id = int(payload.get("next_id", 1))
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Invalid id sequence in {path}") from exc
        return StoredResource(records=records, next_id=max(next_id, _after_highest_id(records)))

    def save(self, resource: str, records: Iterable[Dict[str, Any]], next_id: int) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        document = {"next_id": next_id, "records": list(records)}
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
                handle.flush()
            # Path.replace is an atomic rename on POSIX.
            temp_path.replace(path)
        except OSError as exc:
            logger.error("Unable to write %s: %s", path, exc)
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path


def _after_highest_id(records: List[Dict[str, Any]]) -> int:
    highest = 0
    for record in records:
        try:
            highest = max(highest, int(record["id"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError("Stored record is missing an integer id") from exc
    return highest + 1
