"""
In-memory shipment store.

Dict-backed implementation of the store contract, used by tests, dry
runs and the CLI's --shipments-file mode. Query semantics mirror the
production store: exact equality, inclusive ranges, results ordered by
document key so repeated queries return identical lists.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any

from shipment_matching.domain.models import ShipmentRecord
from shipment_matching.store.base import ShipmentStore
from shipment_matching.utils.normalize import parse_timestamp

logger = logging.getLogger(__name__)


class InMemoryShipmentStore(ShipmentStore):
    """Thread-safe in-memory shipment store."""

    def __init__(self, shipments: Mapping[str, Mapping[str, Any]] | None = None):
        self._lock = Lock()
        self._shipments: dict[str, dict[str, Any]] = {}
        self.query_count = 0
        if shipments:
            for key, data in shipments.items():
                self.add(key, data)

    def add(self, key: str, data: Mapping[str, Any]) -> ShipmentRecord:
        """Insert or replace a shipment document."""
        with self._lock:
            self._shipments[key] = dict(data)
        return ShipmentRecord(key=key, data=dict(data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._shipments)

    def _snapshot(self) -> list[ShipmentRecord]:
        with self._lock:
            self.query_count += 1
            items = sorted(self._shipments.items())
        return [ShipmentRecord(key=key, data=dict(data)) for key, data in items]

    def get_by_key(self, key: str) -> ShipmentRecord | None:
        with self._lock:
            self.query_count += 1
            data = self._shipments.get(key)
        if data is None:
            return None
        return ShipmentRecord(key=key, data=dict(data))

    def find_by_field_in(
        self,
        field: str,
        values: Sequence[Any],
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        self._check_batch(values)
        wanted = list(values)
        matches = [record for record in self._snapshot() if record.get(field) in wanted]
        return matches[:limit] if limit is not None else matches

    def find_by_range(
        self,
        field: str,
        low: datetime,
        high: datetime,
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        matches = []
        for record in self._snapshot():
            value = parse_timestamp(record.get(field))
            if value is not None and low <= value <= high:
                matches.append(record)
        return matches[:limit] if limit is not None else matches

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> InMemoryShipmentStore:
        """
        Build a store from shipment documents carrying their key.

        The key is taken from "id", then "shipmentID"; documents with
        neither are skipped with a warning.
        """
        store = cls()
        for data in records:
            key = data.get("id") or data.get("shipmentID")
            if not key:
                logger.warning(f"Skipping shipment without id/shipmentID: {dict(data)!r:.120}")
                continue
            store.add(str(key), data)
        return store

    @classmethod
    def from_json_file(cls, path: Path) -> InMemoryShipmentStore:
        """
        Load shipments from a JSON file.

        Accepts either a list of documents or an object mapping key -> document.
        """
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, Mapping):
            return cls(payload)
        return cls.from_records(payload)
