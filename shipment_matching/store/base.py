"""
Operational Record Store contract.

The matcher only reads committed shipment data through these primitives.
Implementations must be safe to call from many threads at once.

Error contract:
- StoreUnavailableError: the store cannot be reached at all (aborts the match)
- StoreQueryError: this one query failed (the matcher logs and moves on)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from shipment_matching.constants import MAX_LOOKUP_BATCH_SIZE
from shipment_matching.domain.models import ShipmentRecord
from shipment_matching.exceptions import StoreQueryError


class ShipmentStore(ABC):
    """Abstract read-only shipment store."""

    #: Maximum number of values accepted by find_by_field_in
    max_batch_size: int = MAX_LOOKUP_BATCH_SIZE

    @abstractmethod
    def get_by_key(self, key: str) -> ShipmentRecord | None:
        """Fetch a shipment by document key, or None if absent."""
        ...

    @abstractmethod
    def find_by_field_in(
        self,
        field: str,
        values: Sequence[Any],
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        """
        Find shipments whose `field` equals any of `values`.

        Args:
            field: Dotted field path (e.g. "carrierBookingConfirmation.trackingNumber")
            values: At most max_batch_size values
            limit: Maximum number of records to return

        Raises:
            StoreQueryError: If more than max_batch_size values are given
        """
        ...

    @abstractmethod
    def find_by_range(
        self,
        field: str,
        low: datetime,
        high: datetime,
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        """Find shipments with low <= field <= high (inclusive)."""
        ...

    def find_by_field(
        self,
        field: str,
        value: Any,
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        """Find shipments whose `field` equals `value`."""
        return self.find_by_field_in(field, [value], limit=limit)

    def _check_batch(self, values: Sequence[Any]) -> None:
        if len(values) > self.max_batch_size:
            raise StoreQueryError(
                f"Multi-value lookup accepts at most {self.max_batch_size} values, "
                f"got {len(values)}"
            )
