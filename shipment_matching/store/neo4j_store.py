"""
Neo4j-backed shipment store.

Shipments are (:Shipment) nodes. Nested document fields are stored as
flat dotted property names (e.g. `carrierBookingConfirmation.trackingNumber`),
the document key lives in the `id` property and `bookedAt` is a zoned
DateTime. Field paths are passed as parameters and read with dynamic
property access (s[$field]), so no Cypher is built from caller input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from neo4j import Query
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable, SessionExpired

from shipment_matching.constants import SHIPMENT_KEY_PROPERTY
from shipment_matching.domain.models import ShipmentRecord
from shipment_matching.exceptions import StoreQueryError, StoreUnavailableError
from shipment_matching.store.base import ShipmentStore
from shipment_matching.utils.rate_limiting import RateLimiter

logger = logging.getLogger(__name__)

_RETURN_CLAUSE = f"""
RETURN s.{SHIPMENT_KEY_PROPERTY} AS key, properties(s) AS data
ORDER BY key
"""


class Neo4jShipmentStore(ShipmentStore):
    """
    Read-only shipment lookups against Neo4j.

    The neo4j driver is thread-safe; each query opens its own session.
    """

    def __init__(
        self,
        driver,
        database: str | None = None,
        query_timeout: float | None = 10.0,
        rate_limiter: RateLimiter | None = None,
    ):
        """
        Args:
            driver: Neo4j driver instance
            database: Neo4j database name
            query_timeout: Server-side timeout per query in seconds
            rate_limiter: Optional limiter shared by all queries of this store
        """
        self.driver = driver
        self.database = database
        self.query_timeout = query_timeout
        self.rate_limiter = rate_limiter

    def _run(self, cypher: str, **params: Any) -> list[ShipmentRecord]:
        if self.rate_limiter:
            self.rate_limiter()
        try:
            with self.driver.session(database=self.database) as session:
                result = session.run(Query(cypher, timeout=self.query_timeout), **params)
                return [
                    ShipmentRecord(key=str(record["key"]), data=dict(record["data"]))
                    for record in result
                    if record["key"] is not None
                ]
        except (ServiceUnavailable, SessionExpired) as e:
            raise StoreUnavailableError(f"Neo4j unavailable: {e}") from e
        except (Neo4jError, DriverError) as e:
            raise StoreQueryError(f"Neo4j query failed: {e}") from e

    @staticmethod
    def _limit_clause(limit: int | None) -> str:
        return "LIMIT $limit" if limit is not None else ""

    def get_by_key(self, key: str) -> ShipmentRecord | None:
        records = self._run(
            f"MATCH (s:Shipment {{{SHIPMENT_KEY_PROPERTY}: $key}})" + _RETURN_CLAUSE + "LIMIT 1",
            key=key,
        )
        return records[0] if records else None

    def find_by_field_in(
        self,
        field: str,
        values: Sequence[Any],
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        self._check_batch(values)
        if not values:
            return []
        return self._run(
            "MATCH (s:Shipment) WHERE s[$field] IN $values"
            + _RETURN_CLAUSE
            + self._limit_clause(limit),
            field=field,
            values=list(values),
            limit=limit,
        )

    def find_by_range(
        self,
        field: str,
        low: datetime,
        high: datetime,
        limit: int | None = None,
    ) -> list[ShipmentRecord]:
        return self._run(
            "MATCH (s:Shipment) WHERE s[$field] >= $low AND s[$field] <= $high"
            + _RETURN_CLAUSE
            + self._limit_clause(limit),
            field=field,
            low=_as_utc(low),
            high=_as_utc(high),
            limit=limit,
        )


def _as_utc(value: datetime) -> datetime:
    """Naive bounds are UTC; zoned values compare correctly with DateTime properties."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
