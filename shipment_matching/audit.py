"""
Match attempt audit logging.

Every completed match produces one audit entry. Sinks report failures as
AuditLogError; the matcher logs them and still returns the result.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from shipment_matching.constants import CONFIDENCE_DECIMALS
from shipment_matching.domain.models import MatchResult
from shipment_matching.exceptions import AuditLogError

logger = logging.getLogger(__name__)


def build_audit_entry(
    result: MatchResult,
    caller_id: str | None,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the audit entry for one match attempt.

    Args:
        result: Completed match result
        caller_id: Principal that requested the match
        timestamp: Entry time (default: now, UTC)
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    best = result.best_match
    return {
        "timestamp": timestamp.isoformat(),
        "userId": caller_id,
        "invoiceShipmentId": result.billing_record.shipment_id or None,
        "matchFound": best is not None,
        "confidence": round(result.confidence, CONFIDENCE_DECIMALS),
        "status": result.status.value,
        "carrierFiltered": result.carrier_filtered,
        "matchedShipmentId": best.shipment.shipment_id if best else None,
    }


class AuditLogger(ABC):
    """Abstract base class for audit sinks."""

    @abstractmethod
    def record(self, result: MatchResult, caller_id: str | None) -> None:
        """
        Record one match attempt.

        Raises:
            AuditLogError: If the entry could not be written
        """
        ...


class NullAuditLogger(AuditLogger):
    """Discards audit entries (dry runs)."""

    def record(self, result: MatchResult, caller_id: str | None) -> None:
        return None


class LoggingAuditLogger(AuditLogger):
    """Writes audit entries as INFO log lines."""

    def __init__(self, audit_logger: logging.Logger | None = None):
        self.logger = audit_logger or logger

    def record(self, result: MatchResult, caller_id: str | None) -> None:
        entry = build_audit_entry(result, caller_id)
        self.logger.info(
            f"Match attempt: user={entry['userId']} "
            f"invoiceShipment={entry['invoiceShipmentId']} status={entry['status']} "
            f"confidence={entry['confidence']:.4f} matched={entry['matchedShipmentId']}"
        )


class Neo4jAuditLogger(AuditLogger):
    """Stores audit entries as (:MatchAttempt) nodes."""

    def __init__(self, driver, database: str | None = None):
        self.driver = driver
        self.database = database

    def record(self, result: MatchResult, caller_id: str | None) -> None:
        entry = {k: v for k, v in build_audit_entry(result, caller_id).items() if v is not None}
        try:
            with self.driver.session(database=self.database) as session:
                session.run("CREATE (:MatchAttempt $entry)", entry=entry).consume()
        except Exception as e:
            raise AuditLogError(f"Failed to write MatchAttempt: {e}") from e
