"""
Failure handling in ShipmentMatcher: lookup errors, outages, deadlines, audit.
"""

import logging
import threading

import pytest

from shipment_matching.audit import AuditLogger
from shipment_matching.domain.models import MatchStatus, StrategyKind
from shipment_matching.exceptions import (
    AuditLogError,
    InfrastructureError,
    InvalidBillingRecordError,
    MatchTimeoutError,
    StoreQueryError,
    StoreUnavailableError,
)
from shipment_matching.matching.filters import ScopeFilter
from shipment_matching.matching.matcher import ShipmentMatcher
from shipment_matching.store.memory import InMemoryShipmentStore

RECORD = {
    "description": "Shipment ICAL-9F3K2Q delivered",
    "trackingNumber": "1Z999AA10123456784",
}


class FlakyStore(InMemoryShipmentStore):
    """Store whose field lookups on selected fields raise."""

    def __init__(self, shipments, failing_fields, error):
        super().__init__(shipments)
        self.failing_fields = set(failing_fields)
        self.error = error

    def find_by_field_in(self, field, values, limit=None):
        if field in self.failing_fields:
            raise self.error
        return super().find_by_field_in(field, values, limit=limit)


class BlockingStore(InMemoryShipmentStore):
    """Store whose key lookups block until released."""

    def __init__(self, shipments):
        super().__init__(shipments)
        self.release = threading.Event()

    def get_by_key(self, key):
        self.release.wait(timeout=5.0)
        return super().get_by_key(key)


class RecordingAuditLogger(AuditLogger):
    def __init__(self, error=None):
        self.entries = []
        self.error = error

    def record(self, result, caller_id):
        if self.error:
            raise self.error
        self.entries.append((result.status, caller_id))


class TestLookupFailureRecovery:
    """A failing lookup contributes no candidates but does not fail the match."""

    def test_store_query_error_recovered(self, sample_shipments, settings, caplog):
        """Test a failing tracking lookup still lets the key lookup succeed."""
        store = FlakyStore(
            sample_shipments,
            {"carrierBookingConfirmation.trackingNumber"},
            StoreQueryError("query timed out"),
        )
        matcher = ShipmentMatcher(store, settings=settings)

        with caplog.at_level(logging.WARNING, logger="shipment_matching"):
            result, stats = matcher.match_with_stats(RECORD, ScopeFilter.of(["ACME"]))

        assert result.status == MatchStatus.EXCELLENT
        assert [c.shipment_key for c in result.candidates] == ["ICAL-9F3K2Q"]
        assert stats["lookups_failed"] == 1
        assert "query timed out" in caplog.text

    def test_unexpected_error_recovered(self, sample_shipments, settings):
        """Test non-store exceptions in a lookup are also contained."""
        store = FlakyStore(sample_shipments, {"shipmentID"}, KeyError("boom"))
        matcher = ShipmentMatcher(store, settings=settings)

        result, stats = matcher.match_with_stats(RECORD, ScopeFilter.of(["ACME"]))

        assert stats["lookups_failed"] == 1
        assert result.best_match.shipment_key == "ICAL-9F3K2Q"

    def test_failed_only_source_is_no_match(self, sample_shipments, settings):
        """Test losing the only matching lookup degrades to NO_MATCH, not an error."""
        store = FlakyStore(
            sample_shipments,
            {"carrierBookingConfirmation.trackingNumber"},
            StoreQueryError("bad"),
        )
        matcher = ShipmentMatcher(store, settings=settings)
        result = matcher.match({"trackingNumber": "1Z999AA10123456784"}, ScopeFilter.of(["ACME"]))
        assert result.status == MatchStatus.NO_MATCH


class TestInfrastructureFailures:
    """Outages and deadlines abort the match."""

    def test_store_unavailable_raises(self, sample_shipments, settings):
        """Test an unreachable store surfaces to the caller."""
        store = FlakyStore(sample_shipments, {"shipmentID"}, StoreUnavailableError("down"))
        matcher = ShipmentMatcher(store, settings=settings)

        with pytest.raises(StoreUnavailableError):
            matcher.match(RECORD, ScopeFilter.of(["ACME"]))

    def test_timeout_raises(self, sample_shipments, settings):
        """Test an expired deadline raises MatchTimeoutError without a result."""
        store = BlockingStore(sample_shipments)
        matcher = ShipmentMatcher(store, settings=settings)
        try:
            with pytest.raises(MatchTimeoutError, match="pending"):
                matcher.match(RECORD, ScopeFilter.of(["ACME"]), timeout=0.2)
        finally:
            store.release.set()

    def test_timeout_is_infrastructure_error(self):
        """Test timeouts can be caught as InfrastructureError or TimeoutError."""
        assert issubclass(MatchTimeoutError, InfrastructureError)
        assert issubclass(MatchTimeoutError, TimeoutError)


class TestInvalidInput:
    """Unusable billing records fail immediately."""

    @pytest.mark.parametrize("record", [None, "ICAL-9F3K2Q", {"references": "oops"}])
    def test_invalid_record(self, matcher, acme_scope, record):
        """Test invalid input raises InvalidBillingRecordError."""
        with pytest.raises(InvalidBillingRecordError):
            matcher.match(record, acme_scope)


class TestNoisyShipmentData:
    """Malformed stored values never escape match()."""

    def test_malformed_booked_at_scored_without_date_bonus(self, settings, acme_scope):
        """Test an unparseable bookedAt is treated as missing during scoring."""
        store = InMemoryShipmentStore(
            {"S1": {"companyID": "ACME", "trackingNumber": "T1", "bookedAt": {"_seconds": "n/a"}}}
        )
        matcher = ShipmentMatcher(store, settings=settings)

        result = matcher.match({"trackingNumber": "T1", "shipmentDate": "2024-03-10"}, acme_scope)

        assert result.best_match.shipment_key == "S1"
        assert result.confidence == 0.90
        assert result.status == MatchStatus.GOOD


class TestAuditing:
    """Every completed match is audited; audit failures are not fatal."""

    def test_audit_entry_recorded(self, shipment_store, settings, acme_scope):
        """Test the audit sink receives the result and caller."""
        audit = RecordingAuditLogger()
        matcher = ShipmentMatcher(shipment_store, settings=settings, audit_logger=audit)

        matcher.match(RECORD, acme_scope, caller_id="user-1")
        matcher.match({}, acme_scope, caller_id="user-2")

        assert audit.entries == [(MatchStatus.EXCELLENT, "user-1"), (MatchStatus.NO_MATCH, "user-2")]

    @pytest.mark.parametrize("error", [AuditLogError("sink down"), RuntimeError("bug")])
    def test_audit_failure_does_not_fail_match(
        self, shipment_store, settings, acme_scope, caplog, error
    ):
        """Test audit errors are logged at WARNING and the result is returned."""
        matcher = ShipmentMatcher(
            shipment_store, settings=settings, audit_logger=RecordingAuditLogger(error)
        )

        with caplog.at_level(logging.WARNING, logger="shipment_matching"):
            result = matcher.match(RECORD, acme_scope)

        assert result.status == MatchStatus.EXCELLENT
        assert "Failed to log match attempt" in caplog.text


class TestMatchStats:
    """match_with_stats counters."""

    def test_counters(self, matcher):
        """Test planned lookups, rejections and merged counts are reported."""
        result, stats = matcher.match_with_stats(RECORD, ScopeFilter.of(["GLOBEX"]))

        # key + shipmentID + 4 tracking fields
        assert stats["lookups_planned"] == 6
        assert stats["lookups_failed"] == 0
        assert stats["rejected_scope"] >= 2
        assert stats["merged_candidates"] == 0
        assert result.status == MatchStatus.NO_MATCH

    def test_no_identifiers_plans_nothing(self, matcher, acme_scope, caplog):
        """Test a record with nothing to look up runs no lookups."""
        with caplog.at_level(logging.DEBUG, logger="shipment_matching"):
            result, stats = matcher.match_with_stats(
                {"description": "Fuel surcharge", "totalAmount": "10.00"}, acme_scope
            )

        assert stats["lookups_planned"] == 0
        assert result.status == MatchStatus.NO_MATCH
        assert "Nothing to look up" in caplog.text

    def test_matched_by_records_every_strategy(self, shipment_store, settings):
        """Test a shipment found by several strategies lists them all."""
        shipment_store.add(
            "ICAL-ZZZZZZ", {"companyID": "ACME", "trackingNumber": "1Z-MULTI"}
        )
        matcher = ShipmentMatcher(shipment_store, settings=settings)
        result = matcher.match(
            {"shipmentId": "ICAL-ZZZZZZ", "trackingNumber": "1Z-MULTI"},
            ScopeFilter.of(["ACME"]),
        )
        assert result.best_match.matched_by == frozenset(
            {StrategyKind.PLATFORM_SHIPMENT_ID, StrategyKind.TRACKING_NUMBER}
        )
        assert result.best_match.confidence == 0.98
