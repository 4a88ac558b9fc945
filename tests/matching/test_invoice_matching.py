"""
Tests for ShipmentMatcher.match_invoice.
"""

import json

import pytest

from shipment_matching.domain.models import MatchStatus
from shipment_matching.matching.matcher import InvoiceMatchReport, ShipmentMatcher

INVOICE_LINES = [
    {"shipmentId": "ICAL-9F3K2Q", "totalAmount": "12.00"},
    {"trackingNumber": "1Z999AA10123456784"},
    None,
    {"description": "Fuel surcharge adjustment"},
]


class TestMatchInvoice:
    """Invoice-level matching."""

    def test_results_in_input_order(self, matcher, acme_scope):
        """Test results line up with the input lines."""
        report = matcher.match_invoice(INVOICE_LINES, acme_scope, caller_id="user-1")

        assert len(report.results) == 4
        assert report.results[0].best_match.shipment_key == "ICAL-9F3K2Q"
        assert report.results[1].best_match.shipment_key == "SHIP-B"
        assert report.results[2] is None
        assert report.results[3].status == MatchStatus.NO_MATCH

    def test_failed_line_reported(self, matcher, acme_scope):
        """Test an invalid line is recorded in errors without failing the invoice."""
        report = matcher.match_invoice(INVOICE_LINES, acme_scope)

        assert list(report.errors) == [2]
        assert "Missing billing record" in report.errors[2]

    def test_stats(self, matcher, acme_scope):
        """Test status counts, review and auto-apply totals."""
        report = matcher.match_invoice(INVOICE_LINES, acme_scope)

        stats = report.stats
        assert stats["total"] == 4
        assert stats["failed"] == 1
        assert stats["EXCELLENT"] == 1
        assert stats["GOOD"] == 1
        assert stats["FAIR"] == 0
        assert stats["POOR"] == 0
        assert stats["NO_MATCH"] == 1
        assert stats["auto_applicable"] == 1
        assert stats["require_review"] == 1

    def test_requires_review(self, matcher, acme_scope):
        """Test the invoice needs review when any line does."""
        clean = matcher.match_invoice(INVOICE_LINES[:2], acme_scope)
        assert not clean.requires_review

        assert matcher.match_invoice(INVOICE_LINES[3:], acme_scope).requires_review
        assert matcher.match_invoice([None], acme_scope).requires_review

    def test_empty_invoice(self, matcher, acme_scope):
        """Test an invoice without lines yields an empty report."""
        report = matcher.match_invoice([], acme_scope)

        assert report.results == []
        assert report.stats["total"] == 0
        assert not report.requires_review

    def test_carrier_filter_applies_to_every_line(self, matcher, acme_scope):
        """Test the carrier restriction reaches each line's match."""
        report = matcher.match_invoice(INVOICE_LINES[:2], acme_scope, "UPS")

        assert report.results[0].status == MatchStatus.NO_MATCH
        assert report.results[1].best_match.shipment_key == "SHIP-B"
        assert all(r.carrier_filtered for r in report.results)

    @pytest.mark.parametrize("workers", [1, 8])
    def test_same_report_for_any_worker_count(
        self, shipment_store, settings, acme_scope, workers
    ):
        """Test invoice results do not depend on parallelism."""
        matcher = ShipmentMatcher(
            shipment_store, settings=settings.model_copy(update={"invoice_max_workers": workers})
        )
        report = matcher.match_invoice(INVOICE_LINES, acme_scope)

        assert [r.status if r else None for r in report.results] == [
            MatchStatus.EXCELLENT,
            MatchStatus.GOOD,
            None,
            MatchStatus.NO_MATCH,
        ]

    def test_unexpected_error_propagates(self, shipment_store, acme_scope, settings):
        """Test programming errors are not folded into the per-line errors."""

        class BrokenMatcher(ShipmentMatcher):
            def match(self, *args, **kwargs):
                raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            BrokenMatcher(shipment_store, settings=settings).match_invoice([{}], acme_scope)


class TestInvoiceMatchReport:
    """Report serialization."""

    def test_to_dict_is_json_serializable(self, matcher, acme_scope):
        """Test the report converts to plain JSON."""
        report = matcher.match_invoice(INVOICE_LINES, acme_scope)

        data = json.loads(json.dumps(report.to_dict()))

        assert data["requiresReview"] is True
        assert data["errors"] == {"2": report.errors[2]}
        assert data["results"][2] is None
        assert data["results"][0]["status"] == "EXCELLENT"
        assert data["results"][0]["bestMatch"]["shipmentKey"] == "ICAL-9F3K2Q"

    def test_requires_review_from_stats(self):
        """Test requires_review reads the require_review counter."""
        assert InvoiceMatchReport(results=[], stats={"require_review": 2}).requires_review
        assert not InvoiceMatchReport(results=[], stats={"require_review": 0}).requires_review
