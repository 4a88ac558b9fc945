"""
Unit tests for shipment_matching.domain.models module.
"""

from datetime import date, datetime

import pytest

from shipment_matching.domain.models import (
    BillingRecord,
    MatchCandidate,
    MatchResult,
    MatchStatus,
    ShipmentRecord,
    StrategyKind,
)
from shipment_matching.exceptions import InvalidBillingRecordError
from shipment_matching.matching.identifiers import extract_identifiers


class TestStrategyKind:
    """Test strategy priorities."""

    def test_priority_order(self):
        """Test platform IDs are most specific, date/amount least."""
        ordered = sorted(StrategyKind, key=lambda k: k.priority)
        assert ordered == [
            StrategyKind.PLATFORM_SHIPMENT_ID,
            StrategyKind.TRACKING_NUMBER,
            StrategyKind.REFERENCE_NUMBER,
            StrategyKind.DATE_AMOUNT,
        ]
        assert StrategyKind.PLATFORM_SHIPMENT_ID.priority == 1


class TestBillingRecordFromDict:
    """Test BillingRecord.from_dict."""

    def test_full_line_item(self):
        """Test every recognized key is mapped."""
        record = BillingRecord.from_dict(
            {
                "shipmentId": " ICAL-9F3K2Q ",
                "description": "Shipment ICAL-9F3K2Q delivered",
                "trackingNumber": "1Z999AA10123456784",
                "bolNumber": "BOL-1",
                "proNumber": "PRO-1",
                "referenceNumber": "REF-1",
                "references": {
                    "customerRef": "CUST-1",
                    "invoiceRef": "INV-1",
                    "manifestRef": None,
                    "other": ["X-1", ""],
                },
                "totalAmount": "$1,250.00",
                "shipmentDate": "2024-03-10",
                "chargeDescriptions": [{"description": "Fuel surcharge"}, "Freight"],
                "carrier": {"name": "FedEx Freight"},
            }
        )

        assert record.shipment_id == "ICAL-9F3K2Q"
        assert record.tracking_number == "1Z999AA10123456784"
        assert record.references == ("CUST-1", "INV-1", "X-1")
        assert record.amount == 1250.0
        assert record.ship_date == date(2024, 3, 10)
        assert record.charge_descriptions == ("Fuel surcharge", "Freight")
        assert record.carrier_name == "FedEx Freight"

    def test_ship_date_alias_and_bad_values(self):
        """Test shipDate alias is read; unparseable values become None."""
        record = BillingRecord.from_dict({"shipDate": "garbage", "totalAmount": "n/a"})
        assert record.ship_date is None
        assert record.amount is None

    def test_charge_descriptions_as_string(self):
        """Test a single charge description string is one entry, not characters."""
        record = BillingRecord.from_dict({"chargeDescriptions": "Freight for ICAL-9F3K2Q"})
        assert record.charge_descriptions == ("Freight for ICAL-9F3K2Q",)
        assert extract_identifiers(record).platform_ids == ("ICAL-9F3K2Q",)

    def test_charge_descriptions_as_single_mapping(self):
        """Test a lone {"description": ...} object is accepted."""
        record = BillingRecord.from_dict({"charges": {"description": "Fuel surcharge"}})
        assert record.charge_descriptions == ("Fuel surcharge",)

    def test_empty_mapping(self):
        """Test an empty mapping is a valid, empty record."""
        record = BillingRecord.from_dict({})
        assert record == BillingRecord()

    @pytest.mark.parametrize("data", [None, "ICAL-9F3K2Q", ["a"]])
    def test_non_mapping_rejected(self, data):
        """Test non-mapping input raises InvalidBillingRecordError."""
        with pytest.raises(InvalidBillingRecordError):
            BillingRecord.from_dict(data)

    def test_references_must_be_mapping(self):
        """Test malformed references are rejected."""
        with pytest.raises(InvalidBillingRecordError, match="references"):
            BillingRecord.from_dict({"references": ["CUST-1"]})

    def test_invalid_record_error_is_value_error(self):
        """Test input errors can be caught as ValueError."""
        assert issubclass(InvalidBillingRecordError, ValueError)


class TestShipmentRecord:
    """Test ShipmentRecord accessors."""

    def test_nested_and_flat_paths(self):
        """Test dotted paths read nested mappings and flat dotted keys."""
        nested = ShipmentRecord("a", {"carrierBookingConfirmation": {"proNumber": "P1"}})
        flat = ShipmentRecord("b", {"carrierBookingConfirmation.proNumber": "P2"})
        assert nested.get("carrierBookingConfirmation.proNumber") == "P1"
        assert flat.get("carrierBookingConfirmation.proNumber") == "P2"
        assert nested.get("shipmentInfo.customerReference") is None

    def test_organization_key_fallback(self):
        """Test companyID is preferred, companyId accepted."""
        assert ShipmentRecord("a", {"companyID": "ACME", "companyId": "X"}).organization_key == "ACME"
        assert ShipmentRecord("a", {"companyId": "ACME"}).organization_key == "ACME"
        assert ShipmentRecord("a", {}).organization_key is None

    def test_carrier_name_sources(self):
        """Test carrier name from selectedCarrier, carrier or carrierName."""
        assert ShipmentRecord("a", {"selectedCarrier": {"name": "UPS"}}).carrier_name == "UPS"
        assert ShipmentRecord("a", {"carrier": "FedEx"}).carrier_name == "FedEx"
        assert ShipmentRecord("a", {"carrierName": "Purolator"}).carrier_name == "Purolator"
        assert ShipmentRecord("a", {}).carrier_name == ""

    def test_total_charges_fallback_chain(self):
        """Test markupRates, totalCharges, selectedRate, then manualRates sum."""
        assert ShipmentRecord(
            "a", {"markupRates": {"totalCharges": 520}, "totalCharges": 1}
        ).total_charges == 520.0
        assert ShipmentRecord(
            "a", {"markupRates": {"totalCharges": 0}, "totalCharges": "99.5"}
        ).total_charges == 99.5
        assert ShipmentRecord(
            "a", {"selectedRate": {"totalCharges": 42}}
        ).total_charges == 42.0
        assert ShipmentRecord(
            "a", {"manualRates": [{"charge": "100.00"}, {"charge": 25.5}, "junk"]}
        ).total_charges == 125.5
        assert ShipmentRecord("a", {}).total_charges is None

    def test_booked_at(self):
        """Test booking time is parsed to naive UTC."""
        record = ShipmentRecord("a", {"bookedAt": "2024-03-12T09:30:00Z"})
        assert record.booked_at == datetime(2024, 3, 12, 9, 30)

    def test_malformed_booked_at_is_none(self):
        """Test an unusable timestamp dict reads as no booking time."""
        assert ShipmentRecord("a", {"bookedAt": {"_seconds": "n/a"}}).booked_at is None

    def test_identity_is_key(self):
        """Test equality ignores the document body."""
        assert ShipmentRecord("a", {"x": 1}) == ShipmentRecord("a", {"x": 2})
        assert ShipmentRecord("a").shipment_id == "a"


class TestMatchResult:
    """Test MatchResult helpers."""

    def test_to_dict(self):
        """Test serialization includes best match and flags."""
        shipment = ShipmentRecord("S1", {"shipmentID": "ICAL-AAAAAA", "companyID": "ACME"})
        candidate = MatchCandidate(
            shipment=shipment,
            strategy=StrategyKind.PLATFORM_SHIPMENT_ID,
            matched_field="id",
            matched_value="ICAL-AAAAAA",
            confidence=0.98,
            matched_by=frozenset({StrategyKind.PLATFORM_SHIPMENT_ID}),
        )
        result = MatchResult(
            billing_record=BillingRecord(shipment_id="ICAL-AAAAAA"),
            candidates=(candidate,),
            best_match=candidate,
            status=MatchStatus.EXCELLENT,
            review_required=False,
        )

        data = result.to_dict()
        assert result.confidence == 0.98
        assert data["status"] == "EXCELLENT"
        assert data["bestMatch"]["shipmentId"] == "ICAL-AAAAAA"
        assert data["bestMatch"]["matchedBy"] == ["platform_shipment_id"]
        assert data["detectedCarrier"] == "Unknown"

    def test_confidence_without_match(self):
        """Test confidence is 0.0 when there is no best match."""
        result = MatchResult(
            billing_record=BillingRecord(),
            candidates=(),
            best_match=None,
            status=MatchStatus.NO_MATCH,
            review_required=True,
        )
        assert result.confidence == 0.0
        assert result.to_dict()["bestMatch"] is None
