"""
Data models for invoice-to-shipment matching.

These dataclasses represent the billing record being reconciled, the
shipment records returned by the operational store, and the candidates
and final result produced by the matcher. All are built fresh per match
request; none are mutated after construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from shipment_matching.constants import CONFIDENCE_DECIMALS
from shipment_matching.exceptions import InvalidBillingRecordError
from shipment_matching.utils.normalize import (
    clean_text,
    parse_amount,
    parse_date,
    parse_timestamp,
)


class StrategyKind(Enum):
    """Lookup strategies, most specific first."""

    PLATFORM_SHIPMENT_ID = "platform_shipment_id"
    TRACKING_NUMBER = "tracking_number"
    REFERENCE_NUMBER = "reference_number"
    DATE_AMOUNT = "date_amount"

    @property
    def priority(self) -> int:
        """Priority (lower = more specific, sorts first on ties)."""
        return _STRATEGY_PRIORITY[self]


_STRATEGY_PRIORITY = {
    StrategyKind.PLATFORM_SHIPMENT_ID: 1,
    StrategyKind.TRACKING_NUMBER: 2,
    StrategyKind.REFERENCE_NUMBER: 3,
    StrategyKind.DATE_AMOUNT: 4,
}


class MatchStatus(Enum):
    """Overall match quality, derived from the top candidate."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    NO_MATCH = "NO_MATCH"


def _string_tuple(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(text for text in (clean_text(v) for v in values) if text)


@dataclass(frozen=True)
class BillingRecord:
    """One shipment line item parsed from a carrier invoice."""

    shipment_id: str = ""  # Carrier- or platform-assigned shipment reference
    description: str = ""
    notes: str = ""
    tracking_number: str = ""
    bol_number: str = ""
    pro_number: str = ""
    reference_number: str = ""
    references: tuple[str, ...] = ()  # Customer / invoice / manifest / other refs
    amount: float | None = None
    ship_date: date | None = None
    charge_descriptions: tuple[str, ...] = ()
    carrier_name: str = ""  # Carrier detected on the invoice (informational)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BillingRecord:
        """
        Build a BillingRecord from the invoice parser's JSON shape.

        Recognized keys: shipmentId, description, notes, trackingNumber,
        bolNumber, proNumber, referenceNumber, references.{customerRef,
        invoiceRef, manifestRef, other}, totalAmount, shipmentDate/shipDate,
        chargeDescriptions (strings or {"description": ...}), carrier.

        Raises:
            InvalidBillingRecordError: If data is not a mapping
        """
        if not isinstance(data, Mapping):
            raise InvalidBillingRecordError(
                f"Billing record must be a mapping, got {type(data).__name__}"
            )

        refs = data.get("references") or {}
        if not isinstance(refs, Mapping):
            raise InvalidBillingRecordError("'references' must be a mapping")
        references = [refs.get("customerRef"), refs.get("invoiceRef"), refs.get("manifestRef")]
        references.extend(_string_tuple(refs.get("other")))

        charges_raw = data.get("chargeDescriptions") or data.get("charges") or []
        if isinstance(charges_raw, (str, Mapping)):
            charges_raw = [charges_raw]
        charges = []
        for charge in charges_raw:
            if isinstance(charge, Mapping):
                charge = charge.get("description") or charge.get("name")
            charges.append(charge)

        carrier = data.get("carrier")
        if isinstance(carrier, Mapping):
            carrier = carrier.get("name")

        return cls(
            shipment_id=clean_text(data.get("shipmentId")),
            description=clean_text(data.get("description")),
            notes=clean_text(data.get("notes")),
            tracking_number=clean_text(data.get("trackingNumber")),
            bol_number=clean_text(data.get("bolNumber")),
            pro_number=clean_text(data.get("proNumber")),
            reference_number=clean_text(data.get("referenceNumber")),
            references=_string_tuple(references),
            amount=parse_amount(data.get("totalAmount")),
            ship_date=parse_date(data.get("shipmentDate") or data.get("shipDate")),
            charge_descriptions=_string_tuple(charges),
            carrier_name=clean_text(carrier),
        )


@dataclass(frozen=True)
class Identifiers:
    """Normalized identifiers extracted from a BillingRecord."""

    platform_ids: tuple[str, ...] = ()
    tracking_numbers: tuple[str, ...] = ()
    reference_numbers: tuple[str, ...] = ()
    ship_date: date | None = None  # Derived (date, amount) pair
    amount: float | None = None

    @property
    def is_empty(self) -> bool:
        """True when no identifier and no date is available."""
        return not (
            self.platform_ids or self.tracking_numbers or self.reference_numbers or self.ship_date
        )


@dataclass(frozen=True)
class ShipmentRecord:
    """
    A shipment as stored by the operational platform.

    Opaque to the matcher except for the accessors below. `key` is the
    document key and the shipment's identity.
    """

    key: str
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, path: str, default: Any = None) -> Any:
        """
        Read a dotted field path.

        Flat dotted keys ("carrierBookingConfirmation.trackingNumber" as a
        single property) are tried before walking nested mappings.
        """
        if path in self.data:
            return self.data[path]
        current: Any = self.data
        for part in path.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    @property
    def shipment_id(self) -> str:
        """Human-facing shipment ID (falls back to the document key)."""
        return clean_text(self.get("shipmentID")) or self.key

    @property
    def organization_key(self) -> str | None:
        """Owning organization (company) key."""
        value = self.get("companyID") or self.get("companyId")
        return clean_text(value) or None

    @property
    def carrier_name(self) -> str:
        """Carrier name, from the first populated carrier field."""
        for path in ("selectedCarrier", "carrier", "carrierName"):
            value = self.get(path)
            if isinstance(value, Mapping):
                value = value.get("name")
            text = clean_text(value)
            if text:
                return text
        return ""

    @property
    def booked_at(self) -> datetime | None:
        """Booking timestamp as naive UTC."""
        return parse_timestamp(self.get("bookedAt"))

    @property
    def total_charges(self) -> float | None:
        """Total charge amount, or None when unknown or zero."""
        for path in ("markupRates.totalCharges", "totalCharges", "selectedRate.totalCharges"):
            amount = parse_amount(self.get(path))
            if amount:
                return amount
        manual_rates = self.get("manualRates")
        if isinstance(manual_rates, (list, tuple)):
            total = sum(
                parse_amount(rate.get("charge")) or 0.0
                for rate in manual_rates
                if isinstance(rate, Mapping)
            )
            if total:
                return total
        return None


@dataclass(frozen=True)
class MatchCandidate:
    """A shipment proposed as a match, with the evidence that produced it."""

    shipment: ShipmentRecord
    strategy: StrategyKind
    matched_field: str
    matched_value: str
    confidence: float  # 0-1
    matched_by: frozenset[StrategyKind] = frozenset()  # Every strategy that found it
    lookup_order: int = 0  # Field position within the strategy (tie-break only)

    @property
    def shipment_key(self) -> str:
        return self.shipment.key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "shipmentKey": self.shipment.key,
            "shipmentId": self.shipment.shipment_id,
            "companyId": self.shipment.organization_key,
            "strategy": self.strategy.value,
            "matchedField": self.matched_field,
            "matchedValue": self.matched_value,
            "confidence": round(self.confidence, CONFIDENCE_DECIMALS),
            "matchedBy": sorted(s.value for s in self.matched_by),
            "amount": self.shipment.total_charges,
        }

    def __repr__(self) -> str:
        return (
            f"MatchCandidate(shipment={self.shipment.key}, "
            f"strategy={self.strategy.value}, confidence={self.confidence:.4f})"
        )


@dataclass(frozen=True)
class MatchResult:
    """Complete, ranked result of matching one billing record."""

    billing_record: BillingRecord
    candidates: tuple[MatchCandidate, ...]
    best_match: MatchCandidate | None
    status: MatchStatus
    review_required: bool
    carrier_filtered: bool = False
    detected_carrier: str = ""

    @property
    def confidence(self) -> float:
        """Confidence of the best match (0.0 when there is none)."""
        return self.best_match.confidence if self.best_match else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "invoiceShipmentId": self.billing_record.shipment_id or None,
            "status": self.status.value,
            "confidence": round(self.confidence, CONFIDENCE_DECIMALS),
            "reviewRequired": self.review_required,
            "bestMatch": self.best_match.to_dict() if self.best_match else None,
            "matches": [c.to_dict() for c in self.candidates],
            "carrierFiltered": self.carrier_filtered,
            "detectedCarrier": self.detected_carrier or "Unknown",
        }
