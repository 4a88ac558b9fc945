"""Domain models for invoice-to-shipment matching."""

from shipment_matching.domain.models import (
    BillingRecord,
    Identifiers,
    MatchCandidate,
    MatchResult,
    MatchStatus,
    ShipmentRecord,
    StrategyKind,
)

__all__ = [
    "BillingRecord",
    "Identifiers",
    "MatchCandidate",
    "MatchResult",
    "MatchStatus",
    "ShipmentRecord",
    "StrategyKind",
]
