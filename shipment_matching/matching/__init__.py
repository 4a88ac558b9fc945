"""
Invoice-to-shipment matching pipeline.

Components:
- identifiers: Extract platform IDs, tracking and reference numbers from a billing record
- strategies: Plan store lookups for each identifier kind
- filters: Access-scope and carrier filters
- access: Resolve a caller's scope from their profile
- merge: Collapse candidates to one per shipment
- scoring: Base confidences and corroboration bonuses
- ranking: Order candidates and classify match status
- matcher: Orchestrates the pipeline
"""

from shipment_matching.matching.access import CallerProfile, resolve_caller_scope
from shipment_matching.matching.filters import CarrierFilter, ScopeFilter
from shipment_matching.matching.identifiers import extract_identifiers
from shipment_matching.matching.matcher import InvoiceMatchReport, ShipmentMatcher
from shipment_matching.matching.merge import CandidateMerger, merge_candidates
from shipment_matching.matching.ranking import classify_status, rank_candidates, requires_review
from shipment_matching.matching.scoring import score_candidate
from shipment_matching.matching.strategies import (
    DateAmountStrategy,
    LookupOptions,
    LookupStrategy,
    PlatformShipmentIdStrategy,
    ReferenceNumberStrategy,
    TrackingNumberStrategy,
    default_strategies,
)

__all__ = [
    "CallerProfile",
    "CandidateMerger",
    "CarrierFilter",
    "DateAmountStrategy",
    "InvoiceMatchReport",
    "LookupOptions",
    "LookupStrategy",
    "PlatformShipmentIdStrategy",
    "ReferenceNumberStrategy",
    "ScopeFilter",
    "ShipmentMatcher",
    "TrackingNumberStrategy",
    "classify_status",
    "default_strategies",
    "extract_identifiers",
    "merge_candidates",
    "rank_candidates",
    "requires_review",
    "resolve_caller_scope",
    "score_candidate",
]
