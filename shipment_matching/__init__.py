"""
Shipment Matching - links carrier invoice line items to booked shipments.

This package provides utilities for:
- Extracting shipment identifiers from parsed invoice line items
- Looking up candidate shipments in the operational store (Neo4j or in-memory)
- Scoring, ranking and classifying candidates for review
- Auditing match attempts
- Common CLI utilities for scripts
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from shipment_matching.config import get_settings
from shipment_matching.domain.models import (
    BillingRecord,
    MatchCandidate,
    MatchResult,
    MatchStatus,
    ShipmentRecord,
    StrategyKind,
)
from shipment_matching.exceptions import (
    InfrastructureError,
    InvalidBillingRecordError,
    MatchTimeoutError,
    ShipmentMatchingError,
    StoreQueryError,
    StoreUnavailableError,
)
from shipment_matching.matching import (
    CallerProfile,
    CarrierFilter,
    ScopeFilter,
    ShipmentMatcher,
    resolve_caller_scope,
)

__all__ = [
    "__version__",
    # Config
    "get_settings",
    # Models
    "BillingRecord",
    "MatchCandidate",
    "MatchResult",
    "MatchStatus",
    "ShipmentRecord",
    "StrategyKind",
    # Errors
    "ShipmentMatchingError",
    "InvalidBillingRecordError",
    "InfrastructureError",
    "MatchTimeoutError",
    "StoreQueryError",
    "StoreUnavailableError",
    # Matching
    "CallerProfile",
    "CarrierFilter",
    "ScopeFilter",
    "ShipmentMatcher",
    "resolve_caller_scope",
]
