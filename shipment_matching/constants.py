"""
Constants for shipment_matching package.

Centralizes the fixed scoring formula and lookup defaults.
"""

# Platform shipment identifier: fixed prefix + 6 alphanumerics (e.g. ICAL-9F3K2Q)
PLATFORM_ID_PREFIX = "ICAL"
PLATFORM_ID_SUFFIX_LENGTH = 6

# Base confidence per lookup technique
CONFIDENCE_PLATFORM_ID_KEY = 0.98  # Direct document key lookup
CONFIDENCE_PLATFORM_ID_FIELD = 0.95  # shipmentID field equality
CONFIDENCE_TRACKING_NUMBER = 0.90
CONFIDENCE_REFERENCE_NUMBER = 0.85
CONFIDENCE_DATE_AMOUNT = 0.75

# Date/amount correlation
DATE_WINDOW_DAYS = 3
DATE_AMOUNT_MAX_PERCENT_DIFF = 0.10  # Candidates above this are discarded
DATE_AMOUNT_PENALTY_FACTOR = 2.0  # confidence -= factor * percent difference

# Corroboration bonuses (applied after merging)
DATE_PROXIMITY_BONUS = 0.05
DATE_PROXIMITY_MAX_DAYS = 3
AMOUNT_SIMILARITY_BONUS = 0.05
AMOUNT_SIMILARITY_MAX_PERCENT_DIFF = 0.05  # Strictly less than

# Match status thresholds (top candidate confidence)
THRESHOLD_EXCELLENT = 0.95
THRESHOLD_GOOD = 0.85
THRESHOLD_FAIR = 0.70
REVIEW_THRESHOLD = THRESHOLD_GOOD  # Below this a human must confirm

CONFIDENCE_DECIMALS = 4  # Serialized output only

# Store query limits
MAX_LOOKUP_BATCH_SIZE = 10  # "in"-style multi-value lookups
DEFAULT_FIELD_LOOKUP_LIMIT = 5  # Per value
DEFAULT_RANGE_LOOKUP_LIMIT = 20

# Parallel processing defaults
DEFAULT_LOOKUP_WORKERS = 8
DEFAULT_INVOICE_WORKERS = 4
DEFAULT_MATCH_TIMEOUT_SECONDS = 30.0

# Role that sees every organization's shipments
SUPERADMIN_ROLE = "superadmin"

# Shipment fields consulted by each lookup strategy, in lookup order
SHIPMENT_KEY_PROPERTY = "id"  # Document key property in the Neo4j store
SHIPMENT_ID_FIELD = "shipmentID"
TRACKING_NUMBER_FIELDS = (
    "trackingNumber",
    "carrierBookingConfirmation.trackingNumber",
    "carrierBookingConfirmation.proNumber",
    "shipmentInfo.carrierTrackingNumber",
)
REFERENCE_NUMBER_FIELDS = (
    "shipmentInfo.shipperReferenceNumber",
    "shipmentInfo.customerReference",
    "referenceNumber",
    "shipperReferenceNumber",
    "references.customerRef",
    "references.invoiceRef",
)
BOOKED_AT_FIELD = "bookedAt"
