"""
Exception hierarchy for shipment matching.

Only infrastructure failures and unusable input escape a match; lookup
and audit failures are recovered inside the matcher.
"""


class ShipmentMatchingError(Exception):
    """Base class for all shipment matching errors."""


class InvalidBillingRecordError(ShipmentMatchingError, ValueError):
    """The billing record is missing or structurally unusable."""


class StoreQueryError(ShipmentMatchingError):
    """A single store lookup failed (timeout, malformed query, transient error)."""


class InfrastructureError(ShipmentMatchingError):
    """The match cannot be completed; no MatchResult is produced."""


class StoreUnavailableError(InfrastructureError):
    """The operational record store cannot be reached at all."""


class MatchTimeoutError(InfrastructureError, TimeoutError):
    """The match deadline expired before every lookup completed."""


class AuditLogError(ShipmentMatchingError):
    """Writing the audit entry failed."""
