"""
Candidate Filtering Module.

Access-scope and carrier filters applied to every shipment a lookup
returns, before it can become a candidate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from shipment_matching.domain.models import ShipmentRecord


class FilterReason(Enum):
    """Why a shipment was rejected."""

    PASSED = "passed"
    OUT_OF_SCOPE = "out_of_scope"
    CARRIER_MISMATCH = "carrier_mismatch"


@dataclass(frozen=True)
class FilterResult:
    """Result of applying filters to a shipment."""

    passed: bool
    reason: FilterReason
    filter_name: str = ""


class ShipmentFilter(ABC):
    """Abstract base class for shipment filters."""

    @abstractmethod
    def accepts(self, shipment: ShipmentRecord) -> bool:
        """True if the shipment may be proposed as a candidate."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this filter for debugging."""
        ...

    @property
    @abstractmethod
    def reason(self) -> FilterReason:
        """Reason reported when this filter rejects."""
        ...


@dataclass(frozen=True)
class ScopeFilter(ShipmentFilter):
    """
    Organizations the caller may see.

    Either unrestricted (privileged callers) or a finite set of
    organization keys; an empty set admits nothing.
    """

    organization_keys: frozenset[str] = frozenset()
    unrestricted_access: bool = False

    @classmethod
    def unrestricted(cls) -> ScopeFilter:
        return cls(unrestricted_access=True)

    @classmethod
    def of(cls, organization_keys: Iterable[str]) -> ScopeFilter:
        return cls(organization_keys=frozenset(k for k in organization_keys if k))

    @property
    def name(self) -> str:
        return "scope"

    @property
    def reason(self) -> FilterReason:
        return FilterReason.OUT_OF_SCOPE

    def accepts(self, shipment: ShipmentRecord) -> bool:
        if self.unrestricted_access:
            return True
        return shipment.organization_key in self.organization_keys


@dataclass(frozen=True)
class CarrierFilter(ShipmentFilter):
    """Requires the requested carrier name inside the shipment's carrier name (case-insensitive)."""

    carrier_name: str

    @property
    def name(self) -> str:
        return "carrier"

    @property
    def reason(self) -> FilterReason:
        return FilterReason.CARRIER_MISMATCH

    def accepts(self, shipment: ShipmentRecord) -> bool:
        wanted = self.carrier_name.strip().lower()
        if not wanted:
            return True
        return wanted in shipment.carrier_name.lower()


def filter_shipment(
    shipment: ShipmentRecord,
    filters: Iterable[ShipmentFilter],
) -> FilterResult:
    """
    Apply filters in order, stopping at the first rejection.

    Returns:
        FilterResult with pass/fail and the rejecting filter's reason
    """
    for shipment_filter in filters:
        if not shipment_filter.accepts(shipment):
            return FilterResult(
                passed=False,
                reason=shipment_filter.reason,
                filter_name=shipment_filter.name,
            )
    return FilterResult(passed=True, reason=FilterReason.PASSED)


def build_filters(
    scope: ScopeFilter,
    carrier_filter: CarrierFilter | None = None,
) -> tuple[ShipmentFilter, ...]:
    """Filters for one match request (scope first)."""
    if carrier_filter is None:
        return (scope,)
    return (scope, carrier_filter)
