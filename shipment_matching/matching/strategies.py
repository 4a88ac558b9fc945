"""
Lookup Strategies Module.

Each strategy turns extracted identifiers into independent lookup tasks
against the shipment store. Tasks from every strategy are run together on
one worker pool by the matcher; a task fetches shipments, drops the ones
the request's filters reject and converts the rest into candidates.

Strategies (most specific first):
1. PlatformShipmentIdStrategy - document key lookup, then shipmentID field
2. TrackingNumberStrategy - equality over the carrier tracking fields
3. ReferenceNumberStrategy - equality over the shipper/customer reference fields
4. DateAmountStrategy - booking-date window, filtered by amount agreement
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from shipment_matching.config import Settings
from shipment_matching.constants import (
    BOOKED_AT_FIELD,
    CONFIDENCE_PLATFORM_ID_FIELD,
    CONFIDENCE_PLATFORM_ID_KEY,
    CONFIDENCE_REFERENCE_NUMBER,
    CONFIDENCE_TRACKING_NUMBER,
    DATE_WINDOW_DAYS,
    DEFAULT_FIELD_LOOKUP_LIMIT,
    DEFAULT_RANGE_LOOKUP_LIMIT,
    MAX_LOOKUP_BATCH_SIZE,
    REFERENCE_NUMBER_FIELDS,
    SHIPMENT_ID_FIELD,
    SHIPMENT_KEY_PROPERTY,
    TRACKING_NUMBER_FIELDS,
)
from shipment_matching.domain.models import (
    Identifiers,
    MatchCandidate,
    ShipmentRecord,
    StrategyKind,
)
from shipment_matching.matching.filters import FilterReason, ShipmentFilter, filter_shipment
from shipment_matching.matching.scoring import date_amount_confidence
from shipment_matching.store.base import ShipmentStore
from shipment_matching.utils.normalize import chunked, clean_text
from shipment_matching.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

Fetch = Callable[[ShipmentStore], list[ShipmentRecord]]
ToCandidate = Callable[[ShipmentRecord], "MatchCandidate | None"]


@dataclass(frozen=True)
class LookupOptions:
    """Per-request lookup limits."""

    batch_size: int = MAX_LOOKUP_BATCH_SIZE
    field_limit: int = DEFAULT_FIELD_LOOKUP_LIMIT  # Per looked-up value
    range_limit: int = DEFAULT_RANGE_LOOKUP_LIMIT
    date_window_days: int = DATE_WINDOW_DAYS
    require_amount: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> LookupOptions:
        return cls(
            batch_size=min(settings.lookup_batch_size, MAX_LOOKUP_BATCH_SIZE),
            field_limit=settings.field_lookup_limit,
            range_limit=settings.range_lookup_limit,
            date_window_days=settings.date_window_days,
            require_amount=settings.require_amount_for_date_match,
        )


@dataclass(frozen=True)
class LookupTask:
    """One store query plus the rule turning its rows into candidates."""

    strategy: StrategyKind
    label: str
    fetch: Fetch
    to_candidate: ToCandidate

    def run(
        self,
        store: ShipmentStore,
        filters: Sequence[ShipmentFilter],
        stats: ExecutionStats | None = None,
    ) -> list[MatchCandidate]:
        """
        Execute the lookup and return filtered candidates.

        Store errors propagate; the matcher decides whether they abort
        the match or just this task.
        """
        records = self.fetch(store)
        candidates = []
        for record in records:
            result = filter_shipment(record, filters)
            if not result.passed:
                if stats is not None:
                    key = (
                        "rejected_scope"
                        if result.reason == FilterReason.OUT_OF_SCOPE
                        else "rejected_carrier"
                    )
                    stats.increment(key)
                continue
            candidate = self.to_candidate(record)
            if candidate is not None:
                candidates.append(candidate)

        if stats is not None:
            stats.increment("raw_candidates", len(candidates))
        logger.debug(f"{self.label}: {len(records)} rows, {len(candidates)} candidates")
        return candidates


class LookupStrategy(ABC):
    """Abstract base class for lookup strategies."""

    @abstractmethod
    def plan(self, identifiers: Identifiers, options: LookupOptions) -> list[LookupTask]:
        """
        Plan the store lookups for these identifiers.

        Args:
            identifiers: Identifiers extracted from the billing record
            options: Batch size and result limits

        Returns:
            Independent lookup tasks (empty when nothing applies)
        """
        ...

    @property
    @abstractmethod
    def kind(self) -> StrategyKind:
        """Strategy kind recorded on candidates."""
        ...

    @property
    def name(self) -> str:
        """Name of this strategy for debugging."""
        return self.kind.value

    @property
    def priority(self) -> int:
        """Priority (lower = more specific)."""
        return self.kind.priority


def _field_lookup_task(
    kind: StrategyKind,
    field: str,
    values: list[str],
    confidence: float,
    lookup_order: int,
    per_value_limit: int,
) -> LookupTask:
    """Multi-value equality lookup on one field (at most one batch of values)."""
    wanted = {value: value for value in values}

    def fetch(store: ShipmentStore) -> list[ShipmentRecord]:
        return store.find_by_field_in(field, values, limit=per_value_limit * len(values))

    def to_candidate(record: ShipmentRecord) -> MatchCandidate | None:
        stored = clean_text(record.get(field))
        return MatchCandidate(
            shipment=record,
            strategy=kind,
            matched_field=field,
            matched_value=wanted.get(stored, stored),
            confidence=confidence,
            matched_by=frozenset({kind}),
            lookup_order=lookup_order,
        )

    return LookupTask(
        strategy=kind,
        label=f"{kind.value}:{field}[{len(values)}]",
        fetch=fetch,
        to_candidate=to_candidate,
    )


def _plan_field_lookups(
    kind: StrategyKind,
    fields: Sequence[str],
    values: Sequence[str],
    confidence: float,
    options: LookupOptions,
    first_order: int = 0,
) -> list[LookupTask]:
    tasks = []
    for order, field in enumerate(fields, start=first_order):
        for batch in chunked(values, options.batch_size):
            tasks.append(
                _field_lookup_task(kind, field, batch, confidence, order, options.field_limit)
            )
    return tasks


class PlatformShipmentIdStrategy(LookupStrategy):
    """
    Platform shipment IDs: the most specific evidence.

    Each ID is looked up as a document key (0.98) and against the
    shipmentID field (0.95).
    """

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.PLATFORM_SHIPMENT_ID

    def plan(self, identifiers: Identifiers, options: LookupOptions) -> list[LookupTask]:
        if not identifiers.platform_ids:
            return []
        tasks = [self._key_task(platform_id) for platform_id in identifiers.platform_ids]
        tasks.extend(
            _plan_field_lookups(
                self.kind,
                (SHIPMENT_ID_FIELD,),
                identifiers.platform_ids,
                CONFIDENCE_PLATFORM_ID_FIELD,
                options,
                first_order=1,
            )
        )
        return tasks

    def _key_task(self, platform_id: str) -> LookupTask:
        kind = self.kind

        def fetch(store: ShipmentStore) -> list[ShipmentRecord]:
            record = store.get_by_key(platform_id)
            return [record] if record is not None else []

        def to_candidate(record: ShipmentRecord) -> MatchCandidate:
            return MatchCandidate(
                shipment=record,
                strategy=kind,
                matched_field=SHIPMENT_KEY_PROPERTY,
                matched_value=platform_id,
                confidence=CONFIDENCE_PLATFORM_ID_KEY,
                matched_by=frozenset({kind}),
                lookup_order=0,
            )

        return LookupTask(
            strategy=kind,
            label=f"{kind.value}:key[{platform_id}]",
            fetch=fetch,
            to_candidate=to_candidate,
        )


class TrackingNumberStrategy(LookupStrategy):
    """Tracking numbers against every carrier tracking field (0.90)."""

    def __init__(self, fields: Sequence[str] = TRACKING_NUMBER_FIELDS):
        self.fields = tuple(fields)

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TRACKING_NUMBER

    def plan(self, identifiers: Identifiers, options: LookupOptions) -> list[LookupTask]:
        return _plan_field_lookups(
            self.kind,
            self.fields,
            identifiers.tracking_numbers,
            CONFIDENCE_TRACKING_NUMBER,
            options,
        )


class ReferenceNumberStrategy(LookupStrategy):
    """Reference numbers against shipper/customer reference fields (0.85)."""

    def __init__(self, fields: Sequence[str] = REFERENCE_NUMBER_FIELDS):
        self.fields = tuple(fields)

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.REFERENCE_NUMBER

    def plan(self, identifiers: Identifiers, options: LookupOptions) -> list[LookupTask]:
        return _plan_field_lookups(
            self.kind,
            self.fields,
            identifiers.reference_numbers,
            CONFIDENCE_REFERENCE_NUMBER,
            options,
        )


class DateAmountStrategy(LookupStrategy):
    """
    Booking-date window around the billing date, checked against amounts.

    Only used as weak evidence: base confidence 0.75 minus an amount
    penalty (see scoring.date_amount_confidence).
    """

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.DATE_AMOUNT

    def plan(self, identifiers: Identifiers, options: LookupOptions) -> list[LookupTask]:
        if identifiers.ship_date is None:
            return []

        window = timedelta(days=options.date_window_days)
        low = datetime.combine(identifiers.ship_date - window, time.min)
        high = datetime.combine(identifiers.ship_date + window, time.max)
        billing_amount = identifiers.amount
        kind = self.kind

        def fetch(store: ShipmentStore) -> list[ShipmentRecord]:
            return store.find_by_range(BOOKED_AT_FIELD, low, high, limit=options.range_limit)

        def to_candidate(record: ShipmentRecord) -> MatchCandidate | None:
            confidence = date_amount_confidence(
                billing_amount, record.total_charges, require_amount=options.require_amount
            )
            if confidence is None:
                return None
            booked_at = record.booked_at
            return MatchCandidate(
                shipment=record,
                strategy=kind,
                matched_field=BOOKED_AT_FIELD,
                matched_value=booked_at.date().isoformat() if booked_at else "",
                confidence=confidence,
                matched_by=frozenset({kind}),
                lookup_order=0,
            )

        return [
            LookupTask(
                strategy=kind,
                label=f"{kind.value}:{BOOKED_AT_FIELD}[{low.date()}..{high.date()}]",
                fetch=fetch,
                to_candidate=to_candidate,
            )
        ]


def default_strategies() -> list[LookupStrategy]:
    """All four strategies in priority order."""
    return [
        PlatformShipmentIdStrategy(),
        TrackingNumberStrategy(),
        ReferenceNumberStrategy(),
        DateAmountStrategy(),
    ]


def plan_lookups(
    identifiers: Identifiers,
    strategies: Sequence[LookupStrategy],
    options: LookupOptions,
) -> list[LookupTask]:
    """Plan every strategy's lookups, in strategy priority order."""
    tasks: list[LookupTask] = []
    for strategy in sorted(strategies, key=lambda s: s.priority):
        tasks.extend(strategy.plan(identifiers, options))
    return tasks
