"""
Identifier Extraction Module.

Pulls every candidate identifier out of a billing record.
Each identifier kind has its own extractor reading an explicit, ordered
list of field accessors; every field is read (no first-match-wins).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from shipment_matching.constants import PLATFORM_ID_PREFIX, PLATFORM_ID_SUFFIX_LENGTH
from shipment_matching.domain.models import BillingRecord, Identifiers, StrategyKind
from shipment_matching.utils.normalize import dedupe_casefold

FieldAccessor = Callable[[BillingRecord], Iterable[str]]


def _single(attr: str) -> FieldAccessor:
    def read(record: BillingRecord) -> Iterable[str]:
        value = getattr(record, attr)
        return (value,) if value else ()

    read.__name__ = attr
    return read


def _many(attr: str) -> FieldAccessor:
    def read(record: BillingRecord) -> Iterable[str]:
        return getattr(record, attr)

    read.__name__ = attr
    return read


# Free-text and structured fields scanned for embedded platform IDs
PLATFORM_ID_SOURCE_FIELDS: tuple[FieldAccessor, ...] = (
    _single("shipment_id"),
    _single("description"),
    _single("notes"),
    _single("tracking_number"),
    _single("bol_number"),
    _single("pro_number"),
    _single("reference_number"),
    _many("references"),
    _many("charge_descriptions"),
)

TRACKING_NUMBER_SOURCE_FIELDS: tuple[FieldAccessor, ...] = (_single("tracking_number"),)

REFERENCE_NUMBER_SOURCE_FIELDS: tuple[FieldAccessor, ...] = (
    _single("reference_number"),
    _many("references"),
    _single("pro_number"),
    _single("bol_number"),
)


class IdentifierExtractor(ABC):
    """Abstract base class for identifier extractors."""

    @abstractmethod
    def extract(self, record: BillingRecord) -> tuple[str, ...]:
        """Extract deduplicated identifiers from a billing record."""
        ...

    @property
    @abstractmethod
    def kind(self) -> StrategyKind:
        """Strategy that consumes these identifiers."""
        ...


class PlatformIdExtractor(IdentifierExtractor):
    """
    Extracts platform shipment IDs embedded anywhere in text fields.

    Strict fixed pattern, case-insensitive, stored upper-cased.
    Every occurrence in a field is extracted:
    - "Shipment ICAL-9F3K2Q delivered" -> ICAL-9F3K2Q
    - "ical-aaaaaa / ICAL-BBBBBB" -> ICAL-AAAAAA, ICAL-BBBBBB
    """

    def __init__(
        self,
        prefix: str = PLATFORM_ID_PREFIX,
        fields: tuple[FieldAccessor, ...] = PLATFORM_ID_SOURCE_FIELDS,
    ):
        self.prefix = prefix.upper()
        self.fields = fields
        self.pattern = re.compile(
            rf"\b({re.escape(self.prefix)}-[A-Z0-9]{{{PLATFORM_ID_SUFFIX_LENGTH}}})\b",
            re.IGNORECASE,
        )

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.PLATFORM_SHIPMENT_ID

    def extract(self, record: BillingRecord) -> tuple[str, ...]:
        found: list[str] = []
        for accessor in self.fields:
            for text in accessor(record):
                found.extend(m.group(1).upper() for m in self.pattern.finditer(str(text)))
        return dedupe_casefold(found)


class VerbatimFieldExtractor(IdentifierExtractor):
    """
    Collects whole field values verbatim (trimmed, original case).

    Duplicates are dropped case-insensitively, keeping the first spelling.
    """

    def __init__(self, kind: StrategyKind, fields: tuple[FieldAccessor, ...]):
        self._kind = kind
        self.fields = fields

    @property
    def kind(self) -> StrategyKind:
        return self._kind

    def extract(self, record: BillingRecord) -> tuple[str, ...]:
        values: list[str] = []
        for accessor in self.fields:
            values.extend(accessor(record))
        return dedupe_casefold(values)


def tracking_number_extractor() -> VerbatimFieldExtractor:
    return VerbatimFieldExtractor(StrategyKind.TRACKING_NUMBER, TRACKING_NUMBER_SOURCE_FIELDS)


def reference_number_extractor() -> VerbatimFieldExtractor:
    return VerbatimFieldExtractor(StrategyKind.REFERENCE_NUMBER, REFERENCE_NUMBER_SOURCE_FIELDS)


def extract_identifiers(
    record: BillingRecord,
    platform_id_prefix: str = PLATFORM_ID_PREFIX,
) -> Identifiers:
    """
    Extract all identifiers from a billing record.

    Never fails: a record with nothing usable yields empty tuples.

    Args:
        record: Billing record to scan
        platform_id_prefix: Prefix of platform shipment IDs

    Returns:
        Identifiers with per-kind values plus the (date, amount) pair
    """
    return Identifiers(
        platform_ids=PlatformIdExtractor(prefix=platform_id_prefix).extract(record),
        tracking_numbers=tracking_number_extractor().extract(record),
        reference_numbers=reference_number_extractor().extract(record),
        ship_date=record.ship_date,
        amount=record.amount,
    )
