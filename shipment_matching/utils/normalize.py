"""
Value normalization for billing and shipment fields.

Invoice parsers and the operational store both hand us loosely typed
values (strings with currency symbols, ISO strings, driver temporal types,
Firestore-style timestamp dicts). Everything is funnelled through here so
comparisons elsewhere only deal with float, date and naive-UTC datetime.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

T = TypeVar("T")

_FALLBACK_DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y", "%d-%b-%Y", "%b %d, %Y")
_AMOUNT_NOISE = re.compile(r"[\s$,]|USD|CAD", re.IGNORECASE)


def clean_text(value: Any) -> str:
    """Convert a value to a trimmed string ('' for None)."""
    if value is None:
        return ""
    return str(value).strip()


def parse_amount(value: Any) -> float | None:
    """
    Parse a monetary amount.

    Accepts numbers and strings such as "$1,250.00" or "520.00 CAD".
    Returns None when the value is missing or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        amount = float(value)
    else:
        text = _AMOUNT_NOISE.sub("", str(value))
        if not text:
            return None
        try:
            amount = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def is_known_amount(amount: float | None) -> bool:
    """Zero and negative amounts carry no matching signal."""
    return amount is not None and amount > 0


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a timestamp into a naive UTC datetime.

    Handles datetime/date objects, neo4j temporal values (to_native),
    Firestore export dicts ({"_seconds": ...}), epoch seconds or
    milliseconds, and ISO-8601 strings.
    """
    if value is None or isinstance(value, bool):
        return None

    if hasattr(value, "to_native"):
        value = value.to_native()

    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if seconds is None:
            return None
        try:
            value = float(seconds)
        except (TypeError, ValueError):
            return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds > 1e11:  # milliseconds
            seconds /= 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return parse_timestamp(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: Any) -> date | None:
    """Parse a value into a calendar date (see parse_timestamp)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def calendar_days_between(first: date, second: date) -> int:
    """Absolute calendar-day distance between two dates."""
    return abs((first - second).days)


def percent_difference(amount: float, reference: float) -> float:
    """|amount - reference| / reference (reference must be > 0)."""
    return abs(amount - reference) / reference


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Yield successive lists of at most `size` items."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def dedupe_casefold(values: Iterable[str]) -> tuple[str, ...]:
    """
    Drop blanks and case-insensitive duplicates, keeping the first spelling.

    Order of first appearance is preserved.
    """
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        text = clean_text(value)
        if not text:
            continue
        key = text.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return tuple(result)
