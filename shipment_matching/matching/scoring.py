"""
Confidence Scoring Module.

All scoring numbers are named constants in shipment_matching.constants;
nothing here is learned or configurable. Functions are pure.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from shipment_matching.constants import (
    AMOUNT_SIMILARITY_BONUS,
    AMOUNT_SIMILARITY_MAX_PERCENT_DIFF,
    CONFIDENCE_DATE_AMOUNT,
    DATE_AMOUNT_MAX_PERCENT_DIFF,
    DATE_AMOUNT_PENALTY_FACTOR,
    DATE_PROXIMITY_BONUS,
    DATE_PROXIMITY_MAX_DAYS,
)
from shipment_matching.domain.models import BillingRecord, MatchCandidate
from shipment_matching.utils.normalize import (
    calendar_days_between,
    is_known_amount,
    percent_difference,
)


@dataclass(frozen=True)
class ScoreBreakdown:
    """How a candidate's final confidence was computed."""

    base_confidence: float
    date_bonus: float = 0.0
    amount_bonus: float = 0.0
    final_confidence: float = 0.0


def clamp_confidence(value: float) -> float:
    """
    Clamp to [0, 1].

    No rounding: status thresholds are compared against the exact score.
    Rounding is applied only when results are serialized.
    """
    return max(0.0, min(1.0, value))


def date_amount_confidence(
    billing_amount: float | None,
    shipment_amount: float | None,
    require_amount: bool = False,
) -> float | None:
    """
    Base confidence of a booking-date-window candidate.

    Confidence drops by DATE_AMOUNT_PENALTY_FACTOR per unit of relative
    amount difference; candidates further apart than
    DATE_AMOUNT_MAX_PERCENT_DIFF are discarded.

    An unknown amount on either side keeps the unadjusted base confidence
    unless require_amount is set.

    Returns:
        Confidence, or None when the candidate must be discarded
    """
    if not (is_known_amount(billing_amount) and is_known_amount(shipment_amount)):
        return None if require_amount else CONFIDENCE_DATE_AMOUNT

    pct = percent_difference(billing_amount, shipment_amount)  # type: ignore[arg-type]
    if pct > DATE_AMOUNT_MAX_PERCENT_DIFF:
        return None
    return CONFIDENCE_DATE_AMOUNT - DATE_AMOUNT_PENALTY_FACTOR * pct


def compute_score(candidate: MatchCandidate, billing_record: BillingRecord) -> ScoreBreakdown:
    """
    Apply corroboration bonuses to a merged candidate.

    - Date proximity: booking date within DATE_PROXIMITY_MAX_DAYS calendar
      days of the billing date
    - Amount similarity: relative difference strictly below
      AMOUNT_SIMILARITY_MAX_PERCENT_DIFF (both amounts known)
    """
    date_bonus = 0.0
    booked_at = candidate.shipment.booked_at
    if billing_record.ship_date is not None and booked_at is not None:
        days = calendar_days_between(booked_at.date(), billing_record.ship_date)
        if days <= DATE_PROXIMITY_MAX_DAYS:
            date_bonus = DATE_PROXIMITY_BONUS

    amount_bonus = 0.0
    shipment_amount = candidate.shipment.total_charges
    if is_known_amount(billing_record.amount) and is_known_amount(shipment_amount):
        pct = percent_difference(billing_record.amount, shipment_amount)  # type: ignore[arg-type]
        if pct < AMOUNT_SIMILARITY_MAX_PERCENT_DIFF:
            amount_bonus = AMOUNT_SIMILARITY_BONUS

    return ScoreBreakdown(
        base_confidence=candidate.confidence,
        date_bonus=date_bonus,
        amount_bonus=amount_bonus,
        final_confidence=clamp_confidence(candidate.confidence + date_bonus + amount_bonus),
    )


def score_candidate(candidate: MatchCandidate, billing_record: BillingRecord) -> MatchCandidate:
    """Return the candidate with its final (bonus-adjusted) confidence."""
    breakdown = compute_score(candidate, billing_record)
    return replace(candidate, confidence=breakdown.final_confidence)
