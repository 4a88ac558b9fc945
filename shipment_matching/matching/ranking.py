"""
Ranking and match-status classification.
"""

from __future__ import annotations

from collections.abc import Iterable

from shipment_matching.constants import (
    REVIEW_THRESHOLD,
    THRESHOLD_EXCELLENT,
    THRESHOLD_FAIR,
    THRESHOLD_GOOD,
)
from shipment_matching.domain.models import (
    BillingRecord,
    MatchCandidate,
    MatchResult,
    MatchStatus,
)


def rank_key(candidate: MatchCandidate) -> tuple:
    """Confidence descending, then strategy priority, then shipment key."""
    return (-candidate.confidence, candidate.strategy.priority, candidate.shipment_key)


def rank_candidates(candidates: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    return sorted(candidates, key=rank_key)


def classify_status(best: MatchCandidate | None) -> MatchStatus:
    """
    Match status from the top candidate.

    Any candidate at all is at least POOR; only an empty list is NO_MATCH.
    """
    if best is None:
        return MatchStatus.NO_MATCH
    if best.confidence >= THRESHOLD_EXCELLENT:
        return MatchStatus.EXCELLENT
    if best.confidence >= THRESHOLD_GOOD:
        return MatchStatus.GOOD
    if best.confidence >= THRESHOLD_FAIR:
        return MatchStatus.FAIR
    return MatchStatus.POOR


def requires_review(best: MatchCandidate | None) -> bool:
    return best is None or best.confidence < REVIEW_THRESHOLD


def build_result(
    billing_record: BillingRecord,
    scored_candidates: Iterable[MatchCandidate],
    carrier_filtered: bool = False,
    detected_carrier: str = "",
) -> MatchResult:
    """
    Rank scored candidates and classify them into a MatchResult.

    Args:
        billing_record: The record being matched
        scored_candidates: Merged candidates with final confidences
        carrier_filtered: Whether a carrier filter was applied
        detected_carrier: Carrier name used for filtering (informational)
    """
    ranked = tuple(rank_candidates(scored_candidates))
    best = ranked[0] if ranked else None
    return MatchResult(
        billing_record=billing_record,
        candidates=ranked,
        best_match=best,
        status=classify_status(best),
        review_required=requires_review(best),
        carrier_filtered=carrier_filtered,
        detected_carrier=detected_carrier,
    )
