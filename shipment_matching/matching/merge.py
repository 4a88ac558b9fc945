"""
Candidate merging.

Collapses candidates from every strategy into one per shipment. The
preference order is total, so the surviving candidate does not depend on
the order lookups finish in:

1. Higher confidence
2. More specific strategy (lower priority number)
3. Earlier field within the strategy (lower lookup_order)
4. Smaller matched value
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from threading import Lock

from shipment_matching.domain.models import MatchCandidate


def preference_key(candidate: MatchCandidate) -> tuple:
    """Sort key: smallest key is the preferred candidate."""
    return (
        -candidate.confidence,
        candidate.strategy.priority,
        candidate.lookup_order,
        candidate.matched_value,
    )


class CandidateMerger:
    """
    Thread-safe per-shipment reduction of candidates.

    Every strategy that produced a shipment is accumulated in matched_by,
    whichever candidate wins.
    """

    def __init__(self):
        self._lock = Lock()
        self._by_key: dict[str, MatchCandidate] = {}

    def add(self, candidate: MatchCandidate) -> None:
        found_by = candidate.matched_by | {candidate.strategy}
        with self._lock:
            current = self._by_key.get(candidate.shipment_key)
            if current is None:
                self._by_key[candidate.shipment_key] = replace(candidate, matched_by=found_by)
                return
            found_by = found_by | current.matched_by
            winner = min(current, candidate, key=preference_key)
            self._by_key[candidate.shipment_key] = replace(winner, matched_by=found_by)

    def add_all(self, candidates: Iterable[MatchCandidate]) -> None:
        for candidate in candidates:
            self.add(candidate)

    def candidates(self) -> list[MatchCandidate]:
        """Merged candidates ordered by shipment key."""
        with self._lock:
            return [self._by_key[key] for key in sorted(self._by_key)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_key)


def merge_candidates(candidates: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    """Merge a finished collection of candidates (one per shipment)."""
    merger = CandidateMerger()
    merger.add_all(candidates)
    return merger.candidates()
