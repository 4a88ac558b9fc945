"""
Thread-safe counters for match and lookup statistics.

Lookup tasks run on worker threads and report into one shared instance.
"""

from __future__ import annotations

from threading import Lock


class ExecutionStats:
    """
    Thread-safe counter set.

    Example:
        stats = ExecutionStats(lookups_planned=0, lookups_failed=0)
        stats.increment("lookups_failed")
        stats.to_dict()  # {"lookups_planned": 0, "lookups_failed": 1}
    """

    def __init__(self, **initial_values: int):
        self._lock = Lock()
        self._counters: dict[str, int] = dict(initial_values)

    def increment(self, key: str, amount: int = 1) -> None:
        """Thread-safe increment of a counter (created at 0 if missing)."""
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, key: str, default: int = 0) -> int:
        """Get counter value."""
        with self._lock:
            return self._counters.get(key, default)

    def to_dict(self) -> dict[str, int]:
        """Get all counters as a dictionary (a copy)."""
        with self._lock:
            return self._counters.copy()

    def __getitem__(self, key: str) -> int:
        """Allow dict-like access: stats['lookups_failed']."""
        return self.get(key)

    def __repr__(self) -> str:
        with self._lock:
            items = ", ".join(f"{k}={v}" for k, v in sorted(self._counters.items()))
        return f"ExecutionStats({items})"
