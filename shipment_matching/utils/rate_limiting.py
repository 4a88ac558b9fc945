"""
Thread-safe rate limiting for operational store queries.

Bulk invoice imports can fan out hundreds of lookups per second; a shared
limiter keeps the store adapter under a configured query rate.

Usage:
    limiter = RateLimiter(requests_per_second=50.0, source_name="neo4j")

    with limiter:
        run_query()
"""

import logging
import time
from threading import Lock

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between calls, across threads.

    Args:
        requests_per_second: Maximum calls per second allowed
        source_name: Name of the throttled resource (for logging)
    """

    def __init__(self, requests_per_second: float, source_name: str = "store"):
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {requests_per_second}")

        self.requests_per_second = requests_per_second
        self.source_name = source_name
        self.min_interval = 1.0 / requests_per_second
        self._lock = Lock()
        self._next_slot = 0.0

    def __call__(self) -> None:
        """Block until the caller may issue its query."""
        with self._lock:
            now = time.monotonic()
            wait = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self.min_interval
        # Sleep outside the lock so other threads can reserve later slots
        if wait > 0:
            logger.debug(f"Throttling {self.source_name} query for {wait:.3f}s")
            time.sleep(wait)

    def __enter__(self):
        self()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False
