"""
Parallel execution helper for invoice-level matching.

Runs a worker over many items on a thread pool with an optional tqdm
progress bar, collecting (item, result, error) triples in input order.
"""

import logging
import sys
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TypeVar

from tqdm import tqdm

from shipment_matching.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Input type
R = TypeVar("R")  # Result type


def execute_parallel(
    items: Iterable[T],
    worker_func: Callable[[T], R],
    max_workers: int = 4,
    desc: str = "Matching",
    unit: str = "line",
    show_progress: bool = True,
    error_handler: Callable[[T, Exception], None] | None = None,
    stats: ExecutionStats | None = None,
    stats_key: str | None = None,
) -> list[tuple[T, R | None, Exception | None]]:
    """
    Execute a function in parallel across multiple items with progress tracking.

    Exceptions raised by worker_func are captured per item, never re-raised.

    Args:
        items: Iterable of items to process
        worker_func: Function to call for each item
        max_workers: Maximum number of parallel workers
        desc: Progress bar description
        unit: Progress bar unit name
        show_progress: Whether to show progress bar
        error_handler: Optional callback for errors (item, exception) -> None
        stats: Optional ExecutionStats instance for tracking
        stats_key: Optional key to increment in stats on success

    Returns:
        List of (item, result, exception) tuples, in the order of `items`
    """
    items_list = list(items)
    if not items_list:
        return []

    results: list[tuple[T, R | None, Exception | None] | None] = [None] * len(items_list)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(worker_func, item): index for index, item in enumerate(items_list)
        }

        progress_bar = None
        if show_progress:
            progress_bar = tqdm(
                total=len(items_list),
                desc=desc,
                unit=unit,
                file=sys.stderr,
                mininterval=1.0,
                dynamic_ncols=True,
            )

        try:
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                item = items_list[index]
                result = None
                error = None

                try:
                    result = future.result()
                    if stats and stats_key:
                        stats.increment(stats_key)
                except Exception as e:
                    error = e
                    if error_handler:
                        error_handler(item, e)
                    else:
                        logger.debug(f"Error processing {item}: {e}")
                    if stats:
                        stats.increment("failed")
                finally:
                    results[index] = (item, result, error)
                    if progress_bar:
                        progress_bar.update(1)
        finally:
            if progress_bar:
                progress_bar.close()

    return [entry for entry in results if entry is not None]
