"""
Bounded-parallelism execution for per-identifier work.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyLimiter:
    """
    Runs a worker over items with at most ``limit`` calls in flight.

    Results come back in input order regardless of completion order. Every
    item is processed even if a sibling raises; the first exception (in input
    order) is re-raised once all work has finished.
    """

    def __init__(self, limit: int = 5) -> None:
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1")
        self.limit = limit

    def map(self, worker: Callable[[T], R], items: Sequence[T]) -> List[R]:
        if not items:
            return []

        max_workers = min(self.limit, len(items))
        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="recon-worker"
        ) as executor:
            futures = [executor.submit(worker, item) for item in items]

        # Leaving the executor block waits for every future to settle
        return [future.result() for future in futures]
