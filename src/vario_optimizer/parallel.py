"""
Fork-Join Worker Helpers

Every optimizer runs a fixed pool of worker threads for the duration of one
invocation. Each iteration submits one task per static partition of the
work (parameter indices, point indices, particle indices, individual
indices) and blocks until all of them have finished before the next
iteration starts. Tasks write only to their own partition.

Exceptions raised inside a task are re-raised in the calling thread at the
join.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple


def resolve_thread_count(requested: Optional[int], workload: int) -> int:
    """
    Number of worker threads for a workload.

    Args:
        requested: Caller's choice, or None for the hardware concurrency
        workload: Number of independent work items (never exceeded)

    Returns:
        Thread count in [1, max(1, workload)]
    """
    if requested is None or requested < 1:
        requested = os.cpu_count() or 1
    return max(1, min(requested, workload))


def generate_sub_ranges(first: int, last: int, n: int) -> List[Tuple[int, int]]:
    """
    Split the inclusive index range [first, last] into n contiguous ranges.

    Sizes differ by at most one, larger ranges first. When there are fewer
    indices than ranges, only one range per index is returned.

    Returns:
        List of inclusive (first, last) pairs
    """
    count = last - first + 1
    if count <= 0:
        return []
    n = max(1, min(n, count))
    base, extra = divmod(count, n)
    ranges = []
    start = first
    for i in range(n):
        size = base + (1 if i < extra else 0)
        ranges.append((start, start + size - 1))
        start += size
    return ranges


def round_robin_bins(n_items: int, n_bins: int) -> List[List[int]]:
    """Distribute indices 0..n_items-1 round-robin among n_bins bins."""
    bins = [[] for _ in range(n_bins)]
    for index in range(n_items):
        bins[index % n_bins].append(index)
    return bins


class WorkerPool:
    """
    A fixed-size thread pool used with fork-join semantics.

    Use as a context manager; the threads are released on exit.
    """

    def __init__(self, n_threads: int):
        self.n_threads = max(1, n_threads)
        self._executor = ThreadPoolExecutor(
            max_workers=self.n_threads,
            thread_name_prefix="vario-worker"
        )

    def __enter__(self) -> 'WorkerPool':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def shutdown(self):
        self._executor.shutdown(wait=True)

    def fork_join(self, tasks: Sequence[Callable[[], object]]) -> list:
        """
        Run all tasks and wait for every one of them.

        Returns:
            The tasks' return values, in task order
        """
        futures = [self._executor.submit(task) for task in tasks]
        # Wait for everything before surfacing the first error.
        for future in futures:
            future.exception()
        return [future.result() for future in futures]
