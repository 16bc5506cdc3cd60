from __future__ import annotations
"""Bounded worker pool for throttling outbound HTTP calls in batch jobs."""
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

T = TypeVar('T')
R = TypeVar('R')


def map_with_concurrency(items: Sequence[T], concurrency: int, worker: Callable[[T, int], R]) -> List[R]:
    """Run ``worker(item, index)`` with at most ``concurrency`` calls in flight.

    Results line up with ``items`` by position. The first worker exception is
    re-raised after all submitted calls have finished; callers that want
    skip-and-count semantics catch inside the worker.
    """
    if not items:
        return []
    workers = max(1, int(concurrency or 1))
    results: List[R] = [None] * len(items)  # type: ignore[list-item]
    with ThreadPoolExecutor(max_workers=min(workers, len(items)), thread_name_prefix='luxcars-worker') as executor:
        futures = {executor.submit(worker, item, idx): idx for idx, item in enumerate(items)}
        first_error: BaseException | None = None
        for future, idx in futures.items():
            try:
                results[idx] = future.result()
            except Exception as e:  # noqa: BLE001
                if first_error is None:
                    first_error = e
    if first_error is not None:
        raise first_error
    return results


__all__ = ["map_with_concurrency"]
