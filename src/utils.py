"""Shared utilities for parallel work."""

from __future__ import annotations

import concurrent.futures
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(
    fn: Callable[[T], R],
    items: Iterable[T],
    *,
    max_workers: int | None = None,
) -> list[R]:
    """Apply fn to every item on a thread pool, failing fast.

    Results come back in completion order, not input order. The first
    exception raised by any work unit cancels the units that have not started
    yet and is re-raised; there are no partial results.

    Examples:
        >>> sorted(parallel_map(lambda x: x * 2, [1, 2, 3]))
        [2, 4, 6]
    """
    work = list(items)
    if not work:
        return []

    results: list[R] = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(fn, item) for item in work]
        try:
            for future in concurrent.futures.as_completed(futures):
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return results


__all__ = ["parallel_map"]
