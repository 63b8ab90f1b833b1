"""Shared concurrency primitives for the search pipeline.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped
   in a semaphore acquire/release.  The prefetch cache uses it to fan out
   one batch call per entity type while a store-wide semaphore caps the
   number of open store connections.  The semaphore is owned by whoever
   builds the service.

2. **partitioned_filter** -- data-parallel evaluation of a pure predicate
   over a list.  The list is cut into contiguous chunks, each chunk is
   filtered in a worker thread via ``asyncio.to_thread``, and the kept
   items are concatenated in chunk order.  The result therefore equals the
   sequential ``[x for x in items if predicate(x)]`` exactly, whichever
   path was taken.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` of them at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  ``None`` runs every
        awaitable at once.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list
        Results in the same order as the input awaitables.
    """
    if semaphore is None:
        return await asyncio.gather(*coros, return_exceptions=return_exceptions)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_wrapped(c) for c in coros), return_exceptions=return_exceptions
    )


def chunked(items: Sequence[_T], parts: int) -> list[Sequence[_T]]:
    """Split *items* into at most *parts* contiguous, near-equal chunks."""
    if not items:
        return []
    parts = max(1, min(parts, len(items)))
    size, extra = divmod(len(items), parts)
    chunks: list[Sequence[_T]] = []
    start = 0
    for index in range(parts):
        end = start + size + (1 if index < extra else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


async def partitioned_filter(
    items: Sequence[_T],
    predicate: Callable[[_T], bool],
    workers: int,
) -> list[_T]:
    """Keep the items satisfying *predicate*, evaluated in worker threads.

    Parameters
    ----------
    items:
        Candidate items.  Never mutated.
    predicate:
        Pure function; must only read shared state.
    workers:
        Number of chunks (and therefore worker threads) to use.

    Returns
    -------
    list
        The kept items, in input order.
    """

    def _filter_chunk(chunk: Sequence[_T]) -> list[_T]:
        return [item for item in chunk if predicate(item)]

    results = await asyncio.gather(
        *(asyncio.to_thread(_filter_chunk, chunk) for chunk in chunked(items, workers))
    )
    kept: list[_T] = []
    for part in results:
        kept.extend(part)
    return kept
