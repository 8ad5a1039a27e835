"""core.fanout

Bounded-concurrency gather that keeps results in input order.

Each worker writes into the slot of its input index, so completion order has
no influence on the output order. Workers are expected to handle their own
failures (e.g. return a not-available marker); an exception escaping a worker
propagates to the caller.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

T = TypeVar('T')
R = TypeVar('R')


async def gather_ordered(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    limit: int,
) -> list[R]:
    """Run *worker* over *items* with at most *limit* in flight."""
    if limit < 1:
        raise ValueError('limit must be >= 1')
    slots: list[R | None] = [None] * len(items)
    semaphore = asyncio.Semaphore(limit)

    async def _run(index: int, item: T) -> None:
        async with semaphore:
            slots[index] = await worker(item)

    await asyncio.gather(*(_run(index, item) for index, item in enumerate(items)))
    return slots  # type: ignore[return-value]
