"""
task_queue.py — ordered queue for external calls.

Visual verification calls go through a SequentialTaskQueue so that their
ordering is explicit:

  • max_concurrency=1 (default) → strictly one call in flight; nothing after
    the first hit is ever started.
  • max_concurrency=N           → items run in batches of N; the first hit is
    still chosen in list order, and no batch after the one holding it starts.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class SequentialTaskQueue(Generic[T]):

    def __init__(self, max_concurrency: int = 1) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.max_concurrency = max_concurrency

    def _batches(self, items: list[T]) -> Iterable[list[T]]:
        for i in range(0, len(items), self.max_concurrency):
            yield items[i:i + self.max_concurrency]

    async def first_match(
        self,
        items: Iterable[T],
        check: Callable[[T], Awaitable[bool]],
    ) -> Optional[T]:
        """Return the first item (in list order) for which check() is true, else None."""
        for batch in self._batches(list(items)):
            if len(batch) == 1:
                results = [await check(batch[0])]
            else:
                results = await asyncio.gather(*[check(item) for item in batch])
            for item, ok in zip(batch, results):
                if ok:
                    return item
        return None

    async def map(
        self,
        items: Iterable[T],
        fn: Callable[[T], Awaitable[R]],
    ) -> list[R]:
        """Run fn over every item; results keep input order."""
        results: list[R] = []
        for batch in self._batches(list(items)):
            if len(batch) == 1:
                results.append(await fn(batch[0]))
            else:
                results.extend(await asyncio.gather(*[fn(item) for item in batch]))
        return results
