"""Concurrent fan-out helpers for batch jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Settled(Generic[T]):
    """Outcome of one fanned-out call."""

    item: T
    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(
    items: Iterable[T],
    func: Callable[[T], Any],
    label: str = "item",
) -> list[Settled[T]]:
    """Run blocking ``func`` for every item in worker threads and collect every outcome.

    A failing item is logged and recorded; it never cancels its siblings.
    """
    pending = list(items)
    if not pending:
        return []

    results = await asyncio.gather(
        *(asyncio.to_thread(func, item) for item in pending),
        return_exceptions=True,
    )

    settled: list[Settled[T]] = []
    for item, result in zip(pending, results):
        if isinstance(result, BaseException):
            logger.error("Failed to process %s %r: %s", label, item, result, exc_info=result)
            settled.append(Settled(item=item, error=result))
        else:
            settled.append(Settled(item=item, result=result))
    return settled


def count_outcomes(settled: Iterable[Settled[Any]]) -> tuple[int, int]:
    """Return ``(succeeded, failed)`` totals."""
    succeeded = failed = 0
    for outcome in settled:
        if outcome.ok:
            succeeded += 1
        else:
            failed += 1
    return succeeded, failed
