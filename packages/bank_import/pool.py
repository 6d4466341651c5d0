"""Bounded, order-preserving concurrent map over a thread pool.

- At most ``concurrency`` mapper calls run at once; new work is submitted as
  earlier calls complete (a sliding window, not one batch per window).
- Each result is written to the slot of its input position, so the output
  order is the input order regardless of completion order.
- The first mapper error cancels not-yet-started work and is re-raised.
  Mappers that must not abort the batch are expected to catch their own
  failures and return a sentinel value instead.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar, cast

InT = TypeVar("InT")
OutT = TypeVar("OutT")

_UNSET: object = object()


def bounded_map(
    items: Sequence[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    """Map ``items`` through ``mapper`` with at most ``concurrency`` calls in flight."""

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")
    if not items:
        return []

    slots: list[object] = [_UNSET] * len(items)
    pending = iter(range(len(items)))
    future_to_idx: dict[Future[OutT], int] = {}

    def _submit(pool: ThreadPoolExecutor) -> Future[OutT] | None:
        idx = next(pending, None)
        if idx is None:
            return None
        fut = pool.submit(mapper, items[idx])
        future_to_idx[fut] = idx
        return fut

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:
        active: set[Future[OutT]] = set()
        for _ in range(concurrency):
            fut = _submit(pool)
            if fut is None:
                break
            active.add(fut)

        while active:
            done, active = wait(active, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = future_to_idx.pop(fut)
                try:
                    slots[idx] = fut.result()
                except Exception:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
            for _ in range(len(done)):
                fut = _submit(pool)
                if fut is None:
                    break
                active.add(fut)

    return [cast(OutT, val) for val in slots]


__all__ = ["bounded_map"]
