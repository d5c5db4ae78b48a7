# Path: artindex/concurrency.py
# Purpose: Provide cancellation, single-flight, and batched parallel execution helpers.
# Layer: artindex.
# Details: Batches run in parallel on a thread pool, sequentially across batches, with a pause and cancel check between them.

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from artindex.errors import OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class CancelToken:
    """Cooperative cancellation flag checked at loop and batch boundaries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelled(f"{operation} was cancelled.")


class SingleFlight:
    """
    Coalesce concurrent calls sharing a key into one execution.

    The first caller stores a pending Future and runs the work; later callers block on that Future
    and receive the same result or exception.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, Future] = {}

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def run(self, key: str, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        with self._lock:
            future = self._pending.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._pending[key] = future
        assert future is not None
        if not leader:
            logger.debug("Joining in-flight operation %s", key)
            return future.result()

        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        finally:
            with self._lock:
                self._pending.pop(key, None)
        future.set_result(result)
        return result


BatchCallback = Callable[[int, int, List[Tuple[Any, Any]]], None]


def run_in_batches(
    items: Sequence[T],
    fn: Callable[[T], R],
    batch_size: int,
    *,
    yield_seconds: float = 0.0,
    cancel: Optional[CancelToken] = None,
    on_batch: Optional[BatchCallback] = None,
    default: Callable[[], Any] = list,
    max_workers: Optional[int] = None,
) -> List[Tuple[T, Any]]:
    """
    Apply ``fn`` to every item, in parallel within a batch and sequentially across batches.

    A failing item is logged and replaced by ``default()``. ``on_batch(processed, total, batch_results)``
    runs after each batch. Cancellation is checked before each batch and after it completes; results of
    a batch finished after cancellation are discarded.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    total = len(items)
    results: List[Tuple[T, Any]] = []
    if total == 0:
        return results

    with ThreadPoolExecutor(max_workers=max_workers or min(batch_size, 32)) as pool:
        for start in range(0, total, batch_size):
            if cancel is not None:
                cancel.raise_if_cancelled()
            batch = items[start : start + batch_size]
            futures = [pool.submit(fn, item) for item in batch]
            batch_results: List[Tuple[T, Any]] = []
            for item, future in zip(batch, futures):
                try:
                    value = future.result()
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Batch item %r failed: %s", item, exc)
                    value = default()
                batch_results.append((item, value))
            if cancel is not None:
                cancel.raise_if_cancelled()
            results.extend(batch_results)
            processed = min(start + batch_size, total)
            if on_batch is not None:
                on_batch(processed, total, batch_results)
            if yield_seconds > 0 and processed < total:
                time.sleep(yield_seconds)
    return results


__all__ = ["CancelToken", "SingleFlight", "run_in_batches"]
