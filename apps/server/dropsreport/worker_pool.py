"""Bounded thread pool for report I/O.

Report rendering fetches photos and logos over HTTP before drawing.  The
fetches are independent and I/O bound, so they run on a shared, fixed-size
pool; each request still gets its own result dict, nothing is shared between
requests except the threads.

Usage::

    pool = WorkerPool(max_workers=8)
    images = pool.map_unordered(fetch_image, urls)
    pool.shutdown()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_WORKERS = 8


class WorkerPool:
    """Fixed-size thread pool with lightweight metrics.

    Parameters
    ----------
    max_workers:
        Number of worker threads (at least 1).
    thread_name_prefix:
        Prefix for worker-thread names.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        thread_name_prefix: str = "dropsreport-io",
    ) -> None:
        self._max_workers = max(1, int(max_workers))
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._total_tasks = 0
        self._failed_tasks = 0
        self._total_wait_s = 0.0
        self._metrics_lock = threading.Lock()
        self._alive = True

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -- Public API -----------------------------------------------------------

    def submit(self, fn: Callable[..., R], *args: Any, **kwargs: Any) -> Future[R]:
        """Submit a single callable; returns a ``Future``."""
        if not self._alive:
            raise RuntimeError("WorkerPool is shut down")
        with self._metrics_lock:
            self._total_tasks += 1
        return self._executor.submit(fn, *args, **kwargs)

    def map_unordered(self, fn: Callable[[T], R], items: Iterable[T]) -> dict[T, R]:
        """Run *fn* on each item in parallel; return ``{item: result}``.

        Items whose callable raises are logged and left out of the result, so
        one bad photo never blocks the rest.
        """
        pending = list(items)
        if not pending:
            return {}
        t0 = time.monotonic()
        futures = {self.submit(fn, item): item for item in pending}
        results: dict[T, R] = {}
        failures = 0
        for fut, item in futures.items():
            try:
                results[item] = fut.result()
            except Exception:
                failures += 1
                LOGGER.warning("WorkerPool task failed for item %r; skipping.", item, exc_info=True)
        with self._metrics_lock:
            self._failed_tasks += failures
            self._total_wait_s += time.monotonic() - t0
        return results

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the pool.  Safe to call multiple times."""
        self._alive = False
        self._executor.shutdown(wait=wait)

    # -- Observability --------------------------------------------------------

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def alive(self) -> bool:
        return self._alive

    def stats(self) -> dict[str, Any]:
        with self._metrics_lock:
            return {
                "max_workers": self._max_workers,
                "total_tasks": self._total_tasks,
                "failed_tasks": self._failed_tasks,
                "total_wait_s": round(self._total_wait_s, 4),
                "alive": self._alive,
            }
