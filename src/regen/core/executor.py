"""
Parallel execution of independent units of work.

A ``WorkerPool`` is created explicitly, sized explicitly, and handed to the
tasks that need it. Each run dispatches its units through a
``WaitableExecutor`` and blocks once, at the final barrier.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any

from .errors import UnitExecutionError

logger = logging.getLogger(__name__)


class WorkerPool:
    """Bounded thread pool shared by the units of one or more runs."""

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="regen-worker"
        )

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        return self._executor.submit(fn, *args)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


class WaitableExecutor:
    """
    Dispatches units to a pool and waits for them with quick-fail semantics.

    Only the coordinating thread calls ``execute`` and the wait methods. Once a
    failure has been observed, ``execute`` refuses to schedule further units and
    units already queued are skipped when a worker picks them up.
    """

    def __init__(self, pool: WorkerPool):
        self._pool = pool
        self._futures: list[Future] = []
        self._failed = threading.Event()

    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        """Enqueue a unit and return immediately."""
        if self._failed.is_set():
            logger.debug("Not scheduling unit: a previous unit failed")
            return
        future = self._pool.submit(self._run, fn, *args)
        self._futures.append(future)

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        # Units dequeued after a failure never start.
        if self._failed.is_set():
            return None
        try:
            return fn(*args)
        except BaseException:
            self._failed.set()
            raise

    @property
    def pending(self) -> int:
        return sum(1 for f in self._futures if not f.done())

    def wait_for_tasks_with_quick_fail(self, cancel_remaining: bool = True) -> list[Any]:
        """
        Wait for all dispatched units.

        On the first failure, units that have not started are cancelled (if
        ``cancel_remaining``), in-flight units are awaited, and the failure is
        raised.

        Returns:
            Results of all units, in dispatch order

        Raises:
            UnitExecutionError: Chained to the first unit failure
        """
        futures = list(self._futures)
        self._futures = []
        if not futures:
            return []

        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        failure = _first_failure(futures, done)
        if failure is None:
            return [f.result() for f in futures]

        if cancel_remaining:
            cancelled = sum(1 for f in not_done if f.cancel())
            logger.debug(f"Quick fail: cancelled {cancelled} pending unit(s)")

        # In-flight units are never interrupted; let them finish.
        wait(not_done)

        raise UnitExecutionError("Unit of work failed", failure) from failure


def _first_failure(futures: list[Future], done: set[Future]) -> BaseException | None:
    """Return the exception of the earliest dispatched failed unit, if any."""
    for f in futures:
        if f in done and not f.cancelled() and f.exception() is not None:
            return f.exception()
    return None


__all__ = ["WorkerPool", "WaitableExecutor"]
