"""
Unit tests for the worker pool and quick-fail executor.
"""

import threading
import time

import pytest

from regen.core.errors import UnitExecutionError
from regen.core.executor import WaitableExecutor, WorkerPool


def _fail(message: str) -> None:
    raise ValueError(message)


class TestWorkerPool:
    """Test pool construction."""

    def test_rejects_empty_pool(self) -> None:
        """Test that a pool needs at least one worker."""
        with pytest.raises(ValueError):
            WorkerPool(0)

    def test_submit(self) -> None:
        """Test running a callable on the pool."""
        with WorkerPool(2) as pool:
            assert pool.submit(pow, 2, 5).result() == 32


class TestWaitableExecutor:
    """Test dispatch and the final barrier."""

    def test_results_in_dispatch_order(self, pool: WorkerPool) -> None:
        """Test that results come back in dispatch order."""
        executor = WaitableExecutor(pool)

        def slow_identity(value: int) -> int:
            time.sleep(0.01 * (5 - value))
            return value

        for i in range(5):
            executor.execute(slow_identity, i)

        assert executor.wait_for_tasks_with_quick_fail() == [0, 1, 2, 3, 4]

    def test_wait_without_units(self, pool: WorkerPool) -> None:
        """Test that an empty barrier returns immediately."""
        assert WaitableExecutor(pool).wait_for_tasks_with_quick_fail() == []

    def test_failure_is_chained(self, pool: WorkerPool) -> None:
        """Test that the unit failure is available as cause."""
        executor = WaitableExecutor(pool)
        executor.execute(_fail, "boom")

        with pytest.raises(UnitExecutionError) as exc_info:
            executor.wait_for_tasks_with_quick_fail()

        assert isinstance(exc_info.value.cause, ValueError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert "boom" in str(exc_info.value)

    def test_no_new_units_after_failure(self, pool: WorkerPool) -> None:
        """Test that execute refuses to schedule once a unit failed."""
        executor = WaitableExecutor(pool)
        ran: list[str] = []
        executor.execute(_fail, "first")

        deadline = time.monotonic() + 5
        while executor.pending and time.monotonic() < deadline:
            time.sleep(0.01)
        executor.execute(ran.append, "late")

        with pytest.raises(UnitExecutionError):
            executor.wait_for_tasks_with_quick_fail()
        assert ran == []

    def test_queued_units_never_start_after_failure(self) -> None:
        """Test that nothing queued behind a failing unit starts."""
        started: list[int] = []
        gate = threading.Event()

        with WorkerPool(1) as pool:
            executor = WaitableExecutor(pool)
            executor.execute(gate.wait, 5)
            executor.execute(_fail, "queued failure")
            for n in range(50):
                executor.execute(started.append, n)
            gate.set()

            with pytest.raises(UnitExecutionError) as exc_info:
                executor.wait_for_tasks_with_quick_fail(cancel_remaining=True)

        assert started == []
        assert "queued failure" in str(exc_info.value)

    def test_in_flight_units_complete(self) -> None:
        """Test that a unit running when another fails is awaited, not interrupted."""
        finished: list[str] = []

        def slow_unit() -> None:
            time.sleep(0.2)
            finished.append("slow")

        with WorkerPool(2) as pool:
            executor = WaitableExecutor(pool)
            executor.execute(slow_unit)
            executor.execute(_fail, "fast failure")

            with pytest.raises(UnitExecutionError):
                executor.wait_for_tasks_with_quick_fail(cancel_remaining=True)

            assert finished == ["slow"]
