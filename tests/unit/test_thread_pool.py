"""
Unit tests for the exchange worker pool.
"""

import threading
import time

import pytest

from httpfuture.core.thread_pool import ExchangePool


@pytest.fixture
def pool():
    pool = ExchangePool(min_workers=2, max_workers=4, idle_timeout=0.1)
    pool.start()
    yield pool
    pool.shutdown(wait=False)


class TestExchangePool:
    """Tests for ExchangePool."""

    def test_runs_tasks(self, pool):
        """Test that submitted tasks execute with their arguments."""
        done = threading.Event()
        results = []

        def task(a, b=0):
            results.append(a + b)
            done.set()

        assert pool.submit(task, args=(1,), kwargs={"b": 2}) is True
        assert done.wait(2.0)
        assert results == [3]

    def test_failing_task_keeps_worker_alive(self, pool):
        """Test that an exception in one task does not stop the pool."""
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        pool.submit(boom)
        pool.submit(done.set)

        assert done.wait(2.0)
        time.sleep(0.05)
        assert pool.stats["tasks"]["failed"] == 1

    def test_scales_up_when_busy(self, pool):
        """Test that a new worker is added when all are busy."""
        release = threading.Event()
        for _ in range(4):
            pool.submit(release.wait, args=(2.0,))
            time.sleep(0.05)

        assert pool.stats["workers"]["total"] > 2
        assert pool.stats["workers"]["total"] <= 4
        release.set()

    def test_submit_requires_running_pool(self):
        """Test that submitting to a stopped pool fails."""
        pool = ExchangePool()

        with pytest.raises(RuntimeError):
            pool.submit(print)

    def test_non_blocking_submit_on_full_queue(self):
        """Test that block=False reports a full queue instead of waiting."""
        pool = ExchangePool(min_workers=1, max_workers=1, queue_size=1, idle_timeout=0.1)
        pool.start()
        release = threading.Event()
        try:
            queued = [pool.submit(release.wait, args=(2.0,), block=False) for _ in range(3)]

            assert False in queued
        finally:
            release.set()
            pool.shutdown(wait=False)

    def test_shutdown_waits_for_queued_tasks(self):
        """Test that shutdown(wait=True) drains the queue first."""
        pool = ExchangePool(min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()
        results = []

        for i in range(5):
            pool.submit(lambda i=i: (time.sleep(0.01), results.append(i)))

        pool.shutdown(wait=True, timeout=5.0)

        assert results == [0, 1, 2, 3, 4]
        assert pool.stats["workers"]["total"] == 0

    def test_restart_after_shutdown(self):
        """Test that a pool can be started again."""
        pool = ExchangePool(min_workers=1, max_workers=1, idle_timeout=0.1)
        pool.start()
        pool.shutdown()
        pool.start()
        done = threading.Event()

        pool.submit(done.set)

        assert done.wait(2.0)
        pool.shutdown()
