"""
=============================================================================
EXCHANGE POOL
=============================================================================

Worker threads that run HTTP exchanges in the background while callers
carry on until they need the result.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          ExchangePool                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   submit(future._run) ──► [Task] [Task] [Task] ...   (queue.Queue)  │
    │                              │                                      │
    │                              ▼ get()                                │
    │         ┌──────────┐ ┌──────────┐ ┌──────────┐                      │
    │         │ Worker 0 │ │ Worker 1 │ │ Worker 2 │  ... up to max       │
    │         └──────────┘ └──────────┘ └──────────┘                      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Network exchanges are I/O bound: a worker spends nearly all of its time
blocked in connect()/recv(), during which the GIL is released. Threads
are therefore a good fit and a handful of them can keep many requests
in flight.

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

shutdown() puts one None per worker into the queue. A worker that
receives None leaves its loop. Tasks queued before the pills are still
executed when shutdown(wait=True) is used.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: run func(*args, **kwargs) on some worker."""
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """Daemon thread pulling tasks off the shared queue until poisoned."""

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Task]]",
        worker_id: int,
        idle_timeout: float = 1.0,
    ):
        super().__init__(name=f"httpfuture-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0
        self._shutdown = threading.Event()

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                # Timeout so a worker notices shutdown() even if it never
                # receives its poison pill.
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, task: Task):
        self.state = WorkerState.BUSY
        started = time.monotonic()
        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} finished task in "
                f"{time.monotonic() - started:.3f}s "
                f"(queued {started - task.submitted_at:.3f}s)"
            )
        except Exception as e:
            # One failing exchange must not take the worker down with it.
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        self._shutdown.set()


class ExchangePool:
    """
    Bounded pool of worker threads.

    Starts with min_workers threads and adds one more (up to max_workers)
    whenever a task is submitted while every worker is busy.
    """

    def __init__(
        self,
        min_workers: int = 2,
        max_workers: int = 8,
        queue_size: int = 100,
        idle_timeout: float = 1.0,
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # guards _workers
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    def start(self):
        with self._lock:
            if self._started:
                return
            logger.info(f"Starting exchange pool with {self.min_workers} workers")
            for _ in range(self.min_workers):
                self._add_worker()
            self._started = True
            self._shutdown = False

    def _add_worker(self) -> Worker:
        # caller holds self._lock
        worker = Worker(self._task_queue, self._next_worker_id, self.idle_timeout)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
    ) -> bool:
        """
        Queue func(*args, **kwargs) for execution.

        Returns:
            True if queued, False if the queue was full and block is False.

        Raises:
            RuntimeError: if the pool is not running.
        """
        if not self.is_running:
            raise RuntimeError("Exchange pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {})
        try:
            self._task_queue.put(task, block=block)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            all_busy = all(w.state is WorkerState.BUSY for w in self._workers)
            if all_busy and self._task_queue.qsize() > 0:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the workers.

        Args:
            wait: Let queued tasks run first.
            timeout: Upper bound on how long to wait for the queue to drain.
        """
        if not self._started or self._shutdown:
            return

        logger.info("Shutting down exchange pool...")
        self._shutdown = True

        if wait:
            deadline = time.monotonic() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline and time.monotonic() > deadline:
                    logger.warning("Exchange pool shutdown timeout, abandoning queued tasks")
                    break
                time.sleep(0.05)

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                break  # workers still see the shutdown flag

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        # Leftover pills (or abandoned tasks) must not reach workers of a
        # restarted pool.
        while True:
            try:
                self._task_queue.get_nowait()
                self._task_queue.task_done()
            except queue.Empty:
                break

        with self._lock:
            self._workers.clear()
            self._started = False

        logger.info("Exchange pool shutdown complete")

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state is WorkerState.BUSY)

    @property
    def stats(self) -> dict:
        """Worker and task counts, for monitoring."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": sum(1 for w in self._workers if w.state is WorkerState.IDLE),
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
