"""
=============================================================================
WORKER POOL
=============================================================================

A fixed set of worker threads fed from one queue.

=============================================================================
ONE ACCEPTOR, N WORKERS
=============================================================================

    ┌─────────────┐   submit(conn)   ┌───────────────┐   get()   ┌──────────┐
    │ accept loop │ ───────────────► │  task queue   │ ────────► │ Worker-0 │
    │ (1 thread)  │                  │ (bounded FIFO)│ ────────► │ Worker-1 │
    └─────────────┘                  └───────────────┘ ────────► │ Worker-2 │
                                                                 └──────────┘

Only the accept loop touches the listening socket. Each accepted
connection is queued; whichever worker is free picks it up and owns it
until it is closed.

- When every worker is busy and the queue is full, submit() blocks, so
  the accept loop stops accepting and the kernel backlog absorbs the
  rest.
- A task that raises is logged and counted. The worker carries on with
  the next task, so one bad request never takes a worker down.
- shutdown() sends one None ("poison pill") per worker.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"        # Waiting for task
    BUSY = "busy"        # Executing task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred call: func(*args, **kwargs).

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        kwargs: Keyword arguments for the function.
        submitted_at: Time the task was queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. get() a task (blocks)                                          │
    │   2. None? → exit                                                   │
    │   3. run it, log anything it raises                                 │
    │   4. task_done(), back to 1                                         │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client cannot keep the process alive on exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id

        self.state = WorkerState.IDLE

        # Metrics
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)

            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")
            self.tasks_completed += 1

        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1

        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    Usage:
        pool = ThreadPool(workers=3)
        pool.start()
        pool.submit(handler.handle, args=(conn,))
        pool.shutdown()
    """

    def __init__(self, workers: int = 3, queue_size: int = 100):
        """
        Args:
            workers: Number of worker threads, all started by start().
            queue_size: Tasks that may wait for a free worker before
                        submit() blocks.
        """
        if workers < 1:
            raise ValueError("ThreadPool needs at least one worker")

        self.num_workers = workers
        self.queue_size = queue_size

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start all workers. Calling it twice is a no-op."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.num_workers} workers")

            for worker_id in range(self.num_workers):
                worker = Worker(task_queue=self._task_queue, worker_id=worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: dict = None,
        block: bool = True,
        queue_timeout: Optional[float] = None
    ) -> bool:
        """
        Queue a task.

        Args:
            func: The function to execute.
            args: Positional arguments for the function.
            kwargs: Keyword arguments for the function.
            block: Wait for room when the queue is full.
            queue_timeout: How long to wait for room.

        Returns:
            True if queued, False if the queue stayed full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
            return True
        except queue.Full:
            return False

    def shutdown(self, timeout: Optional[float] = None):
        """
        Let queued tasks finish, then stop the workers.

        Args:
            timeout: Upper bound on waiting for the queue to drain.
                     None waits for every queued task.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if timeout:
            deadline = time.time() + timeout
            while self._task_queue.unfinished_tasks:
                if time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)
        else:
            self._task_queue.join()

        for _ in self._workers:
            try:
                self._task_queue.put(None, timeout=1.0)
            except queue.Full:
                pass  # Worker stuck on a task; it is a daemon

        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def stats(self) -> dict:
        """Worker and task counts."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
