"""
Background Worker Utility
=========================

This module provides a single-thread task queue worker. Every submitted task
runs on the same persistent thread, strictly one after another in submission
order, which makes it the serialization point for operations that must never
overlap (the texture store routes every registration through one).

Key Features:
-------------
- Single Persistent Thread: One worker thread owns all submitted work
- FIFO Queue: Tasks run in the order they were submitted
- Futures: Each submission returns a concurrent.futures.Future carrying the
  task's result or exception back to the caller
- Graceful Shutdown: Already queued tasks are drained before the thread exits

Usage:
------
    >>> from texstore.utils.background_worker import BackgroundWorker
    >>>
    >>> worker = BackgroundWorker(name="RegisterWorker")
    >>> future = worker.submit(some_function, arg1, kwarg1=value)
    >>> result = future.result()
    >>>
    >>> # Cleanup when done:
    >>> worker.shutdown()
"""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable


class BackgroundWorker:
    """
    Single-thread task executor with FIFO queue management.

    Attributes:
        name: Identifier for logging purposes
        _queue: Thread-safe task queue
        _thread: The persistent worker thread
        _accepting: Cleared once shutdown starts; later submissions are rejected
    """

    def __init__(self, name: str = "BackgroundWorker"):
        """
        Initialize the background worker and start its thread.

        Args:
            name: Identifier for logging (e.g., "RegisterWorker")
        """
        self.name = name
        self.logger = logging.getLogger(__name__)

        self._queue: queue.Queue = queue.Queue()
        self._accepting = True

        # Guards _accepting so no task can be queued behind the shutdown sentinel
        self._lock = threading.Lock()

        self._thread = threading.Thread(
            target=self._process_queue,
            name=f"{name}-Thread",
            daemon=True
        )
        self._thread.start()
        self.logger.debug(f"BackgroundWorker '{name}' started")

    def submit(self, task: Callable[..., Any], *args, **kwargs) -> Future:
        """
        Submit a task to the work queue.

        The task will be executed in FIFO order after any pending tasks complete.

        Returns:
            Future resolved with the task's return value or exception

        Raises:
            RuntimeError: if the worker has been shut down
        """
        future: Future = Future()
        with self._lock:
            if not self._accepting:
                raise RuntimeError(f"Worker '{self.name}' is shut down, cannot schedule new tasks")
            self._queue.put((task, args, kwargs, future))
        return future

    def shutdown(self, timeout: float = 10.0) -> None:
        """
        Gracefully shut down the worker.

        Stops accepting tasks, lets everything already queued run, then waits
        for the thread to exit.

        Args:
            timeout: Maximum seconds to wait for the thread to join
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            self._queue.put(None)

        self.logger.debug(f"Worker '{self.name}' shutting down...")

        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                self.logger.warning(f"Worker '{self.name}' thread did not terminate within {timeout}s")

        self.logger.debug(f"Worker '{self.name}' shutdown complete")

    def _process_queue(self) -> None:
        """
        Main loop for the worker thread. Runs tasks until the sentinel arrives.
        """
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    break

                task, args, kwargs, future = item
                if not future.set_running_or_notify_cancel():
                    continue

                try:
                    future.set_result(task(*args, **kwargs))
                except Exception as e:
                    # Surfaced to the caller through the future
                    self.logger.debug(f"Worker '{self.name}' task failed: {type(e).__name__}: {e}")
                    future.set_exception(e)
                except BaseException as e:
                    # The thread is going down; nothing queued will ever run
                    self.logger.error(f"Worker '{self.name}' stopped by {type(e).__name__}")
                    future.set_exception(e)
                    self._abandon_pending()
                    raise
            finally:
                self._queue.task_done()

    def _abandon_pending(self) -> None:
        """Reject further submissions and fail every future still in the queue."""
        with self._lock:
            self._accepting = False
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is not None:
                item[3].set_exception(RuntimeError(f"Worker '{self.name}' stopped before running this task"))
            self._queue.task_done()

    def is_alive(self) -> bool:
        """Check if the worker thread is still running."""
        return self._thread.is_alive()

    @property
    def pending_count(self) -> int:
        """Get the approximate number of pending tasks."""
        return self._queue.qsize()
