"""Server lifecycle state and worker pool tracking."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable

from finder.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("finder.lifecycle"), {})


class ServerLifecycle:
    """Owns the shared worker pool and the draining flag."""

    def __init__(self, max_workers: int = 32) -> None:
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._draining_event = threading.Event()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="finder-worker"
        )
        self._pending: set[Future] = set()

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def is_draining(self) -> bool:
        return self._draining_event.is_set()

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Run ``fn`` on the worker pool and track it until it finishes."""
        future = self._executor.submit(fn, *args)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def active_worker_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def begin_draining(self) -> None:
        """Signal the server to begin graceful shutdown."""
        self._draining_event.set()
        self._stop_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "shutdown_started"}
        )

    def wait_for_workers(self, timeout: float) -> bool:
        """Wait for in-flight workers, then release the pool.

        Returns False when workers were still running at the deadline.
        """
        with self._lock:
            pending = set(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        if not_done:
            LIFECYCLE_LOGGER.warning(
                "Shutdown timeout exceeded",
                extra={"event": "shutdown_timeout", "remaining_workers": len(not_done)},
            )
        self._executor.shutdown(wait=False)
        return not not_done
