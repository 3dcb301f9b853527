"""Serial execution queues for background work.

Work dispatched to one queue runs in submission order, one item at a time.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

Task = Callable[[], None]


class DispatchQueue(Protocol):
    def dispatch_async(self, task: Task) -> None: ...

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until everything dispatched so far has run."""
        ...

    def shutdown(self, wait: bool = True) -> None: ...


def _run(task: Task) -> None:
    try:
        task()
    except Exception:
        # Nobody waits on the future; surface the failure in the log.
        logger.exception("Dispatched task failed")


class SerialDispatchQueue:
    def __init__(self, name: str = "relaunch-dispatch") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._last: Optional[Future] = None

    def dispatch_async(self, task: Task) -> None:
        with self._lock:
            self._last = self._executor.submit(_run, task)

    def flush(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            last = self._last
        if last is None:
            return True
        done, _ = wait([last], timeout=timeout)
        return bool(done)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class ImmediateDispatchQueue:
    """Runs each task inline on the dispatching thread."""

    def dispatch_async(self, task: Task) -> None:
        task()

    def flush(self, timeout: Optional[float] = None) -> bool:
        return True

    def shutdown(self, wait: bool = True) -> None:
        return None


__all__ = ["DispatchQueue", "SerialDispatchQueue", "ImmediateDispatchQueue", "Task"]
