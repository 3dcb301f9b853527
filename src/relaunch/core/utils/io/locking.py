"""Advisory locks for record files.

A writer locks ``<file>.lock`` rather than the record itself, because the
record is replaced by rename and a lock on the old inode would be lost. An
in-process mutex per lock path makes the lock exclusive between threads too,
since ``flock`` only arbitrates between open file descriptions.

Timeouts, polling and fail-open behaviour default to the ``file_locking``
configuration section.
"""
from __future__ import annotations

import fcntl
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Dict, Iterator, Optional

from .core import ensure_directory

_mutexes: Dict[str, threading.Lock] = {}
_mutexes_guard = threading.Lock()


class LockTimeoutError(TimeoutError):
    """The lock was still held by someone else when the timeout expired."""


def _sidecar(target: Path) -> Path:
    return target.with_name(target.name + ".lock")


def _mutex_for(lock_path: Path) -> threading.Lock:
    key = str(lock_path.resolve())
    with _mutexes_guard:
        return _mutexes.setdefault(key, threading.Lock())


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


def get_file_locking_config() -> Dict[str, Any]:
    """Resolved ``file_locking`` settings for the current project root."""
    # Imported lazily: configuration loading itself reads files through this package.
    from relaunch.core.config.domains import FileLockingConfig

    return FileLockingConfig().settings()


@contextmanager
def acquire_file_lock(
    file_path: Path | str,
    timeout: Optional[float] = None,
    nfs_safe: bool = True,
    *,
    fail_open: Optional[bool] = None,
    poll_interval: Optional[float] = None,
) -> Iterator[Optional[IO[str]]]:
    """Hold an exclusive lock for ``file_path`` for the duration of the block.

    Args:
        file_path: File being protected.
        timeout: Seconds to keep retrying before giving up.
        nfs_safe: Lock the ``<file>.lock`` sidecar (default) instead of the file.
        fail_open: On timeout, enter the block unlocked (yielding None)
            instead of raising ``LockTimeoutError``.
        poll_interval: Sleep between non-blocking ``flock`` attempts.

    Unset arguments come from :func:`get_file_locking_config`.
    """
    settings = get_file_locking_config()
    wait_for = _positive("timeout", settings["timeout_seconds"] if timeout is None else timeout)
    poll = _positive(
        "poll_interval",
        settings["poll_interval_seconds"] if poll_interval is None else poll_interval,
    )
    open_on_timeout = settings["fail_open"] if fail_open is None else fail_open

    target = Path(file_path)
    lock_path = _sidecar(target) if nfs_safe else target
    ensure_directory(lock_path.parent)
    deadline = time.monotonic() + wait_for

    mutex = _mutex_for(lock_path)
    if not mutex.acquire(timeout=wait_for):
        if open_on_timeout:
            yield None
            return
        raise LockTimeoutError(f"Timed out after {wait_for}s waiting for lock on {target}")

    try:
        with open(lock_path, "a+") as handle:
            held = False
            while not held:
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    held = True
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        if open_on_timeout:
                            break
                        raise LockTimeoutError(
                            f"Timed out after {wait_for}s waiting for lock on {target}"
                        )
                    time.sleep(poll)
            try:
                yield handle if held else None
            finally:
                if held:
                    if nfs_safe:
                        lock_path.unlink(missing_ok=True)
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        mutex.release()


def is_locked(target: Path | str) -> bool:
    """Whether a sidecar lock file currently exists for ``target``."""
    return _sidecar(Path(target)).exists()


__all__ = ["LockTimeoutError", "acquire_file_lock", "get_file_locking_config", "is_locked"]
