"""Atomic file replacement.

Every durable write in relaunch goes through :func:`atomic_write`: content is
written to a sibling temp file, flushed to disk, and renamed over the target.
A process killed at any instant leaves either the old file or the new one.
"""
from __future__ import annotations

import fcntl
import os
import tempfile
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Optional, TextIO, Union

PathLike = Union[str, Path]


def ensure_parent_dir(path: PathLike) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) when missing and return it.

    Raises:
        NotADirectoryError: If ``path`` exists as a regular file.
    """
    directory = Path(path)
    if directory.exists() and not directory.is_dir():
        raise NotADirectoryError(f"Expected a directory, found a file: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _discard(tmp: Optional[Path]) -> None:
    if tmp is None:
        return
    try:
        tmp.unlink(missing_ok=True)
    except OSError:
        # The rename already failed; the stray temp file is the lesser problem.
        pass


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    lock_cm: Optional[ContextManager[Any]] = None,
    encoding: str = "utf-8",
) -> None:
    """Replace ``path`` with whatever ``write_fn`` writes.

    ``write_fn`` receives an open text handle on a temp file in the target's
    directory (same filesystem, so the final ``os.replace`` is atomic). The
    optional ``lock_cm`` is held for the whole write-and-rename. Exceptions
    from ``write_fn`` propagate after the temp file is removed; the target is
    untouched in that case.
    """
    target = Path(path)
    ensure_parent_dir(target)
    tmp: Optional[Path] = None
    with lock_cm or nullcontext():
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=encoding,
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp = Path(handle.name)
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                write_fn(handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, target)
            tmp = None
        finally:
            _discard(tmp)


__all__ = ["PathLike", "ensure_parent_dir", "ensure_directory", "atomic_write"]
