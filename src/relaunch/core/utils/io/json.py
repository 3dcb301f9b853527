"""JSON records on disk.

Readers take a shared ``flock`` on the file itself; writers go through
:func:`relaunch.core.utils.io.core.atomic_write` under the sidecar lock from
:mod:`relaunch.core.utils.io.locking`.
"""
from __future__ import annotations

import fcntl
import json
from contextlib import nullcontext
from pathlib import Path
from typing import Any, ContextManager, Dict

from . import locking
from .core import atomic_write

DEFAULT_JSON_CONFIG: Dict[str, Any] = {
    "indent": 2,
    "sort_keys": True,
    "ensure_ascii": False,
    "encoding": "utf-8",
}

_MISSING = object()


def read_json(file_path: Path | str, *, default: Any = _MISSING) -> Any:
    """Load a JSON document.

    Args:
        file_path: Document to read
        default: Returned when the file does not exist; without it a missing
            file raises ``FileNotFoundError``

    Raises:
        FileNotFoundError: Missing file and no ``default``
        json.JSONDecodeError: The content is not valid JSON (a ``ValueError``)
    """
    path = Path(file_path)
    try:
        handle = open(path, "r", encoding=DEFAULT_JSON_CONFIG["encoding"])
    except FileNotFoundError:
        if default is _MISSING:
            raise
        return default
    with handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
        try:
            return json.load(handle)
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def write_json_atomic(
    file_path: Path | str,
    data: Any,
    *,
    acquire_lock: bool = True,
    indent: int | None = None,
    sort_keys: bool | None = None,
    ensure_ascii: bool | None = None,
) -> None:
    """Serialize ``data`` and atomically replace ``file_path`` with it.

    ``acquire_lock`` guards the write with the ``<file>.lock`` sidecar so
    concurrent writers in other processes serialize. Formatting falls back to
    :data:`DEFAULT_JSON_CONFIG` for any option left as ``None``.
    """
    path = Path(file_path)
    opts = dict(DEFAULT_JSON_CONFIG)
    for key, value in (("indent", indent), ("sort_keys", sort_keys), ("ensure_ascii", ensure_ascii)):
        if value is not None:
            opts[key] = value

    def _dump(handle) -> None:
        json.dump(
            data,
            handle,
            indent=opts["indent"],
            sort_keys=opts["sort_keys"],
            ensure_ascii=opts["ensure_ascii"],
        )

    lock: ContextManager[Any] = locking.acquire_file_lock(path) if acquire_lock else nullcontext()
    atomic_write(path, _dump, lock_cm=lock, encoding=opts["encoding"])


__all__ = ["DEFAULT_JSON_CONFIG", "read_json", "write_json_atomic"]
