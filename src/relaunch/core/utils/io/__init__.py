"""File helpers used by the record store and configuration loader.

Writes are atomic (temp file, fsync, rename) and may hold a sidecar
``fcntl`` lock. YAML is read only, for configuration and schemas.
"""
from __future__ import annotations

from .core import (
    PathLike,
    atomic_write,
    ensure_directory,
    ensure_parent_dir,
)
from .json import (
    read_json,
    write_json_atomic,
)
from .locking import (
    LockTimeoutError,
    acquire_file_lock,
    get_file_locking_config,
    is_locked,
)
from .yaml import (
    iter_yaml_files,
    read_yaml,
)

__all__ = [
    # core
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    # json
    "read_json",
    "write_json_atomic",
    # yaml
    "read_yaml",
    "iter_yaml_files",
    # locking
    "LockTimeoutError",
    "acquire_file_lock",
    "get_file_locking_config",
    "is_locked",
]
