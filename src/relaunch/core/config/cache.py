"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. The cache key fingerprints the project root, the RELAUNCH_* environment
and the project config files so a long-running process (or a test suite) that
changes either gets a fresh load.
"""
from __future__ import annotations

import hashlib
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

_config_cache: Dict[str, Dict[str, Any]] = {}
_cache_lock = threading.Lock()


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    if repo_root is None:
        from relaunch.core.utils.paths import resolve_project_root

        return resolve_project_root()
    return Path(repo_root).expanduser().resolve()


def _cache_key(repo_root: Path, validate: bool) -> str:
    from relaunch.core.utils.io import iter_yaml_files
    from relaunch.core.utils.paths import get_project_config_dir

    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith("RELAUNCH_")
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(get_project_config_dir(repo_root) / "config"):
        try:
            st = p.stat()
            files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
        except OSError:
            files.append((p.name, 0, 0))
    cfg_fp = hashlib.sha256(repr(files).encode("utf-8")).hexdigest()[:12]

    suffix = ":validated" if validate else ""
    return f"{repo_root}{suffix}:env={env_fp}:cfg={cfg_fp}"


def get_cached_config(repo_root: Optional[Path] = None, validate: bool = False) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance for the same fingerprint, avoiding
    repeated file I/O. Treat the returned dict as immutable.
    """
    from .manager import ConfigManager

    normalized_root = _normalize_repo_root(repo_root)
    key = _cache_key(normalized_root, validate)
    with _cache_lock:
        cached = _config_cache.get(key)
        if cached is None:
            manager = ConfigManager(repo_root=normalized_root)
            # IMPORTANT: call the uncached loader to avoid recursion
            cached = manager._load_config_uncached(validate=validate)
            _config_cache[key] = cached
        return cached


def clear_all_caches() -> None:
    """Clear the configuration cache; call after config files change."""
    with _cache_lock:
        _config_cache.clear()


def is_cached(repo_root: Optional[Path] = None) -> bool:
    """Check if config for repo_root is cached."""
    key = _cache_key(_normalize_repo_root(repo_root), False)
    with _cache_lock:
        return key in _config_cache


__all__ = ["get_cached_config", "clear_all_caches", "is_cached"]
