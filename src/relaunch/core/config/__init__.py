"""relaunch configuration system.

Usage:
    from relaunch.core.config import ConfigManager
    from relaunch.core.config.domains import ClientConfig

    manager = ConfigManager(repo_root=Path("/path/to/project"))
    config = manager.load_config()

    client = ClientConfig(repo_root=Path("/path/to/project"))
    client.enable_out_of_memory_tracking
"""
from __future__ import annotations

from .manager import ConfigManager
from .cache import get_cached_config, clear_all_caches, is_cached
from .base import BaseDomainConfig
from .domains import ClientConfig, FileLockingConfig, LoggingConfig

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "ClientConfig",
    "FileLockingConfig",
    "LoggingConfig",
]
