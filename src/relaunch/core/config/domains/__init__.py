"""Domain-specific configuration accessors.

Each class extends BaseDomainConfig and exposes typed, cached access to one
section of the merged configuration:
- ClientConfig: crash/session client options
- FileLockingConfig: advisory lock timeouts
- LoggingConfig: log level and format
"""
from __future__ import annotations

from .client import ClientConfig
from .file_locking import FileLockingConfig
from .logging import LoggingConfig

__all__ = ["ClientConfig", "FileLockingConfig", "LoggingConfig"]
