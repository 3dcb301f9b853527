"""Domain-specific configuration for advisory file locking."""
from __future__ import annotations

from typing import Any, Dict

from relaunch.core.exceptions import ConfigError

from ..base import BaseDomainConfig


class FileLockingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "file_locking"

    def settings(self) -> Dict[str, Any]:
        """Return validated ``timeout_seconds``, ``poll_interval_seconds`` and ``fail_open``."""
        if not self.section:
            raise ConfigError("file_locking section missing from configuration")
        try:
            timeout_seconds = float(self.section["timeout_seconds"])
            poll_interval_seconds = float(self.section["poll_interval_seconds"])
        except KeyError as exc:
            raise ConfigError(
                "file_locking configuration must define timeout_seconds and poll_interval_seconds"
            ) from exc
        return {
            "timeout_seconds": timeout_seconds,
            "poll_interval_seconds": poll_interval_seconds,
            "fail_open": bool(self.section.get("fail_open", False)),
        }


__all__ = ["FileLockingConfig"]
