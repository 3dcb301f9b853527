"""Domain-specific configuration for the crash/session client.

Backs ``Options.from_config``; every key has a bundled default in
``relaunch/data/config/defaults.yaml``.
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from relaunch.core.exceptions import ConfigError

from ..base import BaseDomainConfig


class ClientConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "client"

    def _optional_str(self, key: str) -> Optional[str]:
        value = self.section.get(key)
        if value is None:
            return None
        return str(value)

    @cached_property
    def release(self) -> Optional[str]:
        return self._optional_str("release")

    @cached_property
    def dist(self) -> Optional[str]:
        return self._optional_str("dist")

    @cached_property
    def environment(self) -> Optional[str]:
        return self._optional_str("environment")

    @cached_property
    def store_dir(self) -> Path:
        """Store directory; relative paths resolve against the project root."""
        raw = self.section.get("storeDir") or ".relaunch/store"
        path = Path(str(raw)).expanduser()
        return path if path.is_absolute() else self.repo_root / path

    @cached_property
    def enable_out_of_memory_tracking(self) -> bool:
        return bool(self.section.get("enableOutOfMemoryTracking", True))

    @cached_property
    def stitch_async_code(self) -> bool:
        return bool(self.section.get("stitchAsyncCode", False))

    @cached_property
    def async_origin_depth(self) -> int:
        return int(self.section.get("asyncOriginDepth", 32))

    @cached_property
    def max_breadcrumbs(self) -> int:
        value = int(self.section.get("maxBreadcrumbs", 100))
        if value < 0:
            raise ConfigError("client.maxBreadcrumbs must be >= 0", context={"value": value})
        return value

    @cached_property
    def crash_end_delta_seconds(self) -> float:
        value = float(self.section.get("crashEndDeltaSeconds", 5.0))
        if value < 0:
            raise ConfigError("client.crashEndDeltaSeconds must be >= 0", context={"value": value})
        return value

    def get_all_settings(self) -> Dict[str, Any]:
        return {
            "release": self.release,
            "dist": self.dist,
            "environment": self.environment,
            "store_dir": self.store_dir,
            "enable_out_of_memory_tracking": self.enable_out_of_memory_tracking,
            "stitch_async_code": self.stitch_async_code,
            "async_origin_depth": self.async_origin_depth,
            "max_breadcrumbs": self.max_breadcrumbs,
            "crash_end_delta_seconds": self.crash_end_delta_seconds,
        }


__all__ = ["ClientConfig"]
