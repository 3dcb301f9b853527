"""Domain-specific configuration for relaunch logging."""
from __future__ import annotations

import logging
from functools import cached_property

from ..base import BaseDomainConfig

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> int:
        raw = self.section.get("level", "WARNING")
        if isinstance(raw, int):
            return raw
        level = logging.getLevelName(str(raw).upper())
        return level if isinstance(level, int) else logging.WARNING

    @cached_property
    def format(self) -> str:
        return str(self.section.get("format") or DEFAULT_FORMAT)


__all__ = ["LoggingConfig", "DEFAULT_FORMAT"]
