"""Logging setup for relaunch entry points.

Library modules only create module loggers (``logging.getLogger(__name__)``);
handlers are attached here, to the ``relaunch`` logger, by the CLI or by a
host application that wants relaunch's diagnostics on stderr.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "relaunch"
_HANDLER_NAME = "relaunch-stderr"


def configure_logging(
    level: Optional[int | str] = None,
    *,
    repo_root: Optional[Path] = None,
) -> logging.Logger:
    """Attach a single stderr handler to the ``relaunch`` logger.

    ``level`` overrides the configured ``logging.level``. Calling this more
    than once replaces the handler rather than stacking duplicates.
    """
    from relaunch.core.config.domains import LoggingConfig

    cfg = LoggingConfig(repo_root=repo_root)
    effective_level = cfg.level if level is None else level
    if isinstance(effective_level, str):
        effective_level = logging.getLevelName(effective_level.upper())

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(cfg.format))
    logger.addHandler(handler)
    logger.setLevel(effective_level)
    return logger


__all__ = ["configure_logging", "PACKAGE_LOGGER"]
