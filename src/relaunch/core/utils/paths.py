"""Project root and config directory resolution.

Resolution priority for the project root:
1. ``RELAUNCH_PROJECT_ROOT`` environment variable
2. The current working directory
"""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT_ENV = "RELAUNCH_PROJECT_ROOT"
PROJECT_CONFIG_DIR_NAME = ".relaunch"


def resolve_project_root() -> Path:
    """Return the absolute project root.

    Raises:
        FileNotFoundError: If ``RELAUNCH_PROJECT_ROOT`` points at a missing path.
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        path = Path(env_root).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"{PROJECT_ROOT_ENV} points at missing path: {path}")
        return path
    return Path.cwd().resolve()


def get_project_config_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/.relaunch`` (not created)."""
    return Path(repo_root) / PROJECT_CONFIG_DIR_NAME


__all__ = ["PROJECT_ROOT_ENV", "resolve_project_root", "get_project_config_dir"]
