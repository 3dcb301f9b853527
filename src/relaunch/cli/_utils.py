"""Shared helpers for CLI commands."""
from __future__ import annotations

import argparse
from pathlib import Path

from relaunch.core.options import Options
from relaunch.core.utils.paths import resolve_project_root


def get_repo_root(args: argparse.Namespace) -> Path:
    """Project root from ``--repo-root`` or auto-detected."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def load_options(args: argparse.Namespace) -> Options:
    """Options from config, with ``--store-dir`` applied on top."""
    options = Options.from_config(get_repo_root(args))
    if getattr(args, "store_dir", None):
        options.store_dir = Path(args.store_dir).expanduser().resolve()
    return options


__all__ = ["get_repo_root", "load_options"]
