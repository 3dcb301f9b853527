"""YAML reads for layered configuration files and bundled schemas."""
from __future__ import annotations

import fcntl
from pathlib import Path
from typing import Any

import yaml


def read_yaml(path: Path | str, default: Any = None, raise_on_error: bool = False) -> Any:
    """Parse a YAML file under a shared lock.

    An empty document yields ``default``. A missing or unparsable file also
    yields ``default`` unless ``raise_on_error`` is set, in which case
    ``FileNotFoundError`` or ``yaml.YAMLError`` propagates.
    """
    source = Path(path)
    try:
        with open(source, "r", encoding="utf-8") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
            try:
                data = yaml.safe_load(handle)
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return default if data is None else data


def iter_yaml_files(directory: Path | str) -> list[Path]:
    """``*.yaml`` and ``*.yml`` files directly inside ``directory``, sorted by name."""
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(
        (p for p in root.iterdir() if p.is_file() and p.suffix in (".yaml", ".yml")),
        key=lambda p: p.name,
    )


__all__ = ["read_yaml", "iter_yaml_files"]
