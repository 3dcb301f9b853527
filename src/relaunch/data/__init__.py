"""Bundled configuration defaults (``config/``) and record schemas (``schemas/``)."""
from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of a bundled data directory, or of a file inside it.

        >>> get_data_path("schemas", "session.schema.yaml").name
        'session.schema.yaml'
    """
    base = Path(str(resources.files(__name__) / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]
