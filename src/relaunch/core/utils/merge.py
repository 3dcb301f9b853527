"""Deep merge used to layer configuration sources."""
from __future__ import annotations

from typing import Any, Dict, Optional


def deep_merge(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return ``base`` overlaid with ``override``; neither input is mutated.

    Mappings present on both sides merge key by key. Everything else,
    including lists, is replaced wholesale by the overriding value.

        >>> deep_merge({"client": {"dist": "1", "release": "a"}}, {"client": {"dist": "2"}})
        {'client': {'dist': '2', 'release': 'a'}}
    """
    merged: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


__all__ = ["deep_merge"]
