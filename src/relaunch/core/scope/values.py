"""JSON value normalization for scope fields.

Tags, extras and context all hold the same variant type: strings, numbers,
booleans, null, ordered lists and string-keyed maps of those. Anything the
host hands us is normalized into that shape once, when it enters the scope,
and every snapshot is encoded through :func:`encode`.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Union

from relaunch.core.utils.time import format_timestamp

Value = Union[str, int, float, bool, None, List["Value"], Dict[str, "Value"]]

_SCALARS = (str, int, float, bool, type(None))


def _normalize_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return str(key.value)
    if isinstance(key, (int, float, bool)):
        return str(key)
    raise TypeError(f"Unsupported mapping key type: {type(key).__name__}")


def normalize(obj: Any) -> Value:
    """Convert ``obj`` into a JSON value or raise ``TypeError``."""
    if isinstance(obj, Enum):
        return normalize(obj.value)
    if isinstance(obj, _SCALARS):
        return obj
    if isinstance(obj, datetime):
        return format_timestamp(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Mapping):
        return {_normalize_key(k): normalize(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        # Unordered input gets a stable order so snapshots stay deterministic.
        return sorted((normalize(v) for v in obj), key=encode)
    if isinstance(obj, (list, tuple)):
        return [normalize(v) for v in obj]
    raise TypeError(f"Unsupported scope value type: {type(obj).__name__}")


def encode(value: Value) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = ["Value", "normalize", "encode"]
