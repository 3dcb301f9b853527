from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from relaunch.core.utils.time import ensure_utc, format_timestamp

from .values import Value, normalize


class Level(str, Enum):
    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


@dataclass(frozen=True)
class User:
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    ip_address: Optional[str] = None
    data: Dict[str, Value] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key in ("id", "email", "username", "ip_address"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.data:
            out["data"] = normalize(self.data)
        return out


@dataclass(frozen=True)
class Breadcrumb:
    """A single trail entry leading up to an event."""

    timestamp: datetime
    message: Optional[str] = None
    category: Optional[str] = None
    type: str = "default"
    level: Level = Level.INFO
    data: Dict[str, Value] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "timestamp": format_timestamp(ensure_utc(self.timestamp)),
            "type": self.type,
            "level": self.level.value,
        }
        if self.message is not None:
            out["message"] = self.message
        if self.category is not None:
            out["category"] = self.category
        if self.data:
            out["data"] = normalize(self.data)
        return out


__all__ = ["Level", "User", "Breadcrumb"]
