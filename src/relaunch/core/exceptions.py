"""Exception hierarchy shared by the store, reconciler and CLI."""
from __future__ import annotations

from typing import Any, Dict, Mapping


class RelaunchError(Exception):
    """Root of every error raised by relaunch; carries a context mapping."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = dict(context) if context else {}

    def to_json_error(self) -> Dict[str, Any]:
        """Error payload as emitted by ``--json`` CLI output."""
        return {
            "message": str(self),
            "code": type(self).__name__,
            "context": self.context,
        }


class SessionStateError(RelaunchError, ValueError):
    """Raised when a session transition is not allowed (e.g. it is terminal)."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        RelaunchError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class RecordStoreError(RelaunchError, OSError):
    """Raised when a record cannot be written to the durable store."""

    def __init__(
        self,
        message: str = "",
        *,
        slot: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if slot:
            ctx["slot"] = slot
        RelaunchError.__init__(self, message, context=ctx)
        OSError.__init__(self, message)


class CrashAdapterError(RelaunchError, RuntimeError):
    """Raised when the crash handler cannot report previous-launch facts."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        RelaunchError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ConfigError(RelaunchError):
    """Raised when configuration is missing or malformed."""


__all__ = [
    "RelaunchError",
    "SessionStateError",
    "RecordStoreError",
    "CrashAdapterError",
    "ConfigError",
]
