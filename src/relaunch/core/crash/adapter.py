"""Crash signal source contract.

The crash handler is a black box that knows two facts about the previous
run and accepts a flat metadata blob ("user info") to embed in any crash
report it writes. The reconciler and synchronizer only see this protocol.
"""
from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from relaunch.core.exceptions import CrashAdapterError


@runtime_checkable
class CrashAdapter(Protocol):
    def install(self) -> None:
        """Start the crash handler; safe to call more than once."""
        ...

    def uninstall(self) -> None:
        """Stop the crash handler; safe when never installed."""
        ...

    def crashed_last_launch(self) -> bool:
        """Whether the previous run ended in a captured crash.

        Raises:
            CrashAdapterError: If the handler cannot tell.
        """
        ...

    def active_duration_since_last_crash(self) -> float:
        """Seconds between the last crash and now (diagnostics only)."""
        ...

    def set_user_info(self, user_info: Dict[str, Any]) -> None:
        """Replace the whole metadata blob; last write wins, never merged."""
        ...

    def install_async_hooks(self) -> None: ...

    def uninstall_async_hooks(self) -> None: ...


class InMemoryCrashAdapter:
    """Crash adapter held entirely in memory.

    Used by tests and by hosts that feed previous-launch facts from their own
    crash handler. Every ``set_user_info`` call is recorded in order.
    """

    def __init__(
        self,
        *,
        crashed_last_launch: bool = False,
        active_duration_since_last_crash: float = 0.0,
        available: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self.crashed = crashed_last_launch
        self.active_duration = active_duration_since_last_crash
        self.available = available
        self.installed = False
        self.user_info: Optional[Dict[str, Any]] = None
        self.user_info_history: List[Dict[str, Any]] = []
        self.async_hooks_installed = False
        self.install_async_hooks_called = False
        self.uninstall_async_hooks_called = False

    def install(self) -> None:
        self.installed = True

    def uninstall(self) -> None:
        self.installed = False

    def _require_available(self) -> None:
        if not self.available:
            raise CrashAdapterError("crash handler unavailable")

    def crashed_last_launch(self) -> bool:
        self._require_available()
        return self.crashed

    def active_duration_since_last_crash(self) -> float:
        self._require_available()
        return self.active_duration

    def set_user_info(self, user_info: Dict[str, Any]) -> None:
        snapshot = copy.deepcopy(user_info)
        with self._lock:
            self.user_info = snapshot
            self.user_info_history.append(snapshot)

    def install_async_hooks(self) -> None:
        self.install_async_hooks_called = True
        self.async_hooks_installed = True

    def uninstall_async_hooks(self) -> None:
        self.uninstall_async_hooks_called = True
        self.async_hooks_installed = False


__all__ = ["CrashAdapter", "InMemoryCrashAdapter"]
