"""Mirror the scope into the crash handler's metadata blob.

Every scope mutation produces a full user-info record that replaces the one
held by the crash adapter. Pushes run on a serial queue. Each push carries a
generation number; a push that is no longer the newest when it runs is
skipped, so writes coalesce toward the latest mutation but never reorder.
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

from .scope import Scope

if TYPE_CHECKING:
    from relaunch.core.crash.adapter import CrashAdapter
    from relaunch.core.device import DeviceFacts
    from relaunch.core.dispatch import DispatchQueue

logger = logging.getLogger(__name__)


class ScopeSynchronizer:
    def __init__(
        self,
        scope: Scope,
        adapter: "CrashAdapter",
        queue: "DispatchQueue",
        device_facts: "DeviceFacts",
        release: Optional[str] = None,
        dist: Optional[str] = None,
    ) -> None:
        self.scope = scope
        self.adapter = adapter
        self.queue = queue
        self.device_facts = device_facts
        self.release = release
        self.dist = dist
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self.scope.set_context("os", self.device_facts.os_context())
        self.scope.set_context("device", self.device_facts.device_context())
        self.scope.add_listener(self._on_scope_change, replay=True)
        self._started = True
        logger.debug("Scope synchronizer started")

    def stop(self) -> None:
        if not self._started:
            return
        self.scope.remove_listener(self._on_scope_change)
        self._started = False

    def flush(self, timeout: Optional[float] = None) -> bool:
        return self.queue.flush(timeout)

    def build_user_info(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        user_info = dict(snapshot)
        context = dict(user_info.get("context") or {})
        context["os"] = self.device_facts.os_context()
        context["device"] = self.device_facts.device_context()
        user_info["context"] = context
        if self.release is not None:
            user_info["release"] = self.release
        if self.dist is not None:
            user_info["dist"] = self.dist
        return user_info

    def _on_scope_change(self, snapshot: Dict[str, Any]) -> None:
        # Called with the scope lock held, so generations follow mutation order.
        user_info = self.build_user_info(snapshot)
        with self._generation_lock:
            self._generation += 1
            generation = self._generation
        self.queue.dispatch_async(lambda: self._push(generation, user_info))

    def _push(self, generation: int, user_info: Dict[str, Any]) -> None:
        with self._generation_lock:
            if generation != self._generation:
                return
        try:
            self.adapter.set_user_info(user_info)
        except Exception as exc:
            logger.warning("Could not update crash metadata: %s", exc)


__all__ = ["ScopeSynchronizer"]
