"""Mutable diagnostic scope.

The scope is written from any thread. Each mutation serializes the scope and
hands the snapshot to every listener while the scope lock is still held, so
listeners observe snapshots in exactly the order the mutations happened.
"""
from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Mapping, Optional

from relaunch.core.utils.time import DEFAULT_CLOCK, Clock

from .models import Breadcrumb, Level, User
from .values import Value, normalize

logger = logging.getLogger(__name__)

ScopeListener = Callable[[Dict[str, Any]], None]

DEFAULT_MAX_BREADCRUMBS = 100


class Scope:
    def __init__(self, *, max_breadcrumbs: int = DEFAULT_MAX_BREADCRUMBS, clock: Optional[Clock] = None) -> None:
        if max_breadcrumbs < 0:
            raise ValueError("max_breadcrumbs must be >= 0")
        self._lock = threading.RLock()
        self._clock = clock or DEFAULT_CLOCK
        self._listeners: List[ScopeListener] = []
        self.max_breadcrumbs = max_breadcrumbs
        self._breadcrumbs: Deque[Breadcrumb] = deque(maxlen=max_breadcrumbs)
        self._tags: Dict[str, str] = {}
        self._extras: Dict[str, Value] = {}
        self._context: Dict[str, Dict[str, Value]] = {}
        self._user: Optional[User] = None
        self._fingerprint: List[str] = []
        self._environment: Optional[str] = None
        self._level: Optional[Level] = None

    # ----- read access -----
    @property
    def tags(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._tags)

    @property
    def extras(self) -> Dict[str, Value]:
        with self._lock:
            return copy.deepcopy(self._extras)

    @property
    def context(self) -> Dict[str, Dict[str, Value]]:
        with self._lock:
            return copy.deepcopy(self._context)

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def breadcrumbs(self) -> List[Breadcrumb]:
        with self._lock:
            return list(self._breadcrumbs)

    @property
    def fingerprint(self) -> List[str]:
        with self._lock:
            return list(self._fingerprint)

    @property
    def environment(self) -> Optional[str]:
        return self._environment

    @property
    def level(self) -> Optional[Level]:
        return self._level

    # ----- listeners -----
    def add_listener(self, listener: ScopeListener, *, replay: bool = False) -> None:
        """Register ``listener``; with ``replay`` it also receives the current snapshot."""
        with self._lock:
            self._listeners.append(listener)
            if replay:
                listener(self.serialize())

    def remove_listener(self, listener: ScopeListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.serialize()
        for listener in list(self._listeners):
            try:
                listener(copy.deepcopy(snapshot))
            except Exception:
                logger.exception("Scope listener %r failed", listener)

    # ----- mutations -----
    def set_tag(self, key: str, value: Any) -> None:
        with self._lock:
            self._tags[str(key)] = str(value)
            self._notify()

    def set_tags(self, tags: Mapping[str, Any]) -> None:
        with self._lock:
            self._tags.update({str(k): str(v) for k, v in tags.items()})
            self._notify()

    def remove_tag(self, key: str) -> None:
        with self._lock:
            self._tags.pop(key, None)
            self._notify()

    def set_extra(self, key: str, value: Any) -> None:
        normalized = normalize(value)
        with self._lock:
            self._extras[str(key)] = normalized
            self._notify()

    def set_extras(self, extras: Mapping[str, Any]) -> None:
        normalized = {str(k): normalize(v) for k, v in extras.items()}
        with self._lock:
            self._extras.update(normalized)
            self._notify()

    def remove_extra(self, key: str) -> None:
        with self._lock:
            self._extras.pop(key, None)
            self._notify()

    def set_context(self, key: str, value: Mapping[str, Any]) -> None:
        if not isinstance(value, Mapping):
            raise TypeError(f"Context '{key}' must be a mapping, got {type(value).__name__}")
        normalized = normalize(value)
        with self._lock:
            self._context[str(key)] = normalized  # type: ignore[assignment]
            self._notify()

    def remove_context(self, key: str) -> None:
        with self._lock:
            self._context.pop(key, None)
            self._notify()

    def set_user(self, user: Optional[User]) -> None:
        with self._lock:
            self._user = user
            self._notify()

    def set_fingerprint(self, fingerprint: Iterable[str]) -> None:
        with self._lock:
            self._fingerprint = [str(part) for part in fingerprint]
            self._notify()

    def set_environment(self, environment: Optional[str]) -> None:
        with self._lock:
            self._environment = environment
            self._notify()

    def set_level(self, level: Optional[Level | str]) -> None:
        with self._lock:
            self._level = Level(level) if level is not None else None
            self._notify()

    def add_breadcrumb(
        self,
        breadcrumb: Optional[Breadcrumb] = None,
        *,
        message: Optional[str] = None,
        category: Optional[str] = None,
        level: Level | str = Level.INFO,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if breadcrumb is None:
            breadcrumb = Breadcrumb(
                timestamp=self._clock.now(),
                message=message,
                category=category,
                level=Level(level),
                data=normalize(dict(data or {})),  # type: ignore[arg-type]
            )
        with self._lock:
            if self.max_breadcrumbs == 0:
                return
            self._breadcrumbs.append(breadcrumb)
            self._notify()

    def clear_breadcrumbs(self) -> None:
        with self._lock:
            self._breadcrumbs.clear()
            self._notify()

    def clear(self) -> None:
        """Reset every field; listeners stay registered."""
        with self._lock:
            self._breadcrumbs.clear()
            self._tags.clear()
            self._extras.clear()
            self._context.clear()
            self._user = None
            self._fingerprint = []
            self._environment = None
            self._level = None
            self._notify()

    # ----- serialization -----
    def serialize(self) -> Dict[str, Any]:
        """Flat snapshot; a key is present only when its field is set."""
        with self._lock:
            out: Dict[str, Any] = {}
            if self._tags:
                out["tags"] = dict(self._tags)
            if self._extras:
                out["extra"] = copy.deepcopy(self._extras)
            if self._context:
                out["context"] = copy.deepcopy(self._context)
            if self._user is not None:
                out["user"] = self._user.to_dict()
            if self._fingerprint:
                out["fingerprint"] = list(self._fingerprint)
            if self._environment is not None:
                out["environment"] = self._environment
            if self._level is not None:
                out["level"] = self._level.value
            if self._breadcrumbs:
                out["breadcrumbs"] = [crumb.to_dict() for crumb in self._breadcrumbs]
            return out


__all__ = ["Scope", "ScopeListener", "DEFAULT_MAX_BREADCRUMBS"]
