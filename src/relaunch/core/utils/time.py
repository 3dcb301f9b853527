"""Timezone-aware time helpers and the injectable clock.

Timestamps are persisted as ISO 8601 UTC strings with millisecond precision
and a ``Z`` suffix. Every component that needs "now" takes a ``Clock`` so
tests can pin and advance time.
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given instant until moved explicitly."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._lock = threading.Lock()
        self._now = ensure_utc(start) if start is not None else utc_now()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, value: datetime) -> None:
        with self._lock:
            self._now = ensure_utc(value)

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds)
            return self._now


DEFAULT_CLOCK: Clock = SystemClock()


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime truncated to milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO 8601 UTC with millisecond precision and ``Z`` suffix."""
    ts = ensure_utc(value).isoformat(timespec="milliseconds")
    return ts.replace("+00:00", "Z")


def utc_timestamp(clock: Optional[Clock] = None) -> str:
    """Return the current time of ``clock`` formatted with ``format_timestamp``."""
    return format_timestamp((clock or DEFAULT_CLOCK).now())


def parse_iso8601(timestamp_str: str) -> datetime:
    """Parse an ISO 8601 timestamp string into an aware UTC datetime.

    Raises:
        ValueError: If the string is empty or not ISO 8601.
    """
    if not timestamp_str or not isinstance(timestamp_str, str):
        raise ValueError(f"Invalid ISO 8601 timestamp: {timestamp_str!r}")
    ts = timestamp_str.strip().replace("Z", "+00:00")
    return ensure_utc(datetime.fromisoformat(ts))


__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "DEFAULT_CLOCK",
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "utc_timestamp",
    "parse_iso8601",
]
