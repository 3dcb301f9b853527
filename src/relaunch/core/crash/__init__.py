"""Crash signal sources consumed by the reconciler and the scope synchronizer."""
from __future__ import annotations

from .adapter import CrashAdapter, InMemoryCrashAdapter
from .faulthandler_adapter import FaulthandlerCrashAdapter

__all__ = ["CrashAdapter", "InMemoryCrashAdapter", "FaulthandlerCrashAdapter"]
