"""Durable record store for sessions and app state."""
from __future__ import annotations

from .records import RecordStore, Slot

__all__ = ["RecordStore", "Slot"]
