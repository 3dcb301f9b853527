"""Session records and launch-time reconciliation."""
from __future__ import annotations

from .models import Session, SessionStatus
from .reconciler import (
    ReconcileAction,
    ReconcileInputs,
    ReconcileResult,
    SessionReconciler,
    decide,
)

__all__ = [
    "Session",
    "SessionStatus",
    "ReconcileAction",
    "ReconcileInputs",
    "ReconcileResult",
    "SessionReconciler",
    "decide",
]
