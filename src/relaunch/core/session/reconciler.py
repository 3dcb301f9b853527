"""Decide, once per launch, how the previous run's session ended.

The decision itself is a pure function of a handful of facts gathered before
any crash report is processed (:func:`decide`). :class:`SessionReconciler`
gathers those facts, applies the decision to the record store, and never lets
an error escape to the host.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Optional

from relaunch.core.utils.time import DEFAULT_CLOCK, Clock

from .models import Session

if TYPE_CHECKING:
    from relaunch.core.app_state import AppStateTracker
    from relaunch.core.crash.adapter import CrashAdapter
    from relaunch.core.store.records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_CRASH_END_DELTA_SECONDS = 5.0


class ReconcileAction(str, Enum):
    NOOP_NO_CLIENT = "noop_no_client"
    NOOP_NO_SESSION = "noop_no_session"
    END_CRASHED = "end_crashed"
    END_ABNORMAL = "end_abnormal"
    LEAVE_RUNNING = "leave_running"

    @property
    def ends_session(self) -> bool:
        return self in (ReconcileAction.END_CRASHED, ReconcileAction.END_ABNORMAL)


@dataclass(frozen=True)
class ReconcileInputs:
    has_client: bool
    has_session: bool
    crashed_last_launch: bool
    oom_tracking_enabled: bool
    app_state_indicates_oom: bool


def decide(inputs: ReconcileInputs) -> ReconcileAction:
    """Map the previous run's facts to an action. Crash wins over OOM."""
    if not inputs.has_client:
        return ReconcileAction.NOOP_NO_CLIENT
    if not inputs.has_session:
        return ReconcileAction.NOOP_NO_SESSION
    if inputs.crashed_last_launch:
        return ReconcileAction.END_CRASHED
    if inputs.oom_tracking_enabled and inputs.app_state_indicates_oom:
        return ReconcileAction.END_ABNORMAL
    return ReconcileAction.LEAVE_RUNNING


@dataclass(frozen=True)
class ReconcileResult:
    action: ReconcileAction
    session: Optional[Session] = None


class SessionReconciler:
    """Apply :func:`decide` to the durable store.

    Args:
        store: Record store holding the session and app state slots
        adapter: Crash signal source for the previous run
        app_state: Tracker used for OOM detection; None disables it
        has_client: Whether a client is bound; without one nothing is read
        enable_out_of_memory_tracking: Whether an OOM may end the session
        crash_end_delta_seconds: How long after its last update a session
            is assumed to have died
        clock: Time source
    """

    def __init__(
        self,
        store: "RecordStore",
        adapter: "CrashAdapter",
        *,
        app_state: Optional["AppStateTracker"] = None,
        has_client: bool = True,
        enable_out_of_memory_tracking: bool = True,
        crash_end_delta_seconds: float = DEFAULT_CRASH_END_DELTA_SECONDS,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.app_state = app_state
        self.has_client = has_client
        self.enable_out_of_memory_tracking = enable_out_of_memory_tracking
        self.crash_end_delta = timedelta(seconds=crash_end_delta_seconds)
        self.clock = clock or DEFAULT_CLOCK

    def reconcile(self) -> ReconcileResult:
        try:
            return self._reconcile()
        except Exception as exc:
            logger.error("Session reconciliation failed: %s", exc)
            return ReconcileResult(ReconcileAction.LEAVE_RUNNING)

    def _reconcile(self) -> ReconcileResult:
        if not self.has_client:
            logger.debug("No client bound; skipping session reconciliation")
            return ReconcileResult(ReconcileAction.NOOP_NO_CLIENT)

        session = self.store.read_current_session()
        crashed, adapter_ok = self._crashed_last_launch()
        oom_enabled = self.enable_out_of_memory_tracking and adapter_ok and self.app_state is not None
        indicates_oom = False
        if session is not None and not crashed and oom_enabled:
            assert self.app_state is not None
            indicates_oom = self.app_state.is_oom(self.app_state.read_previous())

        action = decide(
            ReconcileInputs(
                has_client=True,
                has_session=session is not None,
                crashed_last_launch=crashed,
                oom_tracking_enabled=oom_enabled,
                app_state_indicates_oom=indicates_oom,
            )
        )
        if not action.ends_session:
            logger.debug("Reconciliation: %s", action.value)
            return ReconcileResult(action, session)

        assert session is not None
        if session.is_terminal:
            # Already finalized by an earlier pass; only the move is left to do.
            self.store.move_to_crashed(session)
            return ReconcileResult(action, session)
        ended_at = self._estimate_end(session)
        if action is ReconcileAction.END_CRASHED:
            session.end_crashed(ended_at)
        else:
            session.end_abnormal(ended_at)
        self.store.move_to_crashed(session)
        self.store.delete_app_state()
        logger.info("Previous session %s ended as %s", session.id, session.status.value)
        return ReconcileResult(action, session)

    def _crashed_last_launch(self) -> tuple[bool, bool]:
        """Return ``(crashed, adapter_ok)``; an adapter fault reads as no crash."""
        try:
            crashed = bool(self.adapter.crashed_last_launch())
        except Exception as exc:
            logger.warning("Crash handler unavailable, assuming no crash: %s", exc)
            return False, False
        if crashed:
            try:
                duration = self.adapter.active_duration_since_last_crash()
                logger.debug("Active for %.1fs since last crash", duration)
            except Exception as exc:
                logger.debug("Active duration unavailable: %s", exc)
        return crashed, True

    def _estimate_end(self, session: Session) -> datetime:
        now = self.clock.now()
        last_seen = (session.timestamp or session.started_at) + self.crash_end_delta
        return max(min(now, last_seen), session.started_at)


__all__ = [
    "ReconcileAction",
    "ReconcileInputs",
    "ReconcileResult",
    "SessionReconciler",
    "decide",
    "DEFAULT_CRASH_END_DELTA_SECONDS",
]
