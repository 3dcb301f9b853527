"""App state heartbeat and out-of-memory detection.

The host writes an ``AppState`` while it runs: ``is_active`` is true while the
app is in the foreground and has not terminated cleanly. At the next launch a
still-active record, with nothing else explaining the disappearance (no crash,
no reboot, no upgrade, no debugger, no clean termination), means the OS killed
the process, most likely for memory pressure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from relaunch.core.utils.time import ensure_utc, format_timestamp, parse_iso8601

if TYPE_CHECKING:
    from relaunch.core.device import DeviceFacts
    from relaunch.core.store.records import RecordStore

logger = logging.getLogger(__name__)

# psutil derives boot time from the clock; allow for rounding across reads.
BOOT_TIME_TOLERANCE_SECONDS = 1.0


@dataclass(frozen=True)
class AppState:
    release_name: str
    os_version: str
    is_debugging: bool
    system_boot_timestamp: datetime
    is_active: bool = False
    was_terminated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "releaseName": self.release_name,
            "osVersion": self.os_version,
            "isDebugging": self.is_debugging,
            "systemBootTimestamp": format_timestamp(self.system_boot_timestamp),
            "isActive": self.is_active,
            "wasTerminated": self.was_terminated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppState":
        try:
            return cls(
                release_name=str(data["releaseName"]),
                os_version=str(data["osVersion"]),
                is_debugging=bool(data["isDebugging"]),
                system_boot_timestamp=parse_iso8601(data["systemBootTimestamp"]),
                is_active=bool(data.get("isActive", False)),
                was_terminated=bool(data.get("wasTerminated", False)),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed app state record: {exc}") from exc


def same_boot(previous: datetime, current: datetime) -> bool:
    delta = abs((ensure_utc(previous) - ensure_utc(current)).total_seconds())
    return delta <= BOOT_TIME_TOLERANCE_SECONDS


def is_oom(previous: Optional[AppState], current: AppState) -> bool:
    """Return True when ``previous`` indicates an OS kill rather than an exit.

    A crash signal is handled by the caller before this is consulted.
    """
    if previous is None:
        return False
    if not previous.is_active:
        return False
    if previous.was_terminated:
        return False
    if previous.is_debugging:
        # Stopping a debugger kills the process without any termination hook.
        return False
    if previous.release_name != current.release_name:
        return False
    if previous.os_version != current.os_version:
        return False
    if not same_boot(previous.system_boot_timestamp, current.system_boot_timestamp):
        return False
    return True


class AppStateTracker:
    """Reads and writes the ``appstate.current`` slot on behalf of the host."""

    def __init__(self, store: "RecordStore", device: "DeviceFacts", release_name: str) -> None:
        self.store = store
        self.device = device
        self.release_name = release_name

    def build_current(self, *, is_active: bool = False) -> AppState:
        return AppState(
            release_name=self.release_name,
            os_version=self.device.os_version,
            is_debugging=self.device.is_debugging,
            system_boot_timestamp=self.device.boot_timestamp,
            is_active=is_active,
        )

    def read_previous(self) -> Optional[AppState]:
        return self.store.read_app_state()

    def store_current(self, *, is_active: bool = True) -> AppState:
        state = self.build_current(is_active=is_active)
        self.store.store_app_state(state)
        return state

    def mark_terminated(self) -> None:
        """Record a clean termination so the next launch never reports an OOM."""
        previous = self.read_previous() or self.build_current()
        self.store.store_app_state(replace(previous, is_active=False, was_terminated=True))
        logger.debug("App state marked terminated")

    def clear(self) -> None:
        self.store.delete_app_state()

    def is_oom(self, previous: Optional[AppState]) -> bool:
        return is_oom(previous, self.build_current())


__all__ = ["AppState", "AppStateTracker", "is_oom", "same_boot", "BOOT_TIME_TOLERANCE_SECONDS"]
