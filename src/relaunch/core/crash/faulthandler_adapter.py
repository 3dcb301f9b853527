"""Crash adapter backed by the standard library ``faulthandler``.

Layout of the crash directory::

    crash.log               faulthandler output of the running process
    crash.previous.log      non-empty crash.log found at install time
    user_info.json          metadata blob mirrored from the scope
    user_info.previous.json blob that was current when the previous run crashed

``faulthandler`` only writes on a fatal signal, so a non-empty ``crash.log``
at the next install means the previous run crashed.
"""
from __future__ import annotations

import faulthandler
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Dict, Optional

from relaunch.core.exceptions import CrashAdapterError
from relaunch.core.utils.io import ensure_directory, read_json, write_json_atomic
from relaunch.core.utils.time import DEFAULT_CLOCK, Clock, format_timestamp

logger = logging.getLogger(__name__)

CRASH_LOG = "crash.log"
PREVIOUS_CRASH_LOG = "crash.previous.log"
USER_INFO = "user_info.json"
PREVIOUS_USER_INFO = "user_info.previous.json"


class FaulthandlerCrashAdapter:
    def __init__(
        self,
        crash_dir: Path | str,
        *,
        async_origin_depth: int = 32,
        clock: Optional[Clock] = None,
    ) -> None:
        self.crash_dir = Path(crash_dir)
        self.async_origin_depth = async_origin_depth
        self.clock = clock or DEFAULT_CLOCK
        self._lock = threading.Lock()
        self._log: Optional[IO[str]] = None
        self._crashed: Optional[bool] = None
        self._previous_origin_depth: Optional[int] = None

    def _path(self, name: str) -> Path:
        return self.crash_dir / name

    @property
    def installed(self) -> bool:
        return self._log is not None

    def install(self) -> None:
        with self._lock:
            if self._log is not None:
                return
            ensure_directory(self.crash_dir)
            self._crashed = self._rotate_previous_crash()
            self._log = open(self._path(CRASH_LOG), "w", encoding="utf-8")
            faulthandler.enable(file=self._log, all_threads=True)
            logger.debug("faulthandler enabled into %s", self._path(CRASH_LOG))

    def _rotate_previous_crash(self) -> bool:
        log = self._path(CRASH_LOG)
        try:
            crashed = log.exists() and log.stat().st_size > 0
        except OSError as exc:
            logger.warning("Could not inspect %s: %s", log, exc)
            return False
        if not crashed:
            self._discard_previous_report()
            return False
        os.replace(log, self._path(PREVIOUS_CRASH_LOG))
        user_info = self._path(USER_INFO)
        if user_info.exists():
            os.replace(user_info, self._path(PREVIOUS_USER_INFO))
        else:
            self._path(PREVIOUS_USER_INFO).unlink(missing_ok=True)
        logger.info("Previous run crashed; report kept at %s", self._path(PREVIOUS_CRASH_LOG))
        return True

    def _discard_previous_report(self) -> None:
        # The report describes the launch before last once a run ends cleanly.
        for name in (PREVIOUS_CRASH_LOG, PREVIOUS_USER_INFO):
            path = self._path(name)
            if path.exists():
                path.unlink()
                logger.debug("Removed stale %s", path)

    def uninstall(self) -> None:
        """Disable faulthandler and drop the empty crash log of a clean exit."""
        with self._lock:
            if self._log is None:
                return
            faulthandler.disable()
            self._log.close()
            self._log = None
            log = self._path(CRASH_LOG)
            if log.exists() and log.stat().st_size == 0:
                log.unlink()

    def crashed_last_launch(self) -> bool:
        if self._crashed is None:
            raise CrashAdapterError(
                "crash handler not installed", context={"crashDir": str(self.crash_dir)}
            )
        return self._crashed

    def active_duration_since_last_crash(self) -> float:
        if not self.crashed_last_launch():
            return 0.0
        try:
            mtime = self._path(PREVIOUS_CRASH_LOG).stat().st_mtime
        except OSError as exc:
            raise CrashAdapterError(f"crash report missing: {exc}") from exc
        return max(0.0, self.clock.now().timestamp() - mtime)

    def set_user_info(self, user_info: Dict[str, Any]) -> None:
        write_json_atomic(self._path(USER_INFO), user_info, acquire_lock=False)

    def install_async_hooks(self) -> None:
        # Coroutine origin tracking records where each coroutine was created,
        # which lets a report stitch async frames back to their caller.
        with self._lock:
            if self._previous_origin_depth is None:
                self._previous_origin_depth = sys.get_coroutine_origin_tracking_depth()
            sys.set_coroutine_origin_tracking_depth(self.async_origin_depth)

    def uninstall_async_hooks(self) -> None:
        with self._lock:
            if self._previous_origin_depth is None:
                return
            sys.set_coroutine_origin_tracking_depth(self._previous_origin_depth)
            self._previous_origin_depth = None

    def load_crash_report(self) -> Optional[Dict[str, Any]]:
        """Return the previous run's crash report, or None when there is none."""
        log = self._path(PREVIOUS_CRASH_LOG)
        if not log.exists():
            return None
        try:
            user_info = read_json(self._path(PREVIOUS_USER_INFO), default=None)
        except ValueError as exc:
            logger.warning("Ignoring corrupt crash metadata: %s", exc)
            user_info = None
        crashed_at = datetime.fromtimestamp(log.stat().st_mtime, tz=timezone.utc)
        return {
            "crashedAt": format_timestamp(crashed_at),
            "traceback": log.read_text(encoding="utf-8", errors="replace"),
            "userInfo": user_info,
        }


__all__ = ["FaulthandlerCrashAdapter", "CRASH_LOG", "PREVIOUS_CRASH_LOG", "USER_INFO", "PREVIOUS_USER_INFO"]
