"""Durable record store.

Three named slots, one JSON file each, written atomically (temp file + fsync
+ rename under an advisory lock):

- ``session.current``  the in-flight session of the running (or last) process
- ``session.crashed``  a terminated session staged for upload
- ``appstate.current`` the host's last app-state heartbeat

Reads never raise: a missing slot is a legitimate first launch and a corrupt
slot is logged and treated as absent. Slot names are persisted on disk and
must never be renamed.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from relaunch.core.exceptions import RecordStoreError
from relaunch.core.schemas.validation import validate_payload_safe
from relaunch.core.utils.io import ensure_directory, read_json, write_json_atomic

if TYPE_CHECKING:
    from relaunch.core.app_state import AppState
    from relaunch.core.session.models import Session

logger = logging.getLogger(__name__)


class Slot(str, Enum):
    CURRENT_SESSION = "session.current"
    CRASHED_SESSION = "session.crashed"
    APP_STATE = "appstate.current"


_SLOT_SCHEMAS = {
    Slot.CURRENT_SESSION: "session.schema.yaml",
    Slot.CRASHED_SESSION: "session.schema.yaml",
    Slot.APP_STATE: "app_state.schema.yaml",
}


class RecordStore:
    """Key/value blob store over a directory, one file per slot."""

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, slot: Slot) -> Path:
        return self.base_dir / f"{Slot(slot).value}.json"

    # ---------- raw slot operations ----------

    def store(self, record: Dict[str, Any], slot: Slot) -> None:
        """Replace the slot's content atomically.

        Raises:
            RecordStoreError: If the record cannot be written. The previous
                content of the slot is left intact.
        """
        slot = Slot(slot)
        path = self.path_for(slot)
        try:
            ensure_directory(self.base_dir)
            write_json_atomic(path, record)
        except (OSError, TypeError, ValueError) as exc:
            raise RecordStoreError(
                f"Failed to store {slot.value}: {exc}", slot=slot.value, context={"path": str(path)}
            ) from exc
        logger.debug("Stored %s", slot.value)

    def read(self, slot: Slot) -> Optional[Dict[str, Any]]:
        """Return the slot's record, or None when absent or corrupt."""
        slot = Slot(slot)
        path = self.path_for(slot)
        try:
            data = read_json(path, default=None)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable record %s at %s: %s", slot.value, path, exc)
            return None
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring corrupt record %s: expected an object", slot.value)
            return None
        errors = validate_payload_safe(data, _SLOT_SCHEMAS[slot])
        if errors:
            logger.warning("Ignoring corrupt record %s: %s", slot.value, "; ".join(errors))
            return None
        return data

    def delete(self, slot: Slot) -> None:
        """Remove the slot; deleting a missing slot is a no-op."""
        slot = Slot(slot)
        path = self.path_for(slot)
        try:
            path.unlink()
            logger.debug("Deleted %s", slot.value)
        except FileNotFoundError:
            pass

    def snapshot(self) -> Dict[str, Optional[bytes]]:
        """Return the raw bytes of every slot (None when absent)."""
        result: Dict[str, Optional[bytes]] = {}
        for slot in Slot:
            path = self.path_for(slot)
            result[slot.value] = path.read_bytes() if path.exists() else None
        return result

    # ---------- typed helpers ----------

    def _read_session(self, slot: Slot) -> Optional["Session"]:
        from relaunch.core.session.models import Session

        data = self.read(slot)
        if data is None:
            return None
        try:
            return Session.from_dict(data)
        except ValueError as exc:
            logger.warning("Ignoring corrupt record %s: %s", Slot(slot).value, exc)
            return None

    def store_current_session(self, session: "Session") -> None:
        self.store(session.to_dict(), Slot.CURRENT_SESSION)

    def read_current_session(self) -> Optional["Session"]:
        return self._read_session(Slot.CURRENT_SESSION)

    def delete_current_session(self) -> None:
        self.delete(Slot.CURRENT_SESSION)

    def store_crashed_session(self, session: "Session") -> None:
        self.store(session.to_dict(), Slot.CRASHED_SESSION)

    def read_crashed_session(self) -> Optional["Session"]:
        return self._read_session(Slot.CRASHED_SESSION)

    def delete_crashed_session(self) -> None:
        self.delete(Slot.CRASHED_SESSION)

    def move_to_crashed(self, session: "Session") -> None:
        """Stage a terminated session and clear the current slot.

        The crashed slot is written before the current slot is removed, so a
        process killed in between leaves the session in both slots, never in
        neither.
        """
        self.store_crashed_session(session)
        self.delete_current_session()

    def store_app_state(self, app_state: "AppState") -> None:
        self.store(app_state.to_dict(), Slot.APP_STATE)

    def read_app_state(self) -> Optional["AppState"]:
        from relaunch.core.app_state import AppState

        data = self.read(Slot.APP_STATE)
        if data is None:
            return None
        try:
            return AppState.from_dict(data)
        except ValueError as exc:
            logger.warning("Ignoring corrupt record %s: %s", Slot.APP_STATE.value, exc)
            return None

    def delete_app_state(self) -> None:
        self.delete(Slot.APP_STATE)

    def clear(self) -> None:
        for slot in Slot:
            self.delete(slot)


__all__ = ["RecordStore", "Slot"]
