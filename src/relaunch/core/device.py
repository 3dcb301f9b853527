"""OS and device facts.

A pure data source: nothing here is persisted or mutated. The facts feed the
app-state record (OS version, boot time, debugger) and the ``os``/``device``
context that is attached to every crash metadata push.
"""
from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

import psutil

_OS_NAMES = {
    "Darwin": "macOS",
    "Linux": "Linux",
    "Windows": "Windows",
    "FreeBSD": "FreeBSD",
}


@dataclass(frozen=True)
class DeviceFacts:
    os_name: str
    os_version: str
    device_family: str
    boot_timestamp: datetime
    is_debugging: bool = False

    def os_context(self) -> Dict[str, Any]:
        return {"name": self.os_name, "version": self.os_version}

    def device_context(self) -> Dict[str, Any]:
        return {"family": self.device_family}


def _os_version(system: str) -> str:
    if system == "Darwin":
        return platform.mac_ver()[0] or platform.release()
    if system == "Windows":
        return platform.version()
    return platform.release()


def collect_device_facts() -> DeviceFacts:
    """Collect facts about the running OS, device and process."""
    system = platform.system()
    os_name = _OS_NAMES.get(system, system or "unknown")
    return DeviceFacts(
        os_name=os_name,
        os_version=_os_version(system),
        device_family=os_name,
        boot_timestamp=datetime.fromtimestamp(psutil.boot_time(), tz=timezone.utc),
        is_debugging=sys.gettrace() is not None,
    )


__all__ = ["DeviceFacts", "collect_device_facts"]
