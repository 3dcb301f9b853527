import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'relaunch' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from relaunch.core.crash.adapter import InMemoryCrashAdapter
from relaunch.core.device import DeviceFacts
from relaunch.core.store.records import RecordStore
from relaunch.core.utils.time import FixedClock
from helpers.cache_utils import reset_relaunch_caches

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
BOOT = datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_relaunch_caches(monkeypatch):
    """Fresh caches and no developer RELAUNCH_* overrides for every test."""
    for key in list(os.environ):
        if key.startswith("RELAUNCH_"):
            monkeypatch.delenv(key, raising=False)
    reset_relaunch_caches()
    yield
    reset_relaunch_caches()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """
    Isolated project root for tests.

    Config resolves ``.relaunch/config`` inside ``tmp_path`` and the cwd is
    moved there so nothing is written into the repository.
    """
    monkeypatch.setenv("RELAUNCH_PROJECT_ROOT", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def store(isolated_project_env):
    return RecordStore(isolated_project_env / ".relaunch" / "store")


@pytest.fixture
def adapter():
    return InMemoryCrashAdapter()


@pytest.fixture
def device_facts():
    return DeviceFacts(
        os_name="Linux",
        os_version="6.1.0",
        device_family="Linux",
        boot_timestamp=BOOT,
        is_debugging=False,
    )
