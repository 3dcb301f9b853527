from __future__ import annotations

import threading

import pytest

from relaunch.core.crash.adapter import InMemoryCrashAdapter
from relaunch.core.dispatch import ImmediateDispatchQueue, SerialDispatchQueue
from relaunch.core.exceptions import CrashAdapterError
from relaunch.core.scope import Scope, ScopeSynchronizer, User


@pytest.fixture
def scope(clock):
    return Scope(clock=clock)


def _sync(scope, adapter, device_facts, queue=None, **kwargs) -> ScopeSynchronizer:
    return ScopeSynchronizer(scope, adapter, queue or ImmediateDispatchQueue(), device_facts, **kwargs)


def test_start_installs_os_and_device_context(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts).start()

    assert scope.context["os"] == {"name": "Linux", "version": "6.1.0"}
    assert scope.context["device"] == {"family": "Linux"}
    assert adapter.user_info["context"]["os"] == {"name": "Linux", "version": "6.1.0"}
    assert adapter.user_info["context"]["device"] == {"family": "Linux"}


def test_release_and_dist_are_merged(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts, release="app@1.0.0", dist="42").start()

    scope.set_tag("t", "v")

    assert adapter.user_info["release"] == "app@1.0.0"
    assert adapter.user_info["dist"] == "42"


def test_release_and_dist_absent_when_unset(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts).start()

    assert "release" not in adapter.user_info
    assert "dist" not in adapter.user_info


def test_tags_accumulate_in_final_push(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts).start()

    scope.set_tags({"t1": "a"})
    scope.set_tags({"t1": "a", "t2": "b"})

    assert adapter.user_info["tags"] == {"t1": "a", "t2": "b"}


def test_push_fully_replaces_previous_blob(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts).start()
    scope.set_user(User(id="1"))
    scope.set_extra("k", "v")

    scope.set_user(None)
    scope.remove_extra("k")

    assert "user" not in adapter.user_info
    assert "extra" not in adapter.user_info


def test_os_context_cannot_be_overwritten_by_scope(scope, adapter, device_facts) -> None:
    _sync(scope, adapter, device_facts).start()

    scope.remove_context("os")

    assert adapter.user_info["context"]["os"] == {"name": "Linux", "version": "6.1.0"}


def test_stop_unregisters_listener(scope, adapter, device_facts) -> None:
    sync = _sync(scope, adapter, device_facts)
    sync.start()
    pushes = len(adapter.user_info_history)

    sync.stop()
    scope.set_tag("after", "stop")

    assert len(adapter.user_info_history) == pushes
    assert not sync.started


def test_start_is_idempotent(scope, adapter, device_facts) -> None:
    sync = _sync(scope, adapter, device_facts)
    sync.start()
    sync.start()
    pushes = len(adapter.user_info_history)

    scope.set_tag("t", "v")

    assert len(adapter.user_info_history) == pushes + 1


def test_adapter_failure_is_logged_not_raised(scope, device_facts, caplog) -> None:
    class FailingAdapter(InMemoryCrashAdapter):
        def set_user_info(self, user_info):
            raise CrashAdapterError("metadata store gone")

    _sync(scope, FailingAdapter(), device_facts).start()

    with caplog.at_level("WARNING", logger="relaunch.core.scope.synchronizer"):
        scope.set_tag("t", "v")

    assert "metadata store gone" in caplog.text


def test_serial_queue_final_push_matches_last_mutation(clock, device_facts) -> None:
    scope = Scope(clock=clock)
    adapter = InMemoryCrashAdapter()
    queue = SerialDispatchQueue()
    sync = _sync(scope, adapter, device_facts, queue=queue)
    sync.start()

    for i in range(200):
        scope.set_extra("counter", i)
    assert sync.flush(timeout=5)
    queue.shutdown()

    assert adapter.user_info["extra"] == {"counter": 199}
    counters = [info["extra"]["counter"] for info in adapter.user_info_history if "extra" in info]
    assert counters == sorted(counters)


def test_concurrent_writers_never_reorder_pushes(clock, device_facts) -> None:
    scope = Scope(clock=clock)
    adapter = InMemoryCrashAdapter()
    queue = SerialDispatchQueue()
    sync = _sync(scope, adapter, device_facts, queue=queue)
    sync.start()

    def writer(prefix: str) -> None:
        for i in range(25):
            scope.set_tag(f"{prefix}{i}", "v")

    threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sync.flush(timeout=5)
    queue.shutdown()

    assert len(adapter.user_info["tags"]) == 100
    sizes = [len(info.get("tags", {})) for info in adapter.user_info_history]
    assert sizes == sorted(sizes)
