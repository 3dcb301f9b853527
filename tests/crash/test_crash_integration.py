from __future__ import annotations

from datetime import timedelta

import pytest

from relaunch.core.crash.adapter import InMemoryCrashAdapter
from relaunch.core.dispatch import ImmediateDispatchQueue
from relaunch.core.hub import Client, Hub
from relaunch.core.integration import CrashIntegration
from relaunch.core.options import Options
from relaunch.core.session.models import SessionStatus
from relaunch.core.session.reconciler import ReconcileAction
from conftest import BOOT, T0
from helpers.adapters import FailingCrashAdapter
from helpers.factories import make_app_state, make_session


@pytest.fixture
def options(isolated_project_env):
    return Options(
        release="app@1.0.0",
        dist="7",
        environment="test",
        store_dir=isolated_project_env / "store",
    )


@pytest.fixture
def hub(options, clock):
    return Hub(Client(options), clock=clock)


def _integration(adapter, device_facts, clock) -> CrashIntegration:
    return CrashIntegration(adapter, queue=ImmediateDispatchQueue(), device_facts=device_facts, clock=clock)


def test_install_ends_crashed_session(options, hub, device_facts, clock) -> None:
    store = hub.client.store
    store.store_current_session(make_session(T0))
    clock.set(T0 + timedelta(seconds=10))
    adapter = InMemoryCrashAdapter(crashed_last_launch=True)

    result = _integration(adapter, device_facts, clock).install(options, hub)

    assert adapter.installed
    assert result.action is ReconcileAction.END_CRASHED
    assert store.read_current_session() is None
    assert store.read_crashed_session().status is SessionStatus.CRASHED


def test_install_detects_oom(options, hub, device_facts, clock) -> None:
    store = hub.client.store
    store.store_current_session(make_session(T0))
    store.store_app_state(make_app_state(BOOT, release_name="app@1.0.0"))

    result = _integration(InMemoryCrashAdapter(), device_facts, clock).install(options, hub)

    assert result.action is ReconcileAction.END_ABNORMAL
    assert store.read_crashed_session().status is SessionStatus.ABNORMAL


def test_oom_disabled_keeps_current_session(options, hub, device_facts, clock) -> None:
    options.enable_out_of_memory_tracking = False
    store = hub.client.store
    store.store_current_session(make_session(T0))
    store.store_app_state(make_app_state(BOOT, release_name="app@1.0.0"))

    result = _integration(InMemoryCrashAdapter(), device_facts, clock).install(options, hub)

    assert result.action is ReconcileAction.LEAVE_RUNNING
    assert store.read_current_session() is not None
    assert store.read_crashed_session() is None


def test_install_without_client_touches_nothing(options, device_facts, clock) -> None:
    store = Client(options).store
    store.store_current_session(make_session(T0))
    before = store.snapshot()

    result = _integration(
        InMemoryCrashAdapter(crashed_last_launch=True), device_facts, clock
    ).install(options, Hub(clock=clock))

    assert result.action is ReconcileAction.NOOP_NO_CLIENT
    assert store.snapshot() == before


def test_install_records_active_app_state(options, hub, device_facts, clock) -> None:
    _integration(InMemoryCrashAdapter(), device_facts, clock).install(options, hub)

    state = hub.client.store.read_app_state()
    assert state.is_active
    assert state.release_name == "app@1.0.0"
    assert state.os_version == "6.1.0"


def test_second_install_skips_reconciliation(options, hub, device_facts, clock) -> None:
    store = hub.client.store
    integration = _integration(InMemoryCrashAdapter(), device_facts, clock)
    first = integration.install(options, hub)
    store.store_current_session(make_session(T0))
    integration.adapter.crashed = True

    second = integration.install(options, hub)

    assert second is first
    assert store.read_current_session() is not None


def test_stitch_async_code_installs_hooks(options, hub, device_facts, clock) -> None:
    options.stitch_async_code = True
    adapter = InMemoryCrashAdapter()

    _integration(adapter, device_facts, clock).install(options, hub)

    assert adapter.install_async_hooks_called
    assert adapter.async_hooks_installed


def test_async_hooks_off_by_default(options, hub, device_facts, clock) -> None:
    adapter = InMemoryCrashAdapter()

    _integration(adapter, device_facts, clock).install(options, hub)

    assert not adapter.install_async_hooks_called


def test_uninstall_deactivates_hooks_and_sync(options, hub, device_facts, clock) -> None:
    options.stitch_async_code = True
    adapter = InMemoryCrashAdapter()
    integration = _integration(adapter, device_facts, clock)
    integration.install(options, hub)

    integration.uninstall()
    pushes = len(adapter.user_info_history)
    hub.scope.set_tag("after", "uninstall")

    assert adapter.uninstall_async_hooks_called
    assert not adapter.async_hooks_installed
    assert not adapter.installed
    assert len(adapter.user_info_history) == pushes
    assert hub.client.store.read_app_state().was_terminated
    assert not integration.installed


def test_uninstall_without_install_is_safe() -> None:
    CrashIntegration(InMemoryCrashAdapter()).uninstall()


def test_scope_changes_reach_crash_metadata(options, hub, device_facts, clock) -> None:
    adapter = InMemoryCrashAdapter()
    _integration(adapter, device_facts, clock).install(options, hub)

    hub.configure_scope(lambda scope: scope.set_tags({"t1": "a"}))
    hub.configure_scope(lambda scope: scope.set_tags({"t1": "a", "t2": "b"}))

    info = adapter.user_info
    assert info["tags"] == {"t1": "a", "t2": "b"}
    assert info["release"] == "app@1.0.0"
    assert info["dist"] == "7"
    assert info["context"]["os"] == {"name": "Linux", "version": "6.1.0"}
    assert info["context"]["device"] == {"family": "Linux"}


def test_install_never_raises_on_store_failure(options, hub, device_facts, clock, monkeypatch) -> None:
    def _fail(*_args, **_kwargs):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(hub.client.store, "store_app_state", _fail)

    result = _integration(InMemoryCrashAdapter(), device_facts, clock).install(options, hub)

    assert result.action is ReconcileAction.NOOP_NO_SESSION


def test_install_survives_foreign_adapter_errors(options, hub, device_facts, clock) -> None:
    store = hub.client.store
    store.store_current_session(make_session(T0))
    adapter = FailingCrashAdapter(fail_install=True)
    integration = _integration(adapter, device_facts, clock)

    result = integration.install(options, hub)
    hub.scope.set_tag("k", "v")

    assert result.action is ReconcileAction.LEAVE_RUNNING
    assert store.read_current_session().status is SessionStatus.OK
    assert integration.synchronizer is not None
    assert adapter.user_info["tags"] == {"k": "v"}
    assert store.read_app_state().is_active


def test_reinstall_after_uninstall_does_not_reconcile_again(options, hub, device_facts, clock) -> None:
    store = hub.client.store
    adapter = InMemoryCrashAdapter()
    integration = _integration(adapter, device_facts, clock)
    first = integration.install(options, hub)
    live = hub.start_session()
    integration.uninstall()
    adapter.crashed = True

    second = integration.install(options, hub)

    assert integration.installed
    assert second is first
    assert store.read_current_session().id == live.id
    assert store.read_current_session().status is SessionStatus.OK
    assert store.read_crashed_session() is None
